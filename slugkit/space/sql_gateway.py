# (c) Nelen & Schuurmans

from sqlalchemy import BigInteger
from sqlalchemy import Boolean
from sqlalchemy import case
from sqlalchemy import cast
from sqlalchemy import Column
from sqlalchemy import DateTime
from sqlalchemy import Float
from sqlalchemy import Index
from sqlalchemy import Integer
from sqlalchemy import MetaData
from sqlalchemy import String
from sqlalchemy import Table
from sqlalchemy import Text
from sqlalchemy.dialects.postgresql import UUID

from slugkit.base.domain import Filter
from slugkit.base.domain import Json
from slugkit.base.domain import now
from slugkit.sql import SQLGateway

from .usage_gateway import SpaceUsageGateway

__all__ = ["slug_space_usage", "SpaceUsageSQLGateway", "metadata"]


metadata = MetaData()

slug_space_usage = Table(
    "slug_space_usage",
    metadata,
    Column("id", UUID(as_uuid=True), primary_key=True),
    Column("strategy", String(20), nullable=False),
    Column("alphabet_hash", String(64), nullable=False),
    Column("alphabet", Text, nullable=False),
    Column("length", Integer, nullable=False),
    Column("namespace", String(50), nullable=True),
    Column("usage_count", BigInteger, nullable=False, default=0),
    Column("total_space", BigInteger, nullable=False),
    Column("usage_percentage", Float, nullable=False, default=0.0),
    Column("warning_threshold", Float, nullable=False, default=0.75),
    Column("critical_threshold", Float, nullable=False, default=0.9),
    Column("is_warning", Boolean, nullable=False, default=False),
    Column("is_critical", Boolean, nullable=False, default=False),
    Column("is_exhausted", Boolean, nullable=False, default=False),
    Column("warning_reached_at", DateTime(timezone=True), nullable=True),
    Column("critical_reached_at", DateTime(timezone=True), nullable=True),
    Column("exhausted_at", DateTime(timezone=True), nullable=True),
    Column("last_calculated_at", DateTime(timezone=True), nullable=True),
    Column("created_at", DateTime(timezone=True), nullable=False),
    Column("updated_at", DateTime(timezone=True), nullable=False),
    # NULLS NOT DISTINCT: at most one record without namespace per configuration
    Index(
        "idx_strategy_alphabet_length_namespace",
        "strategy",
        "alphabet_hash",
        "length",
        "namespace",
        unique=True,
        postgresql_nulls_not_distinct=True,
    ),
    Index("idx_namespace", "namespace"),
    Index("idx_usage_count", "usage_count"),
)


class SpaceUsageSQLGateway(SQLGateway, SpaceUsageGateway, table=slug_space_usage):
    async def increment_usage(self, filters: list[Filter]) -> Json | None:
        c = self.table.c
        query = self.builder.update_where(
            filters,
            {
                "usage_count": c.usage_count + 1,
                "usage_percentage": case(
                    (
                        c.total_space > 0,
                        cast(c.usage_count + 1, Float) / c.total_space,
                    ),
                    else_=0.0,
                ),
                "updated_at": now(),
            },
        )
        result = await self.execute(query)
        return result[0] if result else None
