# (c) Nelen & Schuurmans

from datetime import datetime

from sqlalchemy import and_
from sqlalchemy import delete
from sqlalchemy import Executable
from sqlalchemy import or_
from sqlalchemy import select
from sqlalchemy import Table
from sqlalchemy import true
from sqlalchemy import update
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.sql.expression import ColumnElement
from sqlalchemy.sql.expression import false

from slugkit.base.domain import ComparisonFilter
from slugkit.base.domain import Filter
from slugkit.base.domain import Id
from slugkit.base.domain import Json

__all__ = ["SQLBuilder"]


class SQLBuilder:
    def __init__(self, table: Table):
        self.table = table

    def _filter_to_sql(self, filter: Filter) -> ColumnElement:
        try:
            column = getattr(self.table.c, filter.field)
        except AttributeError:
            return false()
        if isinstance(filter, ComparisonFilter):
            return filter.operator.func(column, filter.values[0])
        # NULL never equals anything, so None needs its own clause
        values = [x for x in filter.values if x is not None]
        clauses = []
        if len(values) == 1:
            clauses.append(column == values[0])
        elif len(values) > 1:
            clauses.append(column.in_(values))
        if len(values) != len(filter.values):
            clauses.append(column.is_(None))
        if not clauses:
            return false()
        return or_(*clauses) if len(clauses) > 1 else clauses[0]

    def _filters_to_sql(self, filters: list[Filter]) -> ColumnElement:
        if not filters:
            return true()
        return and_(*[self._filter_to_sql(x) for x in filters])

    def _id_filter_to_sql(self, id: Id) -> ColumnElement:
        return self._filters_to_sql([Filter.for_id(id)])

    def _santize_item(self, item: Json) -> Json:
        known = {c.key for c in self.table.c}
        result = {k: item[k] for k in item.keys() if k in known}
        if "id" in result and result["id"] is None:
            del result["id"]
        return result

    def select(self, filters: list[Filter], for_update: bool = False) -> Executable:
        query = select(self.table)
        if for_update:
            query = query.with_for_update()
        if filters:
            query = query.where(self._filters_to_sql(filters))
        return query

    def insert(self, item: Json) -> Executable:
        return (
            insert(self.table).values(**self._santize_item(item)).returning(self.table)
        )

    def update(self, id: Id, item: Json, if_unmodified_since: datetime | None):
        q = self._id_filter_to_sql(id)
        if if_unmodified_since is not None:
            q &= self.table.c.updated_at == if_unmodified_since
        return (
            update(self.table)
            .where(q)
            .values(**self._santize_item(item))
            .returning(self.table)
        )

    def update_where(self, filters: list[Filter], values: Json) -> Executable:
        """Single-statement update; ``values`` may contain column expressions."""
        return (
            update(self.table)
            .where(self._filters_to_sql(filters))
            .values(**self._santize_item(values))
            .returning(self.table)
        )

    def delete(self, id: Id) -> Executable:
        return (
            delete(self.table)
            .where(self._id_filter_to_sql(id))
            .returning(self.table.c.id)
        )

    def delete_where(self, filters: list[Filter]) -> Executable:
        return (
            delete(self.table)
            .where(self._filters_to_sql(filters))
            .returning(self.table.c.id)
        )

