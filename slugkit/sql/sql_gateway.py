# (c) Nelen & Schuurmans
from collections.abc import AsyncIterator
from collections.abc import Callable
from contextlib import asynccontextmanager
from datetime import datetime
from typing import TypeVar

from sqlalchemy import Table
from sqlalchemy.sql import Executable

from slugkit.base.domain import Conflict
from slugkit.base.domain import DoesNotExist
from slugkit.base.domain import Filter
from slugkit.base.domain import Gateway
from slugkit.base.domain import Id
from slugkit.base.domain import Json

from .sql_builder import SQLBuilder
from .sql_provider import SQLProvider

__all__ = ["SQLGateway"]


T = TypeVar("T", bound="SQLGateway")


class SQLGateway(Gateway):
    """Gateway on one SQLAlchemy table. Subclass with ``table=...``."""

    table: Table

    def __init__(self, provider: SQLProvider, nested: bool = False):
        self.provider = provider
        self.nested = nested
        self.builder = SQLBuilder(self.table)

    def __init_subclass__(cls, table: Table, **kwargs) -> None:
        cls.table = table
        super().__init_subclass__(**kwargs)

    @asynccontextmanager
    async def transaction(self: T) -> AsyncIterator[T]:
        if self.nested:
            yield self
        else:
            async with self.provider.transaction() as provider:
                yield self.__class__(provider, nested=True)

    async def execute(self, query: Executable) -> list[Json]:
        return await self.provider.execute(query)

    async def add(self, item: Json) -> Json:
        (result,) = await self.execute(self.builder.insert(item))
        return result

    async def update(
        self, item: Json, if_unmodified_since: datetime | None = None
    ) -> Json:
        id_ = item.get("id")
        if id_ is None:
            raise DoesNotExist("record", id_)
        result = await self.execute(
            self.builder.update(id_, item, if_unmodified_since)
        )
        if not result:
            if if_unmodified_since is not None:
                if await self.get(id_) is not None:
                    raise Conflict()
            raise DoesNotExist("record", id_)
        return result[0]

    async def _select_for_update(self, id: Id) -> Json:
        query = self.builder.select([Filter.for_id(id)], for_update=True)
        result = await self.execute(query)
        if not result:
            raise DoesNotExist("record", id)
        return result[0]

    async def update_transactional(self, id: Id, func: Callable[[Json], Json]) -> Json:
        async with self.transaction() as transaction:
            existing = await transaction._select_for_update(id)
            return await transaction.update(func(existing))

    async def remove(self, id: Id) -> bool:
        return bool(await self.execute(self.builder.delete(id)))

    async def remove_many(self, filters: list[Filter]) -> int:
        return len(await self.execute(self.builder.delete_where(filters)))

    async def filter(self, filters: list[Filter]) -> list[Json]:
        return await self.execute(self.builder.select(filters))
