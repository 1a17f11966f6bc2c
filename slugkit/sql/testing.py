# (c) Nelen & Schuurmans

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any
from unittest import mock

from sqlalchemy.dialects import postgresql
from sqlalchemy.sql import Executable

from slugkit.base.domain import Json

from .sql_provider import SQLProvider

__all__ = ["FakeSQLDatabase", "assert_query_equal"]


class FakeSQLDatabase(SQLProvider):
    """Records the queries it receives; ``result`` determines what they return."""

    def __init__(self):
        self.queries: list[list[Executable]] = []
        self.result = mock.Mock(return_value=[])

    async def execute(
        self, query: Executable, _: dict[str, Any] | None = None
    ) -> list[Json]:
        self.queries.append([query])
        return self.result()

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator["SQLProvider"]:  # type: ignore
        x = FakeSQLTransaction(result=self.result)
        self.queries.append(x.queries)
        yield x


class FakeSQLTransaction(SQLProvider):
    def __init__(self, result: mock.Mock):
        self.queries: list[Executable] = []
        self.result = result

    async def execute(
        self, query: Executable, _: dict[str, Any] | None = None
    ) -> list[Json]:
        self.queries.append(query)
        return self.result()


def assert_query_equal(q: Executable, expected: str):
    """Compile ``q`` for PostgreSQL with inlined parameters and compare."""
    assert isinstance(q, Executable)
    compiled = q.compile(
        compile_kwargs={"literal_binds": True},
        dialect=postgresql.dialect(),
    )
    actual = str(compiled).replace("\n", "").replace("  ", " ")
    assert actual == expected
