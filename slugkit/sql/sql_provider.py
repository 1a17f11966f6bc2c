# (c) Nelen & Schuurmans

from collections.abc import AsyncIterator
from typing import Any

from sqlalchemy.sql import Executable

from slugkit.base.domain import Json

__all__ = ["SQLProvider"]


class SQLProvider:
    async def execute(
        self, query: Executable, bind_params: dict[str, Any] | None = None
    ) -> list[Json]:
        raise NotImplementedError()

    async def transaction(self) -> AsyncIterator["SQLProvider"]:
        raise NotImplementedError()
        yield
