# (c) Nelen & Schuurmans

from abc import ABC
from datetime import datetime
from typing import Callable
from typing import List
from typing import Optional

from .exceptions import DoesNotExist
from .filter import Filter
from .types import Id
from .types import Json

__all__ = ["Gateway"]


class Gateway(ABC):
    async def filter(self, filters: List[Filter]) -> List[Json]:
        raise NotImplementedError()

    async def get(self, id: Id) -> Optional[Json]:
        result = await self.filter([Filter.for_id(id)])
        return result[0] if result else None

    async def add(self, item: Json) -> Json:
        raise NotImplementedError()

    async def update(
        self, item: Json, if_unmodified_since: Optional[datetime] = None
    ) -> Json:
        raise NotImplementedError()

    async def update_transactional(self, id: Id, func: Callable[[Json], Json]) -> Json:
        """Apply ``func`` to the current record and store the result.

        Raises Conflict if the record changed in between.
        """
        existing = await self.get(id)
        if existing is None:
            raise DoesNotExist("record", id)
        return await self.update(
            func(existing), if_unmodified_since=existing["updated_at"]
        )

    async def remove(self, id: Id) -> bool:
        raise NotImplementedError()

    async def remove_many(self, filters: List[Filter]) -> int:
        """Remove all records matching the filters; returns the number removed."""
        removed = 0
        for record in await self.filter(filters):
            if await self.remove(record["id"]):
                removed += 1
        return removed
