# (c) Nelen & Schuurmans

from copy import deepcopy
from typing import List
from typing import Optional

from slugkit.base.domain import AlreadyExists
from slugkit.base.domain import Filter
from slugkit.base.domain import Gateway
from slugkit.base.domain import Json
from slugkit.base.domain import now
from slugkit.base.infrastructure import InMemoryGateway

__all__ = ["SpaceUsageGateway", "InMemorySpaceUsageGateway", "SPACE_KEY_FIELDS"]


SPACE_KEY_FIELDS = ("strategy", "alphabet_hash", "length", "namespace")


class SpaceUsageGateway(Gateway):
    """Storage of space usage records, unique on SPACE_KEY_FIELDS."""

    async def increment_usage(self, filters: List[Filter]) -> Optional[Json]:
        """Add one to usage_count and recompute usage_percentage in one step.

        Returns the updated record, or None if no record matched.
        """
        raise NotImplementedError()


class InMemorySpaceUsageGateway(InMemoryGateway, SpaceUsageGateway):
    def __init__(self, data: Optional[List[Json]] = None):
        super().__init__(data or [])

    @staticmethod
    def _key(item: Json) -> tuple:
        return tuple(item.get(x) for x in SPACE_KEY_FIELDS)

    async def add(self, item: Json) -> Json:
        key = self._key(item)
        if any(self._key(x) == key for x in self.data.values()):
            raise AlreadyExists(key, key=", ".join(SPACE_KEY_FIELDS))
        return await super().add(item)

    async def increment_usage(self, filters: List[Filter]) -> Optional[Json]:
        matching = self._matching(filters)
        if not matching:
            return None
        (record,) = matching
        record["usage_count"] += 1
        total = record["total_space"]
        record["usage_percentage"] = record["usage_count"] / total if total > 0 else 0.0
        record["updated_at"] = now()
        return deepcopy(record)
