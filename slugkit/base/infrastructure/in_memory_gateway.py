# (c) Nelen & Schuurmans

from copy import deepcopy
from datetime import datetime
from typing import List
from typing import Optional

from slugkit.base.domain import AlreadyExists
from slugkit.base.domain import BadRequest
from slugkit.base.domain import Conflict
from slugkit.base.domain import DoesNotExist
from slugkit.base.domain import Filter
from slugkit.base.domain import Gateway
from slugkit.base.domain import Id
from slugkit.base.domain import Json

__all__ = ["InMemoryGateway"]


class InMemoryGateway(Gateway):
    """For testing purposes, or for a single process that does not need persistence.

    Every method body runs without awaiting, so within one event loop each
    operation is atomic. Records must carry their own ``id``.
    """

    def __init__(self, data: List[Json]):
        self.data = {x["id"]: deepcopy(x) for x in data}

    def _matching(self, filters: List[Filter]) -> List[Json]:
        return [
            x
            for x in self.data.values()
            if all(f.matches(x.get(f.field)) for f in filters)
        ]

    async def filter(self, filters: List[Filter]) -> List[Json]:
        return [deepcopy(x) for x in self._matching(filters)]

    async def add(self, item: Json) -> Json:
        id_ = item.get("id")
        if id_ is None:
            raise BadRequest("cannot add a record without an id")
        if id_ in self.data:
            raise AlreadyExists(id_)
        self.data[id_] = deepcopy(item)
        return deepcopy(self.data[id_])

    async def update(
        self, item: Json, if_unmodified_since: Optional[datetime] = None
    ) -> Json:
        _id = item.get("id")
        if _id is None or _id not in self.data:
            raise DoesNotExist("item", _id)
        existing = self.data[_id]
        if if_unmodified_since and existing.get("updated_at") != if_unmodified_since:
            raise Conflict()
        existing.update(item)
        return deepcopy(existing)

    async def remove(self, id: Id) -> bool:
        if id not in self.data:
            return False
        del self.data[id]
        return True
