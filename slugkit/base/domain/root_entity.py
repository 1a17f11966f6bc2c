# (c) Nelen & Schuurmans

import uuid
from datetime import datetime
from datetime import timezone
from typing import TypeVar

from .exceptions import BadRequest
from .value_object import ValueObject

__all__ = ["RootEntity", "now"]


def now():
    # this function is there so that we can mock it in tests
    return datetime.now(timezone.utc)


T = TypeVar("T", bound="RootEntity")


class RootEntity(ValueObject):
    """A stored record, identified by a uuid that is generated on create.

    ``updated_at`` changes on every update, so it can be used to detect
    concurrent modifications (see ``Gateway.update_transactional``).
    """

    id: uuid.UUID
    created_at: datetime
    updated_at: datetime

    @classmethod
    def create(cls: type[T], **values) -> T:
        values.setdefault("id", uuid.uuid4())
        values.setdefault("created_at", now())
        values.setdefault("updated_at", values["created_at"])
        return super().create(**values)

    def update(self: T, **values) -> T:
        if values.get("id", self.id) != self.id:
            raise BadRequest("Cannot change the id of an entity")
        values.setdefault("updated_at", now())
        return super().update(**values)
