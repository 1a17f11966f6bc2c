# (c) Nelen & Schuurmans

from collections.abc import Awaitable
from collections.abc import Callable
from typing import Any
from typing import Union
from uuid import UUID

__all__ = ["Json", "Id", "CollisionChecker", "UsageCounter"]


Json = dict[str, Any]
Id = Union[int, str, UUID]

# (slug, namespace) -> True if the slug is already in use
CollisionChecker = Callable[[str, str | None], Awaitable[bool]]

# (strategy, alphabet_hash, length, namespace) -> number of issued slugs
UsageCounter = Callable[[str, str, int, str | None], Awaitable[int]]
