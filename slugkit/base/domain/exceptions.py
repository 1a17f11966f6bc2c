# (c) Nelen & Schuurmans

from typing import Any

from pydantic import create_model
from pydantic import ValidationError
from pydantic_core import ErrorDetails

from .types import Id
from .types import Json

__all__ = [
    "AlreadyExists",
    "Conflict",
    "DoesNotExist",
    "PreconditionFailed",
    "BadRequest",
    "CustomSlugRejected",
    "CollisionExhausted",
    "SpaceExhausted",
    "TrackingFailure",
]


class DoesNotExist(Exception):
    def __init__(self, name: str, id: Id | None = None):
        super().__init__()
        self.name = name
        self.id = id

    def __str__(self):
        if self.id:
            return f"does not exist: {self.name} with id={self.id}"
        else:
            return f"does not exist: {self.name}"


class Conflict(Exception):
    def __init__(self, msg: str | None = None):
        super().__init__(msg)


class AlreadyExists(Exception):
    """Raised by a store when a uniqueness constraint is violated.

    For slugs this is the final collision authority: a slug that passed the
    collision predicate may still be taken at commit time.
    """

    def __init__(self, value: Any = None, key: str = "id"):
        super().__init__(f"record with {key}={value} already exists")
        self.key = key
        self.value = value


class PreconditionFailed(Exception):
    def __init__(self, msg: str = "precondition failed", obj: Any = None):
        super().__init__(msg)
        self.obj = obj


# pydantic.ValidationError needs some model; for us it doesn't matter
# We do it the same way as FastAPI does it.
request_model = create_model("Request")


class BadRequest(Exception):
    def __init__(self, err_or_msg: ValidationError | str):
        self._internal_error = err_or_msg
        super().__init__(err_or_msg)

    def errors(self) -> list[ErrorDetails]:
        if isinstance(self._internal_error, ValidationError):
            return self._internal_error.errors()
        return [
            ErrorDetails(
                type="value_error",
                msg=self._internal_error,
                loc=[],  # type: ignore
                input=None,
            )
        ]

    def __str__(self) -> str:
        error = self._internal_error
        if isinstance(error, ValidationError):
            details = error.errors()[0]
            loc = "'" + ",".join([str(x) for x in details["loc"]]) + "' "
            if loc == "'*' ":
                loc = ""
            return f"validation error: {loc}{details['msg']}"
        return f"validation error: {super().__str__()}"


class CustomSlugRejected(BadRequest):
    def __init__(self, errors: list[str], suggestions: list[str] | None = None):
        super().__init__("custom slug validation failed: " + "; ".join(errors))
        self.slug_errors = list(errors)
        self.suggestions = list(suggestions or [])


class CollisionExhausted(Conflict):
    def __init__(self, attempts: int, recommendations: list[str] | None = None):
        self.attempts = attempts
        self.recommendations = list(recommendations or [])
        msg = (
            f"Failed to generate unique slug after {attempts} attempts. "
            "Try increasing length or using a different strategy"
        )
        if self.recommendations:
            msg += ". " + " ".join(self.recommendations)
        super().__init__(msg)


class SpaceExhausted(PreconditionFailed):
    def __init__(self, space_info: Json, recommendations: list[str] | None = None):
        self.recommendations = list(recommendations or [])
        super().__init__("slug space is exhausted", obj=space_info)

    @property
    def space_info(self) -> Json:
        return self.obj


class TrackingFailure(Exception):
    pass
