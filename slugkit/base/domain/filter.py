# (c) Nelen & Schuurmans

import operator
from enum import Enum
from typing import Any

from pydantic import model_validator

from .types import Id
from .value_object import ValueObject

__all__ = ["Filter", "ComparisonFilter", "ComparisonOperator"]


class Filter(ValueObject):
    field: str
    values: list[Any]

    @classmethod
    def for_id(cls, id: Id) -> "Filter":
        return cls(field="id", values=[id])

    def matches(self, value: Any) -> bool:
        return value in self.values


class ComparisonOperator(str, Enum):
    LT = "lt"
    LE = "le"
    GE = "ge"
    GT = "gt"
    EQ = "eq"
    NE = "ne"

    @property
    def func(self):
        return getattr(operator, self.value)


class ComparisonFilter(Filter):
    operator: ComparisonOperator

    @model_validator(mode="after")
    def verify_no_operator_for_multiple_values(self):
        if len(self.values) != 1:
            raise ValueError("ComparisonFilter needs to have exactly one value")
        return self

    def matches(self, value: Any) -> bool:
        if value is None:
            return False
        return self.operator.func(value, self.values[0])
