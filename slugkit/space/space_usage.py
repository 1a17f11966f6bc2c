# (c) Nelen & Schuurmans

from datetime import datetime
from enum import Enum

from pydantic import Field
from pydantic import model_validator

from slugkit.base.domain import now
from slugkit.base.domain import RootEntity

__all__ = ["SpaceUsage", "SpaceStatus", "compute_total_space", "MAX_SAFE_INTEGER"]


# identifier spaces larger than this are treated as this size
MAX_SAFE_INTEGER = 2**53 - 1


def compute_total_space(alphabet_size: int, length: int) -> int:
    """The number of distinct slugs of ``length`` over an alphabet, saturated."""
    if alphabet_size <= 0 or length <= 0:
        return 0
    total = 1
    for _ in range(length):
        if total > MAX_SAFE_INTEGER // alphabet_size:
            return MAX_SAFE_INTEGER
        total *= alphabet_size
    return total


class SpaceStatus(str, Enum):
    SAFE = "safe"
    WARNING = "warning"
    CRITICAL = "critical"
    EXHAUSTED = "exhausted"


class SpaceUsage(RootEntity):
    """Accounting record of one identifier space.

    An identifier space is keyed by (strategy, alphabet_hash, length,
    namespace). The space counts as exhausted as soon as the critical
    threshold is reached, so ``is_exhausted`` always equals ``is_critical``.
    """

    strategy: str
    alphabet: str
    alphabet_hash: str
    length: int = Field(gt=0)
    namespace: str | None = None
    usage_count: int = Field(default=0, ge=0)
    total_space: int = Field(ge=0)
    usage_percentage: float = 0.0
    warning_threshold: float = Field(default=0.75, ge=0, le=1)
    critical_threshold: float = Field(default=0.90, ge=0, le=1)
    is_warning: bool = False
    is_critical: bool = False
    is_exhausted: bool = False
    warning_reached_at: datetime | None = None
    critical_reached_at: datetime | None = None
    exhausted_at: datetime | None = None
    last_calculated_at: datetime | None = None

    @model_validator(mode="after")
    def check_thresholds(self):
        if self.warning_threshold > self.critical_threshold:
            raise ValueError("warning_threshold cannot exceed critical_threshold")
        return self

    @classmethod
    def create(cls, **values) -> "SpaceUsage":
        usage_count = values.get("usage_count", 0)
        total_space = values["total_space"]
        values.setdefault(
            "usage_percentage", usage_count / total_space if total_space > 0 else 0.0
        )
        values.setdefault("last_calculated_at", now())
        return super().create(**values).with_thresholds_applied()

    @property
    def remaining_space(self) -> int:
        return self.total_space - self.usage_count

    @property
    def utilization_percentage(self) -> float:
        return self.usage_percentage * 100

    @property
    def space_key(self) -> str:
        parts = [self.strategy, self.alphabet_hash, str(self.length)]
        if self.namespace:
            parts.append(self.namespace)
        return ":".join(parts)

    @property
    def is_approaching_exhaustion(self) -> bool:
        return self.usage_percentage >= self.warning_threshold

    @property
    def is_critically_full(self) -> bool:
        return self.usage_percentage >= self.critical_threshold

    @property
    def prevents_generation(self) -> bool:
        return self.is_exhausted or self.is_critically_full

    @property
    def status(self) -> SpaceStatus:
        if self.is_exhausted:
            return SpaceStatus.EXHAUSTED
        if self.is_critically_full:
            return SpaceStatus.CRITICAL
        if self.is_approaching_exhaustion:
            return SpaceStatus.WARNING
        return SpaceStatus.SAFE

    def with_usage(self, usage_count: int) -> "SpaceUsage":
        """Set a recounted usage; recomputes the percentage and the flags."""
        return self.update(
            usage_count=usage_count,
            usage_percentage=(
                usage_count / self.total_space if self.total_space > 0 else 0.0
            ),
            last_calculated_at=now(),
        ).with_thresholds_applied()

    def with_thresholds_applied(self) -> "SpaceUsage":
        """Bring the flags in line with the usage percentage.

        Entering a state stamps its timestamp, leaving it clears it. Returns
        ``self`` when nothing changed.
        """
        timestamp = now()
        critical = self.is_critically_full
        target = {
            "is_warning": self.is_approaching_exhaustion,
            "is_critical": critical,
            "is_exhausted": critical,
        }
        stamps = {
            "is_warning": "warning_reached_at",
            "is_critical": "critical_reached_at",
            "is_exhausted": "exhausted_at",
        }
        values = {}
        for flag, value in target.items():
            if getattr(self, flag) != value:
                values[flag] = value
                values[stamps[flag]] = timestamp if value else None
        if not values:
            return self
        return self.update(**values)

    def flags(self) -> dict:
        return {
            "is_warning": self.is_warning,
            "is_critical": self.is_critical,
            "is_exhausted": self.is_exhausted,
            "warning_reached_at": self.warning_reached_at,
            "critical_reached_at": self.critical_reached_at,
            "exhausted_at": self.exhausted_at,
        }
