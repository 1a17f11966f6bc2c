# (c) Nelen & Schuurmans

from datetime import timedelta
from typing import Annotated

from pydantic import Field
from pydantic import field_validator
from pydantic import model_validator
from pydantic_settings import BaseSettings
from pydantic_settings import NoDecode
from pydantic_settings import SettingsConfigDict

from .alphabets import DEFAULT_SLUG_LENGTH
from .alphabets import MAX_ADAPTIVE_LENGTH
from .alphabets import MAX_COLLISION_RETRIES
from .alphabets import MAX_SLUG_LENGTH
from .alphabets import MIN_SLUG_LENGTH

__all__ = ["SlugSettings", "DEFAULT_RESERVED_SLUGS"]


DEFAULT_RESERVED_SLUGS = (
    "api",
    "admin",
    "www",
    "app",
    "docs",
    "health",
    "status",
    "metrics",
    "dashboard",
)


class SlugSettings(BaseSettings):
    """Deployment configuration; read from SLUG_* environment variables.

    Construct it once at startup and pass it to the registry, the validator,
    the tracker and the generator.
    """

    model_config = SettingsConfigDict(env_prefix="SLUG_", frozen=True)

    default_strategy: str = Field(
        default="nanoid", description="Strategy used when a request names none"
    )
    available_strategies: Annotated[list[str], NoDecode] = Field(
        default=["nanoid", "uuid"],
        description="Strategies that may be requested (comma separated)",
    )
    default_length: int = Field(default=DEFAULT_SLUG_LENGTH)
    min_length: int = Field(default=MIN_SLUG_LENGTH, ge=1)
    max_length: int = Field(default=MAX_SLUG_LENGTH, ge=1)
    max_collision_retries: int = Field(default=MAX_COLLISION_RETRIES, ge=1)
    max_commit_retries: int = Field(
        default=3,
        ge=1,
        description="How often a slug that was taken at commit time is regenerated",
    )
    max_adaptive_length: int = Field(default=MAX_ADAPTIVE_LENGTH)
    warning_threshold: float = Field(default=0.75, ge=0, le=1)
    critical_threshold: float = Field(default=0.90, ge=0, le=1)
    stale_after: timedelta = Field(
        default=timedelta(minutes=15),
        description="Usage records older than this are recalculated on validation",
    )
    cleanup_days: int = Field(default=30, ge=0)
    suggestion_count: int = Field(default=5, ge=0)
    reserved_slugs: Annotated[list[str], NoDecode] = Field(
        default=list(DEFAULT_RESERVED_SLUGS),
        description="Slugs that users may not claim (comma separated)",
    )

    @field_validator("available_strategies", "reserved_slugs", mode="before")
    @classmethod
    def split_comma_separated(cls, v):
        if isinstance(v, str):
            return [x.strip() for x in v.split(",") if x.strip()]
        return v

    @field_validator("reserved_slugs")
    @classmethod
    def lowercase_reserved(cls, v: list[str]) -> list[str]:
        return [x.lower() for x in v]

    @model_validator(mode="after")
    def check_consistency(self):
        if self.min_length > self.max_length:
            raise ValueError("min_length cannot be larger than max_length")
        if not self.min_length <= self.default_length <= self.max_length:
            raise ValueError(
                "default_length must lie between min_length and max_length"
            )
        if self.warning_threshold > self.critical_threshold:
            raise ValueError("warning_threshold cannot exceed critical_threshold")
        if self.default_strategy not in self.available_strategies:
            raise ValueError(
                f"Default slug generation strategy '{self.default_strategy}' is not "
                f"available. Available strategies: "
                f"{', '.join(self.available_strategies)}"
            )
        return self
