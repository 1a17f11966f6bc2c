# (c) Nelen & Schuurmans

from typing import Any

from slugkit.alphabets import clamp_slug_length
from slugkit.base.domain import BadRequest
from slugkit.base.domain import Json
from slugkit.settings import SlugSettings

from .base import OptionsValidation
from .base import SlugOptions
from .base import SlugStrategy
from .base import StrategyDescriptor
from .base import StrategyName
from .nanoid_strategy import NanoidStrategy
from .uuid_strategy import UuidStrategy

__all__ = ["StrategyRegistry", "FALLBACK_STRATEGIES"]


FALLBACK_STRATEGIES = (StrategyName.NANOID, StrategyName.UUID)


class StrategyRegistry:
    """Looks up strategies by name, restricted to the configured ones.

    Options are preprocessed before they reach a strategy: the length is
    defaulted and clamped to the configured bounds.
    """

    def __init__(
        self,
        settings: SlugSettings | None = None,
        strategies: list[SlugStrategy] | None = None,
    ):
        self.settings = settings or SlugSettings()
        if strategies is None:
            strategies = [NanoidStrategy(), UuidStrategy()]
        self._strategies = {x.name.value: x for x in strategies}

    @property
    def default_strategy(self) -> str:
        return self.settings.default_strategy

    def available(self) -> list[str]:
        return [x for x in self.settings.available_strategies if x in self._strategies]

    def is_available(self, name: str | StrategyName) -> bool:
        return _value(name) in self.available()

    def get(self, name: str | StrategyName | None = None) -> SlugStrategy:
        name = _value(name) or self.default_strategy
        if not self.is_available(name):
            raise BadRequest(
                f"Strategy '{name}' is not available. Available strategies: "
                f"{', '.join(self.available())}"
            )
        return self._strategies[name]

    def preprocess(self, options: SlugOptions | None = None) -> SlugOptions:
        if options is None or options.length is None:
            length = self.settings.default_length
        else:
            length = options.length
        length = clamp_slug_length(
            length, self.settings.min_length, self.settings.max_length
        )
        if options is None:
            return SlugOptions(length=length)
        return options.update(length=length)

    def generate(
        self,
        name: str | StrategyName | None = None,
        options: SlugOptions | None = None,
    ) -> str:
        strategy = self.get(name)
        options = self.preprocess(options)
        try:
            return strategy.generate(options)
        except BadRequest:
            raise
        except ValueError as e:
            raise BadRequest(f"Slug generation failed: {e}")

    def validate_slug(
        self,
        slug: str,
        name: str | StrategyName | None = None,
        options: SlugOptions | None = None,
    ) -> OptionsValidation:
        try:
            strategy = self.get(name)
            options = self.preprocess(options)
            return strategy.validate_slug(slug, options)
        except BadRequest as e:
            return OptionsValidation.from_errors(
                [str(e)], ["Verify strategy name and options"]
            )

    def descriptors(self) -> list[StrategyDescriptor]:
        return [self._strategies[x].descriptor() for x in self.available()]

    def configuration(self) -> Json:
        return {
            "default_strategy": self.settings.default_strategy,
            "default_length": self.settings.default_length,
            "min_length": self.settings.min_length,
            "max_length": self.settings.max_length,
            "max_retries": self.settings.max_collision_retries,
            "available_strategies": self.available(),
        }

    def suggested_fallback(
        self, current: str | StrategyName, attempt: int
    ) -> str | None:
        """Name of another strategy to try once collisions keep piling up."""
        if attempt < self.settings.max_collision_retries - 1:
            return None
        current = _value(current)
        for name in FALLBACK_STRATEGIES:
            if name.value != current and self.is_available(name):
                return name.value
        return None

    def suggested_length(self, current: int, attempt: int) -> int:
        return clamp_slug_length(
            current + min(attempt, 3),
            self.settings.min_length,
            self.settings.max_length,
        )


def _value(name: Any) -> str | None:
    if isinstance(name, StrategyName):
        return name.value
    return name