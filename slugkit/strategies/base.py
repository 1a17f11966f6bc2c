# (c) Nelen & Schuurmans

import re
from abc import ABC
from abc import abstractmethod
from enum import Enum
from typing import ClassVar
from typing import Literal

from slugkit.alphabets import AlphabetType
from slugkit.alphabets import PatternType
from slugkit.alphabets import resolve_pattern
from slugkit.base.domain import ValueObject

__all__ = [
    "StrategyName",
    "SlugOptions",
    "OptionsValidation",
    "StrategyDescriptor",
    "SlugStrategy",
]


class StrategyName(str, Enum):
    NANOID = "nanoid"
    UUID = "uuid"


class SlugOptions(ValueObject):
    length: int | None = None
    alphabet: str | None = None
    alphabet_type: AlphabetType | None = None
    pattern: str | None = None
    pattern_type: PatternType | None = None
    # uuid only
    version: Literal["v4", "v7"] | None = None

    def resolved_pattern(self) -> re.Pattern | None:
        return resolve_pattern(self.pattern, self.pattern_type)


class OptionsValidation(ValueObject):
    is_valid: bool
    errors: list[str] = []
    suggestions: list[str] = []

    @classmethod
    def from_errors(
        cls, errors: list[str], suggestions: list[str]
    ) -> "OptionsValidation":
        return cls(is_valid=not errors, errors=errors, suggestions=suggestions)


class StrategyDescriptor(ValueObject):
    name: str
    display_name: str
    description: str
    category: Literal["secure", "readable", "compact", "custom"]
    features: list[str]
    default_length: int
    min_length: int
    max_length: int
    recommended_lengths: list[int]
    supported_alphabets: list[str]
    supported_patterns: list[str]
    supports_custom_alphabet: bool
    supports_custom_pattern: bool
    supports_custom_length: bool
    examples: list[str] = []


class SlugStrategy(ABC):
    """A stateless algorithm that produces candidate slugs."""

    name: ClassVar[StrategyName]

    @abstractmethod
    def generate(self, options: SlugOptions | None = None) -> str:
        """Produce one candidate; raises BadRequest for unusable options."""

    @abstractmethod
    def validate_options(self, options: SlugOptions | None = None) -> OptionsValidation:
        pass

    @abstractmethod
    def validate_slug(
        self, slug: str, options: SlugOptions | None = None
    ) -> OptionsValidation:
        pass

    def is_valid(self, slug: str, options: SlugOptions | None = None) -> bool:
        return self.validate_slug(slug, options).is_valid

    @abstractmethod
    def space_alphabet(self, options: SlugOptions | None = None) -> str:
        """The characters this strategy draws from; determines the identifier space."""

    @abstractmethod
    def default_options(self) -> SlugOptions:
        pass

    @abstractmethod
    def supported_features(self) -> list[str]:
        pass

    @abstractmethod
    def descriptor(self) -> StrategyDescriptor:
        pass
