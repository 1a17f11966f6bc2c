# (c) Nelen & Schuurmans

import secrets
import time
import uuid

from slugkit.alphabets import clamp_slug_length
from slugkit.alphabets import HEX_ALPHABET
from slugkit.alphabets import MAX_SLUG_LENGTH
from slugkit.alphabets import MIN_SLUG_LENGTH
from slugkit.alphabets import UUID_PATTERNS
from slugkit.base.domain import BadRequest

from .base import OptionsValidation
from .base import SlugOptions
from .base import SlugStrategy
from .base import StrategyDescriptor
from .base import StrategyName

__all__ = ["UuidStrategy", "uuid7", "FORMAT_WIDTHS"]


# representation name -> width; chosen by nearest fit to the requested length
FORMAT_WIDTHS = {"short": 8, "medium": 12, "compact": 32, "full": 36}


def uuid7() -> uuid.UUID:
    """Time-ordered UUID (RFC 9562): 48 bits of unix milliseconds, then random bits."""
    value = (time.time_ns() // 1_000_000 & (1 << 48) - 1) << 80
    value |= secrets.randbits(80)
    value = value & ~(0xF << 76) | 0x7 << 76  # version
    value = value & ~(0x3 << 62) | 0x2 << 62  # variant
    return uuid.UUID(int=value)


def determine_format(length: int | None) -> str:
    if not length:
        return "short"
    for name, width in FORMAT_WIDTHS.items():
        if length <= width:
            return name
    return "full"


def format_uuid(value: uuid.UUID, format: str) -> str:
    if format == "full":
        return str(value)
    return value.hex[: FORMAT_WIDTHS[format]]


class UuidStrategy(SlugStrategy):
    name = StrategyName.UUID

    def generate(self, options: SlugOptions | None = None) -> str:
        options = options or SlugOptions()
        if options.alphabet:
            raise BadRequest("Custom alphabets are not supported by UUID strategy")
        length = clamp_slug_length(options.length) if options.length else None
        value = uuid7() if options.version == "v7" else uuid.uuid4()

        slug = format_uuid(value, determine_format(length))
        # truncate, never pad: padding would not be a uuid anymore
        if length is not None:
            slug = slug[:length]

        pattern = options.resolved_pattern()
        if pattern is not None and not pattern.search(slug):
            raise BadRequest(
                f"Generated UUID slug does not match required pattern: "
                f"{pattern.pattern}"
            )
        return slug

    def validate_options(self, options: SlugOptions | None = None) -> OptionsValidation:
        options = options or SlugOptions()
        errors: list[str] = []
        suggestions: list[str] = []
        if options.length is not None and not (
            MIN_SLUG_LENGTH <= options.length <= MAX_SLUG_LENGTH
        ):
            errors.append(
                f"Slug length must be between {MIN_SLUG_LENGTH} and "
                f"{MAX_SLUG_LENGTH} characters"
            )
            suggestions.append(
                f"Try length between {MIN_SLUG_LENGTH} and {MAX_SLUG_LENGTH}"
            )
        if options.alphabet:
            errors.append("Custom alphabets are not supported by UUID strategy")
            suggestions.append("UUID strategy uses fixed hexadecimal characters")
        return OptionsValidation.from_errors(errors, suggestions)

    def validate_slug(
        self, slug: str, options: SlugOptions | None = None
    ) -> OptionsValidation:
        options = options or SlugOptions()
        if not slug:
            return OptionsValidation.from_errors(
                ["Slug must be a non-empty string"], []
            )
        errors: list[str] = []
        suggestions: list[str] = []
        if not MIN_SLUG_LENGTH <= len(slug) <= MAX_SLUG_LENGTH:
            errors.append(
                f"Slug length must be between {MIN_SLUG_LENGTH} and "
                f"{MAX_SLUG_LENGTH} characters"
            )
            suggestions.append(
                f"Current length: {len(slug)}. Use format options: short (8), "
                "medium (12), compact (32), or full (36)"
            )
        is_hex = set(slug.lower()) <= set(HEX_ALPHABET)
        if not is_hex and not any(p.search(slug) for p in UUID_PATTERNS.values()):
            errors.append("Slug does not match any valid UUID format")
            suggestions.append(
                "UUID slugs must contain only hexadecimal characters (0-9, a-f) "
                "and optionally hyphens"
            )
        pattern = options.resolved_pattern()
        if pattern is not None and not pattern.search(slug):
            errors.append("Generated slug does not match the specified pattern")
            suggestions.append(f"Slug does not match pattern: {pattern.pattern}")
        return OptionsValidation.from_errors(errors, suggestions)

    def space_alphabet(self, options: SlugOptions | None = None) -> str:
        return HEX_ALPHABET

    def default_options(self) -> SlugOptions:
        return SlugOptions(length=8, version="v4")

    def supported_features(self) -> list[str]:
        return [
            "multiple-formats",
            "version-selection",
            "time-ordered",
            "industry-standard",
        ]

    def descriptor(self) -> StrategyDescriptor:
        return StrategyDescriptor(
            name=self.name.value,
            display_name="UUID",
            description="Universal Unique Identifier with multiple format options",
            category="secure",
            features=[
                "Globally unique",
                "Multiple formats (short, medium, compact, full)",
                "Time-based ordering (v7)",
                "Random-based (v4)",
            ],
            default_length=8,
            min_length=MIN_SLUG_LENGTH,
            max_length=MAX_SLUG_LENGTH,
            recommended_lengths=[8, 12, 16],
            supported_alphabets=["hex"],
            supported_patterns=["alphanumeric"],
            supports_custom_alphabet=False,
            supports_custom_pattern=False,
            supports_custom_length=True,
            examples=["a3f5d8e2", "9b4c7a1f5e2d"],
        )
