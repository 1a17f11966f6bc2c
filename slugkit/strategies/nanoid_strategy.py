# (c) Nelen & Schuurmans

import re

from nanoid import generate as _generate

from slugkit.alphabets import AlphabetType
from slugkit.alphabets import clamp_slug_length
from slugkit.alphabets import DEFAULT_SLUG_LENGTH
from slugkit.alphabets import is_valid_alphabet
from slugkit.alphabets import MAX_SLUG_LENGTH
from slugkit.alphabets import MIN_SLUG_LENGTH
from slugkit.alphabets import PatternType
from slugkit.alphabets import resolve_alphabet
from slugkit.alphabets import URL_SAFE_PATTERN
from slugkit.base.domain import BadRequest

from .base import OptionsValidation
from .base import SlugOptions
from .base import SlugStrategy
from .base import StrategyDescriptor
from .base import StrategyName

__all__ = ["NanoidStrategy", "random_nanoid"]


def random_nanoid(size: int, alphabet: str) -> str:
    """Generate a random string (NanoID) from ``alphabet`` using os.urandom.

    Recommended sizes to have <1% collision probability (url-safe alphabet):

    - 6 characters if the expected number of records is below 27K
    - 8 characters if the expected number of records is below 1M
    - 10 characters if the expected number of records is below 93M
    - 12 characters if the expected number of records is below 5B

    Ref. https://zelark.github.io/nano-id-cc/
    """
    return _generate(alphabet, size)


def compatible_alphabet(pattern: re.Pattern, alphabet: str) -> str | None:
    """Reduce an alphabet to the characters that satisfy ``pattern`` on their own."""
    subset = "".join(c for c in dict.fromkeys(alphabet) if pattern.search(c))
    return subset if is_valid_alphabet(subset) else None


class NanoidStrategy(SlugStrategy):
    name = StrategyName.NANOID

    def generate(self, options: SlugOptions | None = None) -> str:
        options = options or SlugOptions()
        length = clamp_slug_length(options.length or DEFAULT_SLUG_LENGTH)
        alphabet = resolve_alphabet(options.alphabet, options.alphabet_type)
        pattern = options.resolved_pattern()

        slug = random_nanoid(length, alphabet)
        if pattern is None or pattern.search(slug):
            return slug

        fallback = compatible_alphabet(pattern, alphabet)
        if fallback is None:
            raise BadRequest(
                f"Generated slug does not match required pattern: {pattern.pattern}"
            )
        slug = random_nanoid(length, fallback)
        if not pattern.search(slug):
            raise BadRequest(
                f"Unable to generate slug matching pattern: {pattern.pattern}"
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
        if options.alphabet is not None and not is_valid_alphabet(options.alphabet):
            errors.append("Custom alphabet must contain at least 2 unique characters")
            suggestions.append("Ensure alphabet has at least 2 unique characters")
        try:
            options.resolved_pattern()
        except BadRequest as e:
            errors.append(str(e))
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
                f"Current length: {len(slug)}. Adjust to be between "
                f"{MIN_SLUG_LENGTH} and {MAX_SLUG_LENGTH}"
            )
        pattern = options.resolved_pattern() or URL_SAFE_PATTERN
        if not pattern.search(slug):
            errors.append("Generated slug does not match the specified pattern")
            suggestions.append(
                f"Slug contains invalid characters for pattern: {pattern.pattern}"
            )
        if options.alphabet and not set(slug) <= set(options.alphabet):
            errors.append("Slug contains characters not in the specified alphabet")
            suggestions.append(f"Allowed characters: {options.alphabet}")
        return OptionsValidation.from_errors(errors, suggestions)

    def space_alphabet(self, options: SlugOptions | None = None) -> str:
        options = options or SlugOptions()
        return resolve_alphabet(options.alphabet, options.alphabet_type)

    def default_options(self) -> SlugOptions:
        return SlugOptions(
            length=DEFAULT_SLUG_LENGTH,
            alphabet_type=AlphabetType.URL_SAFE,
            pattern_type=PatternType.URL_SAFE,
        )

    def supported_features(self) -> list[str]:
        return [
            "variable-length",
            "custom-alphabet",
            "pattern-validation",
            "high-collision-resistance",
            "url-safe",
            "fast-generation",
            "alphabet-types",
            "pattern-types",
        ]

    def descriptor(self) -> StrategyDescriptor:
        return StrategyDescriptor(
            name=self.name.value,
            display_name="NanoID",
            description=(
                "Fast, URL-safe, unique ID generator with customizable alphabet "
                "and length"
            ),
            category="secure",
            features=[
                "URL-safe by default",
                "Cryptographically strong",
                "Customizable alphabet",
                "Variable length",
                "High collision resistance",
            ],
            default_length=DEFAULT_SLUG_LENGTH,
            min_length=MIN_SLUG_LENGTH,
            max_length=MAX_SLUG_LENGTH,
            recommended_lengths=[6, 7, 8, 10, 12],
            supported_alphabets=[x.value for x in AlphabetType],
            supported_patterns=[x.value for x in PatternType],
            supports_custom_alphabet=True,
            supports_custom_pattern=True,
            supports_custom_length=True,
            examples=["2nYyNd6", "KpfBw", "rJf2vM9"],
        )
