# (c) Nelen & Schuurmans

import logging
import re

from .alphabets import ALPHANUMERIC_PATTERN
from .alphabets import MAX_SLUG_LENGTH
from .alphabets import MIN_SLUG_LENGTH
from .alphabets import PatternType
from .alphabets import READABLE_ALPHABET
from .alphabets import READABLE_PATTERN
from .alphabets import resolve_pattern
from .alphabets import URL_SAFE_PATTERN
from .base.domain import CollisionChecker
from .base.domain import ValueObject
from .settings import SlugSettings
from .strategies import random_nanoid

__all__ = ["CustomSlugValidator", "CustomSlugValidation", "normalize_slug"]


logger = logging.getLogger(__name__)

SUSPICIOUS_PATTERNS = (
    "script",
    "javascript",
    "vbscript",
    "onload",
    "onerror",
    "eval",
    "alert",
    "confirm",
    "prompt",
)
TRAVERSAL_PATTERNS = ("..", "./", ".\\")
SUFFIX_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"


class CustomSlugValidation(ValueObject):
    is_valid: bool
    slug: str
    normalized_slug: str | None = None
    errors: list[str] = []
    warnings: list[str] = []
    suggestions: list[str] = []


def normalize_slug(slug: str) -> str:
    """Coerce free text into a url-safe slug ("My Slug!!" -> "my-slug")."""
    slug = slug.lower().strip()
    slug = re.sub(r"[\s_]+", "-", slug)
    slug = re.sub(r"[^a-z0-9-]", "", slug)
    slug = re.sub(r"-+", "-", slug)
    return slug.strip("-")[:MAX_SLUG_LENGTH].rstrip("-")


class CustomSlugValidator:
    """Checks user-chosen slugs and proposes free alternatives.

    Every check runs; the result collects all errors at once. Reserved
    slugs are kept per validator instance.
    """

    def __init__(self, settings: SlugSettings | None = None):
        self.settings = settings or SlugSettings()
        self._reserved = dict.fromkeys(self.settings.reserved_slugs)

    def reserved_slugs(self) -> list[str]:
        return list(self._reserved)

    def add_reserved_slug(self, slug: str) -> None:
        self._reserved[slug.lower()] = None

    def remove_reserved_slug(self, slug: str) -> None:
        self._reserved.pop(slug.lower(), None)

    normalize_slug = staticmethod(normalize_slug)

    async def is_available(
        self,
        slug: str,
        collision_check: CollisionChecker,
        namespace: str | None = None,
    ) -> bool:
        return not await collision_check(slug, namespace)

    async def validate(
        self,
        slug: str,
        collision_check: CollisionChecker,
        *,
        pattern: str | re.Pattern | None = None,
        pattern_type: PatternType | None = None,
        allow_reserved_words: bool = False,
        auto_normalize: bool = False,
        namespace: str | None = None,
    ) -> CustomSlugValidation:
        errors: list[str] = []
        warnings: list[str] = []
        suggestions: list[str] = []

        normalized = normalize_slug(slug) if auto_normalize else None
        if normalized is not None:
            slug = normalized

        self._check_basics(slug, errors)
        self._check_length(slug, errors, suggestions)
        self._check_pattern(slug, pattern, pattern_type, errors, suggestions)
        if not allow_reserved_words:
            self._check_reserved(slug, errors, warnings, suggestions)
        self._check_security(slug, errors, warnings)
        if slug and not await self.is_available(slug, collision_check, namespace):
            in_namespace = f" in namespace '{namespace}'" if namespace else ""
            errors.append(f"Slug '{slug}' is already in use{in_namespace}")
            suggestions += await self.suggest(slug, collision_check, namespace, 3)

        if errors:
            suggestions += await self.suggest(
                slug, collision_check, namespace, self.settings.suggestion_count
            )
            logger.info(f"custom slug '{slug}' rejected: {'; '.join(errors)}")

        return CustomSlugValidation(
            is_valid=not errors,
            slug=slug,
            normalized_slug=normalized,
            errors=errors,
            warnings=warnings,
            suggestions=list(dict.fromkeys(suggestions)),
        )

    async def suggest(
        self,
        slug: str,
        collision_check: CollisionChecker,
        namespace: str | None = None,
        count: int = 5,
    ) -> list[str]:
        """Propose up to ``count`` alternatives that are currently free.

        Numeric suffixes are tried first, then random 3-character suffixes,
        then a few fixed variations.
        """
        base = re.sub(r"[^a-z0-9_-]", "", slug.lower())
        result: list[str] = []

        async def consider(candidate: str) -> None:
            if candidate not in result and await self.is_available(
                candidate, collision_check, namespace
            ):
                result.append(candidate)

        for i in range(1, count + 1):
            if len(result) >= count:
                break
            await consider(f"{base}-{i}")
        for _ in range(count - len(result)):
            await consider(f"{base}-{random_nanoid(3, SUFFIX_ALPHABET)}")
        for candidate in (
            f"{base}-new",
            f"{base}-v2",
            f"my-{base}",
            f"{base}-link",
            f"{base}-url",
        ):
            if len(result) >= count:
                break
            await consider(candidate)
        return result

    def _check_basics(self, slug: str, errors: list[str]) -> None:
        if not slug:
            errors.append("Slug cannot be empty")
        elif slug.strip() != slug:
            errors.append("Slug cannot have leading or trailing whitespace")

    def _check_length(
        self, slug: str, errors: list[str], suggestions: list[str]
    ) -> None:
        if len(slug) < MIN_SLUG_LENGTH:
            errors.append(f"Slug must be at least {MIN_SLUG_LENGTH} characters long")
            if slug:
                padded = slug.ljust(MIN_SLUG_LENGTH, "0")
                suggestions.append(f"Consider using: {padded}")
        if len(slug) > MAX_SLUG_LENGTH:
            errors.append(f"Slug cannot be longer than {MAX_SLUG_LENGTH} characters")
            suggestions.append(f"Consider using: {slug[:MAX_SLUG_LENGTH]}")

    def _check_pattern(
        self,
        slug: str,
        pattern: str | re.Pattern | None,
        pattern_type: PatternType | None,
        errors: list[str],
        suggestions: list[str],
    ) -> None:
        compiled = resolve_pattern(pattern, pattern_type) or URL_SAFE_PATTERN
        if compiled.search(slug):
            return
        errors.append("Slug contains invalid characters")
        if compiled is ALPHANUMERIC_PATTERN:
            suggestions.append("Only letters and numbers are allowed")
            suggestions.append(f"Try: {re.sub(r'[^a-zA-Z0-9]', '', slug)}")
        elif compiled is READABLE_PATTERN:
            suggestions.append(
                "Only readable characters are allowed (excludes 0, O, I, l, 1)"
            )
            suggestions.append(f"Try: {re.sub(f'[^{READABLE_ALPHABET}]', '', slug)}")
        else:
            suggestions.append(
                "Only letters, numbers, hyphens, and underscores are allowed"
            )
            suggestions.append(f"Try: {re.sub(r'[^a-zA-Z0-9_-]', '', slug)}")

    def _check_reserved(
        self,
        slug: str,
        errors: list[str],
        warnings: list[str],
        suggestions: list[str],
    ) -> None:
        lower = slug.lower()
        if lower in self._reserved:
            errors.append(f"'{slug}' is a reserved slug and cannot be used")
            suggestions += [f"{slug}-link", f"{slug}-url", f"my-{slug}"]
        for reserved in self._reserved:
            if reserved in lower and reserved != lower:
                warnings.append(
                    f"Slug contains reserved word '{reserved}' which may cause "
                    "confusion"
                )

    def _check_security(
        self, slug: str, errors: list[str], warnings: list[str]
    ) -> None:
        lower = slug.lower()
        if any(x in lower for x in TRAVERSAL_PATTERNS):
            errors.append("Slug cannot contain directory traversal patterns")
        for pattern in SUSPICIOUS_PATTERNS:
            if pattern in lower:
                warnings.append(
                    f"Slug contains potentially suspicious pattern: {pattern}"
                )
        if 0 < len(slug) <= 2 and re.fullmatch("[a-z]+", lower):
            warnings.append(
                "Very short slugs may conflict with common abbreviations or cause "
                "confusion"
            )
