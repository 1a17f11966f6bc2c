# (c) Nelen & Schuurmans

import hashlib
import math
import re
from enum import Enum
from typing import Annotated

from pydantic import StringConstraints

from slugkit.base.domain import BadRequest

__all__ = [
    "Slug",
    "AlphabetType",
    "PatternType",
    "MIN_SLUG_LENGTH",
    "MAX_SLUG_LENGTH",
    "DEFAULT_SLUG_LENGTH",
    "MAX_ADAPTIVE_LENGTH",
    "MAX_COLLISION_RETRIES",
    "ALPHANUMERIC_ALPHABET",
    "URL_SAFE_ALPHABET",
    "READABLE_ALPHABET",
    "HEX_ALPHABET",
    "URL_SAFE_PATTERN",
    "ALPHANUMERIC_PATTERN",
    "READABLE_PATTERN",
    "UUID_PATTERNS",
    "clamp_slug_length",
    "is_valid_alphabet",
    "resolve_alphabet",
    "resolve_pattern",
    "alphabet_hash",
]


MIN_SLUG_LENGTH = 4
MAX_SLUG_LENGTH = 21
DEFAULT_SLUG_LENGTH = 7
# adaptive widening on collisions stops here
MAX_ADAPTIVE_LENGTH = 12
MAX_COLLISION_RETRIES = 5

ALPHANUMERIC_ALPHABET = (
    "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz"
)
URL_SAFE_ALPHABET = ALPHANUMERIC_ALPHABET + "-_"
# without 0, O, I, l and 1
READABLE_ALPHABET = "23456789ABCDEFGHJKMNPQRSTUVWXYZabcdefghijkmnpqrstuvwxyz"
HEX_ALPHABET = "0123456789abcdef"

URL_SAFE_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")
ALPHANUMERIC_PATTERN = re.compile(r"^[A-Za-z0-9]+$")
READABLE_PATTERN = re.compile(f"^[{READABLE_ALPHABET}]+$")

UUID_PATTERNS = {
    "full": re.compile(
        r"^[0-9a-f]{8}-[0-9a-f]{4}-[1-8][0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$",
        re.IGNORECASE,
    ),
    "compact": re.compile(r"^[0-9a-f]{32}$", re.IGNORECASE),
    "short": re.compile(r"^[0-9a-f]{8,12}$", re.IGNORECASE),
}

Slug = Annotated[
    str,
    StringConstraints(
        pattern=URL_SAFE_PATTERN.pattern,
        min_length=MIN_SLUG_LENGTH,
        max_length=MAX_SLUG_LENGTH,
    ),
]


class AlphabetType(str, Enum):
    ALPHANUMERIC = "alphanumeric"
    URL_SAFE = "url_safe"
    READABLE = "readable"

    @property
    def alphabet(self) -> str:
        return {
            AlphabetType.ALPHANUMERIC: ALPHANUMERIC_ALPHABET,
            AlphabetType.URL_SAFE: URL_SAFE_ALPHABET,
            AlphabetType.READABLE: READABLE_ALPHABET,
        }[self]


class PatternType(str, Enum):
    ALPHANUMERIC = "alphanumeric"
    URL_SAFE = "url_safe"
    READABLE = "readable"

    @property
    def pattern(self) -> re.Pattern:
        return {
            PatternType.ALPHANUMERIC: ALPHANUMERIC_PATTERN,
            PatternType.URL_SAFE: URL_SAFE_PATTERN,
            PatternType.READABLE: READABLE_PATTERN,
        }[self]


def clamp_slug_length(
    length: float, lower: int = MIN_SLUG_LENGTH, upper: int = MAX_SLUG_LENGTH
) -> int:
    return max(lower, min(upper, math.floor(length)))


def is_valid_alphabet(alphabet: str | None) -> bool:
    """An alphabet needs at least 2 unique characters."""
    return bool(alphabet) and len(set(alphabet)) >= 2


def resolve_alphabet(
    alphabet: str | None = None, alphabet_type: AlphabetType | None = None
) -> str:
    if alphabet:
        if not is_valid_alphabet(alphabet):
            raise BadRequest(
                "Custom alphabet must contain at least 2 unique characters"
            )
        return alphabet
    if alphabet_type is not None:
        return AlphabetType(alphabet_type).alphabet
    return URL_SAFE_ALPHABET


def resolve_pattern(
    pattern: str | re.Pattern | None = None,
    pattern_type: PatternType | None = None,
) -> re.Pattern | None:
    if pattern is not None:
        if isinstance(pattern, re.Pattern):
            return pattern
        try:
            return re.compile(pattern)
        except re.error as e:
            raise BadRequest(f"Invalid pattern '{pattern}': {e}")
    if pattern_type is not None:
        return PatternType(pattern_type).pattern
    return None


def alphabet_hash(alphabet: str) -> str:
    """Stable fingerprint of an alphabet, used to key identifier spaces."""
    return hashlib.sha256(alphabet.encode("utf-8")).hexdigest()
