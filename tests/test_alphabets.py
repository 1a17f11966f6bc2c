import re

import pytest
from pydantic import TypeAdapter
from pydantic import ValidationError

from slugkit import alphabet_hash
from slugkit import AlphabetType
from slugkit import BadRequest
from slugkit import clamp_slug_length
from slugkit import is_valid_alphabet
from slugkit import PatternType
from slugkit import READABLE_ALPHABET
from slugkit import resolve_alphabet
from slugkit import resolve_pattern
from slugkit import Slug
from slugkit import URL_SAFE_ALPHABET


@pytest.mark.parametrize(
    "length,expected", [(1, 4), (4, 4), (7, 7), (7.9, 7), (21, 21), (100, 21)]
)
def test_clamp_slug_length(length, expected):
    assert clamp_slug_length(length) == expected


def test_clamp_slug_length_custom_bounds():
    assert clamp_slug_length(3, lower=6, upper=10) == 6
    assert clamp_slug_length(12, lower=6, upper=10) == 10


@pytest.mark.parametrize(
    "alphabet,expected",
    [("ab", True), ("aa", False), ("a", False), ("", False), (None, False)],
)
def test_is_valid_alphabet(alphabet, expected):
    assert is_valid_alphabet(alphabet) is expected


def test_resolve_alphabet_default():
    assert resolve_alphabet() == URL_SAFE_ALPHABET


def test_resolve_alphabet_type():
    assert resolve_alphabet(alphabet_type=AlphabetType.READABLE) == READABLE_ALPHABET


def test_resolve_alphabet_explicit_wins():
    assert resolve_alphabet("abc", AlphabetType.READABLE) == "abc"


def test_resolve_alphabet_invalid():
    with pytest.raises(BadRequest):
        resolve_alphabet("xxxx")


@pytest.mark.parametrize("char", "0OIl1")
def test_readable_alphabet_excludes_ambiguous(char):
    assert char not in READABLE_ALPHABET


def test_url_safe_alphabet():
    assert len(URL_SAFE_ALPHABET) == 64
    assert "-" in URL_SAFE_ALPHABET and "_" in URL_SAFE_ALPHABET


def test_resolve_pattern_none():
    assert resolve_pattern() is None


def test_resolve_pattern_type():
    assert resolve_pattern(pattern_type=PatternType.ALPHANUMERIC).search("abc123")
    assert not resolve_pattern(pattern_type=PatternType.ALPHANUMERIC).search("a-b")


def test_resolve_pattern_string():
    assert resolve_pattern("^[a-z]+$").pattern == "^[a-z]+$"


def test_resolve_pattern_compiled():
    compiled = re.compile("x")
    assert resolve_pattern(compiled) is compiled


def test_resolve_pattern_invalid():
    with pytest.raises(BadRequest):
        resolve_pattern("[a-")


def test_alphabet_hash():
    assert alphabet_hash("abc") == (
        "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"
    )


@pytest.mark.parametrize("value", ["abcd", "a-b_c", "A" * 21])
def test_slug_type_ok(value):
    assert TypeAdapter(Slug).validate_python(value) == value


@pytest.mark.parametrize("value", ["abc", "A" * 22, "ab cd", "ab/cd"])
def test_slug_type_err(value):
    with pytest.raises(ValidationError):
        TypeAdapter(Slug).validate_python(value)
