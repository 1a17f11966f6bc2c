import re
from unittest import mock

import pytest

from slugkit import AlphabetType
from slugkit import BadRequest
from slugkit import NanoidStrategy
from slugkit import PatternType
from slugkit import READABLE_ALPHABET
from slugkit import SlugOptions
from slugkit import URL_SAFE_ALPHABET
from slugkit.strategies.nanoid_strategy import compatible_alphabet


@pytest.fixture
def strategy():
    return NanoidStrategy()


def test_generate_default(strategy):
    slug = strategy.generate()

    assert len(slug) == 7
    assert set(slug) <= set(URL_SAFE_ALPHABET)


@pytest.mark.parametrize("length,expected", [(4, 4), (12, 12), (2, 4), (50, 21)])
def test_generate_length(strategy, length, expected):
    assert len(strategy.generate(SlugOptions(length=length))) == expected


def test_generate_alphabet_type(strategy):
    slug = strategy.generate(
        SlugOptions(length=21, alphabet_type=AlphabetType.READABLE)
    )

    assert set(slug) <= set(READABLE_ALPHABET)


def test_generate_custom_alphabet(strategy):
    slug = strategy.generate(SlugOptions(length=10, alphabet="ab"))

    assert set(slug) <= {"a", "b"}


def test_generate_invalid_alphabet(strategy):
    with pytest.raises(BadRequest, match="at least 2 unique characters"):
        strategy.generate(SlugOptions(alphabet="aaaa"))


def test_generate_pattern_falls_back_to_compatible_alphabet(strategy):
    # url-safe slugs frequently contain - or _
    with mock.patch(
        "slugkit.strategies.nanoid_strategy.random_nanoid",
        side_effect=["ab-cd_e", "abcdefg"],
    ) as random_nanoid:
        slug = strategy.generate(SlugOptions(pattern_type=PatternType.ALPHANUMERIC))

    assert slug == "abcdefg"
    assert random_nanoid.call_args_list[1] == mock.call(
        7, URL_SAFE_ALPHABET.replace("-", "").replace("_", "")
    )


def test_generate_pattern_no_compatible_alphabet(strategy):
    with pytest.raises(BadRequest, match="does not match required pattern"):
        strategy.generate(SlugOptions(alphabet="-_", pattern="^[a-z]+$"))


def test_generate_pattern_match(strategy):
    slug = strategy.generate(SlugOptions(length=10, pattern="^[a-z]+$"))

    assert re.fullmatch("[a-z]{10}", slug)


def test_compatible_alphabet():
    assert compatible_alphabet(re.compile("[0-9]"), "a1b2c3") == "123"


def test_compatible_alphabet_too_small():
    assert compatible_alphabet(re.compile("[0-9]"), "a1bc") is None


@pytest.mark.parametrize(
    "options,is_valid",
    [
        (SlugOptions(), True),
        (SlugOptions(length=8, alphabet="abc"), True),
        (SlugOptions(length=3), False),
        (SlugOptions(length=22), False),
        (SlugOptions(alphabet="a"), False),
        (SlugOptions(pattern="[a-"), False),
    ],
)
def test_validate_options(strategy, options, is_valid):
    assert strategy.validate_options(options).is_valid is is_valid


def test_validate_options_messages(strategy):
    actual = strategy.validate_options(SlugOptions(length=3, alphabet="a"))

    assert actual.errors == [
        "Slug length must be between 4 and 21 characters",
        "Custom alphabet must contain at least 2 unique characters",
    ]
    assert actual.suggestions == [
        "Try length between 4 and 21",
        "Ensure alphabet has at least 2 unique characters",
    ]


@pytest.mark.parametrize(
    "slug,options,is_valid",
    [
        ("abc-def", None, True),
        ("", None, False),
        ("abc", None, False),
        ("abc def", None, False),
        ("abcd", SlugOptions(alphabet="abcd"), True),
        ("abce", SlugOptions(alphabet="abcd"), False),
        ("abcd", SlugOptions(pattern_type=PatternType.ALPHANUMERIC), True),
        ("ab-cd", SlugOptions(pattern_type=PatternType.ALPHANUMERIC), False),
    ],
)
def test_validate_slug(strategy, slug, options, is_valid):
    assert strategy.is_valid(slug, options) is is_valid


def test_validate_slug_empty_message(strategy):
    assert strategy.validate_slug("").errors == ["Slug must be a non-empty string"]


def test_space_alphabet(strategy):
    assert strategy.space_alphabet() == URL_SAFE_ALPHABET
    assert strategy.space_alphabet(SlugOptions(alphabet="xyz")) == "xyz"
    assert (
        strategy.space_alphabet(SlugOptions(alphabet_type=AlphabetType.READABLE))
        == READABLE_ALPHABET
    )


def test_descriptor(strategy):
    descriptor = strategy.descriptor()

    assert descriptor.name == "nanoid"
    assert descriptor.category == "secure"
    assert descriptor.supports_custom_alphabet
    assert descriptor.supported_alphabets == ["alphanumeric", "url_safe", "readable"]


def test_default_options(strategy):
    assert strategy.default_options().length == 7
