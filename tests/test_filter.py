from datetime import datetime
from datetime import timezone

import pytest

from slugkit.base.domain import ComparisonFilter
from slugkit.base.domain import ComparisonOperator
from slugkit.base.domain import Filter


def test_filter_for_id():
    actual = Filter.for_id(2)
    assert actual.field == "id"
    assert actual.values == [2]


def test_comparison_filter_init():
    actual = ComparisonFilter(field="foo", values=[2], operator="gt")
    assert actual.operator is ComparisonOperator.GT


@pytest.mark.parametrize("values", [[], [1, 2]])
def test_comparison_filter_err(values):
    with pytest.raises(ValueError):
        ComparisonFilter(field="foo", values=values, operator="gt")


@pytest.mark.parametrize(
    "values,value,expected",
    [
        (["a"], "a", True),
        (["a", "b"], "b", True),
        (["a"], "c", False),
        ([None], None, True),
        (["a"], None, False),
        ([], "a", False),
    ],
)
def test_filter_matches(values, value, expected):
    assert Filter(field="foo", values=values).matches(value) is expected


@pytest.mark.parametrize(
    "operator,value,expected",
    [
        ("lt", 1, True),
        ("lt", 2, False),
        ("le", 2, True),
        ("ge", 3, True),
        ("gt", 2, False),
        ("eq", 2, True),
        ("ne", 2, False),
        ("lt", None, False),
    ],
)
def test_comparison_filter_matches(operator, value, expected):
    f = ComparisonFilter(field="foo", values=[2], operator=operator)
    assert f.matches(value) is expected


def test_comparison_filter_matches_datetime():
    cutoff = datetime(2023, 1, 1, tzinfo=timezone.utc)
    f = ComparisonFilter(field="created_at", values=[cutoff], operator="lt")
    assert f.matches(datetime(2022, 12, 31, tzinfo=timezone.utc))
    assert not f.matches(cutoff)
