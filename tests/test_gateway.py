from datetime import datetime
from datetime import timezone
from unittest import mock

import pytest

from slugkit.base.domain import AlreadyExists
from slugkit.base.domain import BadRequest
from slugkit.base.domain import ComparisonFilter
from slugkit.base.domain import Conflict
from slugkit.base.domain import DoesNotExist
from slugkit.base.domain import Filter
from slugkit.base.infrastructure import InMemoryGateway


@pytest.fixture
def in_memory_gateway():
    return InMemoryGateway(
        data=[
            {"id": 1, "strategy": "nanoid", "usage_count": 0, "namespace": None},
            {"id": 2, "strategy": "uuid", "usage_count": 5, "namespace": "docs"},
            {"id": 3, "strategy": "nanoid", "usage_count": 7, "namespace": None},
        ]
    )


async def test_get(in_memory_gateway):
    actual = await in_memory_gateway.get(1)
    assert actual == in_memory_gateway.data[1]


async def test_get_none(in_memory_gateway):
    actual = await in_memory_gateway.get(4)
    assert actual is None


async def test_add(in_memory_gateway):
    record = {"id": 5, "strategy": "uuid"}
    await in_memory_gateway.add(record)
    assert in_memory_gateway.data[5] == record


async def test_add_without_id(in_memory_gateway):
    with pytest.raises(BadRequest):
        await in_memory_gateway.add({"strategy": "uuid"})


async def test_add_id_exists(in_memory_gateway):
    with pytest.raises(AlreadyExists):
        await in_memory_gateway.add({"id": 3})


async def test_update(in_memory_gateway):
    await in_memory_gateway.update({"id": 3, "usage_count": 8})
    assert in_memory_gateway.data[3]["usage_count"] == 8
    assert in_memory_gateway.data[3]["strategy"] == "nanoid"


async def test_update_no_id(in_memory_gateway):
    with pytest.raises(DoesNotExist):
        await in_memory_gateway.update({"no": "id"})


async def test_update_does_not_exist(in_memory_gateway):
    with pytest.raises(DoesNotExist):
        await in_memory_gateway.update({"id": 4})


async def test_remove(in_memory_gateway):
    assert await in_memory_gateway.remove(1)
    assert 1 not in in_memory_gateway.data


async def test_remove_not_existing(in_memory_gateway):
    assert not await in_memory_gateway.remove(4)
    assert len(in_memory_gateway.data) == 3


async def test_remove_many(in_memory_gateway):
    removed = await in_memory_gateway.remove_many(
        [Filter(field="strategy", values=["nanoid"])]
    )
    assert removed == 2
    assert list(in_memory_gateway.data) == [2]


async def test_remove_many_comparison(in_memory_gateway):
    removed = await in_memory_gateway.remove_many(
        [ComparisonFilter(field="usage_count", values=[5], operator="lt")]
    )
    assert removed == 1
    assert 1 not in in_memory_gateway.data


@pytest.mark.parametrize(
    "if_unmodified_since", [datetime.now(timezone.utc), datetime(2010, 1, 1)]
)
async def test_update_if_unmodified_since_not_ok(
    in_memory_gateway, if_unmodified_since
):
    existing = {"id": 4, "usage_count": 1, "updated_at": datetime.now(timezone.utc)}
    await in_memory_gateway.add(existing)
    with pytest.raises(Conflict):
        await in_memory_gateway.update(
            {"id": 4, "usage_count": 2}, if_unmodified_since=if_unmodified_since
        )


async def test_filter(in_memory_gateway):
    actual = await in_memory_gateway.filter([Filter(field="strategy", values=["uuid"])])
    assert actual == [in_memory_gateway.data[2]]


async def test_filter_none(in_memory_gateway):
    actual = await in_memory_gateway.filter([Filter(field="namespace", values=[None])])
    assert [x["id"] for x in actual] == [1, 3]


async def test_filter_returns_copies(in_memory_gateway):
    (actual,) = await in_memory_gateway.filter([Filter.for_id(1)])
    actual["usage_count"] = 100
    assert in_memory_gateway.data[1]["usage_count"] == 0


@mock.patch.object(InMemoryGateway, "update")
async def test_update_transactional(update):
    record = {"id": 3, "usage_count": 1, "updated_at": datetime(2010, 1, 1)}
    gateway = InMemoryGateway([record])
    await gateway.update_transactional(
        3, lambda x: {"usage_count": x["usage_count"] + 1}
    )

    update.assert_awaited_once_with(
        {"usage_count": 2}, if_unmodified_since=datetime(2010, 1, 1)
    )


async def test_update_transactional_conflict():
    record = {"id": 3, "usage_count": 1, "updated_at": datetime(2010, 1, 1)}
    gateway = InMemoryGateway([record])

    def func(existing):
        gateway.data[3]["updated_at"] = datetime(2011, 1, 1)
        return {"id": 3, "usage_count": existing["usage_count"] + 1}

    with pytest.raises(Conflict):
        await gateway.update_transactional(3, func)

    assert gateway.data[3]["usage_count"] == 1
