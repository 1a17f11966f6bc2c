from datetime import timedelta
from unittest import mock

import pytest

from slugkit import alphabet_hash
from slugkit import Conflict
from slugkit import HEX_ALPHABET
from slugkit import NanoidStrategy
from slugkit import SlugOptions
from slugkit import SlugSettings
from slugkit import SpaceStatus
from slugkit import SpaceTracker
from slugkit import URL_SAFE_ALPHABET
from slugkit import UuidStrategy

# 2 ** 4 == 16 slugs
SMALL_SPACE = SlugOptions(length=4, alphabet="ab")


@pytest.fixture
def settings():
    return SlugSettings()


@pytest.fixture
def usage_counter():
    return mock.AsyncMock(return_value=0)


@pytest.fixture
def tracker(repository, settings, usage_counter):
    return SpaceTracker(repository, settings, usage_counter)


@pytest.fixture
def nanoid():
    return NanoidStrategy()


def test_resolve(tracker, nanoid):
    alphabet, key = tracker.resolve(nanoid, SlugOptions(length=8), "acme")

    assert alphabet == URL_SAFE_ALPHABET
    assert key == ("nanoid", alphabet_hash(URL_SAFE_ALPHABET), 8, "acme")


def test_resolve_defaults(tracker, nanoid):
    _, key = tracker.resolve(nanoid, None, "")

    assert key[2:] == (7, None)


def test_resolve_uuid_uses_hex(tracker):
    alphabet, key = tracker.resolve(UuidStrategy(), SlugOptions(length=8))

    assert alphabet == HEX_ALPHABET
    assert key[0] == "uuid"


async def test_validate_creates_record(tracker, repository, nanoid, usage_counter):
    actual = await tracker.validate(nanoid)

    assert actual.can_generate
    assert actual.warnings == []
    assert actual.recommendations == []
    assert actual.space_info.strategy == "nanoid"
    assert actual.space_info.length == 7
    assert actual.space_info.total_space == 64**7
    assert actual.space_info.status is SpaceStatus.SAFE
    assert len(await repository.all()) == 1
    usage_counter.assert_awaited_once_with(
        "nanoid", alphabet_hash(URL_SAFE_ALPHABET), 7, None
    )


async def test_validate_without_usage_counter(repository, settings, nanoid):
    tracker = SpaceTracker(repository, settings)

    actual = await tracker.validate(nanoid, SMALL_SPACE)

    assert actual.space_info.used_space == 0


async def test_validate_warning(tracker, nanoid, usage_counter):
    usage_counter.return_value = 12

    actual = await tracker.validate(nanoid, SMALL_SPACE)

    assert actual.can_generate
    assert actual.space_info.status is SpaceStatus.WARNING
    assert actual.warnings == ["Slug space is approaching capacity (75.00% used)"]
    assert actual.recommendations == [
        "Monitor usage closely and prepare space expansion plan"
    ]


async def test_validate_exhausted(tracker, nanoid, usage_counter):
    usage_counter.return_value = 15

    actual = await tracker.validate(nanoid, SMALL_SPACE)

    assert not actual.can_generate
    assert actual.space_info.status is SpaceStatus.EXHAUSTED
    assert actual.space_info.remaining_space == 1
    assert actual.warnings == ["Slug space is exhausted (93.75% used)"]
    assert actual.recommendations == [
        "Consider increasing slug length or using a larger alphabet",
        "Consider using namespaces to partition the slug space",
        "Increase length from 4 to 5 for 2x more space",
    ]


async def test_validate_exhausted_at_max_adaptive_length(
    tracker, nanoid, usage_counter
):
    usage_counter.return_value = 4000

    actual = await tracker.validate(nanoid, SlugOptions(length=12, alphabet="ab"))

    assert not actual.can_generate
    assert len(actual.recommendations) == 2


async def test_validate_fresh_record_not_recounted(
    tracker, repository, nanoid, usage_counter, make_usage, patched_now
):
    await repository.create(make_usage(usage_count=3))

    actual = await tracker.validate(nanoid, SMALL_SPACE)

    assert actual.space_info.used_space == 3
    usage_counter.assert_not_awaited()


async def test_validate_stale_record_recounted(
    tracker, repository, nanoid, usage_counter, make_usage, patched_now
):
    await repository.create(
        make_usage(usage_count=3, last_calculated_at=patched_now - timedelta(hours=1))
    )
    usage_counter.return_value = 13

    actual = await tracker.validate(nanoid, SMALL_SPACE)

    assert actual.space_info.used_space == 13
    assert actual.space_info.status is SpaceStatus.WARNING
    (stored,) = await repository.all()
    assert stored.last_calculated_at == patched_now
    assert stored.is_warning


async def test_track_issuance(tracker, repository, nanoid):
    await tracker.validate(nanoid, SMALL_SPACE)

    await tracker.track_issuance(nanoid, SMALL_SPACE)

    (stored,) = await repository.all()
    assert stored.usage_count == 1


async def test_track_issuance_crosses_threshold(
    tracker, repository, nanoid, usage_counter
):
    usage_counter.return_value = 11
    await tracker.validate(nanoid, SMALL_SPACE)

    await tracker.track_issuance(nanoid, SMALL_SPACE)

    (stored,) = await repository.all()
    assert stored.usage_count == 12
    assert stored.is_warning
    assert stored.warning_reached_at is not None


async def test_track_issuance_without_record(tracker, repository, nanoid):
    await tracker.track_issuance(nanoid, SMALL_SPACE)

    assert await repository.all() == []


async def test_track_issuance_swallows_errors(tracker, repository, nanoid):
    with mock.patch.object(
        repository, "increment", side_effect=RuntimeError("database down")
    ):
        await tracker.track_issuance(nanoid, SMALL_SPACE)


async def test_track_issuance_retries_conflict(tracker, repository, gateway, nanoid):
    await tracker.validate(nanoid, SMALL_SPACE)
    increment_usage = gateway.increment_usage
    calls = []

    async def conflict_once(filters):
        calls.append(filters)
        if len(calls) == 1:
            raise Conflict("could not execute query due to concurrent update")
        return await increment_usage(filters)

    with mock.patch.object(gateway, "increment_usage", side_effect=conflict_once):
        await tracker.track_issuance(nanoid, SMALL_SPACE)

    (stored,) = await repository.all()
    assert stored.usage_count == 1


async def test_recalculate_all(tracker, repository, make_usage, usage_counter):
    await repository.create(make_usage(length=4))
    await repository.create(make_usage(length=5))
    usage_counter.side_effect = [3, RuntimeError("boom")]

    assert await tracker.recalculate_all() == (1, 1)
    assert [x.usage_count for x in await repository.all()] == [3, 0]


async def test_needing_attention(tracker, repository, make_usage):
    await repository.create(make_usage(length=4))
    warning = await repository.create(make_usage(length=5, usage_count=25))

    assert await tracker.needing_attention() == [warning]


async def test_cleanup(tracker, repository, make_usage, patched_now):
    await repository.create(
        make_usage(length=4, created_at=patched_now - timedelta(days=31))
    )
    await repository.create(
        make_usage(length=5, created_at=patched_now - timedelta(days=8))
    )

    assert await tracker.cleanup() == 1
    assert await tracker.cleanup(days_old=7) == 1
    assert await repository.all() == []


async def test_stats(tracker, repository, make_usage):
    await repository.create(make_usage(length=4, usage_count=4))
    await repository.create(make_usage(length=5, usage_count=31))
    await repository.create(make_usage(strategy="uuid", length=4))

    nanoid_stats, uuid_stats = await tracker.stats()

    assert nanoid_stats.strategy == "nanoid"
    assert nanoid_stats.total_configurations == 2
    assert nanoid_stats.average_usage == pytest.approx((0.25 + 31 / 32) / 2)
    assert nanoid_stats.max_usage == 31 / 32
    assert nanoid_stats.critical_count == nanoid_stats.exhausted_count == 1
    assert nanoid_stats.warning_count == 1
    assert uuid_stats.total_configurations == 1


async def test_stats_for_strategy(tracker, repository, make_usage):
    await repository.create(make_usage(length=4))
    await repository.create(make_usage(strategy="uuid", length=4))

    (actual,) = await tracker.stats("uuid")

    assert actual.strategy == "uuid"


async def test_recalculate_all_keeps_concurrent_increment(
    repository, gateway, settings, make_usage
):
    tracker = SpaceTracker(repository, settings)
    usage = await repository.create(make_usage())
    update = gateway.update

    async def increment_then_update(item, if_unmodified_since=None):
        gateway.data[usage.id]["usage_count"] += 1
        return await update(item, if_unmodified_since=if_unmodified_since)

    with mock.patch.object(gateway, "update", side_effect=increment_then_update):
        assert await tracker.recalculate_all() == (1, 0)

    (stored,) = await repository.all()
    assert stored.usage_count == 1
