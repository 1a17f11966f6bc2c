from datetime import datetime
from datetime import timezone
from unittest import mock

import pytest

from slugkit import alphabet_hash
from slugkit import InMemorySpaceUsageGateway
from slugkit import SpaceUsage
from slugkit import SpaceUsageRepository

SOME_DATETIME = datetime(2023, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
def patched_now():
    with mock.patch(
        "slugkit.base.domain.root_entity.now", return_value=SOME_DATETIME
    ), mock.patch(
        "slugkit.space.space_usage.now", return_value=SOME_DATETIME
    ), mock.patch(
        "slugkit.space.usage_gateway.now", return_value=SOME_DATETIME
    ), mock.patch(
        "slugkit.space.usage_repository.now", return_value=SOME_DATETIME
    ), mock.patch(
        "slugkit.space.space_tracker.now", return_value=SOME_DATETIME
    ):
        yield SOME_DATETIME


@pytest.fixture
def make_usage():
    def make_usage(**kwargs) -> SpaceUsage:
        kwargs.setdefault("strategy", "nanoid")
        kwargs.setdefault("alphabet", "ab")
        kwargs.setdefault("alphabet_hash", alphabet_hash(kwargs["alphabet"]))
        kwargs.setdefault("length", 4)
        kwargs.setdefault("total_space", len(kwargs["alphabet"]) ** kwargs["length"])
        return SpaceUsage.create(**kwargs)

    return make_usage


@pytest.fixture
def gateway():
    return InMemorySpaceUsageGateway()


@pytest.fixture
def repository(gateway):
    return SpaceUsageRepository(gateway)
