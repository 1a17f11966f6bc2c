# (c) Nelen & Schuurmans

from datetime import datetime

import backoff

from slugkit.base.domain import AlreadyExists
from slugkit.base.domain import ComparisonFilter
from slugkit.base.domain import ComparisonOperator
from slugkit.base.domain import Conflict
from slugkit.base.domain import DoesNotExist
from slugkit.base.domain import Filter
from slugkit.base.domain import Json
from slugkit.base.domain import now
from slugkit.base.domain import TrackingFailure

from .space_usage import SpaceUsage
from .usage_gateway import SpaceUsageGateway

__all__ = ["SpaceUsageRepository", "SpaceKey"]


# (strategy, alphabet_hash, length, namespace)
SpaceKey = tuple[str, str, int, str | None]


def key_filters(key: SpaceKey) -> list[Filter]:
    strategy, alphabet_hash, length, namespace = key
    return [
        Filter(field="strategy", values=[strategy]),
        Filter(field="alphabet_hash", values=[alphabet_hash]),
        Filter(field="length", values=[length]),
        Filter(field="namespace", values=[namespace]),
    ]


class SpaceUsageRepository:
    def __init__(self, gateway: SpaceUsageGateway):
        self.gateway = gateway

    async def all(self, strategy: str | None = None) -> list[SpaceUsage]:
        filters = []
        if strategy is not None:
            filters.append(Filter(field="strategy", values=[strategy]))
        return [SpaceUsage(**x) for x in await self.gateway.filter(filters)]

    async def find(self, key: SpaceKey) -> SpaceUsage | None:
        records = await self.gateway.filter(key_filters(key))
        return SpaceUsage(**records[0]) if records else None

    async def create(self, usage: SpaceUsage) -> SpaceUsage:
        """Store a new record; when another caller was first, return theirs."""
        try:
            return SpaceUsage(**await self.gateway.add(usage.model_dump()))
        except AlreadyExists:
            existing = await self.find(
                (usage.strategy, usage.alphabet_hash, usage.length, usage.namespace)
            )
            if existing is None:
                raise
            return existing

    # REPEATABLE READ transactions fail with Conflict when another transaction
    # updated the same record; these writes are safe to repeat
    @backoff.on_exception(backoff.constant, Conflict, max_tries=10, interval=0.2)
    async def increment(self, key: SpaceKey) -> SpaceUsage:
        record = await self.gateway.increment_usage(key_filters(key))
        if record is None:
            raise TrackingFailure(f"no space usage record for {key}")
        return SpaceUsage(**record)

    @backoff.on_exception(backoff.constant, Conflict, max_tries=10, interval=0.2)
    async def update_flags(self, usage: SpaceUsage) -> SpaceUsage:
        """Bring the stored threshold flags in line with the stored usage."""

        def apply(existing: Json) -> Json:
            refreshed = SpaceUsage(**existing).with_thresholds_applied()
            return {
                "id": refreshed.id,
                "updated_at": refreshed.updated_at,
                **refreshed.flags(),
            }

        return await self._update_transactional(usage, apply)

    @backoff.on_exception(backoff.constant, Conflict, max_tries=10, interval=0.2)
    async def recalculate(
        self, usage: SpaceUsage, usage_count: int | None = None
    ) -> SpaceUsage:
        """Refresh the flags and ``last_calculated_at`` of a record.

        ``usage_count`` replaces the stored count. Without it, the stored
        count is left alone so that concurrent increments are kept.
        """

        def apply(existing: Json) -> Json:
            current = SpaceUsage(**existing)
            if usage_count is not None:
                return current.with_usage(usage_count).model_dump()
            refreshed = current.with_thresholds_applied()
            timestamp = now()
            return {
                "id": current.id,
                "updated_at": timestamp,
                "last_calculated_at": timestamp,
                **refreshed.flags(),
            }

        return await self._update_transactional(usage, apply)

    async def _update_transactional(self, usage: SpaceUsage, func) -> SpaceUsage:
        try:
            record = await self.gateway.update_transactional(usage.id, func)
        except DoesNotExist:
            raise TrackingFailure(f"space usage record {usage.id} disappeared")
        return SpaceUsage(**record)

    async def needing_attention(self) -> list[SpaceUsage]:
        found: dict = {}
        for flag in ("is_warning", "is_critical", "is_exhausted"):
            for x in await self.gateway.filter([Filter(field=flag, values=[True])]):
                found[x["id"]] = x
        return sorted(
            (SpaceUsage(**x) for x in found.values()),
            key=lambda x: x.usage_percentage,
            reverse=True,
        )

    async def cleanup(self, cutoff: datetime) -> int:
        return await self.gateway.remove_many(
            [
                Filter(field="usage_count", values=[0]),
                ComparisonFilter(
                    field="created_at", values=[cutoff], operator=ComparisonOperator.LT
                ),
            ]
        )
