# (c) Nelen & Schuurmans

import logging
from datetime import timedelta

from slugkit.alphabets import alphabet_hash
from slugkit.alphabets import clamp_slug_length
from slugkit.base.domain import now
from slugkit.base.domain import UsageCounter
from slugkit.base.domain import ValueObject
from slugkit.settings import SlugSettings
from slugkit.strategies import SlugOptions
from slugkit.strategies import SlugStrategy

from .space_usage import compute_total_space
from .space_usage import SpaceStatus
from .space_usage import SpaceUsage
from .usage_repository import SpaceKey
from .usage_repository import SpaceUsageRepository

__all__ = ["SpaceTracker", "SpaceValidation", "SpaceInfo", "SpaceUsageStats"]


logger = logging.getLogger(__name__)

# usage changes above this fraction are logged on recalculation
SIGNIFICANT_CHANGE = 0.01


class SpaceInfo(ValueObject):
    strategy: str
    alphabet: str
    alphabet_hash: str
    length: int
    namespace: str | None = None
    total_space: int
    used_space: int
    remaining_space: int
    usage_percentage: float
    status: SpaceStatus


class SpaceValidation(ValueObject):
    can_generate: bool
    space_info: SpaceInfo
    warnings: list[str] = []
    recommendations: list[str] = []


class SpaceUsageStats(ValueObject):
    strategy: str
    total_configurations: int
    average_usage: float
    max_usage: float
    warning_count: int
    critical_count: int
    exhausted_count: int


class SpaceTracker:
    """Keeps track of how much of each identifier space has been handed out.

    Records are created lazily on the first validation of a configuration.
    When ``usage_counter`` is given, it is the authority for recounts;
    otherwise the stored count is trusted.
    """

    def __init__(
        self,
        repository: SpaceUsageRepository,
        settings: SlugSettings | None = None,
        usage_counter: UsageCounter | None = None,
    ):
        self.repository = repository
        self.settings = settings or SlugSettings()
        self.usage_counter = usage_counter

    def resolve(
        self,
        strategy: SlugStrategy,
        options: SlugOptions | None = None,
        namespace: str | None = None,
    ) -> tuple[str, SpaceKey]:
        options = options or SlugOptions()
        alphabet = strategy.space_alphabet(options)
        length = clamp_slug_length(
            options.length or self.settings.default_length,
            self.settings.min_length,
            self.settings.max_length,
        )
        key = (strategy.name.value, alphabet_hash(alphabet), length, namespace or None)
        return alphabet, key

    async def validate(
        self,
        strategy: SlugStrategy,
        options: SlugOptions | None = None,
        namespace: str | None = None,
    ) -> SpaceValidation:
        alphabet, key = self.resolve(strategy, options, namespace)
        usage = await self.repository.find(key)
        if usage is None:
            usage = await self._create(alphabet, key)
        elif self._is_stale(usage):
            usage = await self._recalculate(usage)
        return self._to_validation(usage)

    async def track_issuance(
        self,
        strategy: SlugStrategy,
        options: SlugOptions | None = None,
        namespace: str | None = None,
    ) -> None:
        """Count one issued slug. Failures are logged, never raised."""
        _, key = self.resolve(strategy, options, namespace)
        try:
            usage = await self.repository.increment(key)
            if usage.with_thresholds_applied() is not usage:
                updated = await self.repository.update_flags(usage)
                logger.warning(
                    f"slug space {updated.space_key} is now {updated.status.value} "
                    f"({updated.utilization_percentage:.2f}% used)"
                )
        except Exception as e:
            logger.error(
                f"Failed to track slug creation for strategy={key[0]} "
                f"alphabet_hash={key[1]} length={key[2]} namespace={key[3]}: {e}"
            )

    async def recalculate_all(self) -> tuple[int, int]:
        logger.info("Starting recalculation of all space usage")
        records = await self.repository.all()
        processed = errors = 0
        for usage in records:
            try:
                await self._recalculate(usage)
            except Exception as e:
                logger.error(
                    f"Failed to recalculate space usage {usage.id} "
                    f"({usage.strategy}): {e}"
                )
                errors += 1
            else:
                processed += 1
        logger.info(
            f"Completed space usage recalculation: total={len(records)} "
            f"processed={processed} errors={errors}"
        )
        return processed, errors

    async def needing_attention(self) -> list[SpaceUsage]:
        return await self.repository.needing_attention()

    async def cleanup(self, days_old: int | None = None) -> int:
        if days_old is None:
            days_old = self.settings.cleanup_days
        cutoff = now() - timedelta(days=days_old)
        deleted = await self.repository.cleanup(cutoff)
        logger.info(
            f"Cleaned up {deleted} unused space usage records created before "
            f"{cutoff.isoformat()}"
        )
        return deleted

    async def stats(self, strategy: str | None = None) -> list[SpaceUsageStats]:
        grouped: dict[str, list[SpaceUsage]] = {}
        for usage in await self.repository.all(strategy):
            grouped.setdefault(usage.strategy, []).append(usage)
        return [
            SpaceUsageStats(
                strategy=name,
                total_configurations=len(items),
                average_usage=sum(x.usage_percentage for x in items) / len(items),
                max_usage=max(x.usage_percentage for x in items),
                warning_count=sum(x.is_warning for x in items),
                critical_count=sum(x.is_critical for x in items),
                exhausted_count=sum(x.is_exhausted for x in items),
            )
            for (name, items) in grouped.items()
        ]

    async def _count(self, key: SpaceKey) -> int:
        if self.usage_counter is None:
            return 0
        return await self.usage_counter(*key)

    async def _create(self, alphabet: str, key: SpaceKey) -> SpaceUsage:
        strategy, hash_, length, namespace = key
        usage = SpaceUsage.create(
            strategy=strategy,
            alphabet=alphabet,
            alphabet_hash=hash_,
            length=length,
            namespace=namespace,
            usage_count=await self._count(key),
            total_space=compute_total_space(len(alphabet), length),
            warning_threshold=self.settings.warning_threshold,
            critical_threshold=self.settings.critical_threshold,
        )
        return await self.repository.create(usage)

    def _is_stale(self, usage: SpaceUsage) -> bool:
        return (
            usage.last_calculated_at is None
            or usage.last_calculated_at < now() - self.settings.stale_after
        )

    async def _recalculate(self, usage: SpaceUsage) -> SpaceUsage:
        usage_count = None
        if self.usage_counter is not None:
            usage_count = await self.usage_counter(
                usage.strategy, usage.alphabet_hash, usage.length, usage.namespace
            )
        saved = await self.repository.recalculate(usage, usage_count)
        if abs(saved.usage_percentage - usage.usage_percentage) > SIGNIFICANT_CHANGE:
            logger.info(
                f"Space usage of {saved.space_key} changed from "
                f"{usage.usage_percentage:.4f} to {saved.usage_percentage:.4f} "
                f"({saved.usage_count} of {saved.total_space} used)"
            )
        return saved

    def _to_validation(self, usage: SpaceUsage) -> SpaceValidation:
        percentage = f"{usage.utilization_percentage:.2f}%"
        warnings = []
        recommendations = []
        if usage.is_exhausted:
            warnings.append(f"Slug space is exhausted ({percentage} used)")
        elif usage.is_critical:
            warnings.append(f"Slug space is critically full ({percentage} used)")
        elif usage.is_warning:
            warnings.append(f"Slug space is approaching capacity ({percentage} used)")

        if usage.is_critical or usage.is_exhausted:
            recommendations.append(
                "Consider increasing slug length or using a larger alphabet"
            )
            recommendations.append(
                "Consider using namespaces to partition the slug space"
            )
            if usage.length < self.settings.max_adaptive_length:
                recommendations.append(
                    f"Increase length from {usage.length} to {usage.length + 1} "
                    f"for {len(usage.alphabet)}x more space"
                )
        elif usage.is_warning:
            recommendations.append(
                "Monitor usage closely and prepare space expansion plan"
            )
            logger.warning(
                f"slug space {usage.space_key} is approaching capacity "
                f"({percentage} used)"
            )

        return SpaceValidation(
            can_generate=not usage.prevents_generation,
            space_info=SpaceInfo(
                strategy=usage.strategy,
                alphabet=usage.alphabet,
                alphabet_hash=usage.alphabet_hash,
                length=usage.length,
                namespace=usage.namespace,
                total_space=usage.total_space,
                used_space=usage.usage_count,
                remaining_space=usage.remaining_space,
                usage_percentage=usage.usage_percentage,
                status=usage.status,
            ),
            warnings=warnings,
            recommendations=recommendations,
        )
