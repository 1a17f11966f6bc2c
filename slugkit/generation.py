# (c) Nelen & Schuurmans

import logging
from collections.abc import Awaitable
from collections.abc import Callable
from typing import Any
from typing import Literal

import backoff

from .alphabets import AlphabetType
from .alphabets import PatternType
from .base.domain import AlreadyExists
from .base.domain import BadRequest
from .base.domain import CollisionChecker
from .base.domain import CollisionExhausted
from .base.domain import CustomSlugRejected
from .base.domain import Json
from .base.domain import SpaceExhausted
from .base.domain import ValueObject
from .custom_slug import CustomSlugValidator
from .settings import SlugSettings
from .space import SpaceTracker
from .space import SpaceUsage
from .space import SpaceUsageStats
from .space import SpaceValidation
from .strategies import SlugOptions
from .strategies import StrategyDescriptor
from .strategies import StrategyRegistry

__all__ = ["SlugGenerator", "SlugRequest", "GenerationResult", "Persist"]


logger = logging.getLogger(__name__)


class SlugRequest(ValueObject):
    custom_slug: str | None = None
    strategy: str | None = None
    length: int | None = None
    alphabet: str | None = None
    alphabet_type: AlphabetType | None = None
    pattern: str | None = None
    pattern_type: PatternType | None = None
    version: Literal["v4", "v7"] | None = None
    namespace: str | None = None

    def options(self) -> SlugOptions:
        return SlugOptions(
            length=self.length,
            alphabet=self.alphabet,
            alphabet_type=self.alphabet_type,
            pattern=self.pattern,
            pattern_type=self.pattern_type,
            version=self.version,
        )


class GenerationResult(ValueObject):
    slug: str
    strategy: str | None = None
    length: int
    was_custom_slug: bool
    namespace: str | None = None
    space_validation: SpaceValidation | None = None


# stores the issued slug; raises AlreadyExists if it was taken in the meantime
Persist = Callable[[GenerationResult], Awaitable[Any]]


class SlugGenerator:
    """Turns a SlugRequest into a unique slug.

    A request either carries a custom slug, which is validated, or is served
    by a strategy: the identifier space is checked first, then candidates
    are drawn until the collision check reports one as free. After two
    collisions in a row the slug length grows by one per attempt, up to
    ``settings.max_adaptive_length``.
    """

    def __init__(
        self,
        registry: StrategyRegistry,
        validator: CustomSlugValidator,
        tracker: SpaceTracker,
        settings: SlugSettings | None = None,
    ):
        self.registry = registry
        self.validator = validator
        self.tracker = tracker
        self.settings = settings or registry.settings

    async def generate(
        self, request: SlugRequest, collision_check: CollisionChecker
    ) -> GenerationResult:
        if request.custom_slug:
            return await self._custom(request, collision_check)
        return await self._generated(request, collision_check)

    async def issue(
        self,
        request: SlugRequest,
        collision_check: CollisionChecker,
        persist: Persist,
    ) -> GenerationResult:
        """Generate a slug and store it with ``persist``.

        The collision check may race with other writers; a uniqueness
        violation in ``persist`` counts as one more collision and the slug
        is generated again, up to ``settings.max_commit_retries`` times.
        """
        issue_once = backoff.on_exception(
            backoff.constant,
            AlreadyExists,
            max_tries=self.settings.max_commit_retries,
            interval=0,
            jitter=None,
            logger=logger,
        )(self._issue_once)
        try:
            result = await issue_once(request, collision_check, persist)
        except AlreadyExists:
            raise CollisionExhausted(self.settings.max_commit_retries)
        if not result.was_custom_slug:
            await self.track_issuance(result, request)
        return result

    async def track_issuance(
        self, result: GenerationResult, request: SlugRequest
    ) -> None:
        """Count the issued slug against its identifier space; never raises."""
        if result.was_custom_slug or result.strategy is None:
            return
        try:
            strategy = self.registry.get(result.strategy)
            options = self.registry.preprocess(request.options())
            await self.tracker.track_issuance(strategy, options, request.namespace)
        except Exception as e:
            logger.error(
                f"Failed to track slug creation for strategy={result.strategy} "
                f"namespace={request.namespace}: {e}"
            )

    async def _issue_once(
        self,
        request: SlugRequest,
        collision_check: CollisionChecker,
        persist: Persist,
    ) -> GenerationResult:
        result = await self.generate(request, collision_check)
        try:
            await persist(result)
        except AlreadyExists:
            if not result.was_custom_slug:
                logger.warning(
                    f"slug '{result.slug}' was taken at commit time, regenerating"
                )
                raise
            raise CustomSlugRejected(
                [f"Slug '{result.slug}' is already in use"],
                await self.validator.suggest(
                    result.slug, collision_check, request.namespace
                ),
            )
        return result

    async def _custom(
        self, request: SlugRequest, collision_check: CollisionChecker
    ) -> GenerationResult:
        validation = await self.validator.validate(
            request.custom_slug,
            collision_check,
            pattern=request.pattern,
            pattern_type=request.pattern_type,
            auto_normalize=True,
            namespace=request.namespace,
        )
        if not validation.is_valid:
            raise CustomSlugRejected(validation.errors, validation.suggestions)
        return GenerationResult(
            slug=validation.slug,
            length=len(validation.slug),
            was_custom_slug=True,
            namespace=request.namespace,
        )

    async def _generated(
        self, request: SlugRequest, collision_check: CollisionChecker
    ) -> GenerationResult:
        strategy = self.registry.get(request.strategy)
        options = self.registry.preprocess(request.options())
        validation = await self.tracker.validate(strategy, options, request.namespace)
        if not validation.can_generate:
            raise SpaceExhausted(
                validation.space_info.model_dump(mode="json"),
                validation.recommendations,
            )
        if validation.warnings:
            logger.warning(
                f"Slug space approaching exhaustion for "
                f"strategy={strategy.name.value}: {' '.join(validation.warnings)}"
            )

        max_retries = self.settings.max_collision_retries
        length = options.length
        for attempt in range(1, max_retries + 1):
            try:
                slug = self.registry.generate(
                    strategy.name, options.update(length=length)
                )
            except BadRequest:
                raise
            except Exception as e:
                logger.error(
                    f"Error during slug generation (attempt {attempt}/{max_retries}, "
                    f"strategy={strategy.name.value}): {e}"
                )
                if attempt == max_retries:
                    raise
                continue

            if not await collision_check(slug, request.namespace):
                return GenerationResult(
                    slug=slug,
                    strategy=strategy.name.value,
                    length=len(slug),
                    was_custom_slug=False,
                    namespace=request.namespace,
                    space_validation=validation,
                )

            logger.warning(
                f"Slug collision detected on '{slug}' (attempt {attempt}/{max_retries})"
            )
            if attempt > 2 and length < self.settings.max_adaptive_length:
                length += 1
                logger.info(f"Increasing slug length to {length} due to collisions")

        raise CollisionExhausted(max_retries, validation.recommendations)

    async def space_validation(
        self,
        strategy: str | None = None,
        options: SlugOptions | None = None,
        namespace: str | None = None,
    ) -> SpaceValidation:
        return await self.tracker.validate(
            self.registry.get(strategy), self.registry.preprocess(options), namespace
        )

    async def stats(self, strategy: str | None = None) -> list[SpaceUsageStats]:
        return await self.tracker.stats(strategy)

    async def needing_attention(self) -> list[SpaceUsage]:
        return await self.tracker.needing_attention()

    async def recalculate_all(self) -> tuple[int, int]:
        return await self.tracker.recalculate_all()

    async def cleanup(self, days_old: int | None = None) -> int:
        return await self.tracker.cleanup(days_old)

    async def suggest(
        self,
        slug: str,
        collision_check: CollisionChecker,
        namespace: str | None = None,
        count: int = 5,
    ) -> list[str]:
        return await self.validator.suggest(slug, collision_check, namespace, count)

    async def is_available(
        self,
        slug: str,
        collision_check: CollisionChecker,
        namespace: str | None = None,
    ) -> bool:
        return await self.validator.is_available(slug, collision_check, namespace)

    def reserved_slugs(self) -> list[str]:
        return self.validator.reserved_slugs()

    def add_reserved_slug(self, slug: str) -> None:
        self.validator.add_reserved_slug(slug)

    def remove_reserved_slug(self, slug: str) -> None:
        self.validator.remove_reserved_slug(slug)

    def strategies(self) -> tuple[list[StrategyDescriptor], Json]:
        return self.registry.descriptors(), self.registry.configuration()
