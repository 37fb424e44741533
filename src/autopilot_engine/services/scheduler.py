"""Autopilot scheduler: decides when and for which product to generate.

The scheduler never looks inside a generation. It hands a product to a
``VideoGenerator`` and records the outcome in the generation history; the
periodic ``finalize_history`` pass later notices when the media asset has
finished and publishes it.

Every attempt advances ``next_scheduled_at`` whether or not it succeeded, so
a broken provider is retried on the next cadence tick instead of on every
hourly run.
"""

from collections.abc import Callable
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from typing import Any
from uuid import UUID

from autopilot_engine.adapters.publisher.base import PublishError
from autopilot_engine.domain.enums import AssetStatus, HistoryStatus, PublishStatus
from autopilot_engine.domain.models import (
    AutopilotConfig,
    GenerationHistoryRecord,
    GenerationJob,
    Product,
    utcnow,
)
from autopilot_engine.logging import get_logger
from autopilot_engine.repositories.base import Repositories
from autopilot_engine.services.autopilot_video import (
    MAX_IMAGES,
    InsufficientImagesError,
    VideoGenerationRequest,
    VideoGenerator,
)
from autopilot_engine.services.publishing import PublishingService, build_caption
from autopilot_engine.services.rotation import ProductRotationPool

logger = get_logger(__name__)

DAYS_PER_WEEK = 7
# One video per hour is the finest cadence the hourly trigger can honor
MAX_VIDEOS_PER_WEEK = 24 * DAYS_PER_WEEK


class ConfigurationError(ValueError):
    """Raised when an autopilot config cannot be scheduled as configured."""

    pass


class ConfigNotFoundError(LookupError):
    """Raised when an operation names an autopilot config that does not exist."""

    def __init__(self, config_id: UUID) -> None:
        super().__init__(f"Autopilot config not found: {config_id}")
        self.config_id = config_id


def validate_cadence(videos_per_week: int) -> None:
    """Reject cadences the scheduler cannot honor.

    Raises:
        ConfigurationError: If ``videos_per_week`` is not in (0, 168]
    """
    if videos_per_week <= 0:
        raise ConfigurationError(f"videos_per_week must be positive, got {videos_per_week}")
    if videos_per_week > MAX_VIDEOS_PER_WEEK:
        raise ConfigurationError(
            f"videos_per_week must be at most {MAX_VIDEOS_PER_WEEK}, got {videos_per_week}"
        )


def calculate_next_scheduled(videos_per_week: int, from_time: datetime) -> datetime:
    """``from_time`` plus ``7 / videos_per_week`` days, floored to the hour.

    The cadence must already be validated; see ``validate_cadence``.
    """
    next_time = from_time + timedelta(days=DAYS_PER_WEEK / videos_per_week)
    return next_time.replace(minute=0, second=0, microsecond=0)


@dataclass
class GenerationOutcome:
    """Result of one ``execute_generation`` call."""

    config_id: UUID
    success: bool
    skipped: bool = False
    history_id: UUID | None = None
    media_asset_id: UUID | None = None
    product_id: UUID | None = None
    error: str | None = None


@dataclass
class RunSummary:
    """Counts for one pass over the due configs."""

    due: int = 0
    succeeded: int = 0
    failed: int = 0
    skipped: int = 0
    outcomes: list[GenerationOutcome] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "due": self.due,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "skipped": self.skipped,
        }


class AutopilotScheduler:
    """Runs autopilot configs on their cadence.

    Args:
        repos: Persistence for configs, stores, products, history and assets
        generator: Produces the video for a selected product
        publishing: Publishes finished videos; None disables publishing
        clock: Source of "now"
    """

    def __init__(
        self,
        repos: Repositories,
        generator: VideoGenerator,
        publishing: PublishingService | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.repos = repos
        self.generator = generator
        self.publishing = publishing
        self.clock = clock
        self.rotation = ProductRotationPool(repos.products, clock=clock)

    # -------------------------------------------------------------------------
    # Schedule
    # -------------------------------------------------------------------------

    def get_due_configs(
        self, now: datetime | None = None, limit: int | None = None
    ) -> list[AutopilotConfig]:
        """Active, approved configs whose next run is at or before ``now``."""
        return self.repos.configs.list_due(now or self.clock(), limit)

    def _load_config(self, config_id: UUID) -> AutopilotConfig:
        config = self.repos.configs.get(config_id)
        if config is None:
            raise ConfigNotFoundError(config_id)
        return config

    def _advance_schedule(self, config_id: UUID, now: datetime, generated: bool) -> None:
        config = self._load_config(config_id)
        config.next_scheduled_at = calculate_next_scheduled(config.videos_per_week, now)
        if generated:
            config.last_generated_at = now
        self.repos.configs.save(config)
        logger.info(
            "autopilot_schedule_advanced",
            config_id=str(config_id),
            next_scheduled_at=config.next_scheduled_at.isoformat(),
        )

    def increment_stats(
        self,
        config_id: UUID,
        store_id: UUID,
        previous_min_use_count: int | None = None,
    ) -> AutopilotConfig:
        """Count a successful generation and detect a completed pass over the pool.

        A pass completes when every active product has been used and the
        pool's ``min_use_count`` rose above ``previous_min_use_count``, its
        value before this generation marked its product used. A usage reset
        therefore starts a new pass. Without a previous value the counted
        cycles are the baseline.
        """
        config = self._load_config(config_id)
        config.videos_generated += 1

        stats = self.rotation.get_pool_stats(store_id)
        baseline = (
            config.pool_cycles if previous_min_use_count is None else previous_min_use_count
        )
        if stats.active > 0 and stats.unused == 0 and stats.min_use_count > baseline:
            config.pool_cycles += 1
            logger.info(
                "autopilot_pool_cycle_completed",
                config_id=str(config_id),
                pool_cycles=config.pool_cycles,
            )

        self.repos.configs.save(config)
        return config

    # -------------------------------------------------------------------------
    # History
    # -------------------------------------------------------------------------

    def create_history_record(
        self,
        config_id: UUID,
        product_id: UUID,
        status: HistoryStatus = HistoryStatus.PENDING,
        error_message: str | None = None,
    ) -> GenerationHistoryRecord:
        record = GenerationHistoryRecord(
            config_id=config_id,
            product_id=product_id,
            status=status,
            error_message=error_message,
        )
        if record.is_terminal:
            record.completed_at = self.clock()
        return self.repos.history.add(record)

    def update_history_record(
        self, record_id: UUID, **updates: Any
    ) -> GenerationHistoryRecord | None:
        """Apply field updates to a history row.

        A row that is already terminal only accepts ``published_platforms``
        and ``error_message`` updates.
        """
        record = self.repos.history.get(record_id)
        if record is None:
            logger.warning("autopilot_history_not_found", history_id=str(record_id))
            return None

        if record.is_terminal:
            allowed = ("published_platforms", "error_message")
            updates = {k: v for k, v in updates.items() if k in allowed}

        for key, value in updates.items():
            setattr(record, key, value)
        if record.is_terminal and record.completed_at is None:
            record.completed_at = self.clock()

        return self.repos.history.save(record)

    # -------------------------------------------------------------------------
    # Generation
    # -------------------------------------------------------------------------

    def _require_images(self, product: Product) -> None:
        if not product.has_enough_images:
            raise InsufficientImagesError(
                f"Product {product.id} has {len(product.images)} images; at least 2 are required"
            )

    async def execute_generation(
        self, config: AutopilotConfig, now: datetime | None = None
    ) -> GenerationOutcome:
        """Run one generation attempt for ``config``. Never raises."""
        now = now or self.clock()
        log = logger.bind(config_id=str(config.id), store_id=str(config.store_id))

        try:
            validate_cadence(config.videos_per_week)
        except ConfigurationError as e:
            log.error("autopilot_config_invalid", error=str(e))
            return GenerationOutcome(config_id=config.id, success=False, skipped=True, error=str(e))

        history: GenerationHistoryRecord | None = None
        try:
            store = self.repos.stores.get(config.store_id)
            if store is None:
                log.warning("autopilot_store_not_found")
                self._advance_schedule(config.id, now, generated=False)
                return GenerationOutcome(
                    config_id=config.id, success=False, error="Store not found"
                )

            product = self.rotation.get_next_product(config.store_id)
            if product is None:
                self._advance_schedule(config.id, now, generated=False)
                return GenerationOutcome(
                    config_id=config.id, success=False, error="No active products available"
                )

            try:
                self._require_images(product)
            except InsufficientImagesError as e:
                log.warning("autopilot_product_rejected", product_id=str(product.id), error=str(e))
                self.rotation.set_product_active(product.id, False)
                history = self.create_history_record(
                    config.id,
                    product.id,
                    status=HistoryStatus.FAILED,
                    error_message="Product has insufficient images",
                )
                self._advance_schedule(config.id, now, generated=False)
                return GenerationOutcome(
                    config_id=config.id,
                    success=False,
                    history_id=history.id,
                    product_id=product.id,
                    error="Product has insufficient images",
                )

            history = self.create_history_record(config.id, product.id)
            log.info(
                "autopilot_generation_started", product_id=str(product.id), product=product.title
            )

            request_product = product
            if len(product.images) > MAX_IMAGES:
                request_product = replace(product, images=product.images[:MAX_IMAGES])

            result = await self.generator.generate(
                VideoGenerationRequest(
                    owner_id=config.owner_id,
                    product=request_product,
                    store=store,
                    include_avatar=config.include_avatar,
                    voice_id=config.voice_id or store.voice_id,
                )
            )

            if not result.success or result.media_asset_id is None:
                error = result.error_message or "Video generation failed"
                self.update_history_record(
                    history.id,
                    status=HistoryStatus.FAILED,
                    media_asset_id=result.media_asset_id,
                    error_message=error,
                )
                self._advance_schedule(config.id, now, generated=False)
                log.error("autopilot_generation_failed", product_id=str(product.id), error=error)
                return GenerationOutcome(
                    config_id=config.id,
                    success=False,
                    history_id=history.id,
                    media_asset_id=result.media_asset_id,
                    product_id=product.id,
                    error=error,
                )

            self.update_history_record(
                history.id,
                status=HistoryStatus.GENERATING,
                media_asset_id=result.media_asset_id,
            )
            previous_min = self.rotation.get_pool_stats(config.store_id).min_use_count
            self.rotation.mark_product_used(product.id)
            self.increment_stats(config.id, config.store_id, previous_min)
            self._advance_schedule(config.id, now, generated=True)

            log.info(
                "autopilot_generation_submitted",
                product_id=str(product.id),
                media_asset_id=str(result.media_asset_id),
                generator=self.generator.name,
            )
            return GenerationOutcome(
                config_id=config.id,
                success=True,
                history_id=history.id,
                media_asset_id=result.media_asset_id,
                product_id=product.id,
            )

        except Exception as e:
            log.exception("autopilot_generation_raised")
            try:
                if history is not None and not history.is_terminal:
                    self.update_history_record(
                        history.id, status=HistoryStatus.FAILED, error_message=str(e)
                    )
                self._advance_schedule(config.id, now, generated=False)
            except Exception:
                log.exception("autopilot_generation_cleanup_failed")
            return GenerationOutcome(
                config_id=config.id,
                success=False,
                history_id=history.id if history else None,
                error=str(e) or "Generation failed",
            )

    async def run_due(self, now: datetime | None = None, limit: int | None = None) -> RunSummary:
        """Process every due config in turn. One failure never stops the batch."""
        now = now or self.clock()
        due = self.get_due_configs(now, limit)
        summary = RunSummary(due=len(due))

        for config in due:
            outcome = await self.execute_generation(config, now)
            summary.outcomes.append(outcome)
            if outcome.skipped:
                summary.skipped += 1
            elif outcome.success:
                summary.succeeded += 1
            else:
                summary.failed += 1

        logger.info("autopilot_run_completed", **summary.to_dict())
        return summary

    async def finalize_history(self, limit: int | None = None) -> dict[str, int]:
        """Close history rows whose media asset has reached a terminal status.

        Ready assets are published to the config's platforms and the row moves
        to ``ready``; errored assets move the row to ``failed``.
        """
        counts = {"ready": 0, "failed": 0, "pending": 0}

        for record in self.repos.history.list_by_status(HistoryStatus.GENERATING, limit):
            try:
                asset = None
                if record.media_asset_id:
                    asset = self.repos.jobs.get(record.media_asset_id)
                if asset is None:
                    self.update_history_record(
                        record.id,
                        status=HistoryStatus.FAILED,
                        error_message="Media asset not found",
                    )
                    counts["failed"] += 1
                    continue

                if asset.status == AssetStatus.PROCESSING:
                    counts["pending"] += 1
                    continue

                if asset.status == AssetStatus.ERROR:
                    self.update_history_record(
                        record.id,
                        status=HistoryStatus.FAILED,
                        error_message=asset.error_message or "Generation failed",
                    )
                    counts["failed"] += 1
                    continue

                published, error = await self._publish(record, asset)
                self.update_history_record(
                    record.id,
                    status=HistoryStatus.READY,
                    published_platforms=published,
                    error_message=error,
                )
                counts["ready"] += 1
            except Exception:
                logger.exception("autopilot_history_finalize_failed", history_id=str(record.id))

        if any(counts.values()):
            logger.info("autopilot_history_finalized", **counts)
        return counts

    async def _publish(
        self, record: GenerationHistoryRecord, asset: GenerationJob
    ) -> tuple[list[str], str | None]:
        config = self.repos.configs.get(record.config_id)
        if self.publishing is None or config is None or not config.platforms:
            return [], None

        # Posts queued by an earlier run whose history write was lost
        jobs = self.publishing.publish_jobs.list_for_asset(asset.id)
        if jobs:
            logger.info(
                "autopilot_publish_already_queued",
                history_id=str(record.id),
                media_asset_id=str(asset.id),
                publish_jobs=len(jobs),
            )
        else:
            product = self.repos.products.get(record.product_id)
            try:
                jobs = await self.publishing.queue_asset(asset, config, build_caption(product))
            except PublishError as e:
                logger.error("autopilot_publish_failed", history_id=str(record.id), error=str(e))
                return [], str(e)

        published = [str(j.platform) for j in jobs if j.status != PublishStatus.FAILED]
        failures = [
            f"{j.platform}: {j.error_message}" for j in jobs if j.status == PublishStatus.FAILED
        ]
        return published, "; ".join(failures) or None

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def pause_autopilot(self, config_id: UUID) -> AutopilotConfig:
        config = self._load_config(config_id)
        config.is_active = False
        self.repos.configs.save(config)
        logger.info("autopilot_paused", config_id=str(config_id))
        return config

    def resume_autopilot(self, config_id: UUID, now: datetime | None = None) -> AutopilotConfig:
        """Reactivate a paused config, scheduling its next run from now."""
        config = self._load_config(config_id)
        validate_cadence(config.videos_per_week)
        now = now or self.clock()
        config.is_active = True
        config.next_scheduled_at = calculate_next_scheduled(config.videos_per_week, now)
        self.repos.configs.save(config)
        logger.info(
            "autopilot_resumed",
            config_id=str(config_id),
            next_scheduled_at=config.next_scheduled_at.isoformat(),
        )
        return config

    def activate_autopilot(
        self,
        config_id: UUID,
        first_video_asset_id: UUID | None = None,
        now: datetime | None = None,
    ) -> AutopilotConfig:
        """Approve and start a config after its preview video was accepted.

        The preview video counts as the first generated video.
        """
        config = self._load_config(config_id)
        validate_cadence(config.videos_per_week)
        now = now or self.clock()
        config.is_approved = True
        config.is_active = True
        config.first_video_asset_id = first_video_asset_id
        config.next_scheduled_at = calculate_next_scheduled(config.videos_per_week, now)
        config.videos_generated = max(config.videos_generated, 1)
        self.repos.configs.save(config)
        logger.info(
            "autopilot_activated",
            config_id=str(config_id),
            next_scheduled_at=config.next_scheduled_at.isoformat(),
        )
        return config
