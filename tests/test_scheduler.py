"""Tests for the autopilot scheduler."""

from datetime import UTC, datetime, timedelta
from uuid import UUID, uuid4

import pytest

from autopilot_engine.adapters.publisher.stub import StubPublishingProvider
from autopilot_engine.domain.enums import AssetKind, AssetStatus, HistoryStatus, Platform
from autopilot_engine.domain.models import AutopilotConfig, GenerationJob, Product, Store
from autopilot_engine.services.autopilot_video import (
    VideoGenerationRequest,
    VideoGenerationResult,
    VideoGenerator,
)
from autopilot_engine.services.publishing import PublishingService
from autopilot_engine.services.scheduler import (
    AutopilotScheduler,
    ConfigNotFoundError,
    ConfigurationError,
    calculate_next_scheduled,
    validate_cadence,
)

IMAGES = ["https://cdn.example.com/1.jpg", "https://cdn.example.com/2.jpg"]


class FakeGenerator(VideoGenerator):
    """Generator that records requests and creates a processing asset."""

    def __init__(self, jobs, fail: bool = False, raise_error: bool = False) -> None:
        self.jobs = jobs
        self.fail = fail
        self.raise_error = raise_error
        self.requests: list[VideoGenerationRequest] = []

    @property
    def name(self) -> str:
        return "fake"

    async def generate(self, request: VideoGenerationRequest) -> VideoGenerationResult:
        self.requests.append(request)
        if self.raise_error:
            raise RuntimeError("provider exploded")
        if self.fail:
            return VideoGenerationResult(success=False, error_message="Provider down")

        job = GenerationJob(owner_id=request.owner_id, provider="fake", kind=AssetKind.VIDEO)
        self.jobs.add(job)
        return VideoGenerationResult(success=True, media_asset_id=job.id)

    async def check_status(self, job_id: UUID) -> bool:
        return False


def seed(
    repos,
    clock,
    product_count: int = 3,
    images: list[str] | None = None,
    videos_per_week: int = 7,
    platforms: list[Platform] | None = None,
) -> tuple[Store, list[Product], AutopilotConfig]:
    store = repos.stores.add(Store(owner_id="owner-1", name="Glow Co"))
    products = [
        repos.products.add(
            Product(
                store_id=store.id,
                title=f"Product {i + 1}",
                images=list(images if images is not None else IMAGES),
                created_at=clock.now - timedelta(days=product_count - i),
            )
        )
        for i in range(product_count)
    ]
    config = repos.configs.add(
        AutopilotConfig(
            store_id=store.id,
            owner_id="owner-1",
            videos_per_week=videos_per_week,
            platforms=platforms or [],
            is_active=True,
            is_approved=True,
            next_scheduled_at=clock.now - timedelta(minutes=1),
        )
    )
    return store, products, config


def make_scheduler(repos, clock, generator=None, publishing=None) -> AutopilotScheduler:
    return AutopilotScheduler(
        repos,
        generator=generator or FakeGenerator(repos.jobs),
        publishing=publishing,
        clock=clock,
    )


class TestCadence:
    """Tests for cadence validation and next-run calculation."""

    def test_daily_cadence(self) -> None:
        """Seven videos a week schedules one day ahead, floored to the hour."""
        start = datetime(2026, 1, 5, 10, 30, tzinfo=UTC)

        assert calculate_next_scheduled(7, start) == datetime(2026, 1, 6, 10, 0, tzinfo=UTC)

    def test_fractional_days(self) -> None:
        """Three videos a week is every 2 days 8 hours."""
        start = datetime(2026, 1, 5, 10, 30, tzinfo=UTC)

        assert calculate_next_scheduled(3, start) == datetime(2026, 1, 7, 18, 0, tzinfo=UTC)

    def test_validate_cadence(self) -> None:
        """Cadences outside one to 168 per week are rejected."""
        validate_cadence(1)
        validate_cadence(168)

        with pytest.raises(ConfigurationError):
            validate_cadence(0)
        with pytest.raises(ConfigurationError):
            validate_cadence(169)


class TestExecuteGeneration:
    """Tests for a single generation attempt."""

    @pytest.mark.asyncio
    async def test_failed_generation(self, repos, clock) -> None:
        """A provider failure is recorded, advances the schedule and leaves the product unused."""
        _, products, config = seed(repos, clock)
        scheduler = make_scheduler(repos, clock, FakeGenerator(repos.jobs, fail=True))

        summary = await scheduler.run_due()

        assert summary.due == 1
        assert summary.failed == 1

        history = repos.history.list_for_config(config.id)
        assert len(history) == 1
        assert history[0].status == HistoryStatus.FAILED
        assert history[0].error_message == "Provider down"
        assert history[0].completed_at == clock.now

        stored = repos.configs.get(config.id)
        assert stored.next_scheduled_at == datetime(2026, 1, 6, 10, 0, tzinfo=UTC)
        assert stored.last_generated_at is None
        assert stored.videos_generated == 0
        assert repos.products.get(products[0].id).use_count == 0

    @pytest.mark.asyncio
    async def test_successful_generation(self, repos, clock) -> None:
        """A submitted video is recorded and the product marked used."""
        store, products, config = seed(repos, clock)
        generator = FakeGenerator(repos.jobs)
        scheduler = make_scheduler(repos, clock, generator)

        outcome = await scheduler.execute_generation(config)

        assert outcome.success is True
        assert outcome.product_id == products[0].id

        record = repos.history.get(outcome.history_id)
        assert record.status == HistoryStatus.GENERATING
        assert record.media_asset_id == outcome.media_asset_id

        stored = repos.configs.get(config.id)
        assert stored.videos_generated == 1
        assert stored.last_generated_at == clock.now
        assert stored.next_scheduled_at == datetime(2026, 1, 6, 10, 0, tzinfo=UTC)
        assert repos.products.get(products[0].id).use_count == 1

        request = generator.requests[0]
        assert request.owner_id == "owner-1"
        assert request.store.id == store.id

    @pytest.mark.asyncio
    async def test_round_robin_and_pool_cycles(self, repos, clock) -> None:
        """Each product is used once before any repeats; a full pass counts a cycle."""
        _, products, config = seed(repos, clock)
        scheduler = make_scheduler(repos, clock)

        used = []
        for _ in range(4):
            outcome = await scheduler.execute_generation(repos.configs.get(config.id))
            used.append(outcome.product_id)
            clock.advance(days=1)

        assert used == [products[0].id, products[1].id, products[2].id, products[0].id]

        stored = repos.configs.get(config.id)
        assert stored.videos_generated == 4
        assert stored.pool_cycles == 1

    @pytest.mark.asyncio
    async def test_pool_cycles_after_usage_reset(self, repos, clock) -> None:
        """A full pass after resetting usage counts as another cycle."""
        store, _, config = seed(repos, clock, product_count=2)
        scheduler = make_scheduler(repos, clock)

        for _ in range(2):
            await scheduler.execute_generation(repos.configs.get(config.id))
            clock.advance(days=1)
        assert repos.configs.get(config.id).pool_cycles == 1

        scheduler.rotation.reset_usage(store.id)
        for _ in range(2):
            await scheduler.execute_generation(repos.configs.get(config.id))
            clock.advance(days=1)

        stored = repos.configs.get(config.id)
        assert stored.videos_generated == 4
        assert stored.pool_cycles == 2

    @pytest.mark.asyncio
    async def test_insufficient_images(self, repos, clock) -> None:
        """A product with one image is deactivated without calling the generator."""
        _, products, config = seed(repos, clock, product_count=1, images=IMAGES[:1])
        generator = FakeGenerator(repos.jobs)
        scheduler = make_scheduler(repos, clock, generator)

        outcome = await scheduler.execute_generation(config)

        assert outcome.success is False
        assert outcome.error == "Product has insufficient images"
        assert generator.requests == []
        assert repos.products.get(products[0].id).is_active is False

        record = repos.history.get(outcome.history_id)
        assert record.status == HistoryStatus.FAILED
        assert repos.configs.get(config.id).next_scheduled_at > clock.now

    @pytest.mark.asyncio
    async def test_images_are_trimmed(self, repos, clock) -> None:
        """At most four images are handed to the generator."""
        images = [f"https://cdn.example.com/{i}.jpg" for i in range(6)]
        _, products, config = seed(repos, clock, product_count=1, images=images)
        generator = FakeGenerator(repos.jobs)
        scheduler = make_scheduler(repos, clock, generator)

        await scheduler.execute_generation(config)

        assert generator.requests[0].product.images == images[:4]
        assert repos.products.get(products[0].id).images == images

    @pytest.mark.asyncio
    async def test_empty_pool(self, repos, clock) -> None:
        """A store without active products fails and still advances the schedule."""
        _, _, config = seed(repos, clock, product_count=0)
        scheduler = make_scheduler(repos, clock)

        outcome = await scheduler.execute_generation(config)

        assert outcome.success is False
        assert outcome.error == "No active products available"
        assert repos.configs.get(config.id).next_scheduled_at > clock.now

    @pytest.mark.asyncio
    async def test_missing_store(self, repos, clock) -> None:
        """A config whose store is gone fails without raising."""
        config = repos.configs.add(
            AutopilotConfig(store_id=uuid4(), owner_id="owner-1", videos_per_week=7)
        )
        scheduler = make_scheduler(repos, clock)

        outcome = await scheduler.execute_generation(config)

        assert outcome.success is False
        assert outcome.error == "Store not found"

    @pytest.mark.asyncio
    async def test_invalid_cadence_is_skipped(self, repos, clock) -> None:
        """A config with an impossible cadence is skipped untouched."""
        _, _, config = seed(repos, clock, videos_per_week=0)
        scheduler = make_scheduler(repos, clock)

        outcome = await scheduler.execute_generation(config)

        assert outcome.skipped is True
        assert repos.configs.get(config.id).next_scheduled_at == config.next_scheduled_at
        assert repos.history.list_for_config(config.id) == []

    @pytest.mark.asyncio
    async def test_generator_exception(self, repos, clock) -> None:
        """An exception from the generator fails the attempt instead of propagating."""
        _, products, config = seed(repos, clock)
        scheduler = make_scheduler(repos, clock, FakeGenerator(repos.jobs, raise_error=True))

        outcome = await scheduler.execute_generation(config)

        assert outcome.success is False
        assert outcome.error == "provider exploded"
        record = repos.history.get(outcome.history_id)
        assert record.status == HistoryStatus.FAILED
        assert record.error_message == "provider exploded"
        assert repos.configs.get(config.id).next_scheduled_at > clock.now
        assert repos.products.get(products[0].id).use_count == 0

    @pytest.mark.asyncio
    async def test_one_failure_does_not_stop_the_batch(self, repos, clock) -> None:
        """Every due config is processed even when one fails."""
        seed(repos, clock, product_count=0)
        seed(repos, clock)
        scheduler = make_scheduler(repos, clock)

        summary = await scheduler.run_due()

        assert summary.due == 2
        assert summary.succeeded == 1
        assert summary.failed == 1

    @pytest.mark.asyncio
    async def test_paused_configs_are_not_due(self, repos, clock) -> None:
        """Paused configs are never picked up."""
        _, _, config = seed(repos, clock)
        scheduler = make_scheduler(repos, clock)
        scheduler.pause_autopilot(config.id)

        assert scheduler.get_due_configs() == []


class TestFinalizeHistory:
    """Tests for closing history rows once their asset finishes."""

    async def _generate(self, repos, clock, platforms, provider=None):
        _, _, config = seed(repos, clock, platforms=platforms)
        publishing = PublishingService(
            repos.publish_jobs, provider or StubPublishingProvider(), clock=clock
        )
        scheduler = make_scheduler(repos, clock, publishing=publishing)
        outcome = await scheduler.execute_generation(config)
        return scheduler, outcome

    def _finish(self, repos, asset_id, status: AssetStatus, url: str | None = None) -> None:
        asset = repos.jobs.get(asset_id)
        asset.status = status
        asset.result_url = url
        asset.error_message = "render crashed" if status == AssetStatus.ERROR else None
        repos.jobs.save(asset)

    @pytest.mark.asyncio
    async def test_ready_asset_is_published(self, repos, clock) -> None:
        """A ready asset is published per platform and the row closed."""
        provider = StubPublishingProvider(failing_platforms={Platform.INSTAGRAM})
        scheduler, outcome = await self._generate(
            repos, clock, [Platform.TIKTOK, Platform.INSTAGRAM], provider
        )
        self._finish(repos, outcome.media_asset_id, AssetStatus.READY, "https://cdn/v.mp4")

        counts = await scheduler.finalize_history()

        assert counts == {"ready": 1, "failed": 0, "pending": 0}
        record = repos.history.get(outcome.history_id)
        assert record.status == HistoryStatus.READY
        assert record.published_platforms == ["tiktok"]
        assert "instagram" in record.error_message
        assert len(repos.publish_jobs.list_for_asset(outcome.media_asset_id)) == 2

    @pytest.mark.asyncio
    async def test_rerun_does_not_publish_twice(self, repos, clock) -> None:
        """A row left open after its posts were queued reuses those posts."""
        provider = StubPublishingProvider()
        scheduler, outcome = await self._generate(repos, clock, [Platform.TIKTOK], provider)
        self._finish(repos, outcome.media_asset_id, AssetStatus.READY, "https://cdn/v.mp4")
        await scheduler.finalize_history()

        # The history write after publishing never landed
        record = repos.history.get(outcome.history_id)
        record.status = HistoryStatus.GENERATING
        record.published_platforms = []
        repos.history.save(record)

        counts = await scheduler.finalize_history()

        assert counts == {"ready": 1, "failed": 0, "pending": 0}
        assert len(provider.posts) == 1
        assert len(repos.publish_jobs.list_for_asset(outcome.media_asset_id)) == 1
        assert repos.history.get(outcome.history_id).published_platforms == ["tiktok"]

    @pytest.mark.asyncio
    async def test_errored_asset_fails_row(self, repos, clock) -> None:
        """An errored asset closes the row as failed."""
        scheduler, outcome = await self._generate(repos, clock, [Platform.TIKTOK])
        self._finish(repos, outcome.media_asset_id, AssetStatus.ERROR)

        counts = await scheduler.finalize_history()

        assert counts["failed"] == 1
        record = repos.history.get(outcome.history_id)
        assert record.status == HistoryStatus.FAILED
        assert record.error_message == "render crashed"

    @pytest.mark.asyncio
    async def test_processing_asset_stays_open(self, repos, clock) -> None:
        """A row whose asset is still processing is left for the next pass."""
        scheduler, outcome = await self._generate(repos, clock, [Platform.TIKTOK])

        counts = await scheduler.finalize_history()

        assert counts == {"ready": 0, "failed": 0, "pending": 1}
        assert repos.history.get(outcome.history_id).status == HistoryStatus.GENERATING


class TestHistoryAndLifecycle:
    """Tests for history updates and config lifecycle."""

    def test_terminal_row_only_accepts_publish_fields(self, repos, clock) -> None:
        """A closed history row keeps its status."""
        scheduler = make_scheduler(repos, clock)
        record = scheduler.create_history_record(
            uuid4(), uuid4(), status=HistoryStatus.FAILED, error_message="boom"
        )

        updated = scheduler.update_history_record(
            record.id, status=HistoryStatus.GENERATING, published_platforms=["tiktok"]
        )

        assert updated.status == HistoryStatus.FAILED
        assert updated.published_platforms == ["tiktok"]
        assert scheduler.update_history_record(uuid4(), status=HistoryStatus.READY) is None

    def test_activate(self, repos, clock) -> None:
        """Activation approves the config and counts the preview video."""
        store = repos.stores.add(Store(owner_id="owner-1", name="Glow Co"))
        config = repos.configs.add(
            AutopilotConfig(store_id=store.id, owner_id="owner-1", videos_per_week=7)
        )
        preview_id = uuid4()
        scheduler = make_scheduler(repos, clock)

        activated = scheduler.activate_autopilot(config.id, preview_id)

        assert activated.is_active and activated.is_approved
        assert activated.first_video_asset_id == preview_id
        assert activated.videos_generated == 1
        assert activated.next_scheduled_at == datetime(2026, 1, 6, 10, 0, tzinfo=UTC)

    def test_pause_and_resume(self, repos, clock) -> None:
        """Resuming schedules the next run from now."""
        _, _, config = seed(repos, clock, videos_per_week=14)
        scheduler = make_scheduler(repos, clock)

        assert scheduler.pause_autopilot(config.id).is_active is False

        clock.advance(days=3)
        resumed = scheduler.resume_autopilot(config.id)

        assert resumed.is_active is True
        assert resumed.next_scheduled_at == datetime(2026, 1, 8, 22, 0, tzinfo=UTC)

    def test_unknown_config(self, repos, clock) -> None:
        """Lifecycle operations on a missing config raise."""
        scheduler = make_scheduler(repos, clock)

        with pytest.raises(ConfigNotFoundError):
            scheduler.pause_autopilot(uuid4())
        with pytest.raises(ConfigNotFoundError):
            scheduler.activate_autopilot(uuid4())

    def test_activate_rejects_invalid_cadence(self, repos, clock) -> None:
        """A config with an impossible cadence cannot be activated."""
        config = repos.configs.add(
            AutopilotConfig(store_id=uuid4(), owner_id="owner-1", videos_per_week=500)
        )
        scheduler = make_scheduler(repos, clock)

        with pytest.raises(ConfigurationError):
            scheduler.activate_autopilot(config.id)
