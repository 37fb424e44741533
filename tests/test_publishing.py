"""Tests for handing finished videos to the publishing provider."""

from uuid import uuid4

import pytest

from autopilot_engine.adapters.publisher.base import (
    PublishError,
    SchedulePostRequest,
    SchedulePostResult,
)
from autopilot_engine.adapters.publisher.stub import StubPublishingProvider
from autopilot_engine.domain.enums import AssetKind, AssetStatus, Platform, PublishStatus
from autopilot_engine.domain.models import AutopilotConfig, GenerationJob, Product
from autopilot_engine.services.publishing import PublishingService, build_caption


class ExplodingProvider(StubPublishingProvider):
    async def schedule_post(self, request: SchedulePostRequest) -> SchedulePostResult:
        raise TimeoutError("read timed out")


def ready_asset() -> GenerationJob:
    return GenerationJob(
        owner_id="owner-1",
        provider="stub-render",
        kind=AssetKind.VIDEO,
        status=AssetStatus.READY,
        result_url="https://cdn.example.com/video.mp4",
    )


def config_for(*platforms: Platform, accounts: dict[str, str] | None = None) -> AutopilotConfig:
    return AutopilotConfig(
        store_id=uuid4(),
        owner_id="owner-1",
        videos_per_week=7,
        platforms=list(platforms),
        publish_accounts=accounts or {},
    )


@pytest.mark.asyncio
async def test_queue_asset_per_platform(repos, clock) -> None:
    """Test one publish job per configured platform."""
    provider = StubPublishingProvider()
    service = PublishingService(repos.publish_jobs, provider, clock=clock)
    asset = ready_asset()
    config = config_for(Platform.TIKTOK, Platform.YOUTUBE, accounts={"youtube": "acct-yt"})

    jobs = await service.queue_asset(asset, config, "caption")

    assert [j.platform for j in jobs] == [Platform.TIKTOK, Platform.YOUTUBE]
    assert all(j.status == PublishStatus.SCHEDULED and j.remote_job_id for j in jobs)
    assert [p.account_id for p in provider.posts] == [None, "acct-yt"]
    assert all(p.video_url == asset.result_url for p in provider.posts)
    assert len(repos.publish_jobs.list_for_asset(asset.id)) == 2


@pytest.mark.asyncio
async def test_queue_asset_provider_exception(repos, clock) -> None:
    """Test a raising provider produces a failed publish job."""
    service = PublishingService(repos.publish_jobs, ExplodingProvider(), clock=clock)

    (job,) = await service.queue_asset(ready_asset(), config_for(Platform.TIKTOK), "caption")

    assert job.status == PublishStatus.FAILED
    assert job.error_message == "read timed out"
    assert job.remote_job_id is None


@pytest.mark.asyncio
async def test_queue_asset_without_result(repos, clock) -> None:
    """Test an asset without a result URL cannot be published."""
    service = PublishingService(repos.publish_jobs, StubPublishingProvider(), clock=clock)
    asset = ready_asset()
    asset.result_url = None

    with pytest.raises(PublishError):
        await service.queue_asset(asset, config_for(Platform.TIKTOK), "caption")


def test_build_caption() -> None:
    """Test captions name the product."""
    product = Product(store_id=uuid4(), title="GlowBottle")

    assert build_caption(product).startswith("GlowBottle - link in bio!")
    assert "#fyp" in build_caption(None)
