"""Tests for publish status reconciliation."""

from uuid import uuid4

import pytest

from autopilot_engine.adapters.publisher.base import RemotePostStatus
from autopilot_engine.adapters.publisher.stub import StubPublishingProvider
from autopilot_engine.domain.enums import Platform, PublishStatus
from autopilot_engine.domain.models import PublishJob
from autopilot_engine.repositories.memory import InMemoryPublishJobRepository
from autopilot_engine.services.reconciliation import (
    StatusReconciliationPoller,
    map_remote_status,
    merge_remote_status,
)


class CountingPublishJobRepository(InMemoryPublishJobRepository):
    """In-memory repository that counts writes."""

    def __init__(self) -> None:
        super().__init__()
        self.saves = 0

    def save(self, job: PublishJob) -> PublishJob:
        self.saves += 1
        return super().save(job)


class BrokenWriteRepository(CountingPublishJobRepository):
    """Repository whose writes fail for one remote job id."""

    def __init__(self, broken_remote_id: str) -> None:
        super().__init__()
        self.broken_remote_id = broken_remote_id

    def save(self, job: PublishJob) -> PublishJob:
        if job.remote_job_id == self.broken_remote_id:
            raise RuntimeError("database is locked")
        return super().save(job)


class UnreachableProvider(StubPublishingProvider):
    async def get_status(self, remote_job_id: str, platform: Platform) -> RemotePostStatus | None:
        raise ConnectionError("connection reset")


def make_job(remote_id: str, status: PublishStatus = PublishStatus.SCHEDULED) -> PublishJob:
    return PublishJob(
        owner_id="owner-1",
        media_asset_id=uuid4(),
        platform=Platform.TIKTOK,
        status=status,
        remote_job_id=remote_id,
    )


class TestStatusMapping:
    """Tests for mapping provider statuses."""

    def test_known_statuses(self) -> None:
        """Provider statuses map onto local statuses, ignoring case."""
        assert map_remote_status(RemotePostStatus("published")) == PublishStatus.PUBLISHED
        assert map_remote_status(RemotePostStatus("PUBLISHED")) == PublishStatus.PUBLISHED
        assert map_remote_status(RemotePostStatus("error")) == PublishStatus.FAILED
        assert map_remote_status(RemotePostStatus("publishing")) == PublishStatus.POSTING
        assert map_remote_status(RemotePostStatus("pending")) == PublishStatus.SCHEDULED

    def test_unknown_statuses(self) -> None:
        """Missing or unrecognized statuses map to None."""
        assert map_remote_status(None) is None
        assert map_remote_status(RemotePostStatus("")) is None
        assert map_remote_status(RemotePostStatus("teleported")) is None


class TestMergeRemoteStatus:
    """Tests for applying a remote status to a local job."""

    def test_published(self, clock) -> None:
        """A published post records its time and public URL."""
        job = make_job("post-1")
        remote = RemotePostStatus("published", public_url="https://tiktok.com/@glow/1")

        assert merge_remote_status(job, remote, clock.now) is True
        assert job.status == PublishStatus.PUBLISHED
        assert job.published_at == clock.now
        assert job.public_url == "https://tiktok.com/@glow/1"

    def test_failed_without_error(self, clock) -> None:
        """A failure without a provider message gets a generic one."""
        job = make_job("post-1")

        assert merge_remote_status(job, RemotePostStatus("failed"), clock.now) is True
        assert job.status == PublishStatus.FAILED
        assert job.error_message == "Publishing failed on the platform"

    def test_in_flight_status_is_ignored(self, clock) -> None:
        """Intermediate statuses never change the local job."""
        job = make_job("post-1")

        assert merge_remote_status(job, RemotePostStatus("processing"), clock.now) is False
        assert job.status == PublishStatus.SCHEDULED
        assert job.updated_at is None

    def test_equal_status_is_not_a_change(self, clock) -> None:
        """A job already in the remote status is untouched."""
        job = make_job("post-1", status=PublishStatus.PUBLISHED)

        assert merge_remote_status(job, RemotePostStatus("published"), clock.now) is False
        assert job.published_at is None


class TestStatusReconciliationPoller:
    """Tests for the reconciliation pass."""

    @pytest.mark.asyncio
    async def test_reconcile(self, clock) -> None:
        """Each in-flight job is classified and only changed jobs are written."""
        publish_jobs = CountingPublishJobRepository()
        published = publish_jobs.add(make_job("post-published"))
        failed = publish_jobs.add(make_job("post-failed"))
        posting = publish_jobs.add(make_job("post-posting", PublishStatus.POSTING))
        odd = publish_jobs.add(make_job("post-odd"))
        missing = publish_jobs.add(make_job("post-missing"))
        publish_jobs.add(make_job("post-done", PublishStatus.PUBLISHED))

        provider = StubPublishingProvider(
            remote_statuses={
                "post-failed": RemotePostStatus("failed", error="Video too long"),
                "post-posting": RemotePostStatus("posting"),
                "post-odd": RemotePostStatus("teleported"),
                "post-missing": None,
            }
        )
        poller = StatusReconciliationPoller(publish_jobs, provider, clock=clock)

        summary = await poller.reconcile()

        assert summary.to_dict() == {
            "checked": 5,
            "published": 1,
            "failed": 1,
            "unchanged": 1,
            "unknown": 2,
            "errors": 0,
        }
        assert publish_jobs.saves == 2
        assert publish_jobs.get(published.id).status == PublishStatus.PUBLISHED
        assert publish_jobs.get(failed.id).error_message == "Video too long"
        assert publish_jobs.get(posting.id).status == PublishStatus.POSTING
        assert publish_jobs.get(odd.id).status == PublishStatus.SCHEDULED
        assert publish_jobs.get(missing.id).status == PublishStatus.SCHEDULED

    @pytest.mark.asyncio
    async def test_unreachable_provider(self, clock) -> None:
        """A provider error leaves every job in flight."""
        publish_jobs = CountingPublishJobRepository()
        job = publish_jobs.add(make_job("post-1"))
        poller = StatusReconciliationPoller(publish_jobs, UnreachableProvider(), clock=clock)

        summary = await poller.reconcile()

        assert summary.unknown == 1
        assert publish_jobs.saves == 0
        assert publish_jobs.get(job.id).status == PublishStatus.SCHEDULED

    @pytest.mark.asyncio
    async def test_failed_write_does_not_stop_batch(self, clock) -> None:
        """A job that cannot be written is counted and the others are still merged."""
        publish_jobs = BrokenWriteRepository("post-broken")
        broken = publish_jobs.add(make_job("post-broken"))
        healthy = publish_jobs.add(make_job("post-healthy"))
        poller = StatusReconciliationPoller(publish_jobs, StubPublishingProvider(), clock=clock)

        summary = await poller.reconcile()

        assert summary.checked == 2
        assert summary.errors == 1
        assert summary.published == 1
        assert publish_jobs.get(healthy.id).status == PublishStatus.PUBLISHED
        assert publish_jobs.get(broken.id).status == PublishStatus.SCHEDULED

    @pytest.mark.asyncio
    async def test_jobs_without_remote_id_are_not_polled(self, clock) -> None:
        """Only jobs the provider accepted are reconciled."""
        publish_jobs = CountingPublishJobRepository()
        publish_jobs.add(make_job(None))
        poller = StatusReconciliationPoller(publish_jobs, StubPublishingProvider(), clock=clock)

        summary = await poller.reconcile()

        assert summary.checked == 0
