"""Reconciles local publish jobs with the publishing provider's status."""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from autopilot_engine.adapters.publisher.base import PublishingProvider, RemotePostStatus
from autopilot_engine.domain.enums import PublishStatus
from autopilot_engine.domain.models import PublishJob, utcnow
from autopilot_engine.logging import get_logger
from autopilot_engine.repositories.base import PublishJobRepository

logger = get_logger(__name__)

# Provider status -> local status. Anything not listed is unrecognized.
REMOTE_STATUS_MAP = {
    "published": PublishStatus.PUBLISHED,
    "failed": PublishStatus.FAILED,
    "error": PublishStatus.FAILED,
    "posting": PublishStatus.POSTING,
    "publishing": PublishStatus.POSTING,
    "processing": PublishStatus.POSTING,
    "scheduled": PublishStatus.SCHEDULED,
    "pending": PublishStatus.SCHEDULED,
}

IN_FLIGHT = (PublishStatus.SCHEDULED, PublishStatus.POSTING)


def map_remote_status(remote: RemotePostStatus | None) -> PublishStatus | None:
    """Local status for a provider status, or None when it is unknown or missing."""
    if remote is None or not remote.status:
        return None
    return REMOTE_STATUS_MAP.get(remote.status.lower())


def merge_remote_status(job: PublishJob, remote: RemotePostStatus | None, now: datetime) -> bool:
    """Apply a provider status to ``job`` in place.

    Only terminal remote outcomes change the job; in-flight and unknown
    statuses leave it untouched. Returns True if the job changed and must be
    written.
    """
    mapped = map_remote_status(remote)
    if mapped is None or mapped in IN_FLIGHT or mapped == job.status:
        return False

    job.status = mapped
    job.updated_at = now
    if mapped == PublishStatus.PUBLISHED:
        job.published_at = now
        job.public_url = remote.public_url if remote else None
        job.error_message = None
    else:
        job.error_message = (
            remote.error if remote else None
        ) or "Publishing failed on the platform"
    return True


@dataclass
class ReconcileSummary:
    checked: int = 0
    published: int = 0
    failed: int = 0
    unchanged: int = 0
    unknown: int = 0
    errors: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "checked": self.checked,
            "published": self.published,
            "failed": self.failed,
            "unchanged": self.unchanged,
            "unknown": self.unknown,
            "errors": self.errors,
        }


class StatusReconciliationPoller:
    """Polls the provider for every in-flight publish job and merges the result.

    An unreachable provider or an unrecognized status is logged and left for
    the next tick; it never fails a local job.
    """

    def __init__(
        self,
        publish_jobs: PublishJobRepository,
        provider: PublishingProvider,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.publish_jobs = publish_jobs
        self.provider = provider
        self.clock = clock

    async def reconcile_job(self, job: PublishJob) -> RemotePostStatus | None:
        """Fetch the remote status of one job, None when it cannot be determined."""
        if not job.remote_job_id:
            return None
        try:
            return await self.provider.get_status(job.remote_job_id, job.platform)
        except Exception as e:
            logger.warning(
                "reconcile_status_fetch_failed",
                publish_job_id=str(job.id),
                remote_job_id=job.remote_job_id,
                error=str(e),
            )
            return None

    async def _reconcile_one(self, job: PublishJob, summary: ReconcileSummary) -> None:
        remote = await self.reconcile_job(job)

        if map_remote_status(remote) is None:
            summary.unknown += 1
            logger.warning(
                "reconcile_status_unknown",
                publish_job_id=str(job.id),
                remote_job_id=job.remote_job_id,
                remote_status=remote.status if remote else None,
            )
            return

        if not merge_remote_status(job, remote, self.clock()):
            summary.unchanged += 1
            return

        self.publish_jobs.save(job)
        if job.status == PublishStatus.PUBLISHED:
            summary.published += 1
        else:
            summary.failed += 1
        logger.info(
            "reconcile_status_merged",
            publish_job_id=str(job.id),
            platform=job.platform,
            status=job.status,
            public_url=job.public_url,
        )

    async def reconcile(self, limit: int | None = None) -> ReconcileSummary:
        """Merge the remote status of every in-flight job.

        A job that cannot be merged or written is logged and counted in
        ``errors``; the rest of the batch still runs.
        """
        summary = ReconcileSummary()

        for job in self.publish_jobs.list_in_flight(limit):
            summary.checked += 1
            try:
                await self._reconcile_one(job, summary)
            except Exception:
                summary.errors += 1
                logger.exception("reconcile_job_failed", publish_job_id=str(job.id))

        logger.info("reconcile_completed", **summary.to_dict())
        return summary
