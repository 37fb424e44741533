"""Stub external job client for development and testing."""

import asyncio
from uuid import uuid4

from autopilot_engine.adapters.jobs.base import (
    ExternalJobClient,
    JobPollResult,
    JobRequest,
    JobSubmission,
)
from autopilot_engine.domain.enums import JobState
from autopilot_engine.logging import get_logger

logger = get_logger(__name__)

_EXTENSIONS = {"image": "png", "video": "mp4", "render": "mp4"}


class StubJobClient(ExternalJobClient):
    """Stub provider that simulates submit/poll jobs without external calls.

    Job ids carry the ``stub-`` prefix so a fresh instance (e.g. in the next
    Celery task) still recognizes them. Unknown ids poll as ``UNKNOWN``.

    Args:
        kind: "image", "video" or "render"; selects the result file extension
        polls_until_ready: Number of ``PROCESSING`` answers before ``READY``
        fail_submit: Reject every submission
        fail_jobs: Report every job as ``FAILED`` once it finishes
    """

    def __init__(
        self,
        kind: str = "video",
        polls_until_ready: int = 0,
        fail_submit: bool = False,
        fail_jobs: bool = False,
    ) -> None:
        self.kind = kind
        self.polls_until_ready = polls_until_ready
        self.fail_submit = fail_submit
        self.fail_jobs = fail_jobs
        self.submitted: list[JobRequest] = []
        self._poll_counts: dict[str, int] = {}

    @property
    def name(self) -> str:
        return f"stub-{self.kind}"

    async def submit(self, request: JobRequest) -> JobSubmission:
        """Simulate a provider accepting a job."""
        if self.fail_submit:
            logger.warning("stub_job_submit_rejected", kind=self.kind)
            return JobSubmission(success=False, error_message="Stub provider rejected the job")

        await asyncio.sleep(0)
        job_id = f"stub-{self.kind}-{uuid4().hex[:12]}"
        self.submitted.append(request)

        logger.info(
            "stub_job_submitted",
            kind=self.kind,
            job_id=job_id,
            prompt=request.prompt[:100],
            reference_images=len(request.image_urls),
        )
        return JobSubmission(success=True, job_id=job_id, metadata={"provider": self.name})

    async def poll(self, job_id: str) -> JobPollResult:
        """Report the simulated job state."""
        if not job_id.startswith("stub-"):
            return JobPollResult(state=JobState.UNKNOWN, error_message="Unknown stub job")

        count = self._poll_counts.get(job_id, 0) + 1
        self._poll_counts[job_id] = count

        if count <= self.polls_until_ready:
            return JobPollResult(state=JobState.PROCESSING, metadata={"polls": count})

        if self.fail_jobs:
            return JobPollResult(
                state=JobState.FAILED,
                error_message="Stub provider failed the job",
            )

        extension = _EXTENSIONS.get(self.kind, "bin")
        url = f"https://stub.autopilot.local/{self.kind}/{job_id}.{extension}"
        logger.info("stub_job_ready", job_id=job_id, url=url)
        return JobPollResult(state=JobState.READY, result_urls=[url])

    async def health_check(self) -> bool:
        """Stub provider is always healthy."""
        return True
