"""Render worker client for narrated autopilot videos."""

from typing import Any

import httpx

from autopilot_engine.adapters.jobs.base import (
    ExternalJobClient,
    JobPollResult,
    JobRequest,
    JobSubmission,
)
from autopilot_engine.config import settings
from autopilot_engine.domain.enums import JobState
from autopilot_engine.logging import get_logger

logger = get_logger(__name__)

DEFAULT_COMPOSITION_ID = "AutopilotVideo"

# Render worker status -> provider-neutral job state
STATUS_MAP = {
    "queued": JobState.PROCESSING,
    "rendering": JobState.PROCESSING,
    "complete": JobState.READY,
    "failed": JobState.FAILED,
}


class RenderWorkerClient(ExternalJobClient):
    """Submits composition props to the render worker and polls for the output file.

    ``JobRequest.params`` carries ``job_id``, ``input_props`` and
    ``output_config`` (fps, width, height, durationInFrames); the prompt is
    unused.
    """

    def __init__(
        self,
        base_url: str | None = None,
        secret: str | None = None,
        timeout: float | None = None,
    ) -> None:
        self.base_url = (base_url or settings.render_worker_url or "").rstrip("/")
        self.secret = secret or settings.render_worker_secret
        self.timeout = timeout or settings.provider_timeout_seconds

        if not self.base_url:
            logger.warning("Render worker URL not configured")

    @property
    def name(self) -> str:
        return "render-worker"

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.secret:
            headers["X-Render-Secret"] = self.secret
        return headers

    async def submit(self, request: JobRequest) -> JobSubmission:
        """POST a render job."""
        if not self.base_url:
            return JobSubmission(success=False, error_message="Render worker URL not configured")

        params = request.params
        payload: dict[str, Any] = {
            "jobId": params.get("job_id"),
            "compositionId": params.get("composition_id", DEFAULT_COMPOSITION_ID),
            "inputProps": params.get("input_props", {}),
            "outputConfig": params.get("output_config", {}),
        }

        logger.info(
            "render_job_submit_started",
            job_id=payload["jobId"],
            composition_id=payload["compositionId"],
            duration_frames=payload["outputConfig"].get("durationInFrames"),
        )

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    f"{self.base_url}/render",
                    headers=self._headers(),
                    json=payload,
                )
                response.raise_for_status()
                body = response.json()
        except httpx.HTTPStatusError as e:
            error_msg = f"Render worker error: {e.response.status_code}"
            logger.error("render_worker_api_error", error=error_msg)
            return JobSubmission(success=False, error_message=error_msg)
        except httpx.HTTPError as e:
            logger.error("render_worker_unreachable", error=str(e))
            return JobSubmission(
                success=False,
                error_message=f"Failed to connect to render worker: {e}",
            )

        if not body.get("success") or not body.get("jobId"):
            return JobSubmission(
                success=False,
                error_message=body.get("error") or "Render submission failed",
            )

        logger.info("render_job_submitted", render_job_id=body["jobId"])
        return JobSubmission(success=True, job_id=body["jobId"], metadata={"provider": self.name})

    async def poll(self, job_id: str) -> JobPollResult:
        """GET the status of a render job."""
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(
                    f"{self.base_url}/status/{job_id}",
                    headers=self._headers(),
                )
                response.raise_for_status()
                body = response.json()
        except httpx.HTTPError as e:
            logger.warning("render_status_check_error", render_job_id=job_id, error=str(e))
            return JobPollResult(state=JobState.UNKNOWN, error_message=str(e))

        state = STATUS_MAP.get(body.get("status", ""), JobState.UNKNOWN)
        if state == JobState.READY and not body.get("resultUrl"):
            return JobPollResult(
                state=JobState.FAILED,
                error_message="Render completed without a result URL",
            )

        return JobPollResult(
            state=state,
            result_urls=[body["resultUrl"]] if body.get("resultUrl") else [],
            error_message=body.get("error"),
            metadata={"progress": body.get("progress")},
        )

    async def health_check(self) -> bool:
        if not self.base_url:
            return False
        try:
            async with httpx.AsyncClient(timeout=10.0) as client:
                response = await client.get(f"{self.base_url}/health")
                return response.status_code == 200
        except httpx.HTTPError as e:
            logger.error("render_worker_health_check_failed", error=str(e))
            return False
