"""Kie.ai image and video generation clients.

Kie.ai wraps several generation models behind the same task API: a POST
creates a task and returns ``data.taskId``; ``record-info`` reports
``data.successFlag`` (0 running, 1 succeeded, 2 or 3 failed).
"""

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

SUCCESS_FLAG_RUNNING = 0
SUCCESS_FLAG_DONE = 1
SUCCESS_FLAG_FAILED = frozenset({2, 3})


class KieClientBase(ExternalJobClient):
    """Shared task submission and polling for Kie.ai endpoints."""

    generate_path: str = ""
    record_path: str = ""

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        model: str | None = None,
        timeout: float | None = None,
    ) -> None:
        self.api_key = api_key or settings.kie_api_key
        self.base_url = (base_url or settings.kie_base_url).rstrip("/")
        self.model = model or self.default_model()
        self.timeout = timeout or settings.provider_timeout_seconds

        if not self.api_key:
            logger.warning("Kie.ai API key not configured", provider=self.name)

    def default_model(self) -> str:
        raise NotImplementedError

    def build_payload(self, request: JobRequest) -> dict[str, Any]:
        raise NotImplementedError

    def extract_result_urls(self, data: dict[str, Any]) -> list[str]:
        raise NotImplementedError

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    async def submit(self, request: JobRequest) -> JobSubmission:
        """Create a Kie.ai task."""
        if not self.api_key:
            return JobSubmission(success=False, error_message="Kie.ai API key not configured")

        payload = self.build_payload(request)
        logger.info(
            "kie_task_submit_started",
            provider=self.name,
            model=self.model,
            prompt_length=len(request.prompt),
            reference_images=len(request.image_urls),
        )

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    f"{self.base_url}{self.generate_path}",
                    headers=self._headers(),
                    json=payload,
                )
                response.raise_for_status()
                body = response.json()
        except httpx.HTTPStatusError as e:
            error_msg = f"Kie.ai API error: {e.response.status_code} - {e.response.text[:200]}"
            logger.error("kie_api_error", provider=self.name, error=error_msg)
            return JobSubmission(success=False, error_message=error_msg)
        except httpx.HTTPError as e:
            logger.error("kie_submit_error", provider=self.name, error=str(e))
            return JobSubmission(success=False, error_message=f"Kie.ai request failed: {e}")

        if body.get("code") != 200:
            error_msg = f"Kie.ai rejected task: {body.get('msg') or body}"
            logger.error("kie_task_rejected", provider=self.name, error=error_msg)
            return JobSubmission(success=False, error_message=error_msg)

        task_id = (body.get("data") or {}).get("taskId")
        if not task_id:
            return JobSubmission(success=False, error_message="No taskId returned from Kie.ai")

        logger.info("kie_task_submitted", provider=self.name, task_id=task_id)
        return JobSubmission(
            success=True,
            job_id=task_id,
            metadata={"provider": self.name, "model": self.model},
        )

    async def poll(self, job_id: str) -> JobPollResult:
        """Read a task's record-info."""
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(
                    f"{self.base_url}{self.record_path}",
                    headers=self._headers(),
                    params={"taskId": job_id},
                )
                response.raise_for_status()
                body = response.json()
        except httpx.HTTPError as e:
            logger.warning("kie_poll_error", provider=self.name, task_id=job_id, error=str(e))
            return JobPollResult(state=JobState.UNKNOWN, error_message=str(e))

        data = body.get("data") or {}
        flag = data.get("successFlag")
        logger.debug("kie_poll_status", provider=self.name, task_id=job_id, success_flag=flag)

        if flag == SUCCESS_FLAG_RUNNING:
            return JobPollResult(state=JobState.PROCESSING)
        if flag in SUCCESS_FLAG_FAILED:
            return JobPollResult(
                state=JobState.FAILED,
                error_message=data.get("errorMessage") or "Kie.ai generation failed",
            )
        if flag == SUCCESS_FLAG_DONE:
            return JobPollResult(
                state=JobState.READY,
                result_urls=self.extract_result_urls(data),
                metadata={"raw_response": data},
            )

        return JobPollResult(
            state=JobState.UNKNOWN,
            error_message=f"Unrecognized successFlag: {flag!r}",
        )

    async def health_check(self) -> bool:
        return bool(self.api_key)


class KieFluxKontextClient(KieClientBase):
    """Image generation with Flux Kontext, optionally guided by a product photo."""

    generate_path = "/flux/kontext/generate"
    record_path = "/flux/kontext/record-info"

    @property
    def name(self) -> str:
        return "kie-flux-kontext"

    def default_model(self) -> str:
        return settings.kie_image_model

    def build_payload(self, request: JobRequest) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "prompt": request.prompt,
            "aspectRatio": request.aspect_ratio,
            "model": self.model,
            "outputFormat": "png",
        }
        if request.image_urls:
            payload["inputImage"] = request.image_urls[0]
        payload.update(request.params)
        return payload

    def extract_result_urls(self, data: dict[str, Any]) -> list[str]:
        url = (data.get("response") or {}).get("resultImageUrl")
        return [url] if url else []


class KieVeoClient(KieClientBase):
    """Video generation with Veo, using generated images as visual reference."""

    generate_path = "/veo/generate"
    record_path = "/veo/record-info"

    @property
    def name(self) -> str:
        return "kie-veo3"

    def default_model(self) -> str:
        return settings.kie_video_model

    def build_payload(self, request: JobRequest) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "prompt": request.prompt,
            "model": self.model,
            "aspectRatio": request.aspect_ratio,
        }
        if request.image_urls:
            payload["imageUrls"] = list(request.image_urls)
        payload.update(request.params)
        return payload

    def extract_result_urls(self, data: dict[str, Any]) -> list[str]:
        urls = (data.get("response") or {}).get("resultUrls") or []
        return [u for u in urls if u]
