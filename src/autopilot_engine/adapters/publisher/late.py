"""Late (getlate.dev) multi-platform publishing provider."""

from typing import Any

import httpx

from autopilot_engine.adapters.publisher.base import (
    PublishingProvider,
    RemotePostStatus,
    SchedulePostRequest,
    SchedulePostResult,
)
from autopilot_engine.config import settings
from autopilot_engine.domain.enums import Platform
from autopilot_engine.logging import get_logger

logger = get_logger(__name__)

# Late content type per platform for short vertical video
CONTENT_TYPES = {
    Platform.INSTAGRAM: "reel",
    Platform.FACEBOOK: "reel",
    Platform.YOUTUBE: "short",
}


class LatePublishingProvider(PublishingProvider):
    """Posts videos through the Late API and reads back per-platform status."""

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
    ) -> None:
        self.api_key = api_key or settings.late_api_key
        self.base_url = (base_url or settings.late_base_url).rstrip("/")
        self.timeout = timeout or settings.provider_timeout_seconds

        if not self.api_key:
            logger.warning("Late API key not configured")

    @property
    def name(self) -> str:
        return "late"

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    def build_payload(self, request: SchedulePostRequest) -> dict[str, Any]:
        platform_entry: dict[str, Any] = {"platform": request.platform.value}
        if request.account_id:
            platform_entry["accountId"] = request.account_id
        if request.platform in CONTENT_TYPES:
            platform_entry["platformSpecificData"] = {
                "contentType": CONTENT_TYPES[request.platform]
            }

        payload: dict[str, Any] = {
            "content": request.caption,
            "platforms": [platform_entry],
            "mediaItems": [{"type": "video", "url": request.video_url}],
        }
        if request.scheduled_for:
            payload["scheduledFor"] = request.scheduled_for.isoformat()
        else:
            payload["publishNow"] = True
        payload.update(request.options)
        return payload

    async def schedule_post(self, request: SchedulePostRequest) -> SchedulePostResult:
        """Create a Late post for one platform."""
        if not self.api_key:
            return SchedulePostResult(
                success=False,
                platform=request.platform,
                error_message="Late API key not configured",
            )

        logger.info("late_post_create_started", platform=request.platform)

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    f"{self.base_url}/posts",
                    headers=self._headers(),
                    json=self.build_payload(request),
                )
                response.raise_for_status()
                body = response.json()
        except httpx.HTTPStatusError as e:
            error_msg = f"Late API error: {e.response.status_code} - {e.response.text[:200]}"
            logger.error("late_api_error", platform=request.platform, error=error_msg)
            return SchedulePostResult(
                success=False, platform=request.platform, error_message=error_msg
            )
        except httpx.HTTPError as e:
            logger.error("late_post_create_error", platform=request.platform, error=str(e))
            return SchedulePostResult(
                success=False, platform=request.platform, error_message=str(e)
            )

        post = body.get("post") or body
        post_id = post.get("_id") or post.get("id")
        if not post_id:
            return SchedulePostResult(
                success=False,
                platform=request.platform,
                error_message="No post id returned from Late",
            )

        logger.info("late_post_created", platform=request.platform, remote_job_id=post_id)
        return SchedulePostResult(success=True, platform=request.platform, remote_job_id=post_id)

    async def get_status(self, remote_job_id: str, platform: Platform) -> RemotePostStatus | None:
        """Read ``post.platforms[]`` and return the entry for ``platform``."""
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(
                    f"{self.base_url}/posts/{remote_job_id}",
                    headers=self._headers(),
                )
                response.raise_for_status()
                body = response.json()
        except httpx.HTTPError as e:
            logger.warning("late_status_fetch_failed", remote_job_id=remote_job_id, error=str(e))
            return None

        entries = (body.get("post") or {}).get("platforms") or []
        entry = next((p for p in entries if p.get("platform") == platform.value), None)
        if entry is None:
            logger.warning(
                "late_platform_entry_missing",
                remote_job_id=remote_job_id,
                platform=platform,
            )
            return None

        return RemotePostStatus(
            status=entry.get("status", ""),
            public_url=entry.get("platformPostUrl"),
            error=entry.get("error"),
        )

    async def health_check(self) -> bool:
        return bool(self.api_key)
