"""Stub publishing provider for testing."""

import asyncio
from uuid import uuid4

from autopilot_engine.adapters.publisher.base import (
    PublishingProvider,
    RemotePostStatus,
    SchedulePostRequest,
    SchedulePostResult,
)
from autopilot_engine.domain.enums import Platform
from autopilot_engine.logging import get_logger

logger = get_logger(__name__)


class StubPublishingProvider(PublishingProvider):
    """Stub provider that accepts every post and reports it published.

    ``remote_statuses`` overrides the reported status per remote id, and an
    id mapped to None simulates an unreachable provider.
    """

    def __init__(
        self,
        remote_statuses: dict[str, RemotePostStatus | None] | None = None,
        failing_platforms: set[Platform] | None = None,
    ) -> None:
        self.remote_statuses = remote_statuses or {}
        self.failing_platforms = failing_platforms or set()
        self.posts: list[SchedulePostRequest] = []

    @property
    def name(self) -> str:
        return "stub"

    async def schedule_post(self, request: SchedulePostRequest) -> SchedulePostResult:
        await asyncio.sleep(0)
        if request.platform in self.failing_platforms:
            return SchedulePostResult(
                success=False,
                platform=request.platform,
                error_message=f"Stub publishing to {request.platform} failed",
            )

        self.posts.append(request)
        remote_id = f"stub-post-{uuid4().hex[:12]}"
        logger.info(
            "stub_post_scheduled",
            platform=request.platform,
            remote_job_id=remote_id,
            video_url=request.video_url[:100],
        )
        return SchedulePostResult(success=True, platform=request.platform, remote_job_id=remote_id)

    async def get_status(self, remote_job_id: str, platform: Platform) -> RemotePostStatus | None:
        if remote_job_id in self.remote_statuses:
            return self.remote_statuses[remote_job_id]
        return RemotePostStatus(
            status="published",
            public_url=f"https://{platform}.example.com/p/{remote_job_id}",
        )
