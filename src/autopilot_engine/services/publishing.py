"""Hand-off of finished videos to the publishing provider."""

from collections.abc import Callable
from datetime import datetime

from autopilot_engine.adapters.publisher.base import (
    PublishError,
    PublishingProvider,
    SchedulePostRequest,
)
from autopilot_engine.domain.enums import Platform, PublishStatus
from autopilot_engine.domain.models import (
    AutopilotConfig,
    GenerationJob,
    Product,
    PublishJob,
    utcnow,
)
from autopilot_engine.logging import get_logger
from autopilot_engine.repositories.base import PublishJobRepository

logger = get_logger(__name__)

MAX_CAPTION_LENGTH = 2200


def build_caption(product: Product | None) -> str:
    """Short caption for an autopilot post."""
    if product is None:
        return "Check this out! #fyp #musthave"
    caption = f"{product.title} - link in bio! #fyp #musthave #tiktokmademebuyit"
    return caption[:MAX_CAPTION_LENGTH]


class PublishingService:
    """Creates one publish job per configured platform for a ready asset."""

    def __init__(
        self,
        publish_jobs: PublishJobRepository,
        provider: PublishingProvider,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.publish_jobs = publish_jobs
        self.provider = provider
        self.clock = clock

    async def queue_asset(
        self,
        asset: GenerationJob,
        config: AutopilotConfig,
        caption: str,
        scheduled_for: datetime | None = None,
    ) -> list[PublishJob]:
        """Post ``asset`` to every platform of ``config``.

        A platform the provider rejects gets a ``failed`` publish job carrying
        the provider's error; the other platforms are unaffected.

        Raises:
            PublishError: If the asset has no result URL to publish
        """
        if not asset.result_url:
            raise PublishError(f"Asset {asset.id} has no result URL")

        created: list[PublishJob] = []
        for platform in config.platforms:
            platform = Platform(platform)
            job = PublishJob(
                owner_id=asset.owner_id,
                media_asset_id=asset.id,
                platform=platform,
                caption=caption,
                scheduled_for=scheduled_for,
            )
            request = SchedulePostRequest(
                platform=platform,
                video_url=asset.result_url,
                caption=caption,
                account_id=config.publish_accounts.get(platform.value),
                scheduled_for=scheduled_for,
            )

            try:
                result = await self.provider.schedule_post(request)
                success = result.success
                remote_id, error = result.remote_job_id, result.error_message
            except Exception as e:
                logger.exception(
                    "publish_schedule_raised", asset_id=str(asset.id), platform=platform
                )
                success, remote_id, error = False, None, str(e)

            if success and remote_id:
                job.status = PublishStatus.SCHEDULED
                job.remote_job_id = remote_id
            else:
                job.status = PublishStatus.FAILED
                job.error_message = error or "Publishing provider returned no post id"
            job.updated_at = self.clock()

            self.publish_jobs.add(job)
            created.append(job)
            logger.info(
                "publish_job_created",
                asset_id=str(asset.id),
                platform=platform,
                status=job.status,
                remote_job_id=remote_id,
            )

        return created
