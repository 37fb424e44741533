"""Base interface for social publishing providers."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from autopilot_engine.domain.enums import Platform


class PublishError(Exception):
    """Raised when a post cannot be handed to the publishing provider."""

    pass


@dataclass
class SchedulePostRequest:
    """Request to publish (or schedule) a finished video on one platform."""

    platform: Platform
    video_url: str
    caption: str
    account_id: str | None = None
    scheduled_for: datetime | None = None  # None publishes immediately
    options: dict[str, Any] = field(default_factory=dict)


@dataclass
class SchedulePostResult:
    """Response from handing a post to the provider."""

    success: bool
    platform: Platform
    remote_job_id: str | None = None
    error_message: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass
class RemotePostStatus:
    """Authoritative status of a post as reported by the provider.

    ``status`` is the provider's raw per-platform status string; mapping it
    onto local publish statuses is the reconciliation poller's job.
    """

    status: str
    public_url: str | None = None
    error: str | None = None


class PublishingProvider(ABC):
    """Abstract base class for publishing providers.

    Implementations:
    - LatePublishingProvider: Multi-platform posting through Late
    - StubPublishingProvider: Records posts in memory for testing
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name identifier."""
        ...

    @abstractmethod
    async def schedule_post(self, request: SchedulePostRequest) -> SchedulePostResult:
        """Hand a video to the provider for publishing.

        Args:
            request: Target platform, media URL and caption

        Returns:
            SchedulePostResult with the provider's post id or error information
        """
        ...

    @abstractmethod
    async def get_status(self, remote_job_id: str, platform: Platform) -> RemotePostStatus | None:
        """Fetch the provider's status for one platform of a post.

        Args:
            remote_job_id: The id returned by ``schedule_post``
            platform: Which platform entry of the post to read

        Returns:
            The remote status, or None when the provider could not be reached
            or has no entry for the platform
        """
        ...

    async def health_check(self) -> bool:
        """Check if the provider is available and healthy.

        Returns:
            True if provider is operational, False otherwise
        """
        return True
