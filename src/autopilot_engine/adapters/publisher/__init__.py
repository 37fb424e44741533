"""Social publishing adapters."""

from autopilot_engine.adapters.publisher.base import (
    PublishError,
    PublishingProvider,
    RemotePostStatus,
    SchedulePostRequest,
    SchedulePostResult,
)
from autopilot_engine.adapters.publisher.late import LatePublishingProvider
from autopilot_engine.adapters.publisher.stub import StubPublishingProvider

__all__ = [
    "PublishError",
    "PublishingProvider",
    "RemotePostStatus",
    "SchedulePostRequest",
    "SchedulePostResult",
    "LatePublishingProvider",
    "StubPublishingProvider",
]
