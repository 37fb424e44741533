"""Application services."""

from autopilot_engine.services.autopilot_video import (
    AutopilotVideoService,
    ChainVideoGenerator,
    VideoGenerationRequest,
    VideoGenerationResult,
    VideoGenerator,
)
from autopilot_engine.services.chain import ChainError, ChainOrchestrator, JobNotFoundError
from autopilot_engine.services.prompts import PromptVariables
from autopilot_engine.services.publishing import PublishingService
from autopilot_engine.services.reconciliation import StatusReconciliationPoller
from autopilot_engine.services.rotation import ProductRotationPool
from autopilot_engine.services.scene_timing import SceneDurations
from autopilot_engine.services.scheduler import (
    AutopilotScheduler,
    ConfigNotFoundError,
    ConfigurationError,
)

__all__ = [
    "AutopilotScheduler",
    "AutopilotVideoService",
    "ChainError",
    "ChainOrchestrator",
    "ChainVideoGenerator",
    "ConfigNotFoundError",
    "ConfigurationError",
    "JobNotFoundError",
    "ProductRotationPool",
    "PromptVariables",
    "PublishingService",
    "SceneDurations",
    "StatusReconciliationPoller",
    "VideoGenerationRequest",
    "VideoGenerationResult",
    "VideoGenerator",
]
