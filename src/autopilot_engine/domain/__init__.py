"""Domain models and business logic."""

from autopilot_engine.domain.chain import (
    ChainError,
    ChainState,
    IllegalTransitionError,
    SubmissionIntent,
)
from autopilot_engine.domain.enums import (
    AssetKind,
    AssetStatus,
    ChainStage,
    GenerationMode,
    HistoryStatus,
    JobState,
    Platform,
    PublishStatus,
    Scene,
)
from autopilot_engine.domain.models import (
    AutopilotConfig,
    GenerationHistoryRecord,
    GenerationJob,
    PoolStats,
    Product,
    PublishJob,
    SourceProduct,
    Store,
)

__all__ = [
    "AssetKind",
    "AssetStatus",
    "AutopilotConfig",
    "ChainError",
    "ChainStage",
    "ChainState",
    "GenerationHistoryRecord",
    "GenerationJob",
    "GenerationMode",
    "HistoryStatus",
    "IllegalTransitionError",
    "JobState",
    "Platform",
    "PoolStats",
    "Product",
    "PublishJob",
    "PublishStatus",
    "Scene",
    "SourceProduct",
    "Store",
    "SubmissionIntent",
]
