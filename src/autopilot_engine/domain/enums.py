"""Domain enumerations."""

from enum import StrEnum


class AssetStatus(StrEnum):
    """Coarse, user-facing status of a generated media asset."""

    PROCESSING = "processing"
    READY = "ready"
    ERROR = "error"


class AssetKind(StrEnum):
    """Kind of media an asset currently represents."""

    IMAGE = "image"
    VIDEO = "video"


class ChainStage(StrEnum):
    """Fine-grained stage of an image -> analysis -> video chain."""

    QUEUED = "queued"
    GENERATING_IMAGE = "generating_image"
    ANALYZING_IMAGE = "analyzing_image"
    GENERATING_VIDEO = "generating_video"
    COMPLETED = "completed"
    ERROR = "error"


class JobState(StrEnum):
    """State reported by an external provider for a submitted job."""

    PROCESSING = "processing"
    READY = "ready"
    FAILED = "failed"
    UNKNOWN = "unknown"  # Unreachable or unrecognized; never terminal


class HistoryStatus(StrEnum):
    """Status of one autopilot generation attempt."""

    PENDING = "pending"
    GENERATING = "generating"
    READY = "ready"
    FAILED = "failed"


class PublishStatus(StrEnum):
    """Status of a post handed to the publishing provider."""

    SCHEDULED = "scheduled"
    POSTING = "posting"
    PUBLISHED = "published"
    FAILED = "failed"


class Platform(StrEnum):
    """Supported publishing platforms."""

    TIKTOK = "tiktok"
    INSTAGRAM = "instagram"
    YOUTUBE = "youtube"
    FACEBOOK = "facebook"


class Scene(StrEnum):
    """Named segments of a narrated autopilot video, in playback order."""

    HOOK = "hook"
    PROBLEM = "problem"
    REVEAL = "reveal"
    FEATURES = "features"
    SOCIAL_PROOF = "social_proof"
    AVATAR = "avatar"
    OFFER = "offer"
    CTA = "cta"


class GenerationMode(StrEnum):
    """How the autopilot scheduler produces a video."""

    NARRATED = "narrated"
    CHAIN = "chain"
