"""Chain state machine for image -> analysis -> video generation.

The stage of a chain is an explicit enum. Every change of stage goes through
``ChainState.transition``, which consults ``ALLOWED_TRANSITIONS`` and raises
``IllegalTransitionError`` for anything not listed there.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from autopilot_engine.domain.enums import ChainStage


class ChainError(Exception):
    """Base error for chain orchestration."""

    pass


class IllegalTransitionError(ChainError):
    """Raised when a chain is asked to move between stages it cannot connect."""

    def __init__(self, current: ChainStage, target: ChainStage) -> None:
        super().__init__(f"Illegal chain transition: {current} -> {target}")
        self.current = current
        self.target = target


ALLOWED_TRANSITIONS: dict[ChainStage, frozenset[ChainStage]] = {
    ChainStage.QUEUED: frozenset({ChainStage.GENERATING_IMAGE, ChainStage.ERROR}),
    ChainStage.GENERATING_IMAGE: frozenset({ChainStage.ANALYZING_IMAGE, ChainStage.ERROR}),
    ChainStage.ANALYZING_IMAGE: frozenset({ChainStage.GENERATING_VIDEO, ChainStage.ERROR}),
    ChainStage.GENERATING_VIDEO: frozenset({ChainStage.COMPLETED, ChainStage.ERROR}),
    # Re-erroring only overwrites the message
    ChainStage.ERROR: frozenset({ChainStage.ERROR}),
    ChainStage.COMPLETED: frozenset(),
}

TERMINAL_STAGES = frozenset({ChainStage.COMPLETED, ChainStage.ERROR})


def _dt_to_str(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def _str_to_dt(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


@dataclass
class ChainTimestamps:
    """Per-stage timestamps of a chain."""

    image_started_at: datetime | None = None
    image_completed_at: datetime | None = None
    analysis_completed_at: datetime | None = None
    video_started_at: datetime | None = None
    video_completed_at: datetime | None = None
    failed_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {name: _dt_to_str(getattr(self, name)) for name in self.__dataclass_fields__}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ChainTimestamps":
        return cls(**{name: _str_to_dt(data.get(name)) for name in cls.__dataclass_fields__})


@dataclass
class ChainState:
    """Fine-grained state of one chain, persisted as JSON on its media asset."""

    stage: ChainStage = ChainStage.QUEUED
    image_task_id: str | None = None
    image_url: str | None = None
    image_analysis: str | None = None
    video_prompt: str | None = None
    video_task_id: str | None = None
    failed_stage: ChainStage | None = None
    error: str | None = None
    timestamps: ChainTimestamps = field(default_factory=ChainTimestamps)

    @property
    def is_terminal(self) -> bool:
        return self.stage in TERMINAL_STAGES

    def can_transition(self, target: ChainStage) -> bool:
        return target in ALLOWED_TRANSITIONS[self.stage]

    def transition(self, target: ChainStage) -> None:
        """Move to ``target``, rejecting moves the state machine does not allow."""
        if not self.can_transition(target):
            raise IllegalTransitionError(self.stage, target)
        self.stage = target

    def fail(self, stage: ChainStage, message: str, now: datetime) -> None:
        """Record a failure.

        The first failing stage is kept; a repeated failure only replaces the
        message.
        """
        self.transition(ChainStage.ERROR)
        if self.failed_stage is None:
            self.failed_stage = stage
            self.timestamps.failed_at = now
        self.error = message

    def duration_label(self) -> str | None:
        """Elapsed time from image submission to finished video, as ``"Xm Ys"``."""
        started = self.timestamps.image_started_at
        finished = self.timestamps.video_completed_at
        if not started or not finished:
            return None
        seconds = int((finished - started).total_seconds())
        minutes, seconds = divmod(seconds, 60)
        return f"{minutes}m {seconds}s"

    def to_dict(self) -> dict[str, Any]:
        return {
            "stage": self.stage.value,
            "image_task_id": self.image_task_id,
            "image_url": self.image_url,
            "image_analysis": self.image_analysis,
            "video_prompt": self.video_prompt,
            "video_task_id": self.video_task_id,
            "failed_stage": self.failed_stage.value if self.failed_stage else None,
            "error": self.error,
            "timestamps": self.timestamps.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ChainState":
        failed_stage = data.get("failed_stage")
        return cls(
            stage=ChainStage(data.get("stage", ChainStage.QUEUED)),
            image_task_id=data.get("image_task_id"),
            image_url=data.get("image_url"),
            image_analysis=data.get("image_analysis"),
            video_prompt=data.get("video_prompt"),
            video_task_id=data.get("video_task_id"),
            failed_stage=ChainStage(failed_stage) if failed_stage else None,
            error=data.get("error"),
            timestamps=ChainTimestamps.from_dict(data.get("timestamps") or {}),
        )


@dataclass
class SubmissionIntent:
    """Marker persisted before a provider submit and cleared once its job id is stored.

    An intent that outlives the grace period means the process died between
    submitting and recording the provider's job id.
    """

    stage: str
    provider: str
    recorded_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "stage": self.stage,
            "provider": self.provider,
            "recorded_at": self.recorded_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SubmissionIntent":
        return cls(
            stage=data["stage"],
            provider=data["provider"],
            recorded_at=datetime.fromisoformat(data["recorded_at"]),
        )
