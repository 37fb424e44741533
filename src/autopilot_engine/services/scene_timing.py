"""Scene timing for narrated autopilot videos.

Narration length drives each scene's duration. Every scene is clamped to its
own bounds, and the features scene is the single valve used to pull the
whole video toward its target length.
"""

import math
from dataclasses import dataclass, fields, replace
from typing import NamedTuple

from autopilot_engine.domain.enums import Scene

FPS = 30

MIN_TOTAL_SECONDS = 57.0
MAX_TOTAL_SECONDS = 78.0
DEFAULT_TARGET_SECONDS = 65.0
DEFAULT_TOLERANCE_SECONDS = 2.0
DEFAULT_PADDING_SECONDS = 1.5
WORDS_PER_SECOND = 2.5


class SceneConstraint(NamedTuple):
    """Bounds and fallback length of a scene, in seconds."""

    min: float
    max: float
    default: float


SCENE_CONSTRAINTS: dict[Scene, SceneConstraint] = {
    Scene.HOOK: SceneConstraint(3, 5, 4),
    Scene.PROBLEM: SceneConstraint(8, 10, 9),
    Scene.REVEAL: SceneConstraint(8, 12, 10),
    Scene.FEATURES: SceneConstraint(12, 15, 14),
    Scene.SOCIAL_PROOF: SceneConstraint(8, 10, 9),
    Scene.AVATAR: SceneConstraint(0, 10, 0),
    Scene.OFFER: SceneConstraint(5, 8, 6),
    Scene.CTA: SceneConstraint(5, 8, 6),
}

# Scenes whose length follows their narration clip
NARRATED_SCENES = (
    Scene.PROBLEM,
    Scene.REVEAL,
    Scene.FEATURES,
    Scene.SOCIAL_PROOF,
    Scene.OFFER,
    Scene.CTA,
)

# Adjusted by adjust_to_target; it has the widest useful range
FLEXIBLE_SCENE = Scene.FEATURES


@dataclass(frozen=True)
class SceneDurations:
    """Frame count per scene."""

    hook: int
    problem: int
    reveal: int
    features: int
    social_proof: int
    avatar: int
    offer: int
    cta: int

    @property
    def total_frames(self) -> int:
        return sum(getattr(self, f.name) for f in fields(self))

    @property
    def total_seconds(self) -> float:
        return self.total_frames / FPS

    def frames(self, scene: Scene) -> int:
        return getattr(self, scene.value)

    def active_scenes(self) -> dict[Scene, int]:
        """Scenes that are actually rendered; zero-length optional scenes are omitted."""
        return {scene: self.frames(scene) for scene in Scene if self.frames(scene) > 0}

    def to_dict(self) -> dict[str, int]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass
class DurationValidation:
    """Outcome of ``validate_total_duration``."""

    valid: bool
    total_seconds: float
    message: str | None = None


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def to_frames(seconds: float) -> int:
    return round(seconds * FPS)


def estimate_duration(text: str) -> int:
    """Estimated narration length in whole seconds, at 2.5 words per second."""
    words = len(text.split())
    return math.ceil(words / WORDS_PER_SECOND)


def calculate_scene_durations(
    audio_durations: dict[Scene, float],
    padding_seconds: float = DEFAULT_PADDING_SECONDS,
    avatar_seconds: float = 0.0,
) -> SceneDurations:
    """Turn narration clip lengths into clamped per-scene frame counts.

    Args:
        audio_durations: Clip length in seconds for each scene whose narration
            audio was generated; missing scenes fall back to their default
        padding_seconds: Silence added after each narration clip
        avatar_seconds: Length of the optional avatar clip; 0 omits the scene

    Returns:
        SceneDurations with every scene inside its bounds
    """
    seconds: dict[Scene, float] = {
        Scene.HOOK: SCENE_CONSTRAINTS[Scene.HOOK].default,
    }

    for scene in NARRATED_SCENES:
        bounds = SCENE_CONSTRAINTS[scene]
        audio = audio_durations.get(scene)
        raw = audio + padding_seconds if audio is not None else bounds.default
        seconds[scene] = clamp(raw, bounds.min, bounds.max)

    avatar_bounds = SCENE_CONSTRAINTS[Scene.AVATAR]
    seconds[Scene.AVATAR] = (
        clamp(avatar_seconds, avatar_bounds.min, avatar_bounds.max) if avatar_seconds > 0 else 0
    )

    return SceneDurations(**{scene.value: to_frames(value) for scene, value in seconds.items()})


def validate_total_duration(durations: SceneDurations) -> DurationValidation:
    """Flag totals outside the accepted window without changing anything."""
    total = durations.total_seconds

    if total < MIN_TOTAL_SECONDS:
        return DurationValidation(
            valid=False,
            total_seconds=total,
            message=f"Video too short: {total:.1f}s (target 60-75s)",
        )
    if total > MAX_TOTAL_SECONDS:
        return DurationValidation(
            valid=False,
            total_seconds=total,
            message=f"Video too long: {total:.1f}s (target 60-75s)",
        )
    return DurationValidation(valid=True, total_seconds=total)


def adjust_to_target(
    durations: SceneDurations,
    target_seconds: float = DEFAULT_TARGET_SECONDS,
    tolerance_seconds: float = DEFAULT_TOLERANCE_SECONDS,
) -> SceneDurations:
    """Move the features scene so the total lands near ``target_seconds``.

    Only the features scene changes, and it never leaves its own bounds, so
    the target may be missed when the other scenes are far off.
    """
    difference = target_seconds - durations.total_seconds
    if abs(difference) < tolerance_seconds:
        return durations

    bounds = SCENE_CONSTRAINTS[FLEXIBLE_SCENE]
    adjusted = clamp(
        durations.frames(FLEXIBLE_SCENE) + to_frames(difference),
        to_frames(bounds.min),
        to_frames(bounds.max),
    )
    return replace(durations, **{FLEXIBLE_SCENE.value: int(adjusted)})
