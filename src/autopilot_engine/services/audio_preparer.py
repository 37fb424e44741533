"""Batch narration audio for narrated autopilot videos."""

from dataclasses import dataclass, field

from autopilot_engine.adapters.voiceover.base import VoiceoverProvider, VoiceoverRequest
from autopilot_engine.domain.enums import Scene
from autopilot_engine.logging import get_logger
from autopilot_engine.services.scene_timing import estimate_duration

logger = get_logger(__name__)


@dataclass
class AudioAsset:
    """One generated narration clip."""

    url: str
    duration_seconds: float


@dataclass
class NarrationAudio:
    """Result of preparing narration for all scenes.

    A scene whose voiceover failed has no asset, counts toward
    ``total_duration`` with its estimated length and adds an entry to
    ``errors``.
    """

    assets: dict[Scene, AudioAsset] = field(default_factory=dict)
    total_duration: float = 0.0
    errors: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.errors

    def durations(self) -> dict[Scene, float]:
        return {scene: asset.duration_seconds for scene, asset in self.assets.items()}

    def urls(self) -> dict[str, str]:
        return {scene.value: asset.url for scene, asset in self.assets.items()}


async def prepare_narration_audio(
    narrations: dict[Scene, str],
    voiceover: VoiceoverProvider,
    voice_id: str | None = None,
) -> NarrationAudio:
    """Generate a voiceover clip per narrated scene, in scene order.

    Voiceover failures never raise; they are collected so the caller can fall
    back to default scene lengths.
    """
    result = NarrationAudio()

    for scene in Scene:
        text = narrations.get(scene)
        if not text:
            continue

        try:
            clip = await voiceover.generate(VoiceoverRequest(text=text, voice_id=voice_id))
        except Exception as e:
            logger.exception("narration_voiceover_raised", scene=scene)
            result.errors.append(f"{scene} voiceover failed: {e}")
            result.total_duration += estimate_duration(text)
            continue

        if clip.success and clip.audio_url:
            duration = clip.duration_seconds or estimate_duration(text)
            result.assets[scene] = AudioAsset(url=clip.audio_url, duration_seconds=duration)
            result.total_duration += duration
        else:
            result.errors.append(f"{scene} voiceover failed: {clip.error_message}")
            result.total_duration += estimate_duration(text)

    logger.info(
        "narration_audio_prepared",
        provider=voiceover.name,
        scenes=len(result.assets),
        total_duration=result.total_duration,
        errors=len(result.errors),
    )
    return result
