"""Stub voiceover provider for testing."""

import asyncio
from uuid import uuid4

from autopilot_engine.adapters.voiceover.base import (
    VoiceoverProvider,
    VoiceoverRequest,
    VoiceoverResult,
    estimate_speech_seconds,
)
from autopilot_engine.logging import get_logger

logger = get_logger(__name__)


class StubVoiceoverProvider(VoiceoverProvider):
    """Stub provider that simulates narration without external calls.

    Args:
        durations: Fixed durations to report, keyed by exact narration text
        fail_texts: Narrations that should fail
    """

    def __init__(
        self,
        durations: dict[str, float] | None = None,
        fail_texts: set[str] | None = None,
    ) -> None:
        self.durations = durations or {}
        self.fail_texts = fail_texts or set()

    @property
    def name(self) -> str:
        return "stub"

    async def generate(self, request: VoiceoverRequest) -> VoiceoverResult:
        """Return a fake clip with an estimated duration."""
        await asyncio.sleep(0)

        if request.text in self.fail_texts:
            logger.warning("stub_voiceover_failed", text_length=len(request.text))
            return VoiceoverResult(success=False, error_message="Stub voiceover failure")

        duration = self.durations.get(request.text, estimate_speech_seconds(request.text))
        audio_url = f"https://stub.autopilot.local/audio/{uuid4().hex[:12]}.{request.output_format}"

        logger.info(
            "stub_voiceover_generated",
            text_length=len(request.text),
            voice=request.voice_id,
            duration=duration,
        )
        return VoiceoverResult(
            success=True,
            audio_url=audio_url,
            duration_seconds=duration,
            metadata={"provider": self.name, "voice_id": request.voice_id or "default"},
        )
