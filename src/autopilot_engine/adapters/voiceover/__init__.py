"""Voiceover generation adapters."""

from autopilot_engine.adapters.voiceover.base import (
    VoiceoverProvider,
    VoiceoverRequest,
    VoiceoverResult,
)
from autopilot_engine.adapters.voiceover.elevenlabs import ElevenLabsProvider
from autopilot_engine.adapters.voiceover.stub import StubVoiceoverProvider

__all__ = [
    "VoiceoverProvider",
    "VoiceoverRequest",
    "VoiceoverResult",
    "ElevenLabsProvider",
    "StubVoiceoverProvider",
]
