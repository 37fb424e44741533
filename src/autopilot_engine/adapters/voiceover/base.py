"""Base interface for voiceover (text-to-speech) providers."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any


@dataclass
class VoiceoverRequest:
    """Request for one narration clip."""

    text: str
    voice_id: str | None = None  # Provider-specific voice identifier
    language: str = "en"
    output_format: str = "mp3"


@dataclass
class VoiceoverResult:
    """Result from voiceover generation."""

    success: bool
    audio_url: str | None = None  # Where the render worker can fetch the clip
    duration_seconds: float | None = None
    error_message: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


class VoiceoverProvider(ABC):
    """Abstract base class for voiceover generation providers.

    Implementations:
    - ElevenLabsProvider: AI voices via the ElevenLabs API
    - StubVoiceoverProvider: Returns mock clips for testing
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name identifier."""
        ...

    @abstractmethod
    async def generate(self, request: VoiceoverRequest) -> VoiceoverResult:
        """Generate narration audio from text.

        Args:
            request: Voiceover request with text and voice settings

        Returns:
            VoiceoverResult with an audio URL and duration, or error information
        """
        ...

    async def health_check(self) -> bool:
        """Check if the provider is available and healthy.

        Returns:
            True if provider is operational, False otherwise
        """
        return True


def estimate_speech_seconds(text: str, words_per_minute: float = 150.0) -> float:
    """Rough narration length for providers that do not report one."""
    return len(text.split()) / words_per_minute * 60
