"""ElevenLabs voiceover provider implementation."""

import base64

import httpx

from autopilot_engine.adapters.voiceover.base import (
    VoiceoverProvider,
    VoiceoverRequest,
    VoiceoverResult,
    estimate_speech_seconds,
)
from autopilot_engine.config import settings
from autopilot_engine.logging import get_logger

logger = get_logger(__name__)


class ElevenLabsProvider(VoiceoverProvider):
    """ElevenLabs API provider for narrated autopilot scenes.

    Audio is returned to the render worker inline as a ``data:`` URL, so no
    separate object storage is needed.
    """

    # Named presets accepted in place of raw voice ids
    DEFAULT_VOICES = {
        "narrator": "21m00Tcm4TlvDq8ikWAM",
        "energetic": "ErXwobaYiN019PkySvjV",
        "warm": "EXAVITQu4vr4xnSDxMaL",
    }

    def __init__(
        self,
        api_key: str | None = None,
        model_id: str = "eleven_multilingual_v2",
        base_url: str = "https://api.elevenlabs.io/v1",
        default_voice_id: str | None = None,
    ) -> None:
        self.api_key = api_key or settings.elevenlabs_api_key
        self.model_id = model_id
        self.base_url = base_url
        self.default_voice_id = (
            default_voice_id or settings.elevenlabs_voice_id or self.DEFAULT_VOICES["narrator"]
        )

        if not self.api_key:
            logger.warning("ElevenLabs API key not configured")

    @property
    def name(self) -> str:
        return "elevenlabs"

    def resolve_voice(self, voice_id: str | None) -> str:
        if not voice_id:
            return self.default_voice_id
        return self.DEFAULT_VOICES.get(voice_id, voice_id)

    async def generate(self, request: VoiceoverRequest) -> VoiceoverResult:
        """Generate narration using the ElevenLabs text-to-speech endpoint."""
        if not self.api_key:
            return VoiceoverResult(
                success=False,
                error_message="ElevenLabs API key not configured",
            )

        voice_id = self.resolve_voice(request.voice_id)
        payload: dict[str, object] = {
            "text": request.text,
            "model_id": self.model_id,
            "voice_settings": {
                "stability": 0.5,
                "similarity_boost": 0.75,
                "use_speaker_boost": True,
            },
        }
        if request.language != "en":
            payload["language_code"] = request.language

        logger.info(
            "elevenlabs_generation_started",
            text_length=len(request.text),
            voice_id=voice_id,
            model=self.model_id,
        )

        try:
            async with httpx.AsyncClient(timeout=settings.provider_timeout_seconds) as client:
                response = await client.post(
                    f"{self.base_url}/text-to-speech/{voice_id}",
                    headers={"xi-api-key": self.api_key, "Content-Type": "application/json"},
                    json=payload,
                )
                response.raise_for_status()
                audio_data = response.content
        except httpx.HTTPStatusError as e:
            error_msg = f"ElevenLabs API error: {e.response.status_code}"
            logger.error("elevenlabs_api_error", error=error_msg)
            return VoiceoverResult(success=False, error_message=error_msg)
        except httpx.HTTPError as e:
            logger.error("elevenlabs_generation_error", error=str(e))
            return VoiceoverResult(success=False, error_message=str(e))

        duration = estimate_speech_seconds(request.text)
        encoded = base64.b64encode(audio_data).decode("ascii")

        logger.info(
            "elevenlabs_generation_completed",
            audio_size=len(audio_data),
            estimated_duration=duration,
        )
        return VoiceoverResult(
            success=True,
            audio_url=f"data:audio/mpeg;base64,{encoded}",
            duration_seconds=duration,
            metadata={"provider": self.name, "voice_id": voice_id, "model_id": self.model_id},
        )

    async def health_check(self) -> bool:
        """Check if ElevenLabs API is accessible."""
        if not self.api_key:
            return False

        try:
            async with httpx.AsyncClient(timeout=10.0) as client:
                response = await client.get(
                    f"{self.base_url}/user",
                    headers={"xi-api-key": self.api_key},
                )
                return response.status_code == 200
        except httpx.HTTPError as e:
            logger.error("elevenlabs_health_check_failed", error=str(e))
            return False
