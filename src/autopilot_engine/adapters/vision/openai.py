"""OpenAI vision provider implementation."""

from typing import Any

import httpx

from autopilot_engine.adapters.vision.base import VisionError, VisionProvider
from autopilot_engine.config import settings
from autopilot_engine.logging import get_logger

logger = get_logger(__name__)


class OpenAIVisionProvider(VisionProvider):
    """Describes images through the OpenAI chat completions API."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        base_url: str = "https://api.openai.com/v1",
        max_tokens: int = 500,
        timeout: float = 60.0,
    ) -> None:
        self.api_key = api_key or settings.openai_api_key
        self.model = model or settings.openai_vision_model
        self.base_url = base_url
        self.max_tokens = max_tokens
        self.timeout = timeout

        if not self.api_key:
            logger.warning("OpenAI API key not configured")

    @property
    def name(self) -> str:
        return f"openai:{self.model}"

    async def analyze(self, image_url: str, instructions: str) -> str:
        """Analyze an image with a vision-capable chat model."""
        if not self.api_key:
            raise VisionError("OpenAI API key not configured")

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        payload: dict[str, Any] = {
            "model": self.model,
            "messages": [
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": instructions},
                        {"type": "image_url", "image_url": {"url": image_url}},
                    ],
                }
            ],
            "max_tokens": self.max_tokens,
        }

        logger.info("openai_vision_request", model=self.model, image_url=image_url[:100])

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    f"{self.base_url}/chat/completions",
                    headers=headers,
                    json=payload,
                )
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as e:
            error_msg = f"OpenAI Vision API error ({e.response.status_code})"
            logger.error("openai_vision_api_error", error=error_msg)
            raise VisionError(error_msg) from e
        except httpx.HTTPError as e:
            logger.error("openai_vision_request_failed", error=str(e))
            raise VisionError(f"OpenAI Vision request failed: {e}") from e

        choices = data.get("choices") or []
        content = choices[0].get("message", {}).get("content") if choices else None
        if not content:
            raise VisionError("OpenAI Vision returned an empty analysis")

        usage = data.get("usage", {})
        logger.info(
            "openai_vision_response",
            model=self.model,
            tokens_used=usage.get("total_tokens", 0),
            analysis_length=len(content),
        )
        return content.strip()

    async def health_check(self) -> bool:
        """Check if OpenAI API is accessible."""
        if not self.api_key:
            return False

        try:
            async with httpx.AsyncClient(timeout=10.0) as client:
                response = await client.get(
                    f"{self.base_url}/models",
                    headers={"Authorization": f"Bearer {self.api_key}"},
                )
                return response.status_code == 200
        except httpx.HTTPError as e:
            logger.error("openai_health_check_failed", error=str(e))
            return False
