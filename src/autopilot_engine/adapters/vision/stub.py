"""Stub vision provider for testing."""

import asyncio

from autopilot_engine.adapters.vision.base import VisionProvider
from autopilot_engine.logging import get_logger

logger = get_logger(__name__)

STUB_ANALYSIS = (
    "A smiling person in their late twenties holds the product at chest height "
    "with the label facing the camera. Soft window light from the left, warm "
    "neutral tones, tidy living room background. Relaxed, authentic mood. "
    "The brand logo is clearly visible on the front of the packaging."
)


class StubVisionProvider(VisionProvider):
    """Stub provider that returns a fixed description without external calls."""

    def __init__(self, analysis: str = STUB_ANALYSIS) -> None:
        self.analysis = analysis
        self.calls: list[str] = []

    @property
    def name(self) -> str:
        return "stub"

    async def analyze(self, image_url: str, instructions: str) -> str:
        logger.info("stub_image_analysis", image_url=image_url[:100])
        await asyncio.sleep(0)
        self.calls.append(image_url)
        return self.analysis
