"""Image analysis adapters."""

from autopilot_engine.adapters.vision.base import VisionError, VisionProvider
from autopilot_engine.adapters.vision.openai import OpenAIVisionProvider
from autopilot_engine.adapters.vision.stub import StubVisionProvider

__all__ = [
    "VisionError",
    "VisionProvider",
    "OpenAIVisionProvider",
    "StubVisionProvider",
]
