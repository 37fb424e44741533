"""Adapters for external services."""

from autopilot_engine.adapters.jobs.base import ExternalJobClient
from autopilot_engine.adapters.products.base import ProductSource
from autopilot_engine.adapters.publisher.base import PublishingProvider
from autopilot_engine.adapters.vision.base import VisionProvider
from autopilot_engine.adapters.voiceover.base import VoiceoverProvider

__all__ = [
    "ExternalJobClient",
    "ProductSource",
    "PublishingProvider",
    "VisionProvider",
    "VoiceoverProvider",
]
