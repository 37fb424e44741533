"""Provider selection and service wiring for tasks, the API and the CLI.

Every collaborator is chosen from settings here and passed into the
services explicitly; services never look up providers themselves.
"""

from datetime import timedelta

from autopilot_engine.adapters.jobs.base import ExternalJobClient
from autopilot_engine.adapters.jobs.stub import StubJobClient
from autopilot_engine.adapters.products.base import ProductSource
from autopilot_engine.adapters.products.stub import StubProductSource
from autopilot_engine.adapters.publisher.base import PublishingProvider
from autopilot_engine.adapters.publisher.stub import StubPublishingProvider
from autopilot_engine.adapters.vision.base import VisionProvider
from autopilot_engine.adapters.vision.stub import StubVisionProvider
from autopilot_engine.adapters.voiceover.base import VoiceoverProvider
from autopilot_engine.adapters.voiceover.stub import StubVoiceoverProvider
from autopilot_engine.config import Settings, settings
from autopilot_engine.domain.enums import GenerationMode
from autopilot_engine.logging import get_logger
from autopilot_engine.repositories.base import Repositories
from autopilot_engine.services.autopilot_video import (
    AutopilotVideoService,
    ChainVideoGenerator,
    VideoGenerator,
)
from autopilot_engine.services.chain import ChainOrchestrator
from autopilot_engine.services.publishing import PublishingService
from autopilot_engine.services.reconciliation import StatusReconciliationPoller
from autopilot_engine.services.scheduler import AutopilotScheduler

logger = get_logger(__name__)


def get_image_client(config: Settings = settings) -> ExternalJobClient:
    """Get the configured image generation client."""
    provider_name = config.image_provider.lower()

    if provider_name == "stub":
        return StubJobClient(kind="image")
    elif provider_name == "kie":
        from autopilot_engine.adapters.jobs.kie import KieFluxKontextClient

        return KieFluxKontextClient()

    logger.warning(f"Unknown image_provider '{provider_name}', using stub")
    return StubJobClient(kind="image")


def get_video_client(config: Settings = settings) -> ExternalJobClient:
    """Get the configured image-referenced video client."""
    provider_name = config.video_provider.lower()

    if provider_name == "stub":
        return StubJobClient(kind="video")
    elif provider_name == "kie":
        from autopilot_engine.adapters.jobs.kie import KieVeoClient

        return KieVeoClient()

    logger.warning(f"Unknown video_provider '{provider_name}', using stub")
    return StubJobClient(kind="video")


def get_render_client(config: Settings = settings) -> ExternalJobClient:
    """Get the configured narrated video render client."""
    provider_name = config.render_provider.lower()

    if provider_name == "stub":
        return StubJobClient(kind="render")
    elif provider_name == "render_worker":
        from autopilot_engine.adapters.jobs.render_worker import RenderWorkerClient

        return RenderWorkerClient()

    logger.warning(f"Unknown render_provider '{provider_name}', using stub")
    return StubJobClient(kind="render")


def get_vision_provider(config: Settings = settings) -> VisionProvider:
    """Get the configured image analysis provider."""
    provider_name = config.vision_provider.lower()

    if provider_name == "stub":
        return StubVisionProvider()
    elif provider_name == "openai":
        from autopilot_engine.adapters.vision.openai import OpenAIVisionProvider

        return OpenAIVisionProvider()

    logger.warning(f"Unknown vision_provider '{provider_name}', using stub")
    return StubVisionProvider()


def get_voiceover_provider(config: Settings = settings) -> VoiceoverProvider:
    """Get the configured voiceover provider."""
    provider_name = config.voiceover_provider.lower()

    if provider_name == "stub":
        return StubVoiceoverProvider()
    elif provider_name == "elevenlabs":
        from autopilot_engine.adapters.voiceover.elevenlabs import ElevenLabsProvider

        return ElevenLabsProvider()

    logger.warning(f"Unknown voiceover_provider '{provider_name}', using stub")
    return StubVoiceoverProvider()


def get_publishing_provider(config: Settings = settings) -> PublishingProvider:
    """Get the configured publishing provider."""
    provider_name = config.publisher_provider.lower()

    if provider_name == "stub":
        return StubPublishingProvider()
    elif provider_name == "late":
        from autopilot_engine.adapters.publisher.late import LatePublishingProvider

        return LatePublishingProvider()

    logger.warning(f"Unknown publisher_provider '{provider_name}', using stub")
    return StubPublishingProvider()


def get_product_source(config: Settings = settings) -> ProductSource:
    """Get the configured product catalog source."""
    provider_name = config.product_source.lower()

    if provider_name == "stub":
        return StubProductSource()
    elif provider_name == "shopify":
        from autopilot_engine.adapters.products.shopify import ShopifyProductSource

        return ShopifyProductSource()

    logger.warning(f"Unknown product_source '{provider_name}', using stub")
    return StubProductSource()


# =============================================================================
# Service wiring
# =============================================================================


def build_chain_orchestrator(repos: Repositories, config: Settings = settings) -> ChainOrchestrator:
    return ChainOrchestrator(
        jobs=repos.jobs,
        image_client=get_image_client(config),
        video_client=get_video_client(config),
        vision=get_vision_provider(config),
        stage_timeout=timedelta(minutes=config.chain_stage_timeout_minutes),
        intent_grace=timedelta(minutes=config.submission_intent_grace_minutes),
    )


def build_narrated_generator(
    repos: Repositories, config: Settings = settings
) -> AutopilotVideoService:
    return AutopilotVideoService(
        jobs=repos.jobs,
        render_client=get_render_client(config),
        voiceover=get_voiceover_provider(config),
        target_duration_seconds=config.autopilot_target_duration_seconds,
        padding_seconds=config.narration_padding_seconds,
    )


def build_video_generator(repos: Repositories, config: Settings = settings) -> VideoGenerator:
    """The generator matching ``autopilot_generation_mode``."""
    if config.autopilot_generation_mode == GenerationMode.CHAIN:
        return ChainVideoGenerator(
            build_chain_orchestrator(repos, config),
            default_icp=config.chain_default_icp,
            default_scene=config.chain_default_scene,
        )
    return build_narrated_generator(repos, config)


def build_publishing_service(
    repos: Repositories, config: Settings = settings
) -> PublishingService:
    return PublishingService(repos.publish_jobs, get_publishing_provider(config))


def build_scheduler(repos: Repositories, config: Settings = settings) -> AutopilotScheduler:
    return AutopilotScheduler(
        repos,
        generator=build_video_generator(repos, config),
        publishing=build_publishing_service(repos, config),
    )


def build_reconciler(
    repos: Repositories, config: Settings = settings
) -> StatusReconciliationPoller:
    return StatusReconciliationPoller(repos.publish_jobs, get_publishing_provider(config))
