"""Tests for provider selection and service wiring."""

from autopilot_engine.adapters.jobs.kie import KieFluxKontextClient, KieVeoClient
from autopilot_engine.adapters.jobs.render_worker import RenderWorkerClient
from autopilot_engine.adapters.jobs.stub import StubJobClient
from autopilot_engine.adapters.publisher.late import LatePublishingProvider
from autopilot_engine.adapters.vision.stub import StubVisionProvider
from autopilot_engine.adapters.voiceover.stub import StubVoiceoverProvider
from autopilot_engine.config import Settings
from autopilot_engine.jobs.providers import (
    build_scheduler,
    build_video_generator,
    get_image_client,
    get_publishing_provider,
    get_render_client,
    get_video_client,
    get_vision_provider,
    get_voiceover_provider,
)
from autopilot_engine.services.autopilot_video import AutopilotVideoService, ChainVideoGenerator


def test_default_providers_are_stubs() -> None:
    """Test an unconfigured deployment runs entirely on stubs."""
    config = Settings()

    assert get_image_client(config).name == "stub-image"
    assert get_video_client(config).name == "stub-video"
    assert get_render_client(config).name == "stub-render"
    assert isinstance(get_vision_provider(config), StubVisionProvider)
    assert isinstance(get_voiceover_provider(config), StubVoiceoverProvider)


def test_real_providers_are_selected() -> None:
    """Test provider names select the real clients, case-insensitively."""
    config = Settings(
        image_provider="kie",
        video_provider="KIE",
        render_provider="render_worker",
        publisher_provider="late",
    )

    assert isinstance(get_image_client(config), KieFluxKontextClient)
    assert isinstance(get_video_client(config), KieVeoClient)
    assert isinstance(get_render_client(config), RenderWorkerClient)
    assert isinstance(get_publishing_provider(config), LatePublishingProvider)


def test_unknown_provider_falls_back_to_stub() -> None:
    """Test an unknown provider name logs and uses the stub."""
    client = get_image_client(Settings(image_provider="midjourney"))

    assert isinstance(client, StubJobClient)


def test_build_video_generator_by_mode(repos) -> None:
    """Test the generation mode picks the generator."""
    narrated = build_video_generator(repos, Settings(autopilot_generation_mode="narrated"))
    chain = build_video_generator(repos, Settings(autopilot_generation_mode="chain"))

    assert isinstance(narrated, AutopilotVideoService)
    assert isinstance(chain, ChainVideoGenerator)
    assert chain.orchestrator.jobs is repos.jobs


def test_build_scheduler(repos) -> None:
    """Test the scheduler is wired to the given repositories."""
    scheduler = build_scheduler(repos, Settings())

    assert scheduler.repos is repos
    assert scheduler.generator.name == "narrated"
