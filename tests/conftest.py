"""Pytest configuration and fixtures."""

import os
from collections.abc import Generator
from datetime import UTC, datetime, timedelta

import pytest
from fastapi.testclient import TestClient

# Set test environment before importing app modules
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["REDIS_URL"] = "redis://localhost:6379/1"
os.environ["CELERY_BROKER_URL"] = "redis://localhost:6379/1"
os.environ["CELERY_RESULT_BACKEND"] = "redis://localhost:6379/1"
os.environ["LOG_LEVEL"] = "WARNING"

from autopilot_engine.repositories.base import Repositories  # noqa: E402


class FakeClock:
    """Controllable replacement for ``utcnow``."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    """A clock frozen at Monday 2026-01-05 10:30 UTC."""
    return FakeClock(datetime(2026, 1, 5, 10, 30, tzinfo=UTC))


@pytest.fixture
def repos() -> Repositories:
    """Fresh in-memory repositories."""
    from autopilot_engine.repositories.memory import memory_repositories

    return memory_repositories()


@pytest.fixture
def image_client():
    """Stub image client that finishes on the first poll."""
    from autopilot_engine.adapters.jobs.stub import StubJobClient

    return StubJobClient(kind="image")


@pytest.fixture
def video_client():
    """Stub video client that finishes on the first poll."""
    from autopilot_engine.adapters.jobs.stub import StubJobClient

    return StubJobClient(kind="video")


@pytest.fixture
def vision_provider():
    """Stub vision provider."""
    from autopilot_engine.adapters.vision.stub import StubVisionProvider

    return StubVisionProvider()


@pytest.fixture
def orchestrator(repos, image_client, video_client, vision_provider, clock):
    """Chain orchestrator over in-memory jobs and stub providers."""
    from autopilot_engine.services.chain import ChainOrchestrator

    return ChainOrchestrator(
        jobs=repos.jobs,
        image_client=image_client,
        video_client=video_client,
        vision=vision_provider,
        stage_timeout=timedelta(minutes=30),
        intent_grace=timedelta(minutes=10),
        clock=clock,
    )


@pytest.fixture
def test_client(repos: Repositories) -> Generator[TestClient, None, None]:
    """Test client whose routes read and write the in-memory repositories."""
    from autopilot_engine.api.deps import get_repositories
    from autopilot_engine.main import app

    app.dependency_overrides[get_repositories] = lambda: repos
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()
