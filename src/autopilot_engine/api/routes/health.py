"""Health check endpoints."""

from fastapi import APIRouter, status
from pydantic import BaseModel

from autopilot_engine.config import settings
from autopilot_engine.logging import get_logger

router = APIRouter(tags=["Health"])
logger = get_logger(__name__)


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    components: dict[str, bool] | None = None


class ReadinessResponse(BaseModel):
    """Readiness check response."""

    ready: bool
    database: bool
    redis: bool


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Health check",
    description="Basic health check endpoint that verifies the API is running.",
)
async def health_check() -> HealthResponse:
    """Basic health check - is the API up?

    Reports which providers are real (True) and which are stubs (False).
    """
    from autopilot_engine import __version__

    components = {
        "image": settings.image_provider,
        "video": settings.video_provider,
        "render": settings.render_provider,
        "vision": settings.vision_provider,
        "voiceover": settings.voiceover_provider,
        "publisher": settings.publisher_provider,
    }

    return HealthResponse(
        status="healthy",
        version=__version__,
        components={k: v != "stub" for k, v in components.items()},
    )


@router.get(
    "/health/ready",
    response_model=ReadinessResponse,
    summary="Readiness check",
    description="Readiness check that verifies the database and Redis.",
)
async def readiness_check() -> ReadinessResponse:
    """Readiness check including dependencies."""
    database_ok = False
    try:
        from autopilot_engine.db.session import check_database

        database_ok = check_database()
    except Exception as e:
        logger.error("database_health_check_failed", error=str(e))

    redis_ok = False
    try:
        import redis

        r = redis.from_url(settings.redis_url)
        r.ping()
        redis_ok = True
    except Exception as e:
        logger.error("redis_health_check_failed", error=str(e))

    return ReadinessResponse(
        ready=database_ok and redis_ok,
        database=database_ok,
        redis=redis_ok,
    )


@router.get(
    "/health/live",
    status_code=status.HTTP_200_OK,
    summary="Liveness probe",
    description="Simple liveness probe for Kubernetes.",
)
async def liveness_check() -> dict[str, str]:
    """Kubernetes liveness probe - is the process alive?"""
    return {"status": "alive"}
