"""Autopilot config and rotation pool endpoints."""

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel

from autopilot_engine.api.deps import RotationPoolDep, SchedulerDep
from autopilot_engine.domain.models import AutopilotConfig
from autopilot_engine.logging import get_logger
from autopilot_engine.services.scheduler import ConfigNotFoundError, ConfigurationError

router = APIRouter(prefix="/autopilot", tags=["Autopilot"])
logger = get_logger(__name__)


class ActivateRequest(BaseModel):
    """Approval of a config, optionally naming the accepted preview video."""

    first_video_asset_id: UUID | None = None


class ConfigResponse(BaseModel):
    id: UUID
    store_id: UUID
    videos_per_week: int
    platforms: list[str]
    is_active: bool
    is_approved: bool
    next_scheduled_at: datetime | None = None
    last_generated_at: datetime | None = None
    videos_generated: int
    pool_cycles: int

    @classmethod
    def from_config(cls, config: AutopilotConfig) -> "ConfigResponse":
        return cls(
            id=config.id,
            store_id=config.store_id,
            videos_per_week=config.videos_per_week,
            platforms=[str(p) for p in config.platforms],
            is_active=config.is_active,
            is_approved=config.is_approved,
            next_scheduled_at=config.next_scheduled_at,
            last_generated_at=config.last_generated_at,
            videos_generated=config.videos_generated,
            pool_cycles=config.pool_cycles,
        )


class PoolStatsResponse(BaseModel):
    store_id: UUID
    total: int
    active: int
    used: int
    unused: int
    total_use_count: int
    min_use_count: int


def _config_error(e: Exception) -> HTTPException:
    if isinstance(e, ConfigNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.post(
    "/configs/{config_id}/activate",
    response_model=ConfigResponse,
    summary="Approve and activate a config",
)
async def activate_config(
    config_id: UUID, scheduler: SchedulerDep, request: ActivateRequest | None = None
) -> ConfigResponse:
    try:
        config = scheduler.activate_autopilot(
            config_id, request.first_video_asset_id if request else None
        )
    except (ConfigNotFoundError, ConfigurationError) as e:
        raise _config_error(e) from e
    return ConfigResponse.from_config(config)


@router.post(
    "/configs/{config_id}/pause",
    response_model=ConfigResponse,
    summary="Pause a config",
)
async def pause_config(config_id: UUID, scheduler: SchedulerDep) -> ConfigResponse:
    try:
        config = scheduler.pause_autopilot(config_id)
    except ConfigNotFoundError as e:
        raise _config_error(e) from e
    return ConfigResponse.from_config(config)


@router.post(
    "/configs/{config_id}/resume",
    response_model=ConfigResponse,
    summary="Resume a paused config",
    description="Reactivate a config; its next run is scheduled from now.",
)
async def resume_config(config_id: UUID, scheduler: SchedulerDep) -> ConfigResponse:
    try:
        config = scheduler.resume_autopilot(config_id)
    except (ConfigNotFoundError, ConfigurationError) as e:
        raise _config_error(e) from e
    return ConfigResponse.from_config(config)


@router.get(
    "/stores/{store_id}/pool",
    response_model=PoolStatsResponse,
    summary="Rotation pool statistics",
)
async def get_pool_stats(store_id: UUID, pool: RotationPoolDep) -> PoolStatsResponse:
    stats = pool.get_pool_stats(store_id)
    return PoolStatsResponse(
        store_id=store_id,
        total=stats.total,
        active=stats.active,
        used=stats.used,
        unused=stats.unused,
        total_use_count=stats.total_use_count,
        min_use_count=stats.min_use_count,
    )
