"""Media asset endpoints.

Only the coarse projection of an asset is exposed; chain stages and
intermediate artifacts stay internal.
"""

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel, Field

from autopilot_engine.api.deps import (
    ChainOrchestratorDep,
    NarratedGeneratorDep,
    RepositoriesDep,
)
from autopilot_engine.config import settings
from autopilot_engine.domain.models import GenerationJob
from autopilot_engine.logging import get_logger
from autopilot_engine.services.autopilot_video import ChainVideoGenerator
from autopilot_engine.services.prompts import PromptVariables

router = APIRouter(prefix="/assets", tags=["Assets"])
logger = get_logger(__name__)


class StartChainRequest(BaseModel):
    """Request to generate a video through the image -> analysis -> video chain."""

    owner_id: str = Field(..., min_length=1)
    product: str = Field(..., min_length=1, max_length=255)
    features: str = Field(default="", max_length=2000)
    icp: str | None = Field(None, max_length=500, description="Ideal customer profile")
    scene: str | None = Field(None, max_length=500)
    product_image_url: str | None = Field(None, description="Reference photo of the product")


class AssetResponse(BaseModel):
    """Coarse, user-facing view of a media asset."""

    id: UUID
    status: str
    kind: str
    provider: str
    result_url: str | None = None
    result_urls: list[str] = []
    error_message: str | None = None
    created_at: datetime
    completed_at: datetime | None = None

    @classmethod
    def from_job(cls, job: GenerationJob) -> "AssetResponse":
        return cls(
            id=job.id,
            status=job.status,
            kind=job.kind,
            provider=job.provider,
            result_url=job.result_url,
            result_urls=job.result_urls,
            error_message=job.error_message,
            created_at=job.created_at,
            completed_at=job.completed_at,
        )


@router.post(
    "/chain",
    response_model=AssetResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Start a chained generation",
    description="Create a media asset and submit its image stage.",
)
async def start_chain(
    request: StartChainRequest, orchestrator: ChainOrchestratorDep
) -> AssetResponse:
    variables = PromptVariables(
        product=request.product,
        features=request.features,
        icp=request.icp or settings.chain_default_icp,
        scene=request.scene or settings.chain_default_scene,
    )
    job = orchestrator.create_job(
        request.owner_id, variables, product_image_url=request.product_image_url
    )
    logger.info("chain_requested", job_id=str(job.id), owner_id=request.owner_id)

    job = await orchestrator.start_image_generation(job.id)
    return AssetResponse.from_job(job)


@router.get(
    "/{asset_id}",
    response_model=AssetResponse,
    summary="Get media asset",
)
async def get_asset(asset_id: UUID, repos: RepositoriesDep) -> AssetResponse:
    job = repos.jobs.get(asset_id)
    if job is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Asset not found")
    return AssetResponse.from_job(job)


@router.post(
    "/{asset_id}/check",
    response_model=AssetResponse,
    summary="Check generation status",
    description="Re-invoke the provider status checks for an asset. Safe to call repeatedly.",
)
async def check_asset(
    asset_id: UUID,
    repos: RepositoriesDep,
    orchestrator: ChainOrchestratorDep,
    narrated: NarratedGeneratorDep,
) -> AssetResponse:
    if repos.jobs.get(asset_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Asset not found")

    chain = ChainVideoGenerator(
        orchestrator,
        default_icp=settings.chain_default_icp,
        default_scene=settings.chain_default_scene,
    )
    await chain.check_status(asset_id)
    await narrated.check_status(asset_id)

    job = repos.jobs.get(asset_id)
    if job is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Asset not found")
    return AssetResponse.from_job(job)
