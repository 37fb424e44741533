"""FastAPI dependencies."""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.orm import Session

from autopilot_engine.db.session import get_session
from autopilot_engine.jobs.providers import (
    build_chain_orchestrator,
    build_narrated_generator,
    build_scheduler,
)
from autopilot_engine.repositories.base import Repositories
from autopilot_engine.repositories.sql import sql_repositories
from autopilot_engine.services.autopilot_video import AutopilotVideoService
from autopilot_engine.services.chain import ChainOrchestrator
from autopilot_engine.services.rotation import ProductRotationPool
from autopilot_engine.services.scheduler import AutopilotScheduler

# Database session dependency
SessionDep = Annotated[Session, Depends(get_session)]


def get_repositories(session: SessionDep) -> Repositories:
    """Repositories bound to the request's session."""
    return sql_repositories(session)


RepositoriesDep = Annotated[Repositories, Depends(get_repositories)]


def get_chain_orchestrator(repos: RepositoriesDep) -> ChainOrchestrator:
    return build_chain_orchestrator(repos)


def get_narrated_generator(repos: RepositoriesDep) -> AutopilotVideoService:
    return build_narrated_generator(repos)


def get_scheduler(repos: RepositoriesDep) -> AutopilotScheduler:
    return build_scheduler(repos)


def get_rotation_pool(repos: RepositoriesDep) -> ProductRotationPool:
    return ProductRotationPool(repos.products)


ChainOrchestratorDep = Annotated[ChainOrchestrator, Depends(get_chain_orchestrator)]
NarratedGeneratorDep = Annotated[AutopilotVideoService, Depends(get_narrated_generator)]
SchedulerDep = Annotated[AutopilotScheduler, Depends(get_scheduler)]
RotationPoolDep = Annotated[ProductRotationPool, Depends(get_rotation_pool)]
