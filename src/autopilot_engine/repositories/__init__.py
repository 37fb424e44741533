"""Persistence interfaces and implementations."""

from autopilot_engine.repositories.base import (
    AutopilotConfigRepository,
    GenerationJobRepository,
    HistoryRepository,
    ProductRepository,
    PublishJobRepository,
    Repositories,
    StoreRepository,
)
from autopilot_engine.repositories.memory import memory_repositories

__all__ = [
    "AutopilotConfigRepository",
    "GenerationJobRepository",
    "HistoryRepository",
    "ProductRepository",
    "PublishJobRepository",
    "Repositories",
    "StoreRepository",
    "memory_repositories",
]
