"""In-memory repositories.

Used by the test suite and by local dry runs. Records are deep-copied on the
way in and out so callers cannot mutate stored state without ``save``.
"""

from copy import deepcopy
from datetime import datetime
from typing import Generic, TypeVar
from uuid import UUID

from autopilot_engine.domain.enums import AssetStatus, HistoryStatus, PublishStatus
from autopilot_engine.domain.models import (
    AutopilotConfig,
    GenerationHistoryRecord,
    GenerationJob,
    Product,
    PublishJob,
    Store,
)
from autopilot_engine.domain.rotation import select_next
from autopilot_engine.repositories.base import (
    AutopilotConfigRepository,
    GenerationJobRepository,
    HistoryRepository,
    ProductRepository,
    PublishJobRepository,
    Repositories,
    StoreRepository,
)

T = TypeVar(
    "T", GenerationJob, Store, Product, AutopilotConfig, GenerationHistoryRecord, PublishJob
)


class _MemoryStore(Generic[T]):
    def __init__(self) -> None:
        self._items: dict[UUID, T] = {}

    def get(self, item_id: UUID) -> T | None:
        item = self._items.get(item_id)
        return deepcopy(item) if item is not None else None

    def add(self, item: T) -> T:
        self._items[item.id] = deepcopy(item)
        return item

    def save(self, item: T) -> T:
        if item.id not in self._items:
            raise KeyError(f"Unknown record: {item.id}")
        self._items[item.id] = deepcopy(item)
        return item

    def all(self) -> list[T]:
        return [deepcopy(item) for item in self._items.values()]


def _limited(items: list[T], limit: int | None) -> list[T]:
    return items[:limit] if limit is not None else items


class InMemoryGenerationJobRepository(_MemoryStore[GenerationJob], GenerationJobRepository):
    def list_processing(self, limit: int | None = None) -> list[GenerationJob]:
        jobs = [j for j in self.all() if j.status == AssetStatus.PROCESSING]
        return _limited(sorted(jobs, key=lambda j: j.created_at), limit)


class InMemoryStoreRepository(_MemoryStore[Store], StoreRepository):
    pass


class InMemoryProductRepository(_MemoryStore[Product], ProductRepository):
    def list_for_store(self, store_id: UUID) -> list[Product]:
        return sorted(
            (p for p in self.all() if p.store_id == store_id),
            key=lambda p: p.created_at,
        )

    def get_by_external_id(self, store_id: UUID, external_id: str) -> Product | None:
        return next(
            (p for p in self.list_for_store(store_id) if p.external_id == external_id),
            None,
        )

    def next_candidate(self, store_id: UUID) -> Product | None:
        return select_next(self.list_for_store(store_id))


class InMemoryAutopilotConfigRepository(_MemoryStore[AutopilotConfig], AutopilotConfigRepository):
    def get_for_store(self, store_id: UUID) -> AutopilotConfig | None:
        return next((c for c in self.all() if c.store_id == store_id), None)

    def list_due(self, now: datetime, limit: int | None = None) -> list[AutopilotConfig]:
        due = [c for c in self.all() if c.is_due(now)]
        return _limited(sorted(due, key=lambda c: c.next_scheduled_at), limit)


class InMemoryHistoryRepository(_MemoryStore[GenerationHistoryRecord], HistoryRepository):
    def list_by_status(
        self, status: HistoryStatus, limit: int | None = None
    ) -> list[GenerationHistoryRecord]:
        records = [r for r in self.all() if r.status == status]
        return _limited(sorted(records, key=lambda r: r.created_at), limit)

    def list_for_config(self, config_id: UUID) -> list[GenerationHistoryRecord]:
        records = [r for r in self.all() if r.config_id == config_id]
        return sorted(records, key=lambda r: r.created_at, reverse=True)


class InMemoryPublishJobRepository(_MemoryStore[PublishJob], PublishJobRepository):
    def list_in_flight(self, limit: int | None = None) -> list[PublishJob]:
        jobs = [
            j
            for j in self.all()
            if j.status in (PublishStatus.SCHEDULED, PublishStatus.POSTING) and j.remote_job_id
        ]
        jobs.sort(key=lambda j: (j.scheduled_for is None, j.scheduled_for or j.created_at))
        return _limited(jobs, limit)

    def list_for_asset(self, media_asset_id: UUID) -> list[PublishJob]:
        return [j for j in self.all() if j.media_asset_id == media_asset_id]


def memory_repositories() -> Repositories:
    """A fresh, empty set of in-memory repositories."""
    return Repositories(
        jobs=InMemoryGenerationJobRepository(),
        stores=InMemoryStoreRepository(),
        products=InMemoryProductRepository(),
        configs=InMemoryAutopilotConfigRepository(),
        history=InMemoryHistoryRepository(),
        publish_jobs=InMemoryPublishJobRepository(),
    )
