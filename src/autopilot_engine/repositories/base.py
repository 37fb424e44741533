"""Persistence interfaces consumed by the services.

Services receive these repositories through their constructors. The SQL
implementations commit on every write so each state change is durable
before the next provider call is made.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from autopilot_engine.domain.enums import HistoryStatus
from autopilot_engine.domain.models import (
    AutopilotConfig,
    GenerationHistoryRecord,
    GenerationJob,
    Product,
    PublishJob,
    Store,
)


class GenerationJobRepository(ABC):
    """Media assets (generation jobs)."""

    @abstractmethod
    def get(self, job_id: UUID) -> GenerationJob | None: ...

    @abstractmethod
    def add(self, job: GenerationJob) -> GenerationJob: ...

    @abstractmethod
    def save(self, job: GenerationJob) -> GenerationJob: ...

    @abstractmethod
    def list_processing(self, limit: int | None = None) -> list[GenerationJob]:
        """Jobs whose coarse status is still ``processing``, oldest first."""
        ...


class StoreRepository(ABC):
    @abstractmethod
    def get(self, store_id: UUID) -> Store | None: ...

    @abstractmethod
    def add(self, store: Store) -> Store: ...


class ProductRepository(ABC):
    """Rotation pool entries."""

    @abstractmethod
    def get(self, product_id: UUID) -> Product | None: ...

    @abstractmethod
    def add(self, product: Product) -> Product: ...

    @abstractmethod
    def save(self, product: Product) -> Product: ...

    @abstractmethod
    def list_for_store(self, store_id: UUID) -> list[Product]:
        """All products of a store, active or not."""
        ...

    @abstractmethod
    def get_by_external_id(self, store_id: UUID, external_id: str) -> Product | None: ...

    @abstractmethod
    def next_candidate(self, store_id: UUID) -> Product | None:
        """First active product in rotation order (see ``domain.rotation``)."""
        ...


class AutopilotConfigRepository(ABC):
    @abstractmethod
    def get(self, config_id: UUID) -> AutopilotConfig | None: ...

    @abstractmethod
    def get_for_store(self, store_id: UUID) -> AutopilotConfig | None: ...

    @abstractmethod
    def add(self, config: AutopilotConfig) -> AutopilotConfig: ...

    @abstractmethod
    def save(self, config: AutopilotConfig) -> AutopilotConfig: ...

    @abstractmethod
    def list_due(self, now: datetime, limit: int | None = None) -> list[AutopilotConfig]:
        """Active, approved configs with ``next_scheduled_at <= now``, earliest first."""
        ...


class HistoryRepository(ABC):
    """Generation attempt audit rows."""

    @abstractmethod
    def get(self, record_id: UUID) -> GenerationHistoryRecord | None: ...

    @abstractmethod
    def add(self, record: GenerationHistoryRecord) -> GenerationHistoryRecord: ...

    @abstractmethod
    def save(self, record: GenerationHistoryRecord) -> GenerationHistoryRecord: ...

    @abstractmethod
    def list_by_status(
        self, status: HistoryStatus, limit: int | None = None
    ) -> list[GenerationHistoryRecord]: ...

    @abstractmethod
    def list_for_config(self, config_id: UUID) -> list[GenerationHistoryRecord]:
        """Newest first."""
        ...


class PublishJobRepository(ABC):
    @abstractmethod
    def get(self, job_id: UUID) -> PublishJob | None: ...

    @abstractmethod
    def add(self, job: PublishJob) -> PublishJob: ...

    @abstractmethod
    def save(self, job: PublishJob) -> PublishJob: ...

    @abstractmethod
    def list_in_flight(self, limit: int | None = None) -> list[PublishJob]:
        """Jobs in ``scheduled``/``posting`` with a remote id, by ``scheduled_for``."""
        ...

    @abstractmethod
    def list_for_asset(self, media_asset_id: UUID) -> list[PublishJob]: ...


@dataclass
class Repositories:
    """The full set of repositories for one unit of work."""

    jobs: GenerationJobRepository
    stores: StoreRepository
    products: ProductRepository
    configs: AutopilotConfigRepository
    history: HistoryRepository
    publish_jobs: PublishJobRepository
