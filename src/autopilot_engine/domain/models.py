"""Domain models - pure Python classes independent of database."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any
from uuid import UUID, uuid4

from autopilot_engine.domain.chain import ChainState, SubmissionIntent
from autopilot_engine.domain.enums import (
    AssetKind,
    AssetStatus,
    HistoryStatus,
    Platform,
    PublishStatus,
)

MIN_PRODUCT_IMAGES = 2


def utcnow() -> datetime:
    """Timezone-aware current time in UTC."""
    return datetime.now(UTC)


@dataclass
class GenerationJob:
    """A media asset: one user-visible unit of generated output.

    ``chain_state`` is only set for chained image -> video jobs and is owned
    by the chain orchestrator. Collaborators read ``status`` and
    ``result_url``.
    """

    owner_id: str
    provider: str
    kind: AssetKind
    id: UUID = field(default_factory=uuid4)
    status: AssetStatus = AssetStatus.PROCESSING
    external_job_id: str | None = None
    prompt: str | None = None
    chain_state: ChainState | None = None
    pending_submission: SubmissionIntent | None = None
    result_url: str | None = None
    result_urls: list[str] = field(default_factory=list)
    error_message: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime | None = None
    completed_at: datetime | None = None

    @property
    def is_chain(self) -> bool:
        return self.chain_state is not None


@dataclass
class Store:
    """A merchant storefront that products are pulled from."""

    owner_id: str
    name: str
    id: UUID = field(default_factory=uuid4)
    shop_domain: str | None = None
    target_audience: str | None = None
    voice_id: str | None = None
    created_at: datetime = field(default_factory=utcnow)


@dataclass
class Product:
    """Rotation pool entry: a candidate subject for autopilot generation."""

    store_id: UUID
    title: str
    id: UUID = field(default_factory=uuid4)
    external_id: str | None = None
    description: str | None = None
    features: str | None = None
    images: list[str] = field(default_factory=list)
    price: float | None = None
    original_price: float | None = None
    is_active: bool = True
    use_count: int = 0
    last_used_at: datetime | None = None
    created_at: datetime = field(default_factory=utcnow)

    @property
    def has_enough_images(self) -> bool:
        return len(self.images) >= MIN_PRODUCT_IMAGES


@dataclass
class SourceProduct:
    """A product as listed by an external store catalog."""

    external_id: str
    title: str
    images: list[str] = field(default_factory=list)
    description: str | None = None
    price: float | None = None
    original_price: float | None = None


@dataclass
class PoolStats:
    """Aggregate view over a store's rotation pool."""

    total: int = 0
    active: int = 0
    used: int = 0
    unused: int = 0
    total_use_count: int = 0
    min_use_count: int = 0


@dataclass
class AutopilotConfig:
    """A recurring generation subscription for one store."""

    store_id: UUID
    owner_id: str
    videos_per_week: int
    id: UUID = field(default_factory=uuid4)
    platforms: list[Platform] = field(default_factory=list)
    publish_accounts: dict[str, str] = field(default_factory=dict)  # platform -> account id
    is_active: bool = False
    is_approved: bool = False
    include_avatar: bool = False
    voice_id: str | None = None
    next_scheduled_at: datetime | None = None
    last_generated_at: datetime | None = None
    videos_generated: int = 0
    pool_cycles: int = 0
    first_video_asset_id: UUID | None = None
    created_at: datetime = field(default_factory=utcnow)

    def is_due(self, now: datetime) -> bool:
        return (
            self.is_active
            and self.is_approved
            and self.next_scheduled_at is not None
            and self.next_scheduled_at <= now
        )


@dataclass
class GenerationHistoryRecord:
    """Audit row for one autopilot generation attempt."""

    config_id: UUID
    product_id: UUID
    id: UUID = field(default_factory=uuid4)
    media_asset_id: UUID | None = None
    status: HistoryStatus = HistoryStatus.PENDING
    error_message: str | None = None
    published_platforms: list[str] = field(default_factory=list)
    created_at: datetime = field(default_factory=utcnow)
    completed_at: datetime | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status in (HistoryStatus.READY, HistoryStatus.FAILED)


@dataclass
class PublishJob:
    """A post handed to the publishing provider and tracked locally."""

    owner_id: str
    media_asset_id: UUID
    platform: Platform
    id: UUID = field(default_factory=uuid4)
    status: PublishStatus = PublishStatus.SCHEDULED
    remote_job_id: str | None = None
    caption: str | None = None
    scheduled_for: datetime | None = None
    published_at: datetime | None = None
    public_url: str | None = None
    error_message: str | None = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime | None = None
