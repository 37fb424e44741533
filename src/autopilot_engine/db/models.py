"""SQLAlchemy ORM models."""

from datetime import UTC, datetime
from typing import Any
from uuid import UUID as PyUUID
from uuid import uuid4

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    TypeDecorator,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy.sql import func

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
JSONType = JSON().with_variant(JSONB(), "postgresql")


class UTCDateTime(TypeDecorator[datetime]):
    """Timezone-aware timestamp that always comes back in UTC.

    SQLite drops tzinfo on the way in; values read back are re-tagged so
    they compare cleanly with ``datetime.now(UTC)``.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Any) -> datetime | None:
        if value is not None and value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value

    def process_result_value(self, value: datetime | None, dialect: Any) -> datetime | None:
        if value is not None and value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


# =============================================================================
# Generation
# =============================================================================


class MediaAssetModel(Base):
    """Generated media asset (GenerationJob) ORM model."""

    __tablename__ = "media_assets"

    id: Mapped[PyUUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    owner_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    provider: Mapped[str] = mapped_column(String(100), nullable=False)
    kind: Mapped[str] = mapped_column(String(20), nullable=False)
    status: Mapped[str] = mapped_column(String(20), server_default="processing", index=True)
    external_job_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    prompt: Mapped[str | None] = mapped_column(Text, nullable=True)
    chain_state: Mapped[dict[str, Any] | None] = mapped_column(JSONType, nullable=True)
    submission_intent: Mapped[dict[str, Any] | None] = mapped_column(JSONType, nullable=True)
    result_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    result_urls: Mapped[list[str] | None] = mapped_column(JSONType, nullable=True)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    metadata_: Mapped[dict[str, Any] | None] = mapped_column("metadata_", JSONType, nullable=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)


# =============================================================================
# Autopilot
# =============================================================================


class AutopilotStoreModel(Base):
    """Merchant store ORM model."""

    __tablename__ = "autopilot_stores"

    id: Mapped[PyUUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    owner_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    shop_domain: Mapped[str | None] = mapped_column(String(255), nullable=True)
    target_audience: Mapped[str | None] = mapped_column(Text, nullable=True)
    voice_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, server_default=func.now())

    products: Mapped[list["AutopilotProductModel"]] = relationship(
        "AutopilotProductModel", back_populates="store", cascade="all, delete-orphan"
    )


class AutopilotProductModel(Base):
    """Rotation pool entry ORM model."""

    __tablename__ = "autopilot_products"
    __table_args__ = (UniqueConstraint("store_id", "external_id", name="uq_product_external"),)

    id: Mapped[PyUUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    store_id: Mapped[PyUUID] = mapped_column(
        Uuid, ForeignKey("autopilot_stores.id", ondelete="CASCADE"), index=True
    )
    external_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    features: Mapped[str | None] = mapped_column(Text, nullable=True)
    images: Mapped[list[str]] = mapped_column(JSONType, nullable=False, default=list)
    price: Mapped[float | None] = mapped_column(Float, nullable=True)
    original_price: Mapped[float | None] = mapped_column(Float, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, index=True)
    use_count: Mapped[int] = mapped_column(Integer, default=0)
    last_used_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, server_default=func.now())

    store: Mapped["AutopilotStoreModel"] = relationship(
        "AutopilotStoreModel", back_populates="products"
    )


class AutopilotConfigModel(Base):
    """Recurring generation subscription ORM model."""

    __tablename__ = "autopilot_configs"

    id: Mapped[PyUUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    store_id: Mapped[PyUUID] = mapped_column(
        Uuid, ForeignKey("autopilot_stores.id", ondelete="CASCADE"), unique=True
    )
    owner_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    videos_per_week: Mapped[int] = mapped_column(Integer, nullable=False)
    platforms: Mapped[list[str]] = mapped_column(JSONType, nullable=False, default=list)
    publish_accounts: Mapped[dict[str, str] | None] = mapped_column(JSONType, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=False)
    is_approved: Mapped[bool] = mapped_column(Boolean, default=False)
    include_avatar: Mapped[bool] = mapped_column(Boolean, default=False)
    voice_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    next_scheduled_at: Mapped[datetime | None] = mapped_column(
        UTCDateTime, nullable=True, index=True
    )
    last_generated_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    videos_generated: Mapped[int] = mapped_column(Integer, default=0)
    pool_cycles: Mapped[int] = mapped_column(Integer, default=0)
    first_video_asset_id: Mapped[PyUUID | None] = mapped_column(
        Uuid, ForeignKey("media_assets.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)


class AutopilotHistoryModel(Base):
    """Generation attempt audit ORM model."""

    __tablename__ = "autopilot_history"

    id: Mapped[PyUUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    config_id: Mapped[PyUUID] = mapped_column(
        Uuid, ForeignKey("autopilot_configs.id", ondelete="CASCADE"), index=True
    )
    product_id: Mapped[PyUUID] = mapped_column(
        Uuid, ForeignKey("autopilot_products.id", ondelete="CASCADE"), index=True
    )
    media_asset_id: Mapped[PyUUID | None] = mapped_column(
        Uuid, ForeignKey("media_assets.id", ondelete="SET NULL"), nullable=True
    )
    status: Mapped[str] = mapped_column(String(20), server_default="pending", index=True)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    published_platforms: Mapped[list[str] | None] = mapped_column(JSONType, nullable=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, server_default=func.now())
    completed_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)


# =============================================================================
# Publishing
# =============================================================================


class PublishJobModel(Base):
    """Post handed to the publishing provider ORM model."""

    __tablename__ = "publish_jobs"

    id: Mapped[PyUUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    owner_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    media_asset_id: Mapped[PyUUID] = mapped_column(
        Uuid, ForeignKey("media_assets.id", ondelete="CASCADE"), index=True
    )
    platform: Mapped[str] = mapped_column(String(50), nullable=False)
    status: Mapped[str] = mapped_column(String(20), server_default="scheduled", index=True)
    remote_job_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    caption: Mapped[str | None] = mapped_column(Text, nullable=True)
    scheduled_for: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    published_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    public_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
