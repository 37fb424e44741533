"""SQLAlchemy-backed repositories.

Each repository maps between ORM rows and domain dataclasses and commits
on every write.
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from autopilot_engine.db.models import (
    AutopilotConfigModel,
    AutopilotHistoryModel,
    AutopilotProductModel,
    AutopilotStoreModel,
    MediaAssetModel,
    PublishJobModel,
)
from autopilot_engine.domain.chain import ChainState, SubmissionIntent
from autopilot_engine.domain.enums import (
    AssetKind,
    AssetStatus,
    HistoryStatus,
    Platform,
    PublishStatus,
)
from autopilot_engine.domain.models import (
    AutopilotConfig,
    GenerationHistoryRecord,
    GenerationJob,
    Product,
    PublishJob,
    Store,
    utcnow,
)
from autopilot_engine.repositories.base import (
    AutopilotConfigRepository,
    GenerationJobRepository,
    HistoryRepository,
    ProductRepository,
    PublishJobRepository,
    Repositories,
    StoreRepository,
)


class _SqlRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def _write(self, row: Any) -> None:
        self.session.add(row)
        self.session.commit()


# =============================================================================
# Media assets
# =============================================================================


def _job_to_domain(row: MediaAssetModel) -> GenerationJob:
    return GenerationJob(
        id=row.id,
        owner_id=row.owner_id,
        provider=row.provider,
        kind=AssetKind(row.kind),
        status=AssetStatus(row.status),
        external_job_id=row.external_job_id,
        prompt=row.prompt,
        chain_state=ChainState.from_dict(row.chain_state) if row.chain_state else None,
        pending_submission=(
            SubmissionIntent.from_dict(row.submission_intent) if row.submission_intent else None
        ),
        result_url=row.result_url,
        result_urls=list(row.result_urls or []),
        error_message=row.error_message,
        metadata=dict(row.metadata_ or {}),
        created_at=row.created_at,
        updated_at=row.updated_at,
        completed_at=row.completed_at,
    )


def _apply_job(row: MediaAssetModel, job: GenerationJob) -> None:
    row.owner_id = job.owner_id
    row.provider = job.provider
    row.kind = job.kind.value
    row.status = job.status.value
    row.external_job_id = job.external_job_id
    row.prompt = job.prompt
    row.chain_state = job.chain_state.to_dict() if job.chain_state else None
    row.submission_intent = job.pending_submission.to_dict() if job.pending_submission else None
    row.result_url = job.result_url
    row.result_urls = list(job.result_urls)
    row.error_message = job.error_message
    row.metadata_ = dict(job.metadata)
    row.completed_at = job.completed_at
    row.updated_at = utcnow()


class SqlGenerationJobRepository(_SqlRepository, GenerationJobRepository):
    def get(self, job_id: UUID) -> GenerationJob | None:
        row = self.session.get(MediaAssetModel, job_id)
        return _job_to_domain(row) if row else None

    def add(self, job: GenerationJob) -> GenerationJob:
        row = MediaAssetModel(id=job.id, created_at=job.created_at)
        _apply_job(row, job)
        self._write(row)
        return job

    def save(self, job: GenerationJob) -> GenerationJob:
        row = self.session.get(MediaAssetModel, job.id)
        if row is None:
            raise KeyError(f"Media asset not found: {job.id}")
        _apply_job(row, job)
        self._write(row)
        job.updated_at = row.updated_at
        return job

    def list_processing(self, limit: int | None = None) -> list[GenerationJob]:
        stmt = (
            select(MediaAssetModel)
            .where(MediaAssetModel.status == AssetStatus.PROCESSING.value)
            .order_by(MediaAssetModel.created_at.asc())
            .limit(limit)
        )
        return [_job_to_domain(row) for row in self.session.execute(stmt).scalars()]


# =============================================================================
# Stores and products
# =============================================================================


class SqlStoreRepository(_SqlRepository, StoreRepository):
    def get(self, store_id: UUID) -> Store | None:
        row = self.session.get(AutopilotStoreModel, store_id)
        if row is None:
            return None
        return Store(
            id=row.id,
            owner_id=row.owner_id,
            name=row.name,
            shop_domain=row.shop_domain,
            target_audience=row.target_audience,
            voice_id=row.voice_id,
            created_at=row.created_at,
        )

    def add(self, store: Store) -> Store:
        self._write(
            AutopilotStoreModel(
                id=store.id,
                owner_id=store.owner_id,
                name=store.name,
                shop_domain=store.shop_domain,
                target_audience=store.target_audience,
                voice_id=store.voice_id,
                created_at=store.created_at,
            )
        )
        return store


def _product_to_domain(row: AutopilotProductModel) -> Product:
    return Product(
        id=row.id,
        store_id=row.store_id,
        external_id=row.external_id,
        title=row.title,
        description=row.description,
        features=row.features,
        images=list(row.images or []),
        price=row.price,
        original_price=row.original_price,
        is_active=row.is_active,
        use_count=row.use_count,
        last_used_at=row.last_used_at,
        created_at=row.created_at,
    )


def _apply_product(row: AutopilotProductModel, product: Product) -> None:
    row.store_id = product.store_id
    row.external_id = product.external_id
    row.title = product.title
    row.description = product.description
    row.features = product.features
    row.images = list(product.images)
    row.price = product.price
    row.original_price = product.original_price
    row.is_active = product.is_active
    row.use_count = product.use_count
    row.last_used_at = product.last_used_at


class SqlProductRepository(_SqlRepository, ProductRepository):
    def get(self, product_id: UUID) -> Product | None:
        row = self.session.get(AutopilotProductModel, product_id)
        return _product_to_domain(row) if row else None

    def add(self, product: Product) -> Product:
        row = AutopilotProductModel(id=product.id, created_at=product.created_at)
        _apply_product(row, product)
        self._write(row)
        return product

    def save(self, product: Product) -> Product:
        row = self.session.get(AutopilotProductModel, product.id)
        if row is None:
            raise KeyError(f"Product not found: {product.id}")
        _apply_product(row, product)
        self._write(row)
        return product

    def list_for_store(self, store_id: UUID) -> list[Product]:
        stmt = (
            select(AutopilotProductModel)
            .where(AutopilotProductModel.store_id == store_id)
            .order_by(AutopilotProductModel.created_at.asc())
        )
        return [_product_to_domain(row) for row in self.session.execute(stmt).scalars()]

    def get_by_external_id(self, store_id: UUID, external_id: str) -> Product | None:
        stmt = select(AutopilotProductModel).where(
            AutopilotProductModel.store_id == store_id,
            AutopilotProductModel.external_id == external_id,
        )
        row = self.session.execute(stmt).scalar_one_or_none()
        return _product_to_domain(row) if row else None

    def next_candidate(self, store_id: UUID) -> Product | None:
        stmt = (
            select(AutopilotProductModel)
            .where(
                AutopilotProductModel.store_id == store_id,
                AutopilotProductModel.is_active.is_(True),
            )
            .order_by(
                AutopilotProductModel.last_used_at.asc().nulls_first(),
                AutopilotProductModel.use_count.asc(),
                AutopilotProductModel.created_at.asc(),
            )
            .limit(1)
        )
        row = self.session.execute(stmt).scalar_one_or_none()
        return _product_to_domain(row) if row else None


# =============================================================================
# Autopilot configs and history
# =============================================================================


def _config_to_domain(row: AutopilotConfigModel) -> AutopilotConfig:
    return AutopilotConfig(
        id=row.id,
        store_id=row.store_id,
        owner_id=row.owner_id,
        videos_per_week=row.videos_per_week,
        platforms=[Platform(p) for p in row.platforms or []],
        publish_accounts=dict(row.publish_accounts or {}),
        is_active=row.is_active,
        is_approved=row.is_approved,
        include_avatar=row.include_avatar,
        voice_id=row.voice_id,
        next_scheduled_at=row.next_scheduled_at,
        last_generated_at=row.last_generated_at,
        videos_generated=row.videos_generated,
        pool_cycles=row.pool_cycles,
        first_video_asset_id=row.first_video_asset_id,
        created_at=row.created_at,
    )


def _apply_config(row: AutopilotConfigModel, config: AutopilotConfig) -> None:
    row.store_id = config.store_id
    row.owner_id = config.owner_id
    row.videos_per_week = config.videos_per_week
    row.platforms = [p.value for p in config.platforms]
    row.publish_accounts = dict(config.publish_accounts)
    row.is_active = config.is_active
    row.is_approved = config.is_approved
    row.include_avatar = config.include_avatar
    row.voice_id = config.voice_id
    row.next_scheduled_at = config.next_scheduled_at
    row.last_generated_at = config.last_generated_at
    row.videos_generated = config.videos_generated
    row.pool_cycles = config.pool_cycles
    row.first_video_asset_id = config.first_video_asset_id
    row.updated_at = utcnow()


class SqlAutopilotConfigRepository(_SqlRepository, AutopilotConfigRepository):
    def get(self, config_id: UUID) -> AutopilotConfig | None:
        row = self.session.get(AutopilotConfigModel, config_id)
        return _config_to_domain(row) if row else None

    def get_for_store(self, store_id: UUID) -> AutopilotConfig | None:
        stmt = select(AutopilotConfigModel).where(AutopilotConfigModel.store_id == store_id)
        row = self.session.execute(stmt).scalar_one_or_none()
        return _config_to_domain(row) if row else None

    def add(self, config: AutopilotConfig) -> AutopilotConfig:
        row = AutopilotConfigModel(id=config.id, created_at=config.created_at)
        _apply_config(row, config)
        self._write(row)
        return config

    def save(self, config: AutopilotConfig) -> AutopilotConfig:
        row = self.session.get(AutopilotConfigModel, config.id)
        if row is None:
            raise KeyError(f"Autopilot config not found: {config.id}")
        _apply_config(row, config)
        self._write(row)
        return config

    def list_due(self, now: datetime, limit: int | None = None) -> list[AutopilotConfig]:
        stmt = (
            select(AutopilotConfigModel)
            .where(
                AutopilotConfigModel.is_active.is_(True),
                AutopilotConfigModel.is_approved.is_(True),
                AutopilotConfigModel.next_scheduled_at.is_not(None),
                AutopilotConfigModel.next_scheduled_at <= now,
            )
            .order_by(AutopilotConfigModel.next_scheduled_at.asc())
            .limit(limit)
        )
        return [_config_to_domain(row) for row in self.session.execute(stmt).scalars()]


def _history_to_domain(row: AutopilotHistoryModel) -> GenerationHistoryRecord:
    return GenerationHistoryRecord(
        id=row.id,
        config_id=row.config_id,
        product_id=row.product_id,
        media_asset_id=row.media_asset_id,
        status=HistoryStatus(row.status),
        error_message=row.error_message,
        published_platforms=list(row.published_platforms or []),
        created_at=row.created_at,
        completed_at=row.completed_at,
    )


def _apply_history(row: AutopilotHistoryModel, record: GenerationHistoryRecord) -> None:
    row.config_id = record.config_id
    row.product_id = record.product_id
    row.media_asset_id = record.media_asset_id
    row.status = record.status.value
    row.error_message = record.error_message
    row.published_platforms = list(record.published_platforms)
    row.completed_at = record.completed_at


class SqlHistoryRepository(_SqlRepository, HistoryRepository):
    def get(self, record_id: UUID) -> GenerationHistoryRecord | None:
        row = self.session.get(AutopilotHistoryModel, record_id)
        return _history_to_domain(row) if row else None

    def add(self, record: GenerationHistoryRecord) -> GenerationHistoryRecord:
        row = AutopilotHistoryModel(id=record.id, created_at=record.created_at)
        _apply_history(row, record)
        self._write(row)
        return record

    def save(self, record: GenerationHistoryRecord) -> GenerationHistoryRecord:
        row = self.session.get(AutopilotHistoryModel, record.id)
        if row is None:
            raise KeyError(f"History record not found: {record.id}")
        _apply_history(row, record)
        self._write(row)
        return record

    def list_by_status(
        self, status: HistoryStatus, limit: int | None = None
    ) -> list[GenerationHistoryRecord]:
        stmt = (
            select(AutopilotHistoryModel)
            .where(AutopilotHistoryModel.status == status.value)
            .order_by(AutopilotHistoryModel.created_at.asc())
            .limit(limit)
        )
        return [_history_to_domain(row) for row in self.session.execute(stmt).scalars()]

    def list_for_config(self, config_id: UUID) -> list[GenerationHistoryRecord]:
        stmt = (
            select(AutopilotHistoryModel)
            .where(AutopilotHistoryModel.config_id == config_id)
            .order_by(AutopilotHistoryModel.created_at.desc())
        )
        return [_history_to_domain(row) for row in self.session.execute(stmt).scalars()]


# =============================================================================
# Publish jobs
# =============================================================================


def _publish_to_domain(row: PublishJobModel) -> PublishJob:
    return PublishJob(
        id=row.id,
        owner_id=row.owner_id,
        media_asset_id=row.media_asset_id,
        platform=Platform(row.platform),
        status=PublishStatus(row.status),
        remote_job_id=row.remote_job_id,
        caption=row.caption,
        scheduled_for=row.scheduled_for,
        published_at=row.published_at,
        public_url=row.public_url,
        error_message=row.error_message,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _apply_publish(row: PublishJobModel, job: PublishJob) -> None:
    row.owner_id = job.owner_id
    row.media_asset_id = job.media_asset_id
    row.platform = job.platform.value
    row.status = job.status.value
    row.remote_job_id = job.remote_job_id
    row.caption = job.caption
    row.scheduled_for = job.scheduled_for
    row.published_at = job.published_at
    row.public_url = job.public_url
    row.error_message = job.error_message
    row.updated_at = utcnow()


class SqlPublishJobRepository(_SqlRepository, PublishJobRepository):
    def get(self, job_id: UUID) -> PublishJob | None:
        row = self.session.get(PublishJobModel, job_id)
        return _publish_to_domain(row) if row else None

    def add(self, job: PublishJob) -> PublishJob:
        row = PublishJobModel(id=job.id, created_at=job.created_at)
        _apply_publish(row, job)
        self._write(row)
        return job

    def save(self, job: PublishJob) -> PublishJob:
        row = self.session.get(PublishJobModel, job.id)
        if row is None:
            raise KeyError(f"Publish job not found: {job.id}")
        _apply_publish(row, job)
        self._write(row)
        return job

    def list_in_flight(self, limit: int | None = None) -> list[PublishJob]:
        stmt = (
            select(PublishJobModel)
            .where(
                PublishJobModel.status.in_(
                    [PublishStatus.SCHEDULED.value, PublishStatus.POSTING.value]
                ),
                PublishJobModel.remote_job_id.is_not(None),
            )
            .order_by(PublishJobModel.scheduled_for.asc().nulls_last())
            .limit(limit)
        )
        return [_publish_to_domain(row) for row in self.session.execute(stmt).scalars()]

    def list_for_asset(self, media_asset_id: UUID) -> list[PublishJob]:
        stmt = select(PublishJobModel).where(PublishJobModel.media_asset_id == media_asset_id)
        return [_publish_to_domain(row) for row in self.session.execute(stmt).scalars()]


def sql_repositories(session: Session) -> Repositories:
    """Repositories sharing one session."""
    return Repositories(
        jobs=SqlGenerationJobRepository(session),
        stores=SqlStoreRepository(session),
        products=SqlProductRepository(session),
        configs=SqlAutopilotConfigRepository(session),
        history=SqlHistoryRepository(session),
        publish_jobs=SqlPublishJobRepository(session),
    )
