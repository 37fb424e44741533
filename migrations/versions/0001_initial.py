"""Initial schema

Revision ID: 0001
Revises:
Create Date: 2026-10-15

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Media assets (generation jobs, chained or rendered)
    op.create_table(
        "media_assets",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("owner_id", sa.String(255), nullable=False),
        sa.Column("provider", sa.String(100), nullable=False),
        sa.Column("kind", sa.String(20), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="processing"),
        sa.Column("external_job_id", sa.String(255), nullable=True),
        sa.Column("prompt", sa.Text(), nullable=True),
        sa.Column("chain_state", postgresql.JSONB(), nullable=True),
        sa.Column("submission_intent", postgresql.JSONB(), nullable=True),
        sa.Column("result_url", sa.Text(), nullable=True),
        sa.Column("result_urls", postgresql.JSONB(), nullable=True),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("metadata_", postgresql.JSONB(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_media_assets_owner_id", "media_assets", ["owner_id"])
    op.create_index("ix_media_assets_status", "media_assets", ["status"])

    # Stores
    op.create_table(
        "autopilot_stores",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("owner_id", sa.String(255), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("shop_domain", sa.String(255), nullable=True),
        sa.Column("target_audience", sa.Text(), nullable=True),
        sa.Column("voice_id", sa.String(100), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_autopilot_stores_owner_id", "autopilot_stores", ["owner_id"])

    # Rotation pool
    op.create_table(
        "autopilot_products",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("store_id", sa.UUID(), nullable=False),
        sa.Column("external_id", sa.String(255), nullable=True),
        sa.Column("title", sa.String(500), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("features", sa.Text(), nullable=True),
        sa.Column("images", postgresql.JSONB(), nullable=False, server_default="[]"),
        sa.Column("price", sa.Float(), nullable=True),
        sa.Column("original_price", sa.Float(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default="true"),
        sa.Column("use_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_used_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["store_id"], ["autopilot_stores.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("store_id", "external_id", name="uq_product_external"),
    )
    op.create_index("ix_autopilot_products_store_id", "autopilot_products", ["store_id"])
    op.create_index("ix_autopilot_products_is_active", "autopilot_products", ["is_active"])

    # Autopilot configs
    op.create_table(
        "autopilot_configs",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("store_id", sa.UUID(), nullable=False),
        sa.Column("owner_id", sa.String(255), nullable=False),
        sa.Column("videos_per_week", sa.Integer(), nullable=False),
        sa.Column("platforms", postgresql.JSONB(), nullable=False, server_default="[]"),
        sa.Column("publish_accounts", postgresql.JSONB(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("is_approved", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("include_avatar", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("voice_id", sa.String(100), nullable=True),
        sa.Column("next_scheduled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_generated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("videos_generated", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("pool_cycles", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("first_video_asset_id", sa.UUID(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["store_id"], ["autopilot_stores.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(
            ["first_video_asset_id"], ["media_assets.id"], ondelete="SET NULL"
        ),
        sa.UniqueConstraint("store_id"),
    )
    op.create_index("ix_autopilot_configs_owner_id", "autopilot_configs", ["owner_id"])
    op.create_index(
        "ix_autopilot_configs_next_scheduled_at", "autopilot_configs", ["next_scheduled_at"]
    )

    # Generation history
    op.create_table(
        "autopilot_history",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("config_id", sa.UUID(), nullable=False),
        sa.Column("product_id", sa.UUID(), nullable=False),
        sa.Column("media_asset_id", sa.UUID(), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("published_platforms", postgresql.JSONB(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["config_id"], ["autopilot_configs.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["product_id"], ["autopilot_products.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["media_asset_id"], ["media_assets.id"], ondelete="SET NULL"),
    )
    op.create_index("ix_autopilot_history_config_id", "autopilot_history", ["config_id"])
    op.create_index("ix_autopilot_history_product_id", "autopilot_history", ["product_id"])
    op.create_index("ix_autopilot_history_status", "autopilot_history", ["status"])

    # Publish jobs
    op.create_table(
        "publish_jobs",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("owner_id", sa.String(255), nullable=False),
        sa.Column("media_asset_id", sa.UUID(), nullable=False),
        sa.Column("platform", sa.String(50), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="scheduled"),
        sa.Column("remote_job_id", sa.String(255), nullable=True),
        sa.Column("caption", sa.Text(), nullable=True),
        sa.Column("scheduled_for", sa.DateTime(timezone=True), nullable=True),
        sa.Column("published_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("public_url", sa.Text(), nullable=True),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["media_asset_id"], ["media_assets.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_publish_jobs_owner_id", "publish_jobs", ["owner_id"])
    op.create_index("ix_publish_jobs_media_asset_id", "publish_jobs", ["media_asset_id"])
    op.create_index("ix_publish_jobs_status", "publish_jobs", ["status"])


def downgrade() -> None:
    op.drop_table("publish_jobs")
    op.drop_table("autopilot_history")
    op.drop_table("autopilot_configs")
    op.drop_table("autopilot_products")
    op.drop_table("autopilot_stores")
    op.drop_table("media_assets")
