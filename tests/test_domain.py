"""Tests for domain models and the chain state machine."""

from datetime import UTC, datetime, timedelta
from uuid import uuid4

import pytest

from autopilot_engine.domain.chain import ChainState, IllegalTransitionError, SubmissionIntent
from autopilot_engine.domain.enums import ChainStage, HistoryStatus
from autopilot_engine.domain.models import (
    AutopilotConfig,
    GenerationHistoryRecord,
    Product,
)
from autopilot_engine.domain.rotation import order_for_rotation, select_next

NOW = datetime(2026, 1, 5, 10, 30, tzinfo=UTC)


class TestChainState:
    """Tests for ChainState transitions."""

    def test_happy_path(self) -> None:
        """A chain can walk every stage in order."""
        state = ChainState()
        for stage in (
            ChainStage.GENERATING_IMAGE,
            ChainStage.ANALYZING_IMAGE,
            ChainStage.GENERATING_VIDEO,
            ChainStage.COMPLETED,
        ):
            state.transition(stage)

        assert state.stage == ChainStage.COMPLETED
        assert state.is_terminal

    def test_skipping_a_stage_is_rejected(self) -> None:
        """A queued chain cannot jump straight to video."""
        state = ChainState()

        with pytest.raises(IllegalTransitionError) as exc_info:
            state.transition(ChainStage.GENERATING_VIDEO)

        assert exc_info.value.current == ChainStage.QUEUED
        assert exc_info.value.target == ChainStage.GENERATING_VIDEO
        assert state.stage == ChainStage.QUEUED

    def test_completed_is_final(self) -> None:
        """Nothing leaves completed, not even an error."""
        state = ChainState(stage=ChainStage.COMPLETED)

        assert not state.can_transition(ChainStage.ERROR)
        with pytest.raises(IllegalTransitionError):
            state.fail(ChainStage.GENERATING_VIDEO, "late failure", NOW)

    def test_fail_keeps_first_failed_stage(self) -> None:
        """Re-erroring replaces the message but not the stage or timestamp."""
        state = ChainState(stage=ChainStage.ANALYZING_IMAGE)
        state.fail(ChainStage.ANALYZING_IMAGE, "vision down", NOW)
        state.fail(ChainStage.GENERATING_VIDEO, "second error", NOW + timedelta(minutes=5))

        assert state.stage == ChainStage.ERROR
        assert state.failed_stage == ChainStage.ANALYZING_IMAGE
        assert state.error == "second error"
        assert state.timestamps.failed_at == NOW

    def test_duration_label(self) -> None:
        """Duration is measured from image submission to finished video."""
        state = ChainState()
        assert state.duration_label() is None

        state.timestamps.image_started_at = NOW
        state.timestamps.video_completed_at = NOW + timedelta(minutes=2, seconds=5)
        assert state.duration_label() == "2m 5s"

    def test_serialization(self) -> None:
        """Chain state survives a trip through its JSON form."""
        state = ChainState(stage=ChainStage.ERROR, image_task_id="img-1")
        state.failed_stage = ChainStage.GENERATING_IMAGE
        state.timestamps.image_started_at = NOW

        restored = ChainState.from_dict(state.to_dict())

        assert restored == state
        assert restored.to_dict()["timestamps"]["image_started_at"] == NOW.isoformat()


def test_submission_intent_serialization() -> None:
    """Test SubmissionIntent keeps its timezone-aware timestamp."""
    intent = SubmissionIntent(stage="generating_image", provider="stub-image", recorded_at=NOW)

    restored = SubmissionIntent.from_dict(intent.to_dict())

    assert restored == intent
    assert restored.recorded_at.tzinfo is not None


def test_config_is_due() -> None:
    """Test that only active, approved configs past their time are due."""
    config = AutopilotConfig(
        store_id=uuid4(),
        owner_id="owner-1",
        videos_per_week=7,
        is_active=True,
        is_approved=True,
        next_scheduled_at=NOW,
    )

    assert config.is_due(NOW)
    assert not config.is_due(NOW - timedelta(seconds=1))

    config.is_approved = False
    assert not config.is_due(NOW)

    config.is_approved = True
    config.next_scheduled_at = None
    assert not config.is_due(NOW)


def test_history_record_terminal_statuses() -> None:
    """Test which history statuses are terminal."""
    record = GenerationHistoryRecord(config_id=uuid4(), product_id=uuid4())
    assert not record.is_terminal

    record.status = HistoryStatus.GENERATING
    assert not record.is_terminal

    record.status = HistoryStatus.READY
    assert record.is_terminal

    record.status = HistoryStatus.FAILED
    assert record.is_terminal


def test_product_image_minimum() -> None:
    """Test that a product needs two images to be usable."""
    product = Product(store_id=uuid4(), title="Mug", images=["a.jpg"])
    assert not product.has_enough_images

    product.images.append("b.jpg")
    assert product.has_enough_images


class TestRotationOrder:
    """Tests for the rotation ordering."""

    def test_never_used_products_come_first(self) -> None:
        """Unused products win over used ones regardless of creation time."""
        store_id = uuid4()
        used = Product(
            store_id=store_id,
            title="Used",
            use_count=1,
            last_used_at=NOW,
            created_at=NOW - timedelta(days=3),
        )
        fresh = Product(store_id=store_id, title="Fresh", created_at=NOW)

        assert select_next([used, fresh]) is fresh

    def test_oldest_use_then_creation_order(self) -> None:
        """Among used products the least recently used is next."""
        store_id = uuid4()
        a = Product(store_id=store_id, title="A", use_count=1, last_used_at=NOW, created_at=NOW)
        b = Product(
            store_id=store_id,
            title="B",
            use_count=1,
            last_used_at=NOW - timedelta(hours=1),
            created_at=NOW,
        )
        c = Product(store_id=store_id, title="C", created_at=NOW + timedelta(seconds=1))
        d = Product(store_id=store_id, title="D", created_at=NOW)

        assert [p.title for p in order_for_rotation([a, b, c, d])] == ["D", "C", "B", "A"]

    def test_inactive_products_are_skipped(self) -> None:
        """Inactive products never enter the rotation."""
        product = Product(store_id=uuid4(), title="Off", is_active=False)

        assert select_next([product]) is None
        assert order_for_rotation([]) == []
