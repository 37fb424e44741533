"""Tests for the Celery tasks, run eagerly against in-memory repositories."""

from contextlib import contextmanager
from datetime import timedelta

import pytest

from autopilot_engine.domain.chain import ChainState, SubmissionIntent
from autopilot_engine.domain.enums import AssetKind, AssetStatus, ChainStage
from autopilot_engine.domain.models import GenerationJob, utcnow
from autopilot_engine.jobs import autopilot_tasks


@pytest.fixture
def task_repos(repos, monkeypatch):
    """Point the tasks at the in-memory repositories instead of the database."""

    @contextmanager
    def fake_session_context():
        yield None

    monkeypatch.setattr(autopilot_tasks, "get_session_context", fake_session_context)
    monkeypatch.setattr(autopilot_tasks, "sql_repositories", lambda session: repos)
    return repos


def test_poll_generation_jobs(task_repos) -> None:
    """Test processing chain jobs are advanced by the poll task."""
    state = ChainState(stage=ChainStage.GENERATING_IMAGE, image_task_id="stub-image-abc123")
    state.timestamps.image_started_at = utcnow()
    job = task_repos.jobs.add(
        GenerationJob(
            owner_id="owner-1",
            provider="stub-image",
            kind=AssetKind.IMAGE,
            external_job_id="stub-image-abc123",
            chain_state=state,
            metadata={"prompt_variables": {"product": "Mug"}},
        )
    )

    result = autopilot_tasks.poll_generation_jobs_task.apply().get()

    assert result == {"success": True, "checked": 1, "advanced": 1, "failed": 0}
    finished = task_repos.jobs.get(job.id)
    assert finished.status == AssetStatus.READY
    assert finished.kind == AssetKind.VIDEO


def test_sweep_orphaned_submissions(task_repos) -> None:
    """Test stale render intents are failed by the sweep task."""
    job = task_repos.jobs.add(
        GenerationJob(
            owner_id="owner-1",
            provider="stub-render",
            kind=AssetKind.VIDEO,
            pending_submission=SubmissionIntent(
                stage="rendering",
                provider="stub-render",
                recorded_at=utcnow() - timedelta(hours=2),
            ),
        )
    )

    result = autopilot_tasks.sweep_orphaned_submissions_task.apply().get()

    assert result == {"success": True, "swept": 1}
    assert task_repos.jobs.get(job.id).status == AssetStatus.ERROR


def test_run_cycle_without_due_configs(task_repos) -> None:
    """Test an idle cycle reports nothing due."""
    result = autopilot_tasks.run_cycle_task.apply().get()

    assert result["success"] is True
    assert result["due"] == 0
    assert result["succeeded"] == 0


def test_reconcile_publish_jobs(task_repos) -> None:
    """Test the reconcile task reports its summary."""
    result = autopilot_tasks.reconcile_publish_jobs_task.apply().get()

    assert result == {
        "success": True,
        "checked": 0,
        "published": 0,
        "failed": 0,
        "unchanged": 0,
        "unknown": 0,
        "errors": 0,
    }
