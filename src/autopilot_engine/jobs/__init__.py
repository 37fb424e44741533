"""Celery job definitions."""

from autopilot_engine.jobs.autopilot_tasks import (
    poll_generation_jobs_task,
    reconcile_publish_jobs_task,
    run_cycle_task,
    sweep_orphaned_submissions_task,
)

__all__ = [
    "poll_generation_jobs_task",
    "reconcile_publish_jobs_task",
    "run_cycle_task",
    "sweep_orphaned_submissions_task",
]
