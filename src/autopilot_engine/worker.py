"""Celery worker configuration."""

from celery import Celery

from autopilot_engine.config import settings
from autopilot_engine.logging import setup_logging

# Setup logging before anything else
setup_logging()

# Create Celery app
celery_app = Celery(
    "autopilot_engine",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
)

# Celery configuration
celery_app.conf.update(
    # Task settings
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    # Task execution
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    task_time_limit=600,  # 10 minutes max
    task_soft_time_limit=540,  # 9 minutes soft limit
    # Worker settings
    worker_prefetch_multiplier=1,
    worker_concurrency=4,
    # Result backend
    result_expires=86400,  # 24 hours
    # Task routing
    task_routes={
        "autopilot.run_cycle": {"queue": "high"},
        "autopilot.poll_generation_jobs": {"queue": "default"},
        "autopilot.reconcile_publish_jobs": {"queue": "low"},
        "autopilot.sweep_orphaned_submissions": {"queue": "low"},
    },
    # Beat scheduler (for periodic tasks)
    beat_schedule={
        "autopilot-run-cycle-hourly": {
            "task": "autopilot.run_cycle",
            "schedule": 3600.0,  # 1 hour
            "options": {"queue": "high"},
        },
        "autopilot-poll-generation-jobs": {
            "task": "autopilot.poll_generation_jobs",
            "schedule": 60.0,  # 1 minute
            "options": {"queue": "default"},
        },
        "autopilot-reconcile-publish-jobs": {
            "task": "autopilot.reconcile_publish_jobs",
            "schedule": 300.0,  # 5 minutes
            "options": {"queue": "low"},
        },
        "autopilot-sweep-orphaned-submissions": {
            "task": "autopilot.sweep_orphaned_submissions",
            "schedule": 900.0,  # 15 minutes
            "options": {"queue": "low"},
        },
    },
)

# Auto-discover tasks
celery_app.autodiscover_tasks(["autopilot_engine.jobs"])
