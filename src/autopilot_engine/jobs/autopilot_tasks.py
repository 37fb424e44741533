"""Celery tasks driving the autopilot.

Each task opens its own session, wires services from the configured
providers and runs to completion within one tick. Nothing here waits on a
provider: outstanding work is picked up again on the next tick.
"""

from typing import Any

from autopilot_engine.config import settings
from autopilot_engine.db.session import get_session_context
from autopilot_engine.domain.models import utcnow
from autopilot_engine.jobs.providers import (
    build_chain_orchestrator,
    build_narrated_generator,
    build_reconciler,
    build_scheduler,
)
from autopilot_engine.logging import get_logger
from autopilot_engine.repositories.sql import sql_repositories
from autopilot_engine.services.autopilot_video import ChainVideoGenerator
from autopilot_engine.utils import run_async
from autopilot_engine.worker import celery_app

logger = get_logger(__name__)


@celery_app.task(bind=True, name="autopilot.run_cycle")
def run_cycle_task(self: Any) -> dict[str, Any]:
    """Generate for every due config, then close finished history rows."""
    task_id = self.request.id
    logger.info("autopilot_cycle_started", task_id=task_id)

    if not settings.autopilot_enabled:
        logger.info("autopilot_cycle_skipped", task_id=task_id, reason="disabled")
        return {"success": True, "skipped": True}

    try:
        with get_session_context() as session:
            repos = sql_repositories(session)
            scheduler = build_scheduler(repos)
            summary = run_async(scheduler.run_due(utcnow(), limit=settings.autopilot_batch_size))
            finalized = run_async(scheduler.finalize_history())

        logger.info("autopilot_cycle_completed", task_id=task_id, **summary.to_dict())
        return {"success": True, **summary.to_dict(), "finalized": finalized}
    except Exception as e:
        logger.exception("autopilot_cycle_failed", task_id=task_id, error=str(e))
        return {"success": False, "error": str(e)}


@celery_app.task(bind=True, name="autopilot.poll_generation_jobs")
def poll_generation_jobs_task(self: Any, limit: int = 100) -> dict[str, Any]:
    """Re-invoke the status checks of every processing media asset.

    Both checks are called for every job; each one ignores jobs it does not
    own, so chain and render jobs need no branching here.
    """
    task_id = self.request.id
    advanced = 0
    failed = 0

    try:
        with get_session_context() as session:
            repos = sql_repositories(session)
            chain = ChainVideoGenerator(
                build_chain_orchestrator(repos),
                default_icp=settings.chain_default_icp,
                default_scene=settings.chain_default_scene,
            )
            narrated = build_narrated_generator(repos)
            jobs = repos.jobs.list_processing(limit)

            for job in jobs:
                try:
                    changed = run_async(chain.check_status(job.id))
                    changed = run_async(narrated.check_status(job.id)) or changed
                    advanced += int(changed)
                except Exception:
                    failed += 1
                    logger.exception("generation_poll_failed", task_id=task_id, job_id=str(job.id))

        logger.info(
            "generation_poll_completed",
            task_id=task_id,
            checked=len(jobs),
            advanced=advanced,
            failed=failed,
        )
        return {"success": True, "checked": len(jobs), "advanced": advanced, "failed": failed}
    except Exception as e:
        logger.exception("generation_poll_crashed", task_id=task_id, error=str(e))
        return {"success": False, "error": str(e)}


@celery_app.task(bind=True, name="autopilot.reconcile_publish_jobs")
def reconcile_publish_jobs_task(self: Any) -> dict[str, Any]:
    """Merge the publishing provider's status into in-flight publish jobs."""
    task_id = self.request.id

    try:
        with get_session_context() as session:
            poller = build_reconciler(sql_repositories(session))
            summary = run_async(poller.reconcile(settings.reconcile_batch_size))

        return {"success": True, **summary.to_dict()}
    except Exception as e:
        logger.exception("reconcile_task_failed", task_id=task_id, error=str(e))
        return {"success": False, "error": str(e)}


@celery_app.task(bind=True, name="autopilot.sweep_orphaned_submissions")
def sweep_orphaned_submissions_task(self: Any) -> dict[str, Any]:
    """Fail jobs whose provider submission was never acknowledged."""
    task_id = self.request.id

    try:
        with get_session_context() as session:
            orchestrator = build_chain_orchestrator(sql_repositories(session))
            swept = run_async(orchestrator.sweep_orphaned_submissions(utcnow()))

        return {"success": True, "swept": swept}
    except Exception as e:
        logger.exception("orphan_sweep_task_failed", task_id=task_id, error=str(e))
        return {"success": False, "error": str(e)}
