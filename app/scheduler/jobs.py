"""
app/scheduler/jobs.py

APScheduler-based daily scheduler for lien discovery runs.

Schedule
--------
  lien_pipeline : once a day at the hour/minute/time zone held by the
                  schedule service (default 06:00 Pacific)

The scheduled job goes through the same guarded entry point as manual
triggers, so a scheduled fire during an active run is skipped.

Lifecycle
----------
Call ``build_scheduler()`` once to get a configured ``BackgroundScheduler``.
Start it on app boot; shut it down gracefully on app shutdown.
The scheduler is wired into FastAPI via the ``lifespan`` context in main.py.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from apscheduler.schedulers.background import BackgroundScheduler

from app.domain.errors import PipelineAlreadyRunningError
from app.domain.liens import RunType
from app.services.pipeline_orchestrator import PipelineOrchestrator, get_pipeline_orchestrator
from app.services.schedule_service import ScheduleService, get_schedule_service

logger = logging.getLogger(__name__)

PIPELINE_JOB_ID = "lien_pipeline"


# ---------------------------------------------------------------------------
# Job: Daily lien discovery
# ---------------------------------------------------------------------------


def run_scheduled_pipeline(orchestrator: PipelineOrchestrator | None = None) -> None:
    """
    Run one scheduled pipeline execution on the scheduler thread.
    """
    active = orchestrator or get_pipeline_orchestrator()
    logger.info("Scheduler: lien_pipeline starting")
    try:
        run = active.trigger(run_type=RunType.SCHEDULED)
    except PipelineAlreadyRunningError:
        logger.warning("Scheduler: lien_pipeline skipped, a run is already in progress")
        return
    logger.info("Scheduler: lien_pipeline finished run_id=%s status=%s", run.id, run.status)


# ---------------------------------------------------------------------------
# Scheduler factory
# ---------------------------------------------------------------------------


def build_scheduler(
    *,
    schedule_service: ScheduleService | None = None,
    job: Callable[[], None] = run_scheduled_pipeline,
) -> BackgroundScheduler:
    """
    Build the scheduler and register the daily pipeline job.

    Returns a configured but *not yet started* ``BackgroundScheduler``.
    The caller must call ``.start()`` and ``.shutdown(wait=True)`` at the
    appropriate lifecycle points.
    """
    service = schedule_service or get_schedule_service()
    scheduler = BackgroundScheduler(timezone="UTC")

    scheduler.add_job(
        job,
        trigger=service.cron_trigger(),
        id=PIPELINE_JOB_ID,
        name="Daily lien discovery run",
        replace_existing=True,
        misfire_grace_time=3600,
        coalesce=True,
        max_instances=1,
    )
    service.attach(scheduler, job_id=PIPELINE_JOB_ID)

    return scheduler
