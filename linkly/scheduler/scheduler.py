"""Scheduler implementation for the Linkly application.

This module provides a scheduler service that runs maintenance jobs, such as
click counter reconciliation, using APScheduler.
"""

import logging
from datetime import datetime
from typing import Optional, Dict, Any, List

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.jobstores.sqlalchemy import SQLAlchemyJobStore
from apscheduler.triggers.interval import IntervalTrigger

from linkly.core.config import settings
from linkly.db.session import SessionManager
from linkly.repositories.link_repository import LinkRepository
from linkly.services.maintenance import MaintenanceService

logger = logging.getLogger(__name__)

RECONCILE_JOB_ID = "reconcile_click_counts"


async def reconcile_click_counts_job() -> Dict[str, Any]:
    """
    Job to rewrite drifted click counters from the event log.

    Creates its own session and service instances.
    """
    logger.info("Starting scheduled click counter reconciliation")
    try:
        async with SessionManager.transaction_context() as session:
            result = await MaintenanceService(LinkRepository()).reconcile_click_counts(session)
        logger.info(f"Scheduled reconciliation completed: corrected={result['corrected']}")
        return result
    except Exception as e:
        logger.error(f"Error in scheduled click counter reconciliation: {e}", exc_info=True)
        return {
            "status": "error",
            "error": str(e),
            "timestamp": datetime.utcnow().isoformat()
        }


class SchedulerService:
    """
    Scheduler service for managing background jobs.

    Wraps APScheduler's AsyncIOScheduler with a persistent SQLAlchemy job store.
    """

    def __init__(self):
        self.scheduler: Optional[AsyncIOScheduler] = None
        self.is_running = False
        self.jobs: List[Dict[str, Any]] = []

    def initialize(self) -> None:
        """Set up job stores and defaults without starting the scheduler."""
        if self.scheduler:
            logger.warning("Scheduler already initialized")
            return

        try:
            self.scheduler = AsyncIOScheduler(
                jobstores={
                    "default": SQLAlchemyJobStore(url=settings.SCHEDULER_JOBSTORE_URL)
                },
                job_defaults={
                    "coalesce": settings.SCHEDULER_JOB_COALESCE,
                    "max_instances": settings.SCHEDULER_JOB_MAX_INSTANCES,
                    "misfire_grace_time": settings.SCHEDULER_MISFIRE_GRACE_TIME,
                }
            )
            logger.info("Scheduler initialized")
        except Exception as e:
            logger.error(f"Error initializing scheduler: {e}", exc_info=True)
            self.scheduler = None
            raise

    def start(self) -> None:
        """Register jobs and start the scheduler."""
        if not self.scheduler:
            self.initialize()

        if self.is_running:
            logger.warning("Scheduler already running")
            return

        try:
            interval = settings.COUNTER_RECONCILE_INTERVAL_MINUTES
            self.scheduler.add_job(
                reconcile_click_counts_job,
                trigger=IntervalTrigger(minutes=interval, timezone="UTC"),
                id=RECONCILE_JOB_ID,
                name="Reconcile Click Counts",
                replace_existing=True
            )
            self.jobs = [{
                "id": RECONCILE_JOB_ID,
                "name": "Reconcile Click Counts",
                "interval": f"{interval} minutes",
                "function": "reconcile_click_counts_job"
            }]

            self.scheduler.start()
            self.is_running = True
            logger.info(f"Scheduler started with {len(self.jobs)} jobs")

            if settings.COUNTER_RECONCILE_ON_STARTUP:
                logger.info("Running click counter reconciliation on startup")
                self.scheduler.add_job(
                    reconcile_click_counts_job,
                    id=f"{RECONCILE_JOB_ID}_startup",
                    name="Startup Click Count Reconciliation",
                    replace_existing=True
                )
        except Exception as e:
            logger.error(f"Error starting scheduler: {e}", exc_info=True)
            self.is_running = False
            raise

    def shutdown(self) -> None:
        """Stop the scheduler and wait for running jobs."""
        if not self.scheduler or not self.is_running:
            logger.warning("Scheduler not running, nothing to shut down")
            return

        try:
            self.scheduler.shutdown(wait=True)
            self.is_running = False
            self.scheduler = None
            logger.info("Scheduler shut down successfully")
        except Exception as e:
            logger.error(f"Error shutting down scheduler: {e}", exc_info=True)
            raise

    def get_status(self) -> Dict[str, Any]:
        """Scheduler state and next run times."""
        job_details = []
        if self.scheduler and self.is_running:
            for job in self.scheduler.get_jobs():
                job_details.append({
                    "job_id": job.id,
                    "name": job.name,
                    "next_run_time": job.next_run_time.isoformat() if job.next_run_time else None
                })

        return {
            "running": self.is_running,
            "jobs": self.jobs,
            "scheduler_jobs_status": job_details
        }


scheduler_service = SchedulerService()
