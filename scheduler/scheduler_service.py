"""
Scheduler service for the daily catalog sync.

This module provides:
- Daily scheduling with APScheduler
- Single-run and test-interval modes
- Logging of each run's outcome
"""

import asyncio
import signal
import sys
from typing import Callable, Optional

import structlog
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.events import EVENT_JOB_EXECUTED, EVENT_JOB_ERROR

from catalog.store import CatalogStore
from catalog.sync_job import CatalogSyncJob
from scheduler.models import SchedulerConfig, SyncRunRecord

logger = structlog.get_logger(__name__)

SYNC_JOB_ID = "daily_catalog_sync"


class SchedulerService:
    """Runs the catalog sync job on a schedule."""

    def __init__(
        self,
        config: SchedulerConfig,
        store: CatalogStore,
        job_factory: Callable[[CatalogStore], CatalogSyncJob]
    ):
        """
        Initialize scheduler service.

        Args:
            config: Scheduler configuration
            store: Catalog store shared by every run
            job_factory: Builds a sync job for the store; may raise ConfigurationError
        """
        self.config = config
        self.store = store
        self.job_factory = job_factory
        self.scheduler = AsyncIOScheduler(timezone=config.timezone)
        self.logger = logger.bind(component="scheduler_service")
        self.last_run: Optional[SyncRunRecord] = None

        self._setup_scheduler_listeners()

    def _setup_signal_handlers(self) -> None:
        """Setup signal handlers for graceful shutdown."""
        def signal_handler(signum, frame):
            self.logger.info(f"Received signal {signum}, shutting down gracefully...")
            self.stop()
            sys.exit(0)

        signal.signal(signal.SIGINT, signal_handler)
        signal.signal(signal.SIGTERM, signal_handler)

    def _setup_scheduler_listeners(self) -> None:
        """Setup scheduler event listeners."""
        def job_executed_listener(event):
            retval = event.retval
            self.logger.info(
                "Job executed",
                job_id=event.job_id,
                success=getattr(retval, "success", None),
                duration=getattr(retval, "duration_seconds", 0)
            )

        def job_error_listener(event):
            self.logger.error(
                "Job execution failed",
                job_id=event.job_id,
                error=str(event.exception)
            )

        self.scheduler.add_listener(job_executed_listener, EVENT_JOB_EXECUTED)
        self.scheduler.add_listener(job_error_listener, EVENT_JOB_ERROR)

    async def start(self, test_mode: bool = False, run_once: bool = False) -> None:
        """Start the scheduler service."""
        try:
            if run_once:
                self.logger.info("Starting scheduler service in RUN ONCE MODE")
            elif test_mode:
                self.logger.info("Starting scheduler service in TEST MODE")
            else:
                self.logger.info("Starting scheduler service")

            await self.store.connect()

            if run_once:
                record = await self.run_sync()
                self.logger.info("Run once mode completed. Exiting...", success=record.success)
                return

            if test_mode:
                self._add_test_scheduled_jobs()
            else:
                self._add_scheduled_jobs()

            self._setup_signal_handlers()
            self.scheduler.start()

            self.logger.info(
                "Scheduler service started",
                timezone=self.config.timezone,
                schedule_hour=self.config.schedule_hour,
                schedule_minute=self.config.schedule_minute
            )

            try:
                while True:
                    await asyncio.sleep(1)
            except KeyboardInterrupt:
                self.logger.info("Received keyboard interrupt, shutting down...")
                self.stop()

        except Exception as e:
            self.logger.error(
                "Failed to start scheduler service",
                error=str(e)
            )
            raise

    async def run_sync(self) -> SyncRunRecord:
        """
        Run one catalog sync and record its outcome.

        Failures are logged and recorded, never retried; the next scheduled
        run is the retry.
        """
        try:
            job = self.job_factory(self.store)
            result = await job.run()
        except Exception as e:
            record = SyncRunRecord(
                success=False,
                error=str(e),
                error_type=type(e).__name__
            )
            self.logger.error(
                "Scheduled catalog sync failed",
                error=record.error,
                error_type=record.error_type
            )
        else:
            record = SyncRunRecord(
                started_at=result.start_time,
                success=True,
                inserted_count=result.inserted_count,
                duration_seconds=result.duration_seconds
            )
            self.logger.info(
                "Scheduled catalog sync completed",
                inserted=result.inserted_count,
                purged=result.purged_count,
                duration=result.duration_seconds
            )

        self.last_run = record
        return record

    def stop(self) -> None:
        """Stop the scheduler service."""
        try:
            self.logger.info("Stopping scheduler service")

            if self.scheduler.running:
                self.scheduler.shutdown(wait=True)

            self.logger.info("Scheduler service stopped")

        except Exception as e:
            self.logger.error(
                "Error stopping scheduler service",
                error=str(e)
            )

    def _add_scheduled_jobs(self) -> None:
        """Add the daily sync job; one instance at a time."""
        if not self.config.enable_scheduled_sync:
            self.logger.warning("Scheduled sync is disabled; no jobs added")
            return

        self.scheduler.add_job(
            func=self.run_sync,
            trigger=CronTrigger(
                hour=self.config.schedule_hour,
                minute=self.config.schedule_minute,
                timezone=self.config.timezone
            ),
            id=SYNC_JOB_ID,
            name='Daily Catalog Sync',
            max_instances=1,
            coalesce=True,
            replace_existing=True
        )
        self.logger.info(
            "Added daily catalog sync job",
            hour=self.config.schedule_hour,
            minute=self.config.schedule_minute,
            timezone=self.config.timezone
        )

    def _add_test_scheduled_jobs(self) -> None:
        """Add the sync job on a short interval for testing purposes."""
        self.scheduler.add_job(
            func=self.run_sync,
            trigger='interval',
            minutes=self.config.test_interval_minutes,
            id=f"test_{SYNC_JOB_ID}",
            name=f'Test Catalog Sync ({self.config.test_interval_minutes}min)',
            max_instances=1,
            coalesce=True,
            replace_existing=True
        )
        self.logger.info("Added test catalog sync job", minutes=self.config.test_interval_minutes)
