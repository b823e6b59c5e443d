import logging
from datetime import datetime, timezone
from typing import Optional
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from core.config import Settings
from core.database import create_source_engine
from migration.gateway import D1Gateway
from migration.runner import MigrationRunner
from migration.source import PostgresSource
from schemas.migration import MigrationSummary

logger = logging.getLogger(__name__)


class MigrationScheduler:
    """
    Re-invokes the migration on an interval until the table is verified.

    Every run resumes from the checkpoint table, so a run that failed is
    simply picked up by the next one. max_instances=1 keeps two runs from
    claiming the same checkpoints.
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self.scheduler = AsyncIOScheduler()
        self.job_id = f"migrate_{settings.TABLE_NAME}"
        self.last_summary: Optional[MigrationSummary] = None

    async def run_migration_job(self) -> Optional[MigrationSummary]:
        """Job to run one migration attempt"""
        logger.info(f"Scheduler: Starting migration job for {self.settings.TABLE_NAME}")
        engine = create_source_engine(self.settings)
        try:
            async with D1Gateway(self.settings) as gateway, PostgresSource(engine) as source:
                runner = MigrationRunner(self.settings, source, gateway)
                summary = await runner.run()
        except Exception as e:
            logger.error(f"Scheduler: Migration job failed - {e}")
            return None
        finally:
            await engine.dispose()

        self.last_summary = summary
        if summary.status == "empty" or summary.verified:
            logger.info(f"Scheduler: {self.settings.TABLE_NAME} fully migrated, stopping job")
            self.finish()
        return summary

    def start(self):
        """Start the scheduler, with the first run due immediately"""
        self.scheduler.add_job(
            self.run_migration_job,
            trigger=IntervalTrigger(minutes=self.settings.SCHEDULE_INTERVAL_MINUTES),
            id=self.job_id,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
            next_run_time=datetime.now(timezone.utc)
        )
        self.scheduler.start()
        logger.info("Migration Scheduler started")

    def finish(self):
        if self.scheduler.get_job(self.job_id) is not None:
            self.scheduler.remove_job(self.job_id)

    def stop(self):
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
        logger.info("Migration Scheduler stopped")
