# ============================================================================
# File: migration/runner.py
# Description: Top-level orchestration of one migration attempt
# ============================================================================
"""
Migration Runner - bootstrap, plan and process one table.

Pipeline phases:
1. Bootstrap - create the destination table if it is missing
2. Analyze - read row count and ID bounds from the source
3. Plan - make sure checkpoints exist (resume or replan)
4. Process - run the checkpoint processor until nothing is eligible
"""

from typing import Optional
import logging

from core.config import Settings
from core.retry import Sleep
from migration.checkpoint_store import CheckpointStore
from migration.gateway import D1Gateway
from migration.planner import CheckpointPlanner
from migration.processor import CheckpointProcessor
from migration.profiles import get_profile
from models.base import CheckpointStatus
from schemas.migration import MigrationSummary

logger = logging.getLogger(__name__)

EXIT_SUCCESS = 0
EXIT_FAILURE = 1
EXIT_VERIFICATION_MISMATCH = 2


class MigrationRunner:
    """
    Wires the planner and processor for the configured table.

    Construction validates the configuration (known table profile,
    possible batch sizing) so that a bad setup fails before any remote
    state is created.
    """

    def __init__(
        self,
        settings: Settings,
        source,
        gateway: D1Gateway,
        sleep: Optional[Sleep] = None
    ):
        self.settings = settings
        self.source = source
        self.gateway = gateway
        self.profile = get_profile(settings.TABLE_NAME)
        self.store = CheckpointStore(gateway)
        self.planner = CheckpointPlanner(source, self.store, settings.CHECKPOINT_SIZE)
        self.processor = CheckpointProcessor(
            source, self.store, gateway, self.profile, settings, sleep=sleep
        )

    def log_configuration(self):
        logger.info("Configuration:")
        logger.info(f"  Table: {self.profile.name}")
        logger.info(f"  Database URL: {self.settings.masked_database_url}")
        logger.info(f"  Checkpoint Size: {self.settings.CHECKPOINT_SIZE} records")
        logger.info(f"  D1 Batch Size: {self.processor.batch_size} rows")
        logger.info(f"  Resume Mode: {'Enabled' if self.settings.RESUME_MODE else 'Disabled'}")
        logger.info(f"  Failure Policy: {self.processor.failure_policy.value}")

    async def run(self) -> MigrationSummary:
        """
        Run one migration attempt.

        Raises:
            CheckpointError: A checkpoint failed under the abort policy
            RemoteError / SourceError: Bootstrap or analysis failed
        """
        self.log_configuration()

        logger.info("Checking D1 schema...")
        await self.gateway.ensure_table_exists(self.profile.name, self.profile.ddl)
        logger.info("D1 schema ready")

        logger.info(f"Analyzing {self.profile.name}...")
        stats = await self.source.table_stats(self.profile)
        logger.info(f"Total records: {stats.count}")
        logger.info(f"ID range: {stats.min_id} - {stats.max_id}")

        if stats.count == 0:
            logger.warning("No records to migrate")
            return MigrationSummary(table_name=self.profile.name, status="empty")

        await self.planner.plan(self.profile, self.settings.RESUME_MODE, stats=stats)

        counts = await self.store.status_counts(self.profile.name)
        logger.info(
            "Checkpoints: " + ", ".join(f"{status}={count}" for status, count in counts.items())
        )
        stuck = counts.get(CheckpointStatus.IN_PROGRESS.value, 0)
        if stuck:
            logger.warning(
                f"{stuck} checkpoints are stuck in in_progress from an interrupted run and "
                f"will not be retried until reset (scripts/reset_stuck_checkpoints.py)"
            )

        return await self.processor.run(source_count=stats.count)


def exit_code_for(summary: MigrationSummary) -> int:
    if summary.status == "failed":
        return EXIT_FAILURE
    if summary.status == "empty":
        return EXIT_SUCCESS
    if not summary.verified:
        return EXIT_VERIFICATION_MISMATCH
    return EXIT_SUCCESS
