"""
Checkpoint processor: fetch -> transform -> batch -> insert, one range at a time.

This module drives the checkpoint state machine:
- pending/failed -> in_progress, persisted before the fetch starts
- in_progress -> completed once every sub-batch of the range is inserted
- in_progress -> failed on any error, with the error text recorded

Processing is strictly sequential. A range is always reprocessed from its
start_id, so sub-batches inserted before a failure are inserted again on
the next attempt (the destination does not enforce uniqueness).
"""

import asyncio
from typing import Optional
import logging

from core.config import Settings
from core.exceptions import CheckpointError, InvalidTransitionError, MigrationException
from core.retry import Sleep
from migration.batching import chunked, resolve_batch_size
from migration.checkpoint_store import CheckpointStore
from migration.gateway import D1Gateway
from migration.profiles import TableProfile
from models.base import CheckpointStatus, FailurePolicy, can_transition
from schemas.migration import (
    Checkpoint,
    CheckpointFailure,
    MigrationSummary,
    VerificationResult,
)

logger = logging.getLogger(__name__)


class CheckpointProcessor:
    """
    Processes the eligible checkpoints of one table.

    Responsibilities:
    - Claim each checkpoint before touching its rows
    - Insert rows in ID order in sub-batches under the parameter ceiling
    - Pace inserts and keep the source connection alive
    - Record the outcome of every checkpoint it claims
    - Verify destination vs source row counts once nothing is left
    """

    def __init__(
        self,
        source,
        store: CheckpointStore,
        gateway: D1Gateway,
        profile: TableProfile,
        settings: Settings,
        sleep: Optional[Sleep] = None
    ):
        self.source = source
        self.store = store
        self.gateway = gateway
        self.profile = profile
        self.batch_size = resolve_batch_size(
            profile.column_count,
            settings.MAX_SQL_VARIABLES,
            settings.BATCH_SIZE
        )
        self.inter_batch_delay = settings.INTER_BATCH_DELAY
        self.keepalive_interval = settings.KEEPALIVE_INTERVAL_BATCHES
        self.failure_policy = FailurePolicy(settings.FAILURE_POLICY)
        self._sleep = sleep or asyncio.sleep

    async def _transition(
        self,
        checkpoint: Checkpoint,
        target: CheckpointStatus,
        records_processed: int,
        error_message: Optional[str] = None
    ) -> Checkpoint:
        """Persist a status change and return the updated working copy."""
        if not can_transition(checkpoint.status, target):
            raise InvalidTransitionError(
                f"Cannot move {checkpoint.label} from {checkpoint.status.value} to {target.value}",
                checkpoint_id=checkpoint.id,
                start_id=checkpoint.start_id,
                end_id=checkpoint.end_id
            )

        stamp = await self.store.update_status(checkpoint.id, target, records_processed, error_message)

        updates = {
            "status": target,
            "records_processed": records_processed,
            "error_message": error_message,
        }
        if target == CheckpointStatus.IN_PROGRESS:
            updates["started_at"] = stamp
        else:
            updates["completed_at"] = stamp
        return checkpoint.model_copy(update=updates)

    async def process_checkpoint(self, checkpoint: Checkpoint) -> Checkpoint:
        """
        Migrate the rows of one checkpoint.

        Returns:
            The completed checkpoint

        Raises:
            CheckpointError: The checkpoint could not be claimed, or it was
                claimed and then failed (it is marked failed first)
        """
        logger.info(
            f"Checkpoint {checkpoint.id}: Processing ID range "
            f"{checkpoint.start_id}-{checkpoint.end_id} (up to {checkpoint.width} records)"
        )

        try:
            working = await self._transition(checkpoint, CheckpointStatus.IN_PROGRESS, 0)
        except InvalidTransitionError:
            raise
        except MigrationException as e:
            raise CheckpointError(
                f"Could not claim {checkpoint.label}: {e.message}",
                checkpoint_id=checkpoint.id,
                start_id=checkpoint.start_id,
                end_id=checkpoint.end_id,
                context={"table_name": checkpoint.table_name},
                original_exception=e
            )

        inserted = 0
        try:
            await self.source.ensure_alive()

            rows = await self.source.query_range(self.profile, working.start_id, working.end_id)
            logger.info(f"Fetched {len(rows)} records")

            if not rows:
                logger.info("No records in this range, marking as completed")
                return await self._transition(working, CheckpointStatus.COMPLETED, 0)

            transformed = [self.profile.transform(row) for row in rows]
            batches = list(chunked(transformed, self.batch_size))

            for index, batch in enumerate(batches, start=1):
                sql, params = self.profile.build_insert(batch)
                await self.gateway.execute(sql, params)
                inserted += len(batch)

                progress = inserted / len(transformed) * 100
                logger.info(
                    f"Batch {index}/{len(batches)}: Inserted {len(batch)} records "
                    f"({progress:.1f}% of checkpoint)"
                )

                if index % self.keepalive_interval == 0:
                    await self.source.keepalive()

                if index < len(batches):
                    await self._sleep(self.inter_batch_delay)

            completed = await self._transition(working, CheckpointStatus.COMPLETED, inserted)

        except Exception as e:
            message = str(e)
            logger.error(f"{working.label} failed: {message}")

            try:
                await self._transition(working, CheckpointStatus.FAILED, inserted, message)
            except MigrationException as mark_error:
                logger.error(f"Could not record failure of {working.label}: {mark_error}")

            if inserted:
                logger.warning(
                    f"{inserted} rows of {working.label} were inserted before the failure; "
                    f"they will be inserted again when the range is retried"
                )

            raise CheckpointError(
                f"{working.label} failed: {message}",
                checkpoint_id=working.id,
                start_id=working.start_id,
                end_id=working.end_id,
                context={"table_name": working.table_name, "records_inserted": inserted},
                original_exception=e
            )

        logger.info(f"Checkpoint {completed.id} completed ({inserted} records)")
        return completed

    async def verify(self, source_count: Optional[int] = None) -> VerificationResult:
        """Compare destination row count to the source row count."""
        logger.info("Verifying migration...")
        if source_count is None:
            source_count = (await self.source.table_stats(self.profile)).count

        destination_count = await self.gateway.count_rows(self.profile.name)
        result = VerificationResult(source_count=source_count, destination_count=destination_count)

        logger.info(f"PostgreSQL records: {source_count}")
        logger.info(f"D1 records: {destination_count}")

        if result.matched:
            logger.info("Migration verified successfully!")
        else:
            logger.warning(
                f"Count mismatch! Source has {source_count} records, destination has "
                f"{destination_count} (difference: {result.missing})"
            )
        return result

    async def run(self, source_count: Optional[int] = None) -> MigrationSummary:
        """
        Process every eligible checkpoint in start_id order.

        With the abort policy the first CheckpointError ends the run and
        propagates. With the continue policy failed checkpoints are skipped
        and collected in the summary.
        """
        table_name = self.profile.name
        eligible = await self.store.list_eligible(table_name)
        last_completed = await self.store.last_completed(table_name)

        logger.info("Migration Status:")
        if last_completed:
            logger.info(f"Last completed: ID {last_completed.start_id}-{last_completed.end_id}")
        logger.info(f"Pending checkpoints: {len(eligible)}")

        if not eligible:
            logger.info("All checkpoints already completed!")
            verification = await self.verify(source_count)
            return MigrationSummary(
                table_name=table_name,
                status="already_completed",
                verification=verification
            )

        logger.info(f"Processing {len(eligible)} checkpoints...")
        total_processed = 0
        checkpoints_processed = 0
        failures = []

        for position, checkpoint in enumerate(eligible, start=1):
            progress = position / len(eligible) * 100
            logger.info(f"[{position}/{len(eligible)}] ({progress:.1f}% of remaining)")

            try:
                completed = await self.process_checkpoint(checkpoint)
            except CheckpointError as e:
                failures.append(CheckpointFailure(
                    checkpoint_id=checkpoint.id,
                    start_id=checkpoint.start_id,
                    end_id=checkpoint.end_id,
                    error_message=str(e.original_exception or e.message)
                ))
                if self.failure_policy == FailurePolicy.ABORT:
                    e.context["records_processed_this_run"] = total_processed
                    raise
                continue

            total_processed += completed.records_processed
            checkpoints_processed += 1

        logger.info(f"Processed in this run: {total_processed}")

        if failures:
            logger.error(
                f"{len(failures)} checkpoints failed: "
                + ", ".join(f"{f.checkpoint_id} ({f.start_id}-{f.end_id})" for f in failures)
            )
            return MigrationSummary(
                table_name=table_name,
                status="failed",
                checkpoints_processed=checkpoints_processed,
                total_processed=total_processed,
                failures=failures
            )

        verification = await self.verify(source_count)
        return MigrationSummary(
            table_name=table_name,
            status="completed",
            checkpoints_processed=checkpoints_processed,
            total_processed=total_processed,
            verification=verification
        )
