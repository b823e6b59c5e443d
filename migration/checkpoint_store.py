"""
Checkpoint persistence on the destination, reached through the gateway
"""

from datetime import datetime, timezone
from typing import Dict, List, Optional
import logging

from migration.gateway import D1Gateway
from models.base import CheckpointStatus, ELIGIBLE_STATUSES
from models.checkpoint import CHECKPOINT_TABLE, CHECKPOINT_DDL
from schemas.migration import Checkpoint

logger = logging.getLogger(__name__)


def utc_now_iso() -> str:
    now = datetime.now(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S") + f".{now.microsecond // 1000:03d}Z"


class CheckpointStore:
    """
    Owns checkpoint identity and persistence.

    Responsibilities:
    - Create-if-missing for the checkpoint table and its indexes
    - Appending, counting, listing and clearing checkpoints per table
    - Status updates with started_at / completed_at stamping
    """

    def __init__(self, gateway: D1Gateway):
        self.gateway = gateway

    async def ensure_schema(self) -> bool:
        return await self.gateway.ensure_table_exists(CHECKPOINT_TABLE, CHECKPOINT_DDL)

    async def insert_checkpoint(self, table_name: str, start_id: int, end_id: int):
        await self.gateway.execute(
            f"INSERT INTO {CHECKPOINT_TABLE} (table_name, start_id, end_id, status) "
            f"VALUES (?, ?, ?, 'pending')",
            [table_name, start_id, end_id]
        )

    async def count_existing(self, table_name: str) -> int:
        rows = await self.gateway.execute(
            f"SELECT COUNT(*) AS count FROM {CHECKPOINT_TABLE} WHERE table_name = ?",
            [table_name]
        )
        return int(rows[0]["count"]) if rows else 0

    async def clear_checkpoints(self, table_name: str):
        """Delete every checkpoint of ``table_name``. Irreversible."""
        await self.gateway.execute(
            f"DELETE FROM {CHECKPOINT_TABLE} WHERE table_name = ?",
            [table_name]
        )

    async def list_eligible(self, table_name: str) -> List[Checkpoint]:
        """Pending and failed checkpoints, lowest ID range first."""
        placeholders = ", ".join("?" for _ in ELIGIBLE_STATUSES)
        rows = await self.gateway.execute(
            f"SELECT * FROM {CHECKPOINT_TABLE} "
            f"WHERE table_name = ? AND status IN ({placeholders}) "
            f"ORDER BY start_id",
            [table_name, *[status.value for status in ELIGIBLE_STATUSES]]
        )
        return [Checkpoint.model_validate(row) for row in rows]

    async def list_by_status(self, table_name: str, status: CheckpointStatus) -> List[Checkpoint]:
        rows = await self.gateway.execute(
            f"SELECT * FROM {CHECKPOINT_TABLE} WHERE table_name = ? AND status = ? ORDER BY start_id",
            [table_name, status.value]
        )
        return [Checkpoint.model_validate(row) for row in rows]

    async def last_completed(self, table_name: str) -> Optional[Checkpoint]:
        """Completed checkpoint with the highest end_id (informational only)."""
        rows = await self.gateway.execute(
            f"SELECT * FROM {CHECKPOINT_TABLE} "
            f"WHERE table_name = ? AND status = 'completed' "
            f"ORDER BY end_id DESC LIMIT 1",
            [table_name]
        )
        return Checkpoint.model_validate(rows[0]) if rows else None

    async def update_status(
        self,
        checkpoint_id: int,
        status: CheckpointStatus,
        records_processed: int,
        error_message: Optional[str] = None
    ) -> str:
        """
        Set status, processed count and error text of one checkpoint.

        Moving to in_progress stamps started_at; completed and failed stamp
        completed_at.

        Returns:
            The timestamp that was written
        """
        status = CheckpointStatus(status)
        field = "started_at" if status == CheckpointStatus.IN_PROGRESS else "completed_at"
        now = utc_now_iso()

        await self.gateway.execute(
            f"UPDATE {CHECKPOINT_TABLE} "
            f"SET status = ?, records_processed = ?, error_message = ?, {field} = ? "
            f"WHERE id = ?",
            [status.value, records_processed, error_message, now, checkpoint_id]
        )
        return now

    async def status_counts(self, table_name: str) -> Dict[str, int]:
        rows = await self.gateway.execute(
            f"SELECT status, COUNT(*) AS count "
            f"FROM {CHECKPOINT_TABLE} WHERE table_name = ? GROUP BY status",
            [table_name]
        )
        counts = {status.value: 0 for status in CheckpointStatus}
        for row in rows:
            counts[row["status"]] = int(row["count"])
        return counts

    async def records_completed(self, table_name: str) -> int:
        rows = await self.gateway.execute(
            f"SELECT COALESCE(SUM(records_processed), 0) AS records FROM {CHECKPOINT_TABLE} "
            f"WHERE table_name = ? AND status = 'completed'",
            [table_name]
        )
        return int(rows[0]["records"]) if rows else 0

    async def reset_in_progress(self, table_name: str) -> int:
        """
        Put checkpoints stuck in in_progress (process killed mid-range) back
        to pending. This is the manual recovery path, outside the normal
        state machine.

        Returns:
            Number of checkpoints reset
        """
        stuck = await self.list_by_status(table_name, CheckpointStatus.IN_PROGRESS)
        if not stuck:
            return 0

        await self.gateway.execute(
            f"UPDATE {CHECKPOINT_TABLE} "
            f"SET status = 'pending', records_processed = 0, error_message = NULL, started_at = NULL "
            f"WHERE table_name = ? AND status = 'in_progress'",
            [table_name]
        )
        for checkpoint in stuck:
            logger.warning(f"Reset {checkpoint.label} from in_progress to pending")
        return len(stuck)
