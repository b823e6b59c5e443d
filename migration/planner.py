"""
Checkpoint planning: partition a source table's ID space into ranges
"""

from typing import List, Optional, Tuple
import logging

from migration.checkpoint_store import CheckpointStore
from migration.profiles import TableProfile
from schemas.migration import TableStats

logger = logging.getLogger(__name__)


def partition_id_range(min_id: int, max_id: int, size: int) -> List[Tuple[int, int]]:
    """
    Contiguous inclusive windows of width ``size`` covering ``[min_id, max_id]``.

    The last window may be narrower.

    >>> partition_id_range(1, 35, 20)
    [(1, 20), (21, 35)]
    """
    if size <= 0:
        raise ValueError("size must be positive")

    ranges = []
    start = min_id
    while start <= max_id:
        end = min(start + size - 1, max_id)
        ranges.append((start, end))
        start = end + 1
    return ranges


class CheckpointPlanner:
    """
    Materializes checkpoints for one table, once per migration attempt.

    With resume mode on, existing checkpoints are the resume state and are
    left untouched. With resume mode off they are deleted and the table is
    replanned from scratch.
    """

    def __init__(self, source, store: CheckpointStore, checkpoint_size: int):
        self.source = source
        self.store = store
        self.checkpoint_size = checkpoint_size

    async def plan(self, profile: TableProfile, resume_mode: bool, stats: Optional[TableStats] = None) -> int:
        """
        Ensure checkpoints exist for ``profile``.

        Args:
            profile: Table to plan
            resume_mode: Keep existing checkpoints (True) or replan (False)
            stats: Source statistics, queried when not given

        Returns:
            Number of checkpoints created (0 when resuming or when the table is empty)
        """
        table_name = profile.name
        if stats is None:
            stats = await self.source.table_stats(profile)

        if stats.count == 0:
            logger.warning(f"No records to migrate in {table_name}")
            return 0

        logger.info(f"Initializing checkpoints for {table_name}...")
        await self.store.ensure_schema()

        existing = await self.store.count_existing(table_name)
        if existing > 0:
            if resume_mode:
                logger.info(f"Found {existing} existing checkpoints (resume mode enabled)")
                return 0

            logger.info(f"Clearing {existing} existing checkpoints...")
            await self.store.clear_checkpoints(table_name)

        ranges = partition_id_range(stats.min_id, stats.max_id, self.checkpoint_size)
        logger.info(f"Creating {len(ranges)} checkpoints ({self.checkpoint_size} records each)...")

        for start_id, end_id in ranges:
            await self.store.insert_checkpoint(table_name, start_id, end_id)

        logger.info(f"Created {len(ranges)} checkpoints")
        return len(ranges)
