"""
Delete all migrated rows and checkpoints of the configured table from D1.

This cannot be undone. Run with --yes to confirm.
"""

import argparse
import asyncio
import logging
import sys
import os

# Add current directory to path to allow imports from core, migration, etc.
sys.path.append(os.getcwd())

from core.config import Settings, load_settings
from core.exceptions import MigrationException, RemoteError
from core.logging import setup_logging
from migration.checkpoint_store import CheckpointStore
from migration.gateway import D1Gateway
from migration.profiles import get_profile
from models.checkpoint import CHECKPOINT_TABLE

logger = logging.getLogger(__name__)


async def _count_or_none(action):
    """Run a count, returning None when the table does not exist"""
    try:
        return await action()
    except RemoteError as e:
        if e.is_missing_relation:
            return None
        raise


async def cleanup(settings: Settings) -> bool:
    """
    Delete data and checkpoints for TABLE_NAME.

    Returns:
        True if both the table and its checkpoints are empty afterwards
    """
    table_name = get_profile(settings.TABLE_NAME).name

    async with D1Gateway(settings) as gateway:
        store = CheckpointStore(gateway)

        logger.info(f"Checking current data in {table_name}...")
        current = await _count_or_none(lambda: gateway.count_rows(table_name))
        if current is None:
            logger.info(f"Table {table_name} does not exist yet")
        else:
            logger.info(f"Current records: {current}")

        logger.info("Checking migration checkpoints...")
        counts = await _count_or_none(lambda: store.status_counts(table_name))
        if counts is None:
            logger.info(f"No {CHECKPOINT_TABLE} table found")
        else:
            logger.info(f"Current checkpoints: {sum(counts.values())} (completed: {counts['completed']})")

        if current is not None:
            logger.warning(f"Deleting all data from {table_name}...")
            await gateway.delete_all(table_name)
            logger.info(f"Deleted all records from {table_name}")

        if counts is not None:
            logger.warning(f"Deleting all checkpoints for {table_name}...")
            await store.clear_checkpoints(table_name)
            logger.info(f"Deleted all checkpoints for {table_name}")

        logger.info("Verifying cleanup...")
        remaining_rows = await _count_or_none(lambda: gateway.count_rows(table_name))
        remaining_checkpoints = await _count_or_none(lambda: store.count_existing(table_name))

    clean = not remaining_rows and not remaining_checkpoints
    if clean:
        logger.info("Cleanup completed successfully! You can now run the migration from scratch.")
    else:
        logger.warning(
            f"Cleanup incomplete: {remaining_rows} rows and "
            f"{remaining_checkpoints} checkpoints remain"
        )
    return clean


def parse_args():
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--yes",
        action="store_true",
        help="Confirm deletion of all data and checkpoints for TABLE_NAME",
    )
    return parser.parse_args()


def main() -> int:
    args = parse_args()
    try:
        settings = load_settings()
        setup_logging(settings)
        if not args.yes:
            logger.error(
                f"This will DELETE all data and checkpoints of {settings.TABLE_NAME}. "
                f"Re-run with --yes to proceed."
            )
            return 1
        return 0 if asyncio.run(cleanup(settings)) else 1
    except MigrationException as e:
        logging.getLogger(__name__).error(f"Cleanup failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
