import asyncio
import logging
import sys
import os

# Add current directory to path to allow imports from core, migration, etc.
sys.path.append(os.getcwd())

from core.config import load_settings
from core.exceptions import MigrationException
from core.logging import setup_logging
from migration.checkpoint_store import CheckpointStore
from migration.gateway import D1Gateway
from migration.profiles import get_profile

logger = logging.getLogger(__name__)


async def reset_stuck(settings) -> int:
    """Return in_progress checkpoints of TABLE_NAME to pending"""
    table_name = get_profile(settings.TABLE_NAME).name
    async with D1Gateway(settings) as gateway:
        reset = await CheckpointStore(gateway).reset_in_progress(table_name)

    if reset:
        logger.info(f"Reset {reset} checkpoints of {table_name}; they will be retried on the next run")
    else:
        logger.info(f"No checkpoints of {table_name} are stuck in in_progress")
    return reset


def main() -> int:
    try:
        settings = load_settings()
        setup_logging(settings)
        asyncio.run(reset_stuck(settings))
    except MigrationException as e:
        logging.getLogger(__name__).error(f"Reset failed: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
