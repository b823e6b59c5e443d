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
from migration.profiles import PROFILES

logger = logging.getLogger(__name__)


async def setup_schema(settings) -> int:
    """Create every known table and the checkpoint table in D1 if missing"""
    async with D1Gateway(settings) as gateway:
        created = 0
        for profile in PROFILES.values():
            logger.info(f"Checking {profile.name}...")
            if await gateway.ensure_table_exists(profile.name, profile.ddl):
                created += 1
            else:
                logger.info(f"{profile.name} already exists")

        if await CheckpointStore(gateway).ensure_schema():
            created += 1

    logger.info(f"Schema setup completed ({created} tables created)")
    return created


def main() -> int:
    try:
        settings = load_settings()
        setup_logging(settings)
        asyncio.run(setup_schema(settings))
    except MigrationException as e:
        logging.getLogger(__name__).error(f"Error setting up schema: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
