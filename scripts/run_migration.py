"""
Script to run the resumable migration for the configured table.

Exit codes:
    0 - migrated and verified (or nothing to migrate)
    1 - configuration error or a failed checkpoint
    2 - all checkpoints completed but row counts do not match
"""

import asyncio
import sys
import os
import logging

# Add current directory to path to allow imports from core, migration, etc.
sys.path.append(os.getcwd())

from core.config import Settings, load_settings
from core.database import create_source_engine
from core.exceptions import ConfigurationError, MigrationException
from core.logging import setup_logging
from migration.gateway import D1Gateway
from migration.runner import EXIT_FAILURE, MigrationRunner, exit_code_for
from migration.source import PostgresSource

logger = logging.getLogger(__name__)


async def run_migration(settings: Settings) -> int:
    """Run one migration attempt and map its outcome to an exit code"""

    logger.info("Starting resumable migration from PostgreSQL to Cloudflare D1")
    engine = create_source_engine(settings)

    try:
        async with D1Gateway(settings) as gateway:
            runner = MigrationRunner(settings, PostgresSource(engine), gateway)

            logger.info("Connecting to PostgreSQL...")
            async with runner.source:
                logger.info("Connected to PostgreSQL")
                summary = await runner.run()

        logger.info(
            f"Migration finished for {summary.table_name}: status={summary.status}, "
            f"checkpoints={summary.checkpoints_processed}, records={summary.total_processed}"
        )
        return exit_code_for(summary)

    except MigrationException as e:
        logger.error(f"Migration failed: {e}", extra={"error_context": e.to_dict()})
        logger.info("You can resume this migration by running the same command again.")
        return EXIT_FAILURE
    finally:
        await engine.dispose()
        logger.info("Disconnected from PostgreSQL")


def main() -> int:
    try:
        settings = load_settings()
    except ConfigurationError as e:
        logging.basicConfig(level=logging.ERROR)
        logger.error(str(e))
        return EXIT_FAILURE

    setup_logging(settings)
    return asyncio.run(run_migration(settings))


if __name__ == "__main__":
    sys.exit(main())
