"""
Source database engine creation with SQLAlchemy async
"""

from sqlalchemy.ext.asyncio import create_async_engine, AsyncEngine
from sqlalchemy.pool import NullPool
from core.config import Settings
import logging

logger = logging.getLogger(__name__)


def create_source_engine(settings: Settings) -> AsyncEngine:
    """
    Create the engine for the read-only source database.

    NullPool: the migration holds a single long-lived connection and
    reconnects itself when it goes stale.
    """
    logger.debug(f"Creating source engine for {settings.masked_database_url}")
    return create_async_engine(
        settings.DATABASE_URL,
        echo=False,
        poolclass=NullPool,
        connect_args={"server_settings": {"application_name": "d1-migrate"}},
    )
