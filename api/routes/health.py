"""
Health check endpoint with destination and source connectivity
"""

from fastapi import APIRouter, Depends
from api.dependencies import get_gateway, get_settings, get_source
from core.config import Settings
from core.exceptions import MigrationException
from migration.gateway import D1Gateway
from migration.source import PostgresSource
from schemas.api import HealthCheckResponse, overall_status
import logging

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Health"])


@router.get("/health", response_model=HealthCheckResponse)
async def health_check(
    settings: Settings = Depends(get_settings),
    gateway: D1Gateway = Depends(get_gateway),
    source: PostgresSource = Depends(get_source)
):
    """
    Health check endpoint.

    Returns:
    - D1 reachability (trivial query)
    - PostgreSQL reachability (SELECT 1, reconnecting if needed)
    """
    destination_connected = False
    try:
        destination_connected = await gateway.ping()
    except MigrationException as e:
        logger.error(f"D1 connection failed: {e}")

    source_connected = False
    try:
        await source.ensure_alive()
        source_connected = True
    except MigrationException as e:
        logger.error(f"PostgreSQL connection failed: {e}")

    return HealthCheckResponse(
        status=overall_status(destination_connected, source_connected),
        table_name=settings.TABLE_NAME,
        destination_connected=destination_connected,
        source_connected=source_connected
    )
