"""
Read-only row source over PostgreSQL with transparent reconnect
"""

from typing import Any, Dict, List, Optional
from sqlalchemy import select, func, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine
import logging

from core.exceptions import SourceConnectionError, SourceError
from migration.profiles import TableProfile
from schemas.migration import TableStats

logger = logging.getLogger(__name__)


class PostgresSource:
    """
    Row source for one migration process.

    Holds a single autocommit connection for the whole run. The processor
    probes it before each checkpoint (``ensure_alive``) and periodically
    while inserting (``keepalive``); a dead connection is replaced.
    """

    def __init__(self, engine: AsyncEngine):
        self.engine = engine
        self._conn: Optional[AsyncConnection] = None

    async def __aenter__(self) -> "PostgresSource":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    async def connect(self):
        if self._conn is not None and not self._conn.closed:
            return
        try:
            conn = await self.engine.connect()
            self._conn = await conn.execution_options(isolation_level="AUTOCOMMIT")
        except (SQLAlchemyError, OSError) as e:
            self._conn = None
            raise SourceConnectionError(
                "Could not connect to PostgreSQL",
                original_exception=e
            )

    async def close(self):
        if self._conn is None:
            return
        try:
            await self._conn.close()
        finally:
            self._conn = None

    async def _connection(self) -> AsyncConnection:
        if self._conn is None or self._conn.closed:
            await self.connect()
        return self._conn

    async def ping(self):
        conn = await self._connection()
        await conn.execute(text("SELECT 1"))

    async def ensure_alive(self):
        """Probe the connection and reconnect once if it is dead."""
        try:
            await self.ping()
            return
        except (SQLAlchemyError, OSError) as e:
            logger.warning(f"PostgreSQL connection lost ({type(e).__name__}), reconnecting...")

        if self._conn is not None:
            try:
                await self._conn.invalidate()
            except (SQLAlchemyError, OSError):
                logger.debug("Invalidating dead connection failed", exc_info=True)
            self._conn = None

        await self.connect()
        logger.info("Reconnected to PostgreSQL")

    async def keepalive(self):
        """Best-effort ping; failures are left for the next ensure_alive."""
        try:
            await self.ping()
        except (SQLAlchemyError, OSError, SourceConnectionError) as e:
            logger.debug(f"Keepalive ping failed: {e}")

    async def table_stats(self, profile: TableProfile) -> TableStats:
        table = profile.source_table
        stmt = select(
            func.count().label("count"),
            func.min(table.c.id).label("min_id"),
            func.max(table.c.id).label("max_id"),
        ).select_from(table)

        try:
            conn = await self._connection()
            row = (await conn.execute(stmt)).mappings().one()
        except SQLAlchemyError as e:
            raise SourceError(
                f"Failed to read statistics of {profile.name}",
                context={"table_name": profile.name},
                original_exception=e
            )

        return TableStats(
            count=int(row["count"]),
            min_id=int(row["min_id"]) if row["min_id"] is not None else None,
            max_id=int(row["max_id"]) if row["max_id"] is not None else None,
        )

    async def query_range(self, profile: TableProfile, start_id: int, end_id: int) -> List[Dict[str, Any]]:
        """Rows with ``start_id <= id <= end_id``, ordered by id."""
        table = profile.source_table
        stmt = (
            select(*[table.c[name] for name in profile.source_columns])
            .where(table.c.id.between(start_id, end_id))
            .order_by(table.c.id)
        )

        try:
            conn = await self._connection()
            result = await conn.execute(stmt)
            return [dict(row) for row in result.mappings().all()]
        except SQLAlchemyError as e:
            raise SourceError(
                f"Failed to fetch {profile.name} rows {start_id}-{end_id}",
                context={"table_name": profile.name, "start_id": start_id, "end_id": end_id},
                original_exception=e
            )
