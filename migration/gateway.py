"""
Destination gateway for Cloudflare D1 with retry and schema bootstrap.

This module provides the only path to the destination store:
- Parameterized statements over the D1 HTTP query API
- Uniform exponential-backoff retry for transport and application failures
- Create-if-missing bootstrap for tables and their indexes
- Credential checks used by the validation tool and health endpoint

Nothing is cached locally; every call reflects current remote state.
"""

import asyncio
import json
import httpx
from typing import Any, Callable, Dict, List, Optional, Sequence
from core.config import Settings
from core.exceptions import RemoteError
from core.retry import Sleep, call_with_retry
import logging

logger = logging.getLogger(__name__)


class D1Gateway:
    """
    Execute SQL against a D1 database through the Cloudflare REST API.

    Features:
    - Bearer token authentication
    - Retry with exponential backoff (policy taken from settings)
    - Errors surface as RemoteError carrying status and upstream text
    - Missing-table detection for create-if-missing DDL

    Attributes:
        retry_policy: RetryPolicy applied to every request
        query_path: Path of the query endpoint relative to the API base URL
    """

    def __init__(
        self,
        settings: Settings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Optional[Sleep] = None
    ):
        self.settings = settings
        self.retry_policy = settings.retry_policy
        self._sleep = sleep or asyncio.sleep

        self.database_path = (
            f"/accounts/{settings.CLOUDFLARE_ACCOUNT_ID}/d1/database/{settings.D1_DATABASE_ID}"
        )
        self.query_path = f"{self.database_path}/query"

        self._client = httpx.AsyncClient(
            base_url=settings.D1_API_BASE_URL,
            headers={
                "Authorization": f"Bearer {settings.CLOUDFLARE_API_TOKEN}",
                "Content-Type": "application/json"
            },
            timeout=settings.REQUEST_TIMEOUT,
            transport=transport
        )

    async def __aenter__(self) -> "D1Gateway":
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    async def close(self):
        await self._client.aclose()

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    async def _request_once(
        self,
        method: str,
        path: str,
        payload: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """
        Make a single request and validate the Cloudflare envelope.

        Raises:
            RemoteError: On network failure, non-2xx status, a body that is
                not JSON, or ``success: false``
        """
        try:
            response = await self._client.request(method, path, json=payload)
        except httpx.HTTPError as e:
            raise RemoteError(
                f"D1 request failed: {type(e).__name__}: {e}",
                context={"path": path},
                original_exception=e
            )

        if not response.is_success:
            text = response.text
            raise RemoteError(
                f"D1 API HTTP {response.status_code}: {text[:200]}",
                status_code=response.status_code,
                upstream=text[:500],
                context={"path": path}
            )

        try:
            body = response.json()
        except ValueError as e:
            raise RemoteError(
                f"D1 API returned non-JSON response: {response.text[:200]}",
                status_code=response.status_code,
                context={"path": path},
                original_exception=e
            )

        if not isinstance(body, dict):
            raise RemoteError(
                "D1 API returned an unexpected response body",
                status_code=response.status_code,
                upstream=str(body)[:500],
                context={"path": path}
            )

        if not body.get("success"):
            errors = json.dumps(body.get("errors", []))
            raise RemoteError(
                f"D1 API Error: {errors}",
                status_code=response.status_code,
                upstream=errors,
                context={"path": path}
            )

        return body

    async def _request(
        self,
        method: str,
        path: str,
        payload: Optional[Dict[str, Any]] = None,
        description: str = "D1 request",
        expected: Optional[Callable[[BaseException], bool]] = None
    ) -> Dict[str, Any]:
        return await call_with_retry(
            lambda: self._request_once(method, path, payload),
            self.retry_policy,
            retry_on=(RemoteError,),
            sleep=self._sleep,
            description=description,
            expected=expected
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def query(
        self,
        sql: str,
        params: Optional[Sequence[Any]] = None,
        expected: Optional[Callable[[BaseException], bool]] = None
    ) -> Dict[str, Any]:
        """Execute one statement and return the full response envelope."""
        payload = {"sql": sql, "params": list(params or [])}
        return await self._request(
            "POST",
            self.query_path,
            payload,
            description=f"D1 query [{_abbreviate(sql)}]",
            expected=expected
        )

    async def execute(
        self,
        sql: str,
        params: Optional[Sequence[Any]] = None,
        expected: Optional[Callable[[BaseException], bool]] = None
    ) -> List[Dict[str, Any]]:
        """
        Execute one statement and return its result rows.

        Args:
            sql: Statement with ``?`` placeholders
            params: Bound values, at most MAX_SQL_VARIABLES of them
            expected: Predicate for failures that are a normal outcome,
                logged at INFO instead of WARNING/ERROR

        Returns:
            Rows as dictionaries (empty for statements without results)
        """
        body = await self.query(sql, params, expected=expected)
        result = body.get("result") or []
        if not result:
            return []
        return result[0].get("results") or []

    async def ensure_table_exists(self, table_name: str, ddl: Sequence[str]) -> bool:
        """
        Create ``table_name`` from ``ddl`` if a trivial read says it is missing.

        Returns:
            True if the table was created, False if it already existed

        Raises:
            RemoteError: Any failure other than a missing table
        """
        try:
            await self.execute(
                f"SELECT COUNT(*) AS count FROM {table_name} LIMIT 1",
                expected=_is_missing_relation
            )
            return False
        except RemoteError as e:
            if not e.is_missing_relation:
                raise

        logger.info(f"{table_name} not found in D1, creating it...")
        for statement in ddl:
            await self.execute(statement)
        logger.info(f"Created {table_name} table with {len(ddl) - 1} indexes")
        return True

    async def count_rows(self, table_name: str) -> int:
        rows = await self.execute(f"SELECT COUNT(*) AS count FROM {table_name}")
        return int(rows[0]["count"]) if rows else 0

    async def delete_all(self, table_name: str):
        await self.execute(f"DELETE FROM {table_name}")

    async def ping(self) -> bool:
        rows = await self.execute("SELECT 1 AS ok")
        return bool(rows) and rows[0].get("ok") == 1

    # ------------------------------------------------------------------
    # Credentials
    # ------------------------------------------------------------------

    async def verify_token(self) -> Dict[str, Any]:
        """Token details from Cloudflare's token verification endpoint."""
        body = await self._request("GET", "/user/tokens/verify", description="Token verification")
        return body.get("result") or {}

    async def get_database(self) -> Dict[str, Any]:
        """Metadata (name, version, ...) of the configured D1 database."""
        body = await self._request("GET", self.database_path, description="D1 database lookup")
        return body.get("result") or {}


def _abbreviate(sql: str, limit: int = 60) -> str:
    flat = " ".join(sql.split())
    return flat if len(flat) <= limit else flat[:limit] + "..."


def _is_missing_relation(error: BaseException) -> bool:
    return isinstance(error, RemoteError) and error.is_missing_relation
