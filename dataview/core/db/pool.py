"""
Process-scoped PostgreSQL connection pool.

``Database`` owns one asyncpg pool for the life of the process: it is opened
by the application lifespan, injected into request handlers through
``app.state`` and closed on shutdown. Every helper acquires a connection for
exactly one statement and releases it on completion or error.

Driver failures are re-raised as ``ExecutionError`` carrying the driver's
message only; the DSN never appears in an error or a log line. A statement
that exceeds the driver's command timeout becomes ``QueryTimeoutError``.
"""
from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Dict, List, Optional, Sequence

import asyncpg

from dataview.core.errors import ExecutionError, QueryTimeoutError
from dataview.core.observability.metrics import QUERY_DURATION_SECONDS, QUERY_ERRORS_TOTAL

log = logging.getLogger("dataview.db")

Row = Dict[str, Any]

# asyncio.TimeoutError is an OSError subclass on 3.11+; match it first.
_TIMEOUT_ERRORS = (asyncio.TimeoutError, TimeoutError)
_DRIVER_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError)
_CONNECT_ERRORS = _TIMEOUT_ERRORS + _DRIVER_ERRORS


class Database:
    def __init__(
        self,
        dsn: str,
        *,
        min_size: int = 1,
        max_size: int = 10,
        command_timeout: Optional[float] = None,
    ):
        self._dsn = dsn
        self._min_size = min_size
        self._max_size = max_size
        self._command_timeout = command_timeout
        self._pool: Optional[asyncpg.Pool] = None
        self._connect_lock = asyncio.Lock()
        self._closed = False

    @property
    def is_connected(self) -> bool:
        return self._pool is not None

    async def connect(self) -> None:
        async with self._connect_lock:
            if self._pool is not None:
                return
            try:
                self._pool = await asyncpg.create_pool(
                    dsn=self._dsn,
                    min_size=self._min_size,
                    max_size=self._max_size,
                    command_timeout=self._command_timeout,
                )
            except _CONNECT_ERRORS as e:
                raise ExecutionError("Database connection failed", details=str(e) or type(e).__name__) from e
            self._closed = False
            log.info("Database pool ready min_size=%s max_size=%s", self._min_size, self._max_size)

    async def close(self) -> None:
        self._closed = True
        pool, self._pool = self._pool, None
        if pool is not None:
            await pool.close()
            log.info("Database pool closed")

    async def _require_pool(self) -> asyncpg.Pool:
        """
        Return the pool, opening it on first use.

        A pool that failed to open at startup is retried here so the service
        recovers once the database is reachable again. A closed Database
        stays closed.
        """
        if self._pool is None:
            if self._closed:
                raise ExecutionError("Database is not connected")
            await self.connect()
        return self._pool

    async def fetch(self, sql: str, params: Sequence[Any] = (), *, kind: str = "query") -> List[Row]:
        pool = await self._require_pool()
        start = time.perf_counter()
        try:
            async with pool.acquire() as conn:
                records = await conn.fetch(sql, *params)
        except _TIMEOUT_ERRORS as e:
            QUERY_ERRORS_TOTAL.labels(kind=kind).inc()
            log.warning("Statement timed out kind=%s", kind)
            raise QueryTimeoutError("Query timed out", details=f"kind={kind}") from e
        except _DRIVER_ERRORS as e:
            QUERY_ERRORS_TOTAL.labels(kind=kind).inc()
            log.warning("Statement failed kind=%s error=%s", kind, e)
            raise ExecutionError("Query failed", details=str(e)) from e
        finally:
            QUERY_DURATION_SECONDS.labels(kind=kind).observe(time.perf_counter() - start)
        return [dict(r) for r in records]

    async def fetchrow(self, sql: str, params: Sequence[Any] = (), *, kind: str = "query") -> Optional[Row]:
        rows = await self.fetch(sql, params, kind=kind)
        return rows[0] if rows else None

    async def ping(self) -> bool:
        try:
            row = await self.fetchrow("SELECT 1 AS ok", kind="ping")
        except ExecutionError:
            return False
        return bool(row and row.get("ok") == 1)
