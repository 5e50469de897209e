"""
Catalog reader and identifier allow-list.

Identifiers (table and column names) cannot be bound as statement
parameters, so every one that ends up in SQL text must first pass through
``require_table`` / ``require_column``. A name is accepted only if it is a
plain identifier and the live catalog knows it; the accepted name is then
quoted with ``quote_ident`` by the builders.

Column listings are cached per table for ``ttl_seconds``; on a failed
refresh a stale entry is served rather than failing the request.
"""
from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass
from typing import Dict, List, Optional, Protocol, Sequence, Tuple, Any

from dataview.core.errors import ExecutionError, NotFoundError, ValidationError

log = logging.getLogger("dataview.catalog")

IDENT_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
MAX_IDENT_LEN = 63

TABLES_SQL = """
    SELECT table_name
    FROM information_schema.tables
    WHERE table_schema = $1
      AND table_type IN ('BASE TABLE', 'VIEW')
    ORDER BY table_name
"""

COLUMNS_SQL = """
    SELECT column_name, data_type
    FROM information_schema.columns
    WHERE table_schema = $1 AND table_name = $2
    ORDER BY ordinal_position
"""


class Fetcher(Protocol):
    async def fetch(self, sql: str, params: Sequence[Any] = (), *, kind: str = "query") -> List[Dict[str, Any]]:
        ...


@dataclass(frozen=True)
class ColumnInfo:
    column_name: str
    data_type: str


def check_identifier(name: str, what: str = "identifier") -> str:
    if not isinstance(name, str) or not name:
        raise ValidationError(f"Missing {what}")
    if len(name) > MAX_IDENT_LEN or not IDENT_RE.match(name):
        raise ValidationError(f"Invalid {what}", details=f"{name!r} is not a plain SQL identifier")
    return name


def quote_ident(name: str) -> str:
    return '"' + name.replace('"', '""') + '"'


class CatalogReader:
    def __init__(self, db: Fetcher, *, schema: str = "public", ttl_seconds: float = 300.0):
        self._db = db
        self.schema = schema
        self.ttl_seconds = ttl_seconds
        self._tables: Optional[Tuple[float, List[str]]] = None
        self._columns: Dict[str, Tuple[float, List[ColumnInfo]]] = {}

    # ------------------------------------------------------------
    # Raw catalog queries (overridable for other engines)
    # ------------------------------------------------------------
    async def _fetch_tables(self) -> List[str]:
        rows = await self._db.fetch(TABLES_SQL, (self.schema,), kind="catalog")
        return [r["table_name"] for r in rows]

    async def _fetch_columns(self, table: str) -> List[ColumnInfo]:
        rows = await self._db.fetch(COLUMNS_SQL, (self.schema, table), kind="catalog")
        return [ColumnInfo(column_name=r["column_name"], data_type=r["data_type"]) for r in rows]

    def _fresh(self, ts: float) -> bool:
        return (time.monotonic() - ts) < self.ttl_seconds

    def invalidate(self) -> None:
        self._tables = None
        self._columns.clear()

    # ------------------------------------------------------------
    # Listings
    # ------------------------------------------------------------
    async def list_tables(self) -> List[str]:
        if self._tables is not None and self._fresh(self._tables[0]):
            return list(self._tables[1])
        try:
            tables = sorted(await self._fetch_tables())
        except ExecutionError:
            if self._tables is not None:
                log.warning("Table listing failed; serving stale catalog schema=%s", self.schema)
                return list(self._tables[1])
            raise
        self._tables = (time.monotonic(), tables)
        return list(tables)

    async def list_columns(self, table: str) -> List[ColumnInfo]:
        cached = self._columns.get(table)
        if cached is not None and self._fresh(cached[0]):
            return list(cached[1])
        try:
            cols = await self._fetch_columns(table)
        except ExecutionError:
            if cached is not None:
                log.warning("Column listing failed; serving stale entry table=%s", table)
                return list(cached[1])
            raise
        self._columns[table] = (time.monotonic(), cols)
        return list(cols)

    async def column_names(self, table: str) -> List[str]:
        return [c.column_name for c in await self.list_columns(table)]

    # ------------------------------------------------------------
    # Allow-list checks
    # ------------------------------------------------------------
    async def require_table(self, name: str) -> str:
        check_identifier(name, "table name")
        if name not in await self.list_tables():
            raise NotFoundError("Table not found", details=name)
        return name

    async def require_column(self, table: str, name: str) -> str:
        check_identifier(name, "column name")
        if name not in await self.column_names(table):
            raise NotFoundError("Column not found", details=f"{table}.{name}")
        return name
