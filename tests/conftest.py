import re
import sqlite3

import pytest
from fastapi.testclient import TestClient

from dataview.api.main import app
from dataview.core.errors import ExecutionError
from dataview.core.observability.metrics import reset_metrics
from dataview.core.query.catalog import CatalogReader, ColumnInfo

_PLACEHOLDER = re.compile(r"\$(\d+)")


class SqliteDatabase:
    """
    Stand-in for the asyncpg-backed Database: same fetch() contract, backed by
    an in-memory SQLite database. ``$n`` placeholders become SQLite's ``?n``.
    Every executed statement is recorded in ``statements``.
    """

    def __init__(self):
        self.conn = sqlite3.connect(":memory:", check_same_thread=False)
        self.conn.row_factory = sqlite3.Row
        self.statements = []

    def executescript(self, script: str) -> None:
        self.conn.executescript(script)

    async def fetch(self, sql, params=(), *, kind="query"):
        self.statements.append((kind, sql, tuple(params)))
        try:
            cur = self.conn.execute(_PLACEHOLDER.sub(r"?\1", sql), tuple(params))
            return [dict(r) for r in cur.fetchall()]
        except sqlite3.Error as e:
            raise ExecutionError("Query failed", details=str(e)) from e

    async def fetchrow(self, sql, params=(), *, kind="query"):
        rows = await self.fetch(sql, params, kind=kind)
        return rows[0] if rows else None

    async def ping(self):
        return True

    async def close(self):
        self.conn.close()

    def executed(self, kind):
        return [s for s in self.statements if s[0] == kind]


class SqliteCatalog(CatalogReader):
    async def _fetch_tables(self):
        rows = await self._db.fetch(
            "SELECT name AS table_name FROM sqlite_master "
            "WHERE type IN ('table', 'view') AND name NOT LIKE 'sqlite_%' ORDER BY name",
            kind="catalog",
        )
        return [r["table_name"] for r in rows]

    async def _fetch_columns(self, table):
        rows = await self._db.fetch(
            "SELECT name AS column_name, type AS data_type FROM pragma_table_info($1) ORDER BY cid",
            (table,),
            kind="catalog",
        )
        return [ColumnInfo(column_name=r["column_name"], data_type=r["data_type"]) for r in rows]


BOOKINGS_SQL = """
CREATE TABLE hotel_bookings (
    booking_id TEXT,
    no_of_adults INTEGER,
    market_segment TEXT,
    avg_price_per_room REAL,
    booking_status TEXT
);
INSERT INTO hotel_bookings VALUES
    ('INN00001', 2, 'Offline', 65.0, 'Not_Canceled'),
    ('INN00002', 2, 'Online', 106.68, 'Not_Canceled'),
    ('INN00003', 1, 'Online', 60.0, 'Canceled'),
    ('INN00004', 2, 'Online', 100.0, 'Canceled'),
    ('INN00005', 2, 'Online', 94.5, 'Canceled'),
    ('INN00006', 2, 'Online', 115.0, 'Canceled'),
    ('INN00007', 2, 'Offline', 107.55, 'Not_Canceled'),
    ('INN00008', 2, 'Corporate', 105.61, 'Not_Canceled'),
    ('INN00009', 3, 'Online', 96.9, 'Not_Canceled'),
    ('INN00010', 2, 'Aviation', 133.44, 'Not_Canceled'),
    ('INN00011', 1, 'Complementary', NULL, 'Not_Canceled'),
    ('INN00012', 1, NULL, 72.25, 'Not_Canceled');

CREATE TABLE no_prices (
    booking_id TEXT,
    avg_price_per_room REAL
);
INSERT INTO no_prices VALUES ('A', NULL), ('B', NULL);

CREATE TABLE rooms (
    room_type TEXT,
    floor INTEGER
);
INSERT INTO rooms VALUES ('Room_Type 1', 1), ('Room_Type 2', 2);
"""


@pytest.fixture(autouse=True)
def _reset_named_metrics():
    reset_metrics()
    yield


@pytest.fixture()
def db():
    d = SqliteDatabase()
    d.executescript(BOOKINGS_SQL)
    yield d
    d.conn.close()


@pytest.fixture()
def catalog(db):
    return SqliteCatalog(db, schema="main", ttl_seconds=300)


@pytest.fixture()
def client(db, catalog):
    app.state.db = db
    app.state.catalog = catalog
    try:
        yield TestClient(app)
    finally:
        app.state.db = None
        app.state.catalog = None


@pytest.fixture()
def bare_client():
    """Client with no database installed (as after a failed startup)."""
    app.state.db = None
    app.state.catalog = None
    return TestClient(app)
