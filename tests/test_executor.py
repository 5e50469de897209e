import asyncio
from decimal import Decimal

import pytest

from dataview.core.errors import ExecutionError, QueryTimeoutError
from dataview.core.query.builder import QuerySpec, Statement, build_queries
from dataview.core.query.executor import fetch_page, gather_or_cancel, shape_row
from dataview.core.query.filters import compile_filters


class ScriptedDb:
    """Returns canned rows per statement kind, optionally failing or stalling one kind."""

    def __init__(self, rows=None, total=0, fail_kind=None, slow_kind=None, delay=10.0):
        self.rows = rows or []
        self.total = total
        self.fail_kind = fail_kind
        self.slow_kind = slow_kind
        self.delay = delay
        self.cancelled = []
        self.calls = []

    async def fetch(self, sql, params=(), *, kind="query"):
        self.calls.append((kind, sql, tuple(params)))
        if kind == self.fail_kind:
            await asyncio.sleep(0)
            raise ExecutionError("Query failed", details=f"{kind} exploded")
        if kind == self.slow_kind:
            try:
                await asyncio.sleep(self.delay)
            except asyncio.CancelledError:
                self.cancelled.append(kind)
                raise
        if kind == "count":
            return [{"total": self.total}]
        return list(self.rows)


def _stmts():
    return build_queries(QuerySpec(table="t", filters=compile_filters({"booking_status": "x"}), limit=2, offset=4))


def test_fetch_page_shapes_envelope():
    db = ScriptedDb(rows=[{"id": 1, "price": Decimal("10.50")}, {"id": 2, "price": None}], total="42")
    data, count = _stmts()
    page = asyncio.run(fetch_page(db, data, count, limit=2, offset=4))

    assert page.total == 42
    assert page.limit == 2 and page.offset == 4
    assert page.data == [{"id": 1, "price": 10.5}, {"id": 2, "price": None}]


def test_fetch_page_binds_each_statement_params():
    db = ScriptedDb(total=0)
    data, count = _stmts()
    asyncio.run(fetch_page(db, data, count, limit=2, offset=4))

    by_kind = {k: p for k, _, p in db.calls}
    assert by_kind["data"] == ("x", 2, 4)
    assert by_kind["count"] == ("x",)


def test_failure_of_one_statement_cancels_the_other():
    db = ScriptedDb(fail_kind="count", slow_kind="data")
    data, count = _stmts()
    with pytest.raises(ExecutionError) as ei:
        asyncio.run(fetch_page(db, data, count, limit=2, offset=4))
    assert ei.value.details == "count exploded"
    assert db.cancelled == ["data"]


def test_timeout_aborts_both_statements():
    db = ScriptedDb(slow_kind="count", delay=5.0)
    data, count = _stmts()
    with pytest.raises(QueryTimeoutError):
        asyncio.run(fetch_page(db, data, count, limit=2, offset=4, timeout=0.05))
    assert db.cancelled == ["count"]


def test_count_without_rows_is_an_execution_error():
    class EmptyCount(ScriptedDb):
        async def fetch(self, sql, params=(), *, kind="query"):
            return []

    data, count = _stmts()
    with pytest.raises(ExecutionError):
        asyncio.run(fetch_page(EmptyCount(), data, count, limit=2, offset=4))


def test_gather_or_cancel_preserves_order():
    async def value(v, delay):
        await asyncio.sleep(delay)
        return v

    assert asyncio.run(gather_or_cancel(value("a", 0.02), value("b", 0))) == ("a", "b")


def test_shape_row_leaves_non_decimal_values():
    assert shape_row({"a": "x", "b": 3, "c": Decimal("1")}) == {"a": "x", "b": 3, "c": 1.0}


def test_statement_is_immutable():
    s = Statement("SELECT 1")
    with pytest.raises(Exception):
        s.text = "SELECT 2"
