"""
Execution and result shaping for paginated reads.

``fetch_page`` fans the data and count statements out concurrently and joins
them. If either fails, or the request timeout expires, the sibling is
cancelled (releasing its pooled connection) and the whole request fails.

The two statements run on separate connections with no shared snapshot, so
under concurrent writes ``total`` and ``data`` may describe slightly
different points in time.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Awaitable, Dict, List, Optional, Sequence, Tuple

from dataview.core.errors import ExecutionError, QueryTimeoutError
from dataview.core.query.builder import Statement
from dataview.core.query.catalog import Fetcher

log = logging.getLogger("dataview.query")


@dataclass
class ResultEnvelope:
    data: List[Dict[str, Any]] = field(default_factory=list)
    total: int = 0
    limit: int = 0
    offset: int = 0


async def gather_or_cancel(*aws: Awaitable[Any], timeout: Optional[float] = None) -> Tuple[Any, ...]:
    tasks = [asyncio.ensure_future(a) for a in aws]
    try:
        results = await asyncio.wait_for(asyncio.gather(*tasks), timeout=timeout)
    except asyncio.TimeoutError as e:
        raise QueryTimeoutError("Query timed out", details=f"exceeded {timeout:g}s") from e
    finally:
        for t in tasks:
            if not t.done():
                t.cancel()
        # let cancelled siblings unwind so their connections go back to the pool
        await asyncio.gather(*tasks, return_exceptions=True)
    return tuple(results)


def shape_value(value: Any) -> Any:
    # NUMERIC comes back from the driver as Decimal; clients get JSON numbers.
    if isinstance(value, Decimal):
        return float(value)
    return value


def shape_row(row: Dict[str, Any]) -> Dict[str, Any]:
    return {k: shape_value(v) for k, v in row.items()}


def _total_from(rows: Sequence[Dict[str, Any]]) -> int:
    if not rows:
        raise ExecutionError("Count query returned no rows")
    row = rows[0]
    value = row.get("total", next(iter(row.values()), None))
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ExecutionError("Count query returned a non-integer", details=repr(value)) from e


async def fetch_page(
    db: Fetcher,
    data: Statement,
    count: Statement,
    *,
    limit: int,
    offset: int,
    timeout: Optional[float] = None,
) -> ResultEnvelope:
    rows, count_rows = await gather_or_cancel(
        db.fetch(data.text, data.params, kind="data"),
        db.fetch(count.text, count.params, kind="count"),
        timeout=timeout,
    )
    total = _total_from(count_rows)
    log.debug("Fetched page rows=%d total=%d limit=%d offset=%d", len(rows), total, limit, offset)
    return ResultEnvelope(data=[shape_row(r) for r in rows], total=total, limit=limit, offset=offset)
