from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from dataview.core.errors import ExecutionError
from dataview.core.query.catalog import CatalogReader, Fetcher, quote_ident


@dataclass(frozen=True)
class TableStats:
    total_records: int
    avg_price: Optional[float]
    min_price: Optional[float]
    max_price: Optional[float]


def stats_sql(table: str, price_column: str) -> str:
    t, c = quote_ident(table), quote_ident(price_column)
    return "\n".join(
        [
            "SELECT",
            "  COUNT(*) AS total_records,",
            f"  AVG({c}) AS avg_price,",
            f"  MIN({c}) AS min_price,",
            f"  MAX({c}) AS max_price",
            f"FROM {t}",
            f"WHERE {c} IS NOT NULL",
        ]
    )


def _as_float(value: Any) -> Optional[float]:
    # AVG over numeric comes back as Decimal; aggregates of an empty set are NULL.
    if value is None:
        return None
    return float(value)


async def compute_stats(db: Fetcher, catalog: CatalogReader, table: str, price_column: str) -> TableStats:
    table = await catalog.require_table(table)
    price_column = await catalog.require_column(table, price_column)

    rows = await db.fetch(stats_sql(table, price_column), (), kind="stats")
    if not rows:
        raise ExecutionError("Stats query returned no rows")
    row = rows[0]
    return TableStats(
        total_records=int(row.get("total_records") or 0),
        avg_price=_as_float(row.get("avg_price")),
        min_price=_as_float(row.get("min_price")),
        max_price=_as_float(row.get("max_price")),
    )
