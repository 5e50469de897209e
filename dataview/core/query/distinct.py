from __future__ import annotations

from typing import Any, List

from dataview.core.query.catalog import CatalogReader, Fetcher, quote_ident
from dataview.core.query.executor import shape_value

DEFAULT_DISTINCT_LIMIT = 100


def distinct_sql(table: str, column: str) -> str:
    t, c = quote_ident(table), quote_ident(column)
    return f"SELECT DISTINCT {c} AS value\nFROM {t}\nWHERE {c} IS NOT NULL\nORDER BY value\nLIMIT $1"


async def distinct_values(
    db: Fetcher,
    catalog: CatalogReader,
    table: str,
    column: str,
    limit: int = DEFAULT_DISTINCT_LIMIT,
) -> List[Any]:
    """Ascending non-null distinct values of ``table.column``, at most ``limit`` of them."""
    table = await catalog.require_table(table)
    column = await catalog.require_column(table, column)
    rows = await db.fetch(distinct_sql(table, column), (int(limit),), kind="distinct")
    return [shape_value(r["value"]) for r in rows]
