"""
Query builder: QuerySpec -> (data statement, count statement).

The data statement binds the filter values first and limit/offset as the two
parameters right after them; the count statement shares the FROM/WHERE text
and binds the filter values only.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Tuple

from dataview.core.errors import ValidationError
from dataview.core.query.catalog import CatalogReader, quote_ident
from dataview.core.query.filters import FilterColumns, FilterSpec, compile_filters

SORT_ORDERS = ("ASC", "DESC")

# LIMIT and OFFSET are bound as bigint.
BIGINT_MAX = 2**63 - 1


@dataclass(frozen=True)
class Statement:
    text: str
    params: Tuple[Any, ...] = ()


@dataclass
class QuerySpec:
    table: str
    filters: FilterSpec = field(default_factory=FilterSpec)
    sort_column: Optional[str] = None
    sort_order: str = "ASC"
    limit: int = 100
    offset: int = 0


def parse_sort_order(raw: Any) -> str:
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return "ASC"
    order = str(raw).strip().upper()
    if order not in SORT_ORDERS:
        raise ValidationError("Invalid sort_order", details="expected ASC or DESC")
    return order


def parse_non_negative_int(key: str, raw: Any, default: int, maximum: Optional[int] = None) -> int:
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return default
    try:
        value = int(str(raw).strip())
    except ValueError as e:
        raise ValidationError(f"Invalid {key}", details=f"{raw!r} is not an integer") from e
    if value < 0:
        raise ValidationError(f"Invalid {key}", details="must be >= 0")
    if maximum is None:
        maximum = BIGINT_MAX
    if value > maximum:
        raise ValidationError(f"Invalid {key}", details=f"must be <= {maximum}")
    return value


def build_queries(spec: QuerySpec) -> Tuple[Statement, Statement]:
    if spec.sort_order not in SORT_ORDERS:
        raise ValidationError("Invalid sort_order", details="expected ASC or DESC")

    from_sql = f"FROM {quote_ident(spec.table)}"
    where_sql = spec.filters.where_sql()
    filter_params = tuple(spec.filters.params)

    n = len(filter_params)
    data_parts = ["SELECT *", from_sql, where_sql]
    if spec.sort_column:
        data_parts.append(f"ORDER BY {quote_ident(spec.sort_column)} {spec.sort_order}")
    data_parts.append(f"LIMIT ${n + 1} OFFSET ${n + 2}")

    count_parts = ["SELECT COUNT(*) AS total", from_sql, where_sql]

    data = Statement(
        text="\n".join(p for p in data_parts if p),
        params=filter_params + (spec.limit, spec.offset),
    )
    count = Statement(
        text="\n".join(p for p in count_parts if p),
        params=filter_params,
    )
    return data, count


async def parse_query_spec(
    catalog: CatalogReader,
    table: str,
    params: Mapping[str, Any],
    *,
    filter_columns: Optional[FilterColumns] = None,
    default_limit: int = 100,
    max_limit: int = 1000,
) -> QuerySpec:
    """
    Build a validated QuerySpec from raw request values.

    The table, the sort column and every filter column are checked against
    the catalog before the QuerySpec is returned; nothing here touches row data.
    """
    table = await catalog.require_table(table)
    filters = compile_filters(params, filter_columns)

    known = set(await catalog.column_names(table))
    missing = [c for c in filters.columns if c not in known]
    if missing:
        raise ValidationError(
            "Filter not supported for this table",
            details="missing column(s): " + ", ".join(sorted(set(missing))),
        )

    sort_column = params.get("sort_by")
    if sort_column is not None and str(sort_column).strip():
        sort_column = await catalog.require_column(table, str(sort_column).strip())
    else:
        sort_column = None

    return QuerySpec(
        table=table,
        filters=filters,
        sort_column=sort_column,
        sort_order=parse_sort_order(params.get("sort_order")),
        limit=parse_non_negative_int("limit", params.get("limit"), default_limit, max_limit),
        offset=parse_non_negative_int("offset", params.get("offset"), 0),
    )
