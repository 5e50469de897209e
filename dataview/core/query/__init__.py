"""Query layer: catalog allow-list, filter compilation, statement building and execution.

Nothing in this package speaks HTTP; the API layer maps its errors to status codes.
"""

from dataview.core.query.builder import QuerySpec, Statement, build_queries, parse_query_spec
from dataview.core.query.catalog import CatalogReader, ColumnInfo, check_identifier, quote_ident
from dataview.core.query.distinct import distinct_values
from dataview.core.query.executor import ResultEnvelope, fetch_page
from dataview.core.query.filters import FilterColumns, FilterSpec, compile_filters
from dataview.core.query.stats import TableStats, compute_stats

__all__ = [
    "CatalogReader",
    "ColumnInfo",
    "FilterColumns",
    "FilterSpec",
    "QuerySpec",
    "ResultEnvelope",
    "Statement",
    "TableStats",
    "build_queries",
    "check_identifier",
    "compile_filters",
    "compute_stats",
    "distinct_values",
    "fetch_page",
    "parse_query_spec",
    "quote_ident",
]
