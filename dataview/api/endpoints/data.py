"""
Row data endpoints.

``GET /api/data/{table}`` turns the recognized query-string keys into a
validated QuerySpec, builds the data/count statement pair and returns the
page envelope. Query values are declared as plain strings so that parsing
and validation errors come back in the service's own error envelope.
"""
from __future__ import annotations

from typing import Any, List, Optional

from fastapi import APIRouter, Depends, Query

from dataview.api.deps import get_catalog, get_db, get_settings
from dataview.api.models.responses import ERROR_RESPONSES, DataPageOut
from dataview.core.config import Settings
from dataview.core.db import Database
from dataview.core.query.builder import build_queries, parse_query_spec
from dataview.core.query.catalog import CatalogReader
from dataview.core.query.distinct import distinct_values
from dataview.core.query.executor import fetch_page
from dataview.core.query.filters import FilterColumns

router = APIRouter(prefix="/api/data", tags=["data"], responses=ERROR_RESPONSES)


def filter_columns(settings: Settings) -> FilterColumns:
    return FilterColumns(
        booking_status=settings.status_column,
        market_segment=settings.segment_column,
        price=settings.price_column,
    )


@router.get("/{table_name}", response_model=DataPageOut)
async def get_table_data(
    table_name: str,
    limit: Optional[str] = Query(None, description="Page size (default 100)"),
    offset: Optional[str] = Query(None, description="Rows to skip (default 0)"),
    booking_status: Optional[str] = Query(None),
    market_segment: Optional[str] = Query(None),
    min_price: Optional[str] = Query(None),
    max_price: Optional[str] = Query(None),
    sort_by: Optional[str] = Query(None),
    sort_order: Optional[str] = Query(None, description="ASC or DESC (default ASC)"),
    db: Database = Depends(get_db),
    catalog: CatalogReader = Depends(get_catalog),
    settings: Settings = Depends(get_settings),
):
    params = {
        "limit": limit,
        "offset": offset,
        "booking_status": booking_status,
        "market_segment": market_segment,
        "min_price": min_price,
        "max_price": max_price,
        "sort_by": sort_by,
        "sort_order": sort_order,
    }
    spec = await parse_query_spec(
        catalog,
        table_name,
        params,
        filter_columns=filter_columns(settings),
        default_limit=settings.default_limit,
        max_limit=settings.max_limit,
    )
    data_stmt, count_stmt = build_queries(spec)
    page = await fetch_page(
        db,
        data_stmt,
        count_stmt,
        limit=spec.limit,
        offset=spec.offset,
        timeout=settings.query_timeout_seconds,
    )
    return DataPageOut(data=page.data, total=page.total, limit=page.limit, offset=page.offset)


@router.get("/{table_name}/distinct/{column_name}", response_model=List[Any])
async def get_distinct_values(
    table_name: str,
    column_name: str,
    db: Database = Depends(get_db),
    catalog: CatalogReader = Depends(get_catalog),
    settings: Settings = Depends(get_settings),
):
    return await distinct_values(db, catalog, table_name, column_name, limit=settings.distinct_limit)
