from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends

from dataview.api.deps import get_catalog
from dataview.api.models.responses import ERROR_RESPONSES, ColumnOut, TableOut
from dataview.core.query.catalog import CatalogReader

router = APIRouter(prefix="/api/tables", tags=["catalog"], responses=ERROR_RESPONSES)


@router.get("", response_model=List[TableOut])
async def list_tables(catalog: CatalogReader = Depends(get_catalog)):
    return [TableOut(table_name=t) for t in await catalog.list_tables()]


@router.get("/{table_name}/columns", response_model=List[ColumnOut])
async def list_columns(table_name: str, catalog: CatalogReader = Depends(get_catalog)):
    table = await catalog.require_table(table_name)
    return [ColumnOut(column_name=c.column_name, data_type=c.data_type) for c in await catalog.list_columns(table)]
