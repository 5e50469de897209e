from __future__ import annotations

from fastapi import APIRouter, Depends

from dataview.api.deps import get_catalog, get_db, get_settings
from dataview.api.models.responses import ERROR_RESPONSES, StatsOut
from dataview.core.config import Settings
from dataview.core.db import Database
from dataview.core.query.catalog import CatalogReader
from dataview.core.query.stats import compute_stats

router = APIRouter(prefix="/api/stats", tags=["stats"], responses=ERROR_RESPONSES)


@router.get("/{table_name}", response_model=StatsOut)
async def get_stats(
    table_name: str,
    db: Database = Depends(get_db),
    catalog: CatalogReader = Depends(get_catalog),
    settings: Settings = Depends(get_settings),
):
    s = await compute_stats(db, catalog, table_name, settings.price_column)
    return StatsOut(
        total_records=s.total_records,
        avg_price=s.avg_price,
        min_price=s.min_price,
        max_price=s.max_price,
    )
