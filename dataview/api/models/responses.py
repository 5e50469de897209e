from __future__ import annotations

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field


class TableOut(BaseModel):
    table_name: str


class ColumnOut(BaseModel):
    column_name: str
    data_type: str


class DataPageOut(BaseModel):
    data: List[Dict[str, Any]] = Field(default_factory=list)
    total: int
    limit: int
    offset: int


class StatsOut(BaseModel):
    total_records: int
    avg_price: Optional[float] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None


class ErrorOut(BaseModel):
    error: str
    details: Optional[str] = None


ERROR_RESPONSES: Dict[int | str, Dict[str, Any]] = {
    400: {"model": ErrorOut, "description": "Invalid identifier or parameter"},
    404: {"model": ErrorOut, "description": "Unknown table or column"},
    500: {"model": ErrorOut, "description": "Query failed"},
    504: {"model": ErrorOut, "description": "Query timed out"},
}
