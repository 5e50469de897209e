"""FastAPI dependencies resolving the process-scoped resources on ``app.state``."""

from __future__ import annotations

from fastapi import Request

from dataview.core.config import Settings
from dataview.core.db import Database
from dataview.core.errors import ExecutionError
from dataview.core.query.catalog import CatalogReader


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_db(request: Request) -> Database:
    db = getattr(request.app.state, "db", None)
    if db is None:
        raise ExecutionError("Database is not configured")
    return db


def get_catalog(request: Request) -> CatalogReader:
    catalog = getattr(request.app.state, "catalog", None)
    if catalog is None:
        raise ExecutionError("Database is not configured")
    return catalog
