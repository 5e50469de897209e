from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from dataview import __version__
from dataview.api.endpoints import data, health, stats, tables
from dataview.api.endpoints import metrics as metrics_ep
from dataview.api.errors import register_error_handlers
from dataview.api.middleware.error_shaping import SafeErrorMiddleware
from dataview.api.middleware.request_context import RequestContextMiddleware
from dataview.core.config import Settings, load_settings
from dataview.core.db import Database
from dataview.core.errors import ExecutionError
from dataview.core.query.catalog import CatalogReader

log = logging.getLogger("dataview.startup")


async def open_resources(app: FastAPI) -> None:
    """
    Create the process-scoped pool and catalog.

    An unreachable database aborts startup when ``db_required`` is set;
    otherwise the service keeps running and requests fail individually.
    """
    settings: Settings = app.state.settings
    db = Database(
        settings.database_url,
        min_size=settings.pool_min_size,
        max_size=settings.pool_max_size,
        command_timeout=settings.query_timeout_seconds,
    )
    try:
        await db.connect()
    except ExecutionError as e:
        if settings.db_required:
            log.critical("Database connection error: %s", e.details)
            raise
        log.error("Database connection error (continuing without a pool): %s", e.details)
    else:
        log.info("Database connected successfully")

    app.state.db = db
    app.state.catalog = CatalogReader(db, schema=settings.db_schema, ttl_seconds=settings.catalog_ttl_seconds)


async def close_resources(app: FastAPI) -> None:
    db = getattr(app.state, "db", None)
    if db is not None:
        await db.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Tests install their own database/catalog on app.state.
    owns_resources = getattr(app.state, "db", None) is None
    if owns_resources:
        await open_resources(app)
    try:
        yield
    finally:
        if owns_resources:
            await close_resources(app)


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or load_settings()

    app = FastAPI(
        title="Data View API",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.db = None
    app.state.catalog = None

    # ------------------------------------------------------------
    # Middleware stack (ORDER MATTERS)
    # Starlette reverses add_middleware order: the LAST call = OUTERMOST wrapper.
    # Runtime order (outermost -> innermost):
    #   SafeErrorMiddleware -> CORSMiddleware -> RequestContext -> handler
    # ------------------------------------------------------------
    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials="*" not in settings.cors_origins,
        allow_methods=["GET", "OPTIONS"],
        allow_headers=["*"],
    )
    app.add_middleware(SafeErrorMiddleware)

    register_error_handlers(app)

    app.include_router(tables.router)
    app.include_router(data.router)
    app.include_router(stats.router)
    app.include_router(health.router)
    app.include_router(metrics_ep.router)
    return app


app = create_app()
