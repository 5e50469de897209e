from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import JSONResponse

from dataview.core.errors import DataViewError, ExecutionError
from dataview.core.observability.metrics import inc_named

log = logging.getLogger("dataview.errors")


async def dataview_error_handler(request: Request, exc: DataViewError) -> JSONResponse:
    rid = getattr(request.state, "request_id", None)
    if isinstance(exc, ExecutionError):
        log.error("%s rid=%s path=%s: %s", exc.message, rid, request.url.path, exc.details)
    else:
        log.info("%s rid=%s path=%s: %s", exc.message, rid, request.url.path, exc.details)
    inc_named(f"errors_{exc.status_code}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    # Router-level failures (unknown route, wrong method) use the same envelope.
    inc_named(f"errors_{exc.status_code}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DataViewError, dataview_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
