from __future__ import annotations

import logging
import traceback
from typing import Callable

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse, Response

from dataview.api.middleware.request_context import REQUEST_ID_HEADER
from dataview.core.errors import ExecutionError
from dataview.core.observability.metrics import inc_named

log = logging.getLogger("dataview.errors")


class SafeErrorMiddleware(BaseHTTPMiddleware):
    """
    Last-resort handler for exceptions that escape the DataViewError handlers.

    The client gets the usual ``{error, details}`` envelope with a pointer to
    the request id; the traceback only goes to the server log.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)
        except Exception as e:
            rid = getattr(request.state, "request_id", None) or request.headers.get("x-request-id")
            log.error(
                "Unhandled %s rid=%s path=%s\n%s",
                type(e).__name__,
                rid,
                request.url.path,
                traceback.format_exc(),
            )
            inc_named("errors_500")
            err = ExecutionError(
                "Internal Server Error",
                details=f"see server log for request {rid}" if rid else None,
            )
            payload = err.to_payload()
            headers = {}
            if rid:
                payload["request_id"] = rid
                headers[REQUEST_ID_HEADER] = rid
            return JSONResponse(status_code=err.status_code, content=payload, headers=headers)
