from __future__ import annotations

from fastapi import APIRouter, Request
from starlette.responses import JSONResponse

from dataview.core.observability.metrics import inc_named

router = APIRouter()


@router.get("/health/live")
async def live():
    inc_named("health_live")
    return {"status": "ok"}


@router.get("/health/ready")
async def ready(request: Request):
    """
    Readiness reflects ability to serve traffic: the pool must exist and
    answer a trivial statement.
    """
    inc_named("health_ready")

    db = getattr(request.app.state, "db", None)
    problems: list[str] = []
    if db is None:
        problems.append("db_not_configured")
    elif not await db.ping():
        problems.append("db_unreachable")

    if problems:
        return JSONResponse(
            status_code=503,
            content={"status": "not_ready", "problems": problems},
        )

    return {"status": "ready"}
