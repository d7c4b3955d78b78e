"""Liveness endpoint for GramCare."""

from __future__ import annotations

import time

from fastapi import APIRouter, Request
from pydantic import BaseModel

router = APIRouter(prefix="/health", tags=["health"])


class HealthResponse(BaseModel):
    status: str
    version: str
    uptime_seconds: float
    active_sessions: int
    session_sweeper_running: bool


@router.get("", response_model=HealthResponse)
async def health_check(request: Request) -> HealthResponse:
    """Returns 200 while the process can serve requests; no downstream checks."""
    start_time: float = getattr(request.app.state, "start_time", time.time())
    sessions = getattr(request.app.state, "sessions", None)

    return HealthResponse(
        status="healthy",
        version=request.app.version,
        uptime_seconds=round(time.time() - start_time, 2),
        active_sessions=len(sessions) if sessions is not None else 0,
        session_sweeper_running=sessions.is_running if sessions is not None else False,
    )
