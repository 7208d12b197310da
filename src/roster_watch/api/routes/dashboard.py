"""REST endpoints for the live player dashboard."""

from typing import Literal

from fastapi import APIRouter, HTTPException, Query, Request
from pydantic import BaseModel

from roster_watch.services.dashboard import Dashboard
from roster_watch.services.dashboard_view import DashboardView, build_dashboard_view

router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])

ShiftFilter = Literal["all", "Shift-1", "Shift-2", "Full Shift", "Staff"]


class RefreshResponse(BaseModel):
    """Response from a manual refresh request."""

    accepted: bool
    phase: str


class StatusResponse(BaseModel):
    """Scheduler state."""

    phase: str
    countdown: int
    interval: int
    last_outcome: str | None
    cycles: int
    dropped_triggers: int
    running: bool
    serving_stale_shifts: bool


def get_dashboard(request: Request) -> Dashboard:
    dashboard = getattr(request.app.state, "dashboard", None)
    if dashboard is None:
        raise HTTPException(503, "Dashboard is not enabled")
    return dashboard


@router.get("", response_model=DashboardView)
def get_dashboard_view(
    request: Request,
    filter: ShiftFilter = Query("all"),
    search: str = Query("", max_length=100),
):
    """Current player table with filter and search applied."""
    dashboard = get_dashboard(request)
    return build_dashboard_view(
        dashboard.view_state.snapshot,
        dashboard.scheduler.state.countdown,
        shift_filter=filter,
        search=search,
    )


@router.post("/refresh", response_model=RefreshResponse)
async def request_refresh(request: Request):
    """Trigger a refresh now. Ignored while one is already running."""
    dashboard = get_dashboard(request)
    accepted = dashboard.scheduler.request_refresh("manual")
    return RefreshResponse(accepted=accepted, phase=dashboard.scheduler.state.phase.value)


@router.get("/status", response_model=StatusResponse)
def get_status(request: Request):
    """Refresh phase, countdown and cache health."""
    dashboard = get_dashboard(request)
    return StatusResponse(
        **dashboard.scheduler.status(),
        serving_stale_shifts=dashboard.shift_cache.serving_stale,
    )
