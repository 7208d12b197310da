"""View model the dashboard page renders from the current snapshot."""

from typing import Optional

from pydantic import BaseModel

from roster_watch.models.view import RefreshStatus, ViewSnapshot
from roster_watch.services.roster_merger import merge_roster
from roster_watch.utils.license_normalizer import ALL_FILTER

FAILED_MESSAGE = "⚠ Failed to load players."
NO_MATCH_MESSAGE = "No players match your filters."
LOADING_MESSAGE = "Loading players..."
SUCCESS_TOAST = "Server data loaded successfully"


class RowView(BaseModel):
    """A rendered table row."""

    number: int
    id: int
    name: str
    license: str
    ic_name: str
    role: str


class DashboardView(BaseModel):
    """Everything the page needs for one render."""

    status: str
    server_count: str
    uptime: str
    warning: Optional[str] = None
    message: Optional[str] = None
    rows: list[RowView]
    total_players: int
    refresh_label: str
    last_updated: Optional[str] = None
    shift_filter: str = ALL_FILTER
    search: str = ""


def refresh_label(countdown: int, snapshot: ViewSnapshot) -> str:
    """Countdown text, e.g. '12s • Last updated: 3:04:05 PM'."""
    label = f"{max(countdown, 0)}s"
    if snapshot.last_updated_label:
        label += f" • Last updated: {snapshot.last_updated_label}"
    return label


def build_dashboard_view(
    snapshot: ViewSnapshot,
    countdown: int,
    shift_filter: str = ALL_FILTER,
    search: str = "",
) -> DashboardView:
    """Render the snapshot with the user's filter and search applied."""
    meta = snapshot.meta

    if snapshot.status == RefreshStatus.FAILED:
        rows = []
        message = FAILED_MESSAGE
    else:
        merged = merge_roster(snapshot.players, snapshot.shift_map, shift_filter, search)
        rows = [RowView(**row.to_dict()) for row in merged]
        if rows:
            message = None
        elif snapshot.status == RefreshStatus.IDLE and snapshot.last_updated is None:
            message = LOADING_MESSAGE
        else:
            message = NO_MATCH_MESSAGE

    return DashboardView(
        status=snapshot.status.value,
        server_count=f"{meta.player_count}/{meta.max_players}",
        uptime=f"Uptime: {meta.uptime}",
        warning=snapshot.warning if snapshot.status == RefreshStatus.DEGRADED else None,
        message=message,
        rows=rows,
        total_players=len(snapshot.players),
        refresh_label=refresh_label(countdown, snapshot),
        last_updated=snapshot.last_updated_label,
        shift_filter=shift_filter,
        search=search,
    )
