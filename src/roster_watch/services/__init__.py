"""Dashboard core services."""

from roster_watch.services.dashboard import Dashboard, create_dashboard
from roster_watch.services.refresh_scheduler import RefreshScheduler, SchedulerState
from roster_watch.services.resilient_fetcher import ResilientFetcher, backoff_delay_ms
from roster_watch.services.roster_client import RosterClient
from roster_watch.services.shift_cache import ShiftCache
from roster_watch.services.view_state import ViewState

__all__ = [
    "Dashboard",
    "create_dashboard",
    "RefreshScheduler",
    "SchedulerState",
    "ResilientFetcher",
    "backoff_delay_ms",
    "RosterClient",
    "ShiftCache",
    "ViewState",
]
