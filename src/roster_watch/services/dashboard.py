"""Wires the dashboard core together from settings."""

from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlsplit

import httpx

from roster_watch.config import Settings
from roster_watch.services.refresh_scheduler import RefreshScheduler
from roster_watch.services.resilient_fetcher import ResilientFetcher
from roster_watch.services.roster_client import RosterClient
from roster_watch.services.shift_cache import ShiftCache
from roster_watch.services.view_state import ViewState


@dataclass
class Dashboard:
    """The dashboard core owned by one application instance."""

    fetcher: ResilientFetcher
    roster_client: RosterClient
    shift_cache: ShiftCache
    view_state: ViewState
    scheduler: RefreshScheduler


def create_dashboard(settings: Settings, client: Optional[httpx.AsyncClient] = None) -> Dashboard:
    """Build the dashboard core.

    Raises:
        ConfigError: If any dashboard endpoint URL is blank
    """
    settings.require_dashboard_urls()

    fetcher = ResilientFetcher(
        client=client,
        timeout_ms=settings.fetch_timeout_ms,
        max_retries=settings.fetch_max_retries,
        verbose=settings.verbose_fetch_logging,
    )
    headers = {"Accept": "application/json"}
    # The shifts endpoint admits requests from the dashboard's own origin
    parts = urlsplit(settings.dashboard_shifts_url)
    shift_headers = {"Referer": f"{parts.scheme}://{parts.netloc}/"}
    if settings.api_secret_token:
        shift_headers["Authorization"] = f"Bearer {settings.api_secret_token}"

    roster_client = RosterClient(
        fetcher,
        players_url=settings.dashboard_players_url,
        metrics_url=settings.dashboard_metrics_url,
        headers=headers,
    )
    shift_cache = ShiftCache(
        fetcher,
        url=settings.dashboard_shifts_url,
        ttl_ms=settings.shift_cache_ttl_ms,
        header_rows=settings.shift_header_rows,
        headers=shift_headers,
    )
    view_state = ViewState()
    scheduler = RefreshScheduler(
        roster_client,
        shift_cache,
        view_state,
        interval_seconds=settings.refresh_interval_seconds,
    )
    return Dashboard(
        fetcher=fetcher,
        roster_client=roster_client,
        shift_cache=shift_cache,
        view_state=view_state,
        scheduler=scheduler,
    )
