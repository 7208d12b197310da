"""Pass-through endpoints for the roster, metrics and shift sources."""

import logging
from typing import Any
from urllib.parse import quote

import httpx
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, Response

from roster_watch.api.access import check_access
from roster_watch.config import Settings, get_settings
from roster_watch.errors import ConfigError, ParseError, RosterWatchError
from roster_watch.services.resilient_fetcher import ResilientFetcher

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["proxy"])

PROXY_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET",
    "Cache-Control": "no-store, max-age=0",
}
UPSTREAM_HEADERS = {
    "User-Agent": "roster-watch-proxy",
    "Accept": "application/json",
}
AIRTABLE_API_URL = "https://api.airtable.com/v0"
AIRTABLE_LICENSE_FILTER = "NOT({License} = BLANK())"
AIRTABLE_MAX_PAGES = 50
SHIFTS_MAX_RETRIES = 3

DEFAULT_METRICS = {
    "maxPlayers": "?",
    "uptime": "N/A",
    "playerCount": 0,
    "version": "Unknown",
    "queueSize": 0,
}


def get_upstream_fetcher(request: Request) -> ResilientFetcher:
    """Fetcher bound to the shared upstream HTTP client."""
    fetcher = getattr(request.app.state, "upstream_fetcher", None)
    if fetcher is None:
        fetcher = ResilientFetcher()
        request.app.state.upstream_fetcher = fetcher
    return fetcher


def _error_response(error: str, exc: Exception, status_code: int = 500, **extra: Any) -> JSONResponse:
    return JSONResponse(
        {"error": error, "message": str(exc), "statusCode": status_code, **extra},
        status_code=status_code,
        headers=PROXY_HEADERS,
    )


def _json_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError as e:
        raise ParseError(f"Upstream returned invalid JSON: {e}") from e


async def _forward_json(
    fetcher: ResilientFetcher,
    url: str,
    setting_name: str,
    timeout_ms: int,
    label: str,
) -> dict:
    if not url:
        raise ConfigError(f"{setting_name} not configured")
    response = await fetcher.fetch(
        url,
        headers=UPSTREAM_HEADERS,
        timeout_ms=timeout_ms,
        max_retries=1,
        label=label,
    )
    body = _json_body(response)
    if not isinstance(body, dict):
        raise ParseError("Invalid API response structure")
    return body


@router.get("/players")
async def proxy_players(
    settings: Settings = Depends(get_settings),
    fetcher: ResilientFetcher = Depends(get_upstream_fetcher),
):
    """Forward the game server's player list."""
    try:
        body = await _forward_json(
            fetcher, settings.players_api_url, "PLAYERS_API_URL", settings.upstream_timeout_ms, "upstream players"
        )
        if not isinstance(body.get("data"), list):
            raise ParseError("Invalid API response structure")
        return JSONResponse(body, headers=PROXY_HEADERS)
    except RosterWatchError as e:
        logger.error(f"Players API Error: {e}")
        return _error_response("Failed to fetch players", e, data=[])


@router.get("/metrics")
async def proxy_metrics(
    settings: Settings = Depends(get_settings),
    fetcher: ResilientFetcher = Depends(get_upstream_fetcher),
):
    """Forward the game server's metrics."""
    try:
        body = await _forward_json(
            fetcher, settings.metrics_api_url, "METRICS_API_URL", settings.upstream_timeout_ms, "upstream metrics"
        )
        if not body.get("data"):
            raise ParseError("Invalid API response structure")
        return JSONResponse(body, headers=PROXY_HEADERS)
    except RosterWatchError as e:
        logger.error(f"Metrics API Error: {e}")
        return _error_response("Failed to fetch metrics", e, data=dict(DEFAULT_METRICS))


def _airtable_url(base_id: str, table: str, offset: str | None = None) -> str:
    url = (
        f"{AIRTABLE_API_URL}/{base_id}/{quote(table, safe='')}"
        f"?filterByFormula={quote(AIRTABLE_LICENSE_FILTER, safe='')}"
    )
    if offset:
        url += f"&offset={quote(offset, safe='')}"
    return url


async def fetch_airtable_records(fetcher: ResilientFetcher, settings: Settings) -> list[dict]:
    """All shift records with a license, following Airtable pagination."""
    headers = {"Authorization": f"Bearer {settings.airtable_pat}"}
    records: list[dict] = []
    offset = None

    for _ in range(AIRTABLE_MAX_PAGES):
        response = await fetcher.fetch(
            _airtable_url(settings.airtable_base_id, settings.airtable_table, offset),
            headers=headers,
            timeout_ms=settings.upstream_timeout_ms,
            max_retries=SHIFTS_MAX_RETRIES,
            label="Airtable",
        )
        body = _json_body(response)
        if not isinstance(body, dict) or not isinstance(body.get("records", []), list):
            raise ParseError("Invalid Airtable response structure")
        records.extend(r for r in body.get("records", []) if isinstance(r, dict))
        offset = body.get("offset")
        if not offset:
            break
    else:
        logger.warning(f"Stopped Airtable pagination after {AIRTABLE_MAX_PAGES} pages")

    logger.info(f"Fetched {len(records)} records with filled License")
    return records


@router.get("/shifts")
async def proxy_shifts(
    request: Request,
    settings: Settings = Depends(get_settings),
    fetcher: ResilientFetcher = Depends(get_upstream_fetcher),
):
    """Forward shift assignments as CSV text or a JSON list of record fields."""
    if settings.protect_shifts:
        allowed = check_access(request, settings.allowed_domains_list, settings.api_secret_token)
        if not allowed:
            return JSONResponse(
                {
                    "error": "Forbidden",
                    "message": "Access denied. This API is restricted to authorized clients only.",
                },
                status_code=403,
                headers=PROXY_HEADERS,
            )

    try:
        if settings.shifts_csv_url:
            response = await fetcher.fetch(
                settings.shifts_csv_url,
                timeout_ms=settings.upstream_timeout_ms,
                max_retries=SHIFTS_MAX_RETRIES,
                label="shift sheet",
            )
            return Response(
                content=response.text,
                media_type="text/csv; charset=utf-8",
                headers=PROXY_HEADERS,
            )

        if settings.airtable_pat and settings.airtable_base_id:
            records = await fetch_airtable_records(fetcher, settings)
            return JSONResponse(
                [r.get("fields") or {} for r in records],
                headers=PROXY_HEADERS,
            )

        raise ConfigError("Missing SHIFTS_CSV_URL or AIRTABLE_PAT/AIRTABLE_BASE_ID")
    except RosterWatchError as e:
        logger.error(f"Shifts API Error: {e}")
        return _error_response("Failed to fetch shift data", e)
