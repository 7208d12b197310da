"""Client for the players and metrics proxy endpoints."""

import logging
from typing import Any, Optional

import httpx

from roster_watch.errors import NetworkError, ParseError
from roster_watch.models.roster import Metrics, PlayerRecord, parse_players
from roster_watch.services.resilient_fetcher import ResilientFetcher

logger = logging.getLogger(__name__)


def _read_envelope(response: httpx.Response, label: str) -> Any:
    """Decode a ``{statusCode, data}`` envelope and return ``data``."""
    try:
        body = response.json()
    except ValueError as e:
        raise ParseError(f"{label} returned invalid JSON: {e}") from e

    if not isinstance(body, dict):
        raise ParseError(f"{label} returned {type(body).__name__}, expected an object")

    status_code = body.get("statusCode")
    if status_code != 200:
        message = body.get("message") or body.get("error") or "API error"
        raise NetworkError(
            f"{label} reported statusCode {status_code}: {message}",
            status_code=status_code if isinstance(status_code, int) else None,
        )
    if "data" not in body:
        raise ParseError(f"{label} response has no data field")
    return body["data"]


class RosterClient:
    """Fetches and validates the live roster and server metrics."""

    def __init__(
        self,
        fetcher: ResilientFetcher,
        players_url: str,
        metrics_url: str,
        headers: Optional[dict[str, str]] = None,
    ):
        self.fetcher = fetcher
        self.players_url = players_url
        self.metrics_url = metrics_url
        self.headers = headers

    async def fetch_players(self) -> list[PlayerRecord]:
        """Current players, sorted by source id.

        Raises:
            NetworkError: Transport failure, non-2xx or non-200 statusCode
            ParseError: Malformed payload
        """
        response = await self.fetcher.fetch(self.players_url, headers=self.headers, label="players")
        players = parse_players(_read_envelope(response, "players"))
        logger.debug(f"Fetched {len(players)} players")
        return players

    async def fetch_metrics(self) -> Metrics:
        """Current server metrics as reported upstream (player count untrusted)."""
        response = await self.fetcher.fetch(self.metrics_url, headers=self.headers, label="metrics")
        return Metrics.from_payload(_read_envelope(response, "metrics"))
