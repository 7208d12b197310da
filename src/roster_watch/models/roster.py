"""Player and server metrics models."""

import logging
from dataclasses import dataclass, field, replace
from typing import Any

from roster_watch.errors import ParseError

logger = logging.getLogger(__name__)

UNKNOWN_PLAYER_NAME = "Unknown"


@dataclass(frozen=True)
class PlayerRecord:
    """A player currently connected to the game server."""

    source_id: int  # server slot
    player_name: str
    license_identifier: str  # case-sensitive as received

    @classmethod
    def from_payload(cls, item: Any) -> "PlayerRecord":
        """Validate one upstream roster entry.

        Raises:
            ParseError: If the entry is not an object or has no integer source.
        """
        if not isinstance(item, dict):
            raise ParseError(f"Player entry is not an object: {item!r}")

        source = item.get("source")
        if isinstance(source, bool):
            raise ParseError(f"Invalid player source: {source!r}")
        try:
            source_id = int(source)
        except (TypeError, ValueError):
            raise ParseError(f"Invalid player source: {source!r}") from None

        name = item.get("playerName")
        license_id = item.get("licenseIdentifier")
        return cls(
            source_id=source_id,
            player_name=name.strip() if isinstance(name, str) and name.strip() else UNKNOWN_PLAYER_NAME,
            license_identifier=license_id if isinstance(license_id, str) else "",
        )


def parse_players(data: Any) -> list[PlayerRecord]:
    """Validate the roster list and sort it by source id.

    Malformed entries are dropped with a warning; a non-list payload is an error.
    """
    if not isinstance(data, list):
        raise ParseError(f"Expected a list of players, got {type(data).__name__}")

    players = []
    for item in data:
        try:
            players.append(PlayerRecord.from_payload(item))
        except ParseError as e:
            logger.warning(f"Skipping malformed player entry: {e}")
    return sorted(players, key=lambda p: p.source_id)


@dataclass(frozen=True)
class Metrics:
    """Server metrics shown in the dashboard header."""

    max_players: str | int = "?"
    uptime: str = "N/A"
    player_count: int = 0
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def unavailable(cls, player_count: int = 0) -> "Metrics":
        """Placeholder metrics used when the metrics endpoint fails."""
        return cls(max_players="?", uptime="N/A", player_count=player_count)

    @classmethod
    def from_payload(cls, data: Any) -> "Metrics":
        """Validate the upstream metrics object.

        Raises:
            ParseError: If the payload is not an object.
        """
        if not isinstance(data, dict):
            raise ParseError(f"Expected a metrics object, got {type(data).__name__}")

        max_players = data.get("maxPlayers")
        if isinstance(max_players, bool) or not isinstance(max_players, (str, int)):
            max_players = "?"

        uptime = data.get("uptime")
        uptime = str(uptime) if uptime not in (None, "") else "N/A"

        count = data.get("playerCount")
        player_count = count if isinstance(count, int) and not isinstance(count, bool) else 0

        extra = {
            k: v for k, v in data.items() if k not in ("maxPlayers", "uptime", "playerCount")
        }
        return cls(max_players=max_players, uptime=uptime, player_count=player_count, extra=extra)

    def with_player_count(self, player_count: int) -> "Metrics":
        """Copy with the player count replaced by an observed value."""
        return replace(self, player_count=player_count)

    def to_dict(self) -> dict[str, Any]:
        return {
            **self.extra,
            "maxPlayers": self.max_players,
            "uptime": self.uptime,
            "playerCount": self.player_count,
        }
