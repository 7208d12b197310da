"""Dashboard view state models."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from roster_watch.models.roster import Metrics, PlayerRecord
from roster_watch.models.shifts import ShiftMap

PLACEHOLDER = "-"


class RefreshStatus(str, Enum):
    """Phase of the refresh cycle."""

    IDLE = "idle"  # Waiting for the countdown or a manual trigger
    LOADING = "loading"  # A refresh is in flight
    SUCCESS = "success"  # Last cycle replaced the snapshot
    DEGRADED = "degraded"  # Last cycle failed, prior data retained
    FAILED = "failed"  # Last cycle failed with nothing to fall back on


@dataclass(frozen=True)
class ViewSnapshot:
    """Last-known-good data the presentation layer renders."""

    players: tuple[PlayerRecord, ...] = ()
    meta: Metrics = field(default_factory=Metrics)
    shift_map: ShiftMap = field(default_factory=dict)
    last_updated: datetime | None = None
    status: RefreshStatus = RefreshStatus.IDLE
    warning: str | None = None
    error: str | None = None

    @property
    def has_players(self) -> bool:
        return bool(self.players)

    @property
    def last_updated_label(self) -> str | None:
        """Wall-clock time of the last successful refresh, e.g. '3:04:05 PM'."""
        if self.last_updated is None:
            return None
        return self.last_updated.strftime("%I:%M:%S %p").lstrip("0")


@dataclass(frozen=True)
class ViewRow:
    """One rendered player row."""

    number: int  # 1-based display position
    source_id: int
    player_name: str
    license: str
    ic_name: str = PLACEHOLDER
    role: str = PLACEHOLDER

    def to_dict(self) -> dict:
        return {
            "number": self.number,
            "id": self.source_id,
            "name": self.player_name,
            "license": self.license,
            "ic_name": self.ic_name,
            "role": self.role,
        }
