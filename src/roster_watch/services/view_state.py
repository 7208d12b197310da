"""Last-known-good dashboard snapshot and its transitions.

The transitions are pure functions over ViewSnapshot. ViewState only holds
the current snapshot; the refresh scheduler is its single writer.
"""

import logging
from datetime import datetime

from roster_watch.models.roster import Metrics, PlayerRecord
from roster_watch.models.shifts import ShiftMap
from roster_watch.models.view import RefreshStatus, ViewSnapshot

logger = logging.getLogger(__name__)


def stale_warning(snapshot: ViewSnapshot) -> str:
    """Banner text shown while serving retained data."""
    return f"⚠ Couldn't update, showing last data. Last updated at {snapshot.last_updated_label or 'N/A'}"


def apply_success(
    players: list[PlayerRecord],
    meta: Metrics,
    shift_map: ShiftMap,
    now: datetime,
) -> ViewSnapshot:
    """Snapshot for a fully successful refresh.

    The player count always comes from the fetched list, never from the
    upstream metrics.
    """
    return ViewSnapshot(
        players=tuple(players),
        meta=meta.with_player_count(len(players)),
        shift_map=shift_map,
        last_updated=now,
        status=RefreshStatus.SUCCESS,
    )


def apply_failure(snapshot: ViewSnapshot, error: str) -> ViewSnapshot:
    """Snapshot after a failed refresh.

    With prior players the result is DEGRADED: players, shift map and
    timestamp are kept, the count is recomputed and a warning is set.
    Without them the result is FAILED with no warning banner.
    """
    if snapshot.has_players:
        return ViewSnapshot(
            players=snapshot.players,
            meta=snapshot.meta.with_player_count(len(snapshot.players)),
            shift_map=snapshot.shift_map,
            last_updated=snapshot.last_updated,
            status=RefreshStatus.DEGRADED,
            warning=stale_warning(snapshot),
            error=error,
        )
    return ViewSnapshot(
        meta=Metrics.unavailable(0),
        status=RefreshStatus.FAILED,
        error=error,
    )


class ViewState:
    """Holder for the process-wide dashboard snapshot."""

    def __init__(self, snapshot: ViewSnapshot | None = None):
        self.snapshot = snapshot or ViewSnapshot()

    def publish_success(
        self,
        players: list[PlayerRecord],
        meta: Metrics,
        shift_map: ShiftMap,
        now: datetime,
    ) -> ViewSnapshot:
        self.snapshot = apply_success(players, meta, shift_map, now)
        return self.snapshot

    def publish_failure(self, error: str) -> ViewSnapshot:
        self.snapshot = apply_failure(self.snapshot, error)
        if self.snapshot.status == RefreshStatus.DEGRADED:
            logger.warning(f"Serving last data from {self.snapshot.last_updated_label}: {error}")
        return self.snapshot
