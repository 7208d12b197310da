"""Data models for the roster dashboard."""

from roster_watch.models.roster import Metrics, PlayerRecord, parse_players
from roster_watch.models.shifts import (
    ShiftAssignment,
    ShiftCacheEntry,
    ShiftMap,
    build_shift_map,
)
from roster_watch.models.view import RefreshStatus, ViewRow, ViewSnapshot

__all__ = [
    "Metrics",
    "PlayerRecord",
    "parse_players",
    "ShiftAssignment",
    "ShiftCacheEntry",
    "ShiftMap",
    "build_shift_map",
    "RefreshStatus",
    "ViewRow",
    "ViewSnapshot",
]
