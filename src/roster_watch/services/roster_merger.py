"""Join the live roster with shift assignments and apply user filters."""

from typing import Iterable, Optional

from roster_watch.models.roster import PlayerRecord
from roster_watch.models.shifts import ShiftAssignment, ShiftMap
from roster_watch.models.view import PLACEHOLDER, ViewRow
from roster_watch.utils.license_normalizer import (
    ALL_FILTER,
    normalize_license,
    role_matches_filter,
)


def lookup_assignment(shift_map: ShiftMap, license: str) -> Optional[ShiftAssignment]:
    """Find a player's assignment regardless of license casing or padding."""
    return shift_map.get(normalize_license(license))


def matches_search(player: PlayerRecord, assignment: Optional[ShiftAssignment], search: str) -> bool:
    """Case-insensitive substring match on name, id, license and IC name."""
    needle = search.strip().lower()
    if not needle:
        return True
    haystacks = [
        player.player_name,
        str(player.source_id),
        player.license_identifier,
        assignment.ic_name if assignment else "",
    ]
    return any(needle in h.lower() for h in haystacks)


def matches_filter(assignment: Optional[ShiftAssignment], shift_filter: str) -> bool:
    """Role-set filter. Players without shift data only pass 'all'."""
    if shift_filter == ALL_FILTER:
        return True
    if assignment is None:
        return False
    return role_matches_filter(assignment.role, shift_filter)


def merge_roster(
    players: Iterable[PlayerRecord],
    shift_map: ShiftMap,
    shift_filter: str = ALL_FILTER,
    search: str = "",
) -> list[ViewRow]:
    """Build display rows for players passing both filter and search.

    Player order is kept as given (already sorted by source id).

    Args:
        players: Players in display order
        shift_map: Normalized license -> assignment
        shift_filter: "all", "Shift-1", "Shift-2", "Full Shift" or "Staff"
        search: Free-text search, empty to disable

    Returns:
        Rows numbered from 1 in output order
    """
    rows: list[ViewRow] = []
    for player in players:
        assignment = lookup_assignment(shift_map, player.license_identifier)
        if not matches_filter(assignment, shift_filter):
            continue
        if not matches_search(player, assignment, search):
            continue
        rows.append(
            ViewRow(
                number=len(rows) + 1,
                source_id=player.source_id,
                player_name=player.player_name,
                license=player.license_identifier,
                ic_name=assignment.ic_name if assignment else PLACEHOLDER,
                role=assignment.role if assignment else PLACEHOLDER,
            )
        )
    return rows
