"""Tests for joining players with shift assignments."""

import pytest

from roster_watch.models.roster import PlayerRecord
from roster_watch.models.shifts import ShiftAssignment, build_shift_map
from roster_watch.services.roster_merger import lookup_assignment, merge_roster
from roster_watch.utils.license_normalizer import normalize_license, role_matches_filter, split_roles


@pytest.fixture
def players():
    """Players already sorted by source id."""
    return [
        PlayerRecord(source_id=1, player_name="Alpha", license_identifier="license:AAA"),
        PlayerRecord(source_id=4, player_name="Bravo", license_identifier="license:bbb"),
        PlayerRecord(source_id=7, player_name="Charlie", license_identifier="license:ccc"),
        PlayerRecord(source_id=12, player_name="Delta", license_identifier="license:ddd"),
    ]


@pytest.fixture
def shift_map():
    return build_shift_map([
        ShiftAssignment.create("license:aaa", "Al Pacino", "Shift-1 • Full Shift"),
        ShiftAssignment.create("LICENSE:BBB", "Bea Arthur", "Shift-2"),
        ShiftAssignment.create("license:ccc", "Cid Moreau", "Staff"),
    ])


class TestLicenseNormalization:
    """Lookup keys ignore case and padding."""

    def test_padded_and_upper_case_resolve_together(self):
        """' ABC123 ' and 'abc123' hit the same entry."""
        shift_map = build_shift_map([ShiftAssignment.create(" ABC123 ", "Name", "Staff")])
        assert lookup_assignment(shift_map, "abc123") is shift_map["abc123"]
        assert lookup_assignment(shift_map, " ABC123 ") is shift_map["abc123"]

    def test_duplicate_license_last_wins(self):
        """The last assignment for a license replaces earlier ones."""
        shift_map = build_shift_map([
            ShiftAssignment.create("L1", "First", "Shift-1"),
            ShiftAssignment.create("l1 ", "Second", "Staff"),
        ])
        assert len(shift_map) == 1
        assert shift_map["l1"].ic_name == "Second"

    def test_normalize_handles_none(self):
        assert normalize_license(None) == ""


class TestRoleFilter:
    """Role-set filter rules."""

    def test_shift_one_matches_full_shift(self):
        """'Shift-1 • Full Shift' passes Shift-1 but not Staff."""
        assert role_matches_filter("Shift-1 • Full Shift", "Shift-1")
        assert not role_matches_filter("Shift-1 • Full Shift", "Staff")

    def test_full_shift_counts_for_both_halves(self):
        assert role_matches_filter("Full Shift", "Shift-1")
        assert role_matches_filter("Full Shift", "Shift-2")

    def test_full_shift_filter_is_exact(self):
        """Full Shift filter does not accept a single half."""
        assert not role_matches_filter("Shift-1", "Full Shift")
        assert role_matches_filter("Staff • Full Shift", "Full Shift")

    def test_split_roles(self):
        assert split_roles("Shift-1 • Staff") == {"Shift-1", "Staff"}
        assert split_roles("") == frozenset()


class TestMergeRoster:
    """merge_roster output."""

    def test_all_filter_keeps_everyone(self, players, shift_map):
        """Players without shift data show placeholders under 'all'."""
        rows = merge_roster(players, shift_map)
        assert [r.source_id for r in rows] == [1, 4, 7, 12]
        delta = rows[-1]
        assert delta.ic_name == "-"
        assert delta.role == "-"

    def test_join_uses_normalized_license(self, players, shift_map):
        """Upper-case roster license still finds its assignment."""
        rows = merge_roster(players, shift_map)
        assert rows[0].ic_name == "Al Pacino"
        assert rows[0].license == "license:AAA"

    def test_shift_filter(self, players, shift_map):
        """Shift-1 keeps Full Shift members and drops unassigned players."""
        rows = merge_roster(players, shift_map, shift_filter="Shift-1")
        assert [r.player_name for r in rows] == ["Alpha"]

    def test_shift_two_filter(self, players, shift_map):
        rows = merge_roster(players, shift_map, shift_filter="Shift-2")
        assert [r.player_name for r in rows] == ["Alpha", "Bravo"]

    def test_staff_filter(self, players, shift_map):
        rows = merge_roster(players, shift_map, shift_filter="Staff")
        assert [r.player_name for r in rows] == ["Charlie"]

    def test_search_matches_ic_name(self, players, shift_map):
        """Search covers the resolved IC name, case-insensitively."""
        rows = merge_roster(players, shift_map, search="MOREAU")
        assert [r.player_name for r in rows] == ["Charlie"]

    def test_search_matches_id_and_license(self, players, shift_map):
        assert [r.source_id for r in merge_roster(players, shift_map, search="12")] == [12]
        assert [r.source_id for r in merge_roster(players, shift_map, search="BBB")] == [4]

    def test_search_and_filter_are_combined(self, players, shift_map):
        """A search hit outside the filter is excluded."""
        assert merge_roster(players, shift_map, shift_filter="Staff", search="alpha") == []

    def test_rows_numbered_in_output_order(self, players, shift_map):
        rows = merge_roster(players, shift_map, shift_filter="Shift-2")
        assert [r.number for r in rows] == [1, 2]

    def test_does_not_resort(self, shift_map):
        """Input order is preserved even if not sorted."""
        unsorted = [
            PlayerRecord(source_id=9, player_name="Late", license_identifier="x"),
            PlayerRecord(source_id=2, player_name="Early", license_identifier="y"),
        ]
        assert [r.source_id for r in merge_roster(unsorted, shift_map)] == [9, 2]
