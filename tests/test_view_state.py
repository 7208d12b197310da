"""Tests for snapshot transitions and the dashboard view model."""

from datetime import datetime

import pytest

from roster_watch.models.roster import Metrics, PlayerRecord
from roster_watch.models.shifts import ShiftAssignment, build_shift_map
from roster_watch.models.view import RefreshStatus, ViewSnapshot
from roster_watch.services.dashboard_view import (
    FAILED_MESSAGE,
    LOADING_MESSAGE,
    NO_MATCH_MESSAGE,
    build_dashboard_view,
)
from roster_watch.services.view_state import ViewState, apply_failure, apply_success

LOADED_AT = datetime(2026, 10, 16, 9, 30, 15)


@pytest.fixture
def players():
    return [
        PlayerRecord(source_id=1, player_name="Ada", license_identifier="license:a"),
        PlayerRecord(source_id=2, player_name="Bob", license_identifier="license:b"),
    ]


@pytest.fixture
def shift_map():
    return build_shift_map([ShiftAssignment.create("LICENSE:A", "Ada Lovelace", "Shift-1 • Full Shift")])


@pytest.fixture
def loaded(players, shift_map):
    return apply_success(players, Metrics(max_players=32, uptime="2h", player_count=99), shift_map, LOADED_AT)


class TestTransitions:
    """Pure snapshot transitions."""

    def test_success_replaces_everything(self, loaded):
        assert loaded.status == RefreshStatus.SUCCESS
        assert loaded.meta.player_count == 2
        assert loaded.last_updated_label == "9:30:15 AM"
        assert loaded.warning is None

    def test_failure_with_players_degrades(self, loaded):
        degraded = apply_failure(loaded, "NetworkError: down")
        assert degraded.status == RefreshStatus.DEGRADED
        assert degraded.players == loaded.players
        assert degraded.shift_map is loaded.shift_map
        assert degraded.meta.player_count == 2
        assert "9:30:15 AM" in degraded.warning

    def test_failure_without_players_fails(self):
        failed = apply_failure(ViewSnapshot(), "NetworkError: down")
        assert failed.status == RefreshStatus.FAILED
        assert failed.players == ()
        assert failed.warning is None

    def test_repeated_failure_keeps_original_timestamp(self, loaded):
        twice = apply_failure(apply_failure(loaded, "a"), "b")
        assert twice.last_updated == LOADED_AT

    def test_view_state_holder(self, players, shift_map):
        state = ViewState()
        state.publish_success(players, Metrics(), shift_map, LOADED_AT)
        state.publish_failure("down")
        assert state.snapshot.status == RefreshStatus.DEGRADED


class TestDashboardView:
    """View model rendering."""

    def test_before_first_load(self):
        view = build_dashboard_view(ViewSnapshot(), 30)
        assert view.message == LOADING_MESSAGE
        assert view.refresh_label == "30s"

    def test_loaded_rows_and_labels(self, loaded):
        view = build_dashboard_view(loaded, 12)
        assert view.server_count == "2/32"
        assert view.uptime == "Uptime: 2h"
        assert [r.ic_name for r in view.rows] == ["Ada Lovelace", "-"]
        assert view.refresh_label == "12s • Last updated: 9:30:15 AM"
        assert view.message is None

    def test_filter_without_matches(self, loaded):
        view = build_dashboard_view(loaded, 5, shift_filter="Staff")
        assert view.rows == []
        assert view.message == NO_MATCH_MESSAGE

    def test_filter_applies_role_rules(self, loaded):
        view = build_dashboard_view(loaded, 5, shift_filter="Shift-2")
        assert [r.name for r in view.rows] == ["Ada"]

    def test_degraded_shows_banner(self, loaded):
        view = build_dashboard_view(apply_failure(loaded, "down"), 30)
        assert view.warning is not None
        assert len(view.rows) == 2

    def test_failed_shows_failure_row(self):
        view = build_dashboard_view(apply_failure(ViewSnapshot(), "down"), 30)
        assert view.message == FAILED_MESSAGE
        assert view.warning is None
        assert view.rows == []
