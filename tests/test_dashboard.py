"""Tests for dashboard sequencing and per-session state."""

from pickup_portal.core.enums import ViewErrorKind
from pickup_portal.schemas.views import MunicipalityOption, ViewError
from pickup_portal.services.dashboard import (
    DashboardSessions,
    apply_failed,
    apply_loaded,
    apply_status_filter,
    initial_state,
)
from tests.factories import make_request

LISBOA = (MunicipalityOption(code="LIS", name="Lisboa"),)


class TestApplyLoaded:
    def test_newer_load_replaces_state(self) -> None:
        state = apply_loaded(initial_state(), 1, "", "", LISBOA, [make_request(1)])
        state = apply_loaded(state, 2, "Lisboa", "", LISBOA, [make_request(2), make_request(3)])
        assert state.view.seq == 2
        assert state.view.municipality_filter == "Lisboa"
        assert [c.id for c in state.view.cards] == [2, 3]

    def test_stale_load_is_dropped(self) -> None:
        state = apply_loaded(initial_state(), 2, "Porto", "", LISBOA, [make_request(9)])
        after = apply_loaded(state, 1, "", "", LISBOA, [make_request(1), make_request(2)])
        assert after is state
        assert [c.id for c in after.view.cards] == [9]

    def test_status_filter_only_changes_cards(self) -> None:
        requests = [make_request(1, "RECEIVED"), make_request(2, "COMPLETED")]
        state = apply_loaded(initial_state(), 1, "", "COMPLETED", LISBOA, requests)
        assert [c.id for c in state.view.cards] == [2]
        assert state.view.stats.total == 2
        assert state.view.stats.completed == 1

    def test_load_does_not_mutate_previous_snapshot(self) -> None:
        first = apply_loaded(initial_state(), 1, "", "", LISBOA, [make_request(1)])
        second = apply_loaded(first, 2, "", "", LISBOA, [])
        assert [c.id for c in first.view.cards] == [1]
        assert second.view.cards == ()


class TestApplyFailed:
    def test_failure_keeps_previous_cards(self) -> None:
        error = ViewError(kind=ViewErrorKind.connection, message="down")
        state = apply_loaded(initial_state(), 1, "", "", LISBOA, [make_request(1)])
        state = apply_failed(state, 2, "", "", (), error)
        assert state.view.error.kind == ViewErrorKind.connection
        assert [c.id for c in state.view.cards] == [1]
        assert state.view.municipalities == LISBOA

    def test_stale_failure_is_dropped(self) -> None:
        error = ViewError(kind=ViewErrorKind.banner, message="boom")
        state = apply_loaded(initial_state(), 3, "", "", LISBOA, [make_request(1)])
        assert apply_failed(state, 2, "", "", LISBOA, error) is state


class TestStatusFilter:
    def test_refilter_uses_loaded_requests(self) -> None:
        requests = [make_request(1, "RECEIVED"), make_request(2, "ASSIGNED")]
        state = apply_loaded(initial_state(), 1, "", "", LISBOA, requests)
        filtered = apply_status_filter(state, "ASSIGNED")
        assert [c.id for c in filtered.view.cards] == [2]
        assert filtered.view.seq == 1
        cleared = apply_status_filter(filtered, "")
        assert [c.id for c in cleared.view.cards] == [1, 2]


class TestDashboardSessions:
    def test_sequence_numbers_are_per_session(self) -> None:
        sessions = DashboardSessions()
        assert sessions.next_seq("a") == 1
        assert sessions.next_seq("a") == 2
        assert sessions.next_seq("b") == 1

    def test_unknown_session_starts_empty(self) -> None:
        state = DashboardSessions().get("nobody")
        assert state.view.seq == 0
        assert state.view.cards == ()
        assert len(state.view.status_filters) == 5

    def test_oldest_session_is_evicted(self) -> None:
        sessions = DashboardSessions(max_sessions=2)
        for name in ("a", "b", "c"):
            sessions.next_seq(name)
            sessions.put(name, apply_loaded(initial_state(), 1, name, "", (), []))
        assert sessions.get("a").view.municipality_filter == ""
        assert sessions.get("c").view.municipality_filter == "c"
        assert sessions.next_seq("a") == 1
