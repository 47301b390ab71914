"""
Staff dashboard state.

Each load is tagged with a sequence number issued before the API call. When the
response comes back it is applied only if no newer load has been applied in
the meantime; otherwise the newer snapshot is kept and returned instead.
Filtering by status works on the loaded list and never calls the API.
"""
from __future__ import annotations

import logging
from collections import OrderedDict
from typing import Dict, Optional, Sequence, Tuple

from pydantic import BaseModel

from pickup_portal.models.service_requests import ServiceRequest
from pickup_portal.schemas.views import (
    MunicipalityOption,
    StaffDashboardView,
    ViewError,
)
from pickup_portal.services.presenters import (
    build_card,
    compute_stats,
    filter_by_status,
    status_filter_options,
)

logger = logging.getLogger(__name__)

DEFAULT_SESSION = "default"


class DashboardState(BaseModel):
    view: StaffDashboardView
    requests: Tuple[ServiceRequest, ...] = ()

    class Config:
        frozen = True


def initial_state() -> DashboardState:
    return DashboardState(view=StaffDashboardView(status_filters=status_filter_options()))


def _render(
    seq: int,
    municipality_filter: str,
    status_filter: str,
    municipalities: Sequence[MunicipalityOption],
    requests: Sequence[ServiceRequest],
    error: Optional[ViewError] = None,
) -> StaffDashboardView:
    shown = filter_by_status(requests, status_filter)
    return StaffDashboardView(
        seq=seq,
        municipality_filter=municipality_filter,
        status_filter=status_filter,
        municipalities=tuple(municipalities),
        status_filters=status_filter_options(),
        stats=compute_stats(requests),
        cards=tuple(build_card(r) for r in shown),
        error=error,
    )


def apply_loaded(
    state: DashboardState,
    seq: int,
    municipality_filter: str,
    status_filter: str,
    municipalities: Sequence[MunicipalityOption],
    requests: Sequence[ServiceRequest],
) -> DashboardState:
    if seq < state.view.seq:
        logger.info("Dropping stale dashboard load seq=%d (current=%d)", seq, state.view.seq)
        return state
    return DashboardState(
        view=_render(seq, municipality_filter, status_filter, municipalities, requests),
        requests=tuple(requests),
    )


def apply_failed(
    state: DashboardState,
    seq: int,
    municipality_filter: str,
    status_filter: str,
    municipalities: Sequence[MunicipalityOption],
    error: ViewError,
) -> DashboardState:
    if seq < state.view.seq:
        logger.info("Dropping stale dashboard failure seq=%d (current=%d)", seq, state.view.seq)
        return state
    # previously loaded requests stay on screen under the banner
    return DashboardState(
        view=_render(
            seq,
            municipality_filter,
            status_filter,
            municipalities or state.view.municipalities,
            state.requests,
            error=error,
        ),
        requests=state.requests,
    )


def apply_status_filter(state: DashboardState, status_filter: str) -> DashboardState:
    view = state.view
    return DashboardState(
        view=_render(
            view.seq,
            view.municipality_filter,
            status_filter,
            view.municipalities,
            state.requests,
            error=view.error,
        ),
        requests=state.requests,
    )


class DashboardSessions:
    """In-memory dashboard states, one per browser session, bounded LRU."""

    def __init__(self, max_sessions: int = 1024):
        self.max_sessions = max_sessions
        self._states: "OrderedDict[str, DashboardState]" = OrderedDict()
        self._issued: Dict[str, int] = {}

    def next_seq(self, session_id: str) -> int:
        seq = self._issued.get(session_id, 0) + 1
        self._issued[session_id] = seq
        return seq

    def get(self, session_id: str) -> DashboardState:
        state = self._states.get(session_id)
        if state is None:
            return initial_state()
        self._states.move_to_end(session_id)
        return state

    def put(self, session_id: str, state: DashboardState) -> DashboardState:
        self._states[session_id] = state
        self._states.move_to_end(session_id)
        while len(self._states) > self.max_sessions:
            evicted, _ = self._states.popitem(last=False)
            self._issued.pop(evicted, None)
        return state
