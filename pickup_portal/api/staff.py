from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from pickup_portal.api.deps import get_api, get_session_id, get_sessions
from pickup_portal.clients.waste_api import WasteCollectionApi
from pickup_portal.core.enums import ViewErrorKind
from pickup_portal.core.errors import PortalError, TransitionNotAllowed, to_view_error
from pickup_portal.models.service_requests import (
    NOTES_MAX_LENGTH,
    ServiceRequest,
    StatusUpdate,
)
from pickup_portal.schemas.actions import StatusChangeAction
from pickup_portal.schemas.views import (
    StaffDashboardView,
    UpdateStatusDialogView,
    UpdateStatusResultView,
    ViewError,
)
from pickup_portal.services.dashboard import (
    DashboardSessions,
    apply_failed,
    apply_loaded,
    apply_status_filter,
)
from pickup_portal.services.labels import status_label
from pickup_portal.services.presenters import build_dialog, municipality_options
from pickup_portal.services.workflow import validate_transition

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/views/staff", tags=["Staff Views"])


def _dialog_error(message: str) -> ViewError:
    return ViewError(kind=ViewErrorKind.banner, message=message)


def _find_loaded(
    sessions: DashboardSessions, session_id: str, request_id: int
) -> Optional[ServiceRequest]:
    for loaded in sessions.get(session_id).requests:
        if loaded.id == request_id:
            return loaded
    return None


async def load_dashboard(
    api: WasteCollectionApi,
    sessions: DashboardSessions,
    session_id: str,
    municipality: str = "",
    status_filter: str = "",
) -> StaffDashboardView:
    seq = sessions.next_seq(session_id)

    try:
        municipalities = municipality_options(await api.list_municipalities())
    except PortalError as exc:
        # the dashboard works without the filter options
        logger.warning("Dashboard municipalities unavailable: %s", exc)
        municipalities = ()

    try:
        requests = await api.list_staff_requests(municipality or None)
    except PortalError as exc:
        error = to_view_error(exc, "Failed to load requests. Please try again.")
        state = apply_failed(
            sessions.get(session_id), seq, municipality, status_filter, municipalities, error
        )
    else:
        state = apply_loaded(
            sessions.get(session_id), seq, municipality, status_filter, municipalities, requests
        )
    return sessions.put(session_id, state).view


@router.get("", response_model=StaffDashboardView)
async def dashboard(
    municipality: str = Query(""),
    status: str = Query(""),
    api: WasteCollectionApi = Depends(get_api),
    sessions: DashboardSessions = Depends(get_sessions),
    session_id: str = Depends(get_session_id),
) -> StaffDashboardView:
    return await load_dashboard(
        api, sessions, session_id, municipality.strip(), status.strip()
    )


@router.get("/filter", response_model=StaffDashboardView)
def filter_dashboard(
    status: str = Query(""),
    sessions: DashboardSessions = Depends(get_sessions),
    session_id: str = Depends(get_session_id),
) -> StaffDashboardView:
    state = apply_status_filter(sessions.get(session_id), status.strip())
    return sessions.put(session_id, state).view


@router.get("/requests/{request_id}/dialog", response_model=UpdateStatusDialogView)
def status_dialog(
    request_id: int,
    status: Optional[str] = Query(None),
    sessions: DashboardSessions = Depends(get_sessions),
    session_id: str = Depends(get_session_id),
) -> UpdateStatusDialogView:
    if status:
        return build_dialog(request_id, status.strip())

    loaded = _find_loaded(sessions, session_id, request_id)
    if loaded is not None:
        return build_dialog(request_id, loaded.status)

    return build_dialog(
        request_id,
        "",
        error=_dialog_error("Request not found on the dashboard. Reload and try again."),
    )


@router.post("/requests/{request_id}/status", response_model=UpdateStatusResultView)
async def submit_status(
    request_id: int,
    action: StatusChangeAction,
    api: WasteCollectionApi = Depends(get_api),
    sessions: DashboardSessions = Depends(get_sessions),
    session_id: str = Depends(get_session_id),
) -> UpdateStatusResultView:
    # the loaded dashboard is authoritative for the current status
    loaded = _find_loaded(sessions, session_id, request_id)
    current_status = loaded.status if loaded is not None else action.current_status

    def rejected(message: str) -> UpdateStatusResultView:
        return UpdateStatusResultView(
            dialog=build_dialog(request_id, current_status, _dialog_error(message))
        )

    if loaded is not None and loaded.status != action.current_status:
        logger.info(
            "Refused status change for request %s: submitted %s but loaded %s",
            request_id,
            action.current_status,
            loaded.status,
        )
        return rejected(
            f"This request is now {status_label(loaded.status)}. Review the options and try again."
        )

    if not action.new_status:
        return rejected("Please select a new status")

    notes = (action.notes or "").strip() or None
    if notes and len(notes) > NOTES_MAX_LENGTH:
        return rejected(f"Notes must not exceed {NOTES_MAX_LENGTH} characters")

    try:
        target = validate_transition(current_status, action.new_status)
    except TransitionNotAllowed as exc:
        logger.info("Refused status change for request %s: %s", request_id, exc)
        return rejected(str(exc))

    try:
        await api.update_status(request_id, StatusUpdate(new_status=target, notes=notes))
    except PortalError as exc:
        return UpdateStatusResultView(
            dialog=build_dialog(
                request_id,
                current_status,
                to_view_error(exc, "Failed to update status. Please try again."),
            )
        )

    applied = sessions.get(session_id).view
    municipality = action.municipality
    if municipality is None:
        municipality = applied.municipality_filter
    dashboard_view = await load_dashboard(
        api,
        sessions,
        session_id,
        municipality.strip(),
        applied.status_filter,
    )
    return UpdateStatusResultView(
        dialog=build_dialog(request_id, target.value, open=False),
        dashboard=dashboard_view,
    )
