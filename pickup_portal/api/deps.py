# pickup_portal/api/deps.py
from fastapi import Header, Request

from pickup_portal.clients.waste_api import WasteCollectionApi
from pickup_portal.services.dashboard import DEFAULT_SESSION, DashboardSessions


def get_api(request: Request) -> WasteCollectionApi:
    """
    FastAPI dependency that returns the shared collection API client
    """
    return request.app.state.waste_api


def get_sessions(request: Request) -> DashboardSessions:
    return request.app.state.dashboard_sessions


def get_session_id(
    x_portal_session: str | None = Header(None, alias="X-Portal-Session"),
) -> str:
    if not x_portal_session or not x_portal_session.strip():
        return DEFAULT_SESSION
    return x_portal_session.strip()
