from __future__ import annotations

import logging
from typing import Optional, Tuple

from fastapi import APIRouter, Depends, Query

from pickup_portal.api.deps import get_api
from pickup_portal.clients.waste_api import WasteCollectionApi
from pickup_portal.core.enums import ViewErrorKind
from pickup_portal.core.errors import PortalError, to_view_error
from pickup_portal.core.logging_config import mask_token
from pickup_portal.schemas.actions import CancelAction
from pickup_portal.schemas.views import (
    CheckRequestView,
    CreateRequestForm,
    CreateRequestView,
    MunicipalityOption,
    ViewError,
)
from pickup_portal.services.forms import validate_create_form
from pickup_portal.services.presenters import (
    build_detail,
    find_municipality,
    municipality_options,
    time_slot_options,
)
from pickup_portal.services.workflow import can_citizen_cancel

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/views/requests", tags=["Citizen Views"])

TOKEN_NOTE = "Save this token! You'll need it to check or cancel your request."


async def _load_municipalities(
    api: WasteCollectionApi,
) -> Tuple[Tuple[MunicipalityOption, ...], Optional[ViewError]]:
    try:
        return municipality_options(await api.list_municipalities()), None
    except PortalError as exc:
        logger.warning("Could not load municipalities: %s", exc)
        return (), to_view_error(exc, "Failed to load municipalities. Please try again.")


# -------------------------
# Create request
# -------------------------
@router.get("/new", response_model=CreateRequestView)
async def create_form(api: WasteCollectionApi = Depends(get_api)) -> CreateRequestView:
    municipalities, error = await _load_municipalities(api)
    return CreateRequestView(
        municipalities=municipalities,
        time_slots=time_slot_options(),
        error=error,
    )


@router.post("/new", response_model=CreateRequestView)
async def submit_create_form(
    form: CreateRequestForm,
    api: WasteCollectionApi = Depends(get_api),
) -> CreateRequestView:
    municipalities, _ = await _load_municipalities(api)

    # selecting a municipality fills both code and name
    selected = find_municipality(municipalities, form.municipality_code)
    if selected is not None:
        form = form.model_copy(
            update={"municipality_code": selected.code, "municipality_name": selected.name}
        )

    def rejected(**kwargs) -> CreateRequestView:
        return CreateRequestView(
            municipalities=municipalities,
            time_slots=time_slot_options(),
            form=form,
            **kwargs,
        )

    payload, field_errors = validate_create_form(form)
    if payload is None:
        return rejected(field_errors=field_errors)

    try:
        created = await api.create_request(payload)
    except PortalError as exc:
        error = to_view_error(exc, "Failed to create request. Please try again.")
        if error.kind == ViewErrorKind.field:
            return rejected(field_errors=error.field_errors)
        return rejected(error=error)

    return CreateRequestView(
        municipalities=municipalities,
        time_slots=time_slot_options(),
        success_message="Request created successfully!",
        token=created.token,
        token_note=TOKEN_NOTE,
    )


# -------------------------
# Check / cancel request
# -------------------------
@router.get("/check", response_model=CheckRequestView)
async def check_request(
    token: str = Query(""),
    api: WasteCollectionApi = Depends(get_api),
) -> CheckRequestView:
    token = token.strip()
    if not token:
        return CheckRequestView()
    try:
        found = await api.get_request_by_token(token)
    except PortalError as exc:
        logger.info("Lookup failed for token=%s: %s", mask_token(token), exc)
        return CheckRequestView(
            token=token,
            error=to_view_error(exc, "Failed to fetch request. Please try again."),
        )
    return CheckRequestView(
        token=token,
        request=build_detail(found),
        can_cancel=can_citizen_cancel(found.status),
    )


@router.post("/check/cancel", response_model=CheckRequestView)
async def cancel_request(
    action: CancelAction,
    api: WasteCollectionApi = Depends(get_api),
) -> CheckRequestView:
    token = action.token.strip()
    try:
        found = await api.get_request_by_token(token)
    except PortalError as exc:
        return CheckRequestView(
            token=token,
            error=to_view_error(exc, "Failed to fetch request. Please try again."),
        )

    if not can_citizen_cancel(found.status):
        return CheckRequestView(
            token=token,
            request=build_detail(found),
            can_cancel=False,
            error=ViewError(
                kind=ViewErrorKind.banner,
                message="This request can no longer be cancelled.",
            ),
        )

    if not action.confirm:
        return CheckRequestView(
            token=token,
            request=build_detail(found),
            can_cancel=True,
            confirming_cancel=True,
        )

    try:
        refreshed = await api.cancel_request(token)
    except PortalError as exc:
        return CheckRequestView(
            token=token,
            request=build_detail(found),
            can_cancel=True,
            error=to_view_error(exc, "Failed to cancel request. Please try again."),
        )

    if refreshed is None:
        try:
            refreshed = await api.get_request_by_token(token)
        except PortalError as exc:
            logger.warning(
                "Cancelled token=%s but the refresh failed: %s", mask_token(token), exc
            )
            return CheckRequestView(
                token=token,
                notice="Your request has been cancelled.",
                error=to_view_error(
                    exc, "Your request was cancelled but could not be reloaded."
                ),
            )

    return CheckRequestView(
        token=token,
        request=build_detail(refreshed),
        can_cancel=can_citizen_cancel(refreshed.status),
        notice="Your request has been cancelled.",
    )
