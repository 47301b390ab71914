from __future__ import annotations

from typing import Dict, Optional, Tuple

from pydantic import ValidationError

from pickup_portal.models.service_requests import ServiceRequestCreate
from pickup_portal.schemas.views import CreateRequestForm


# friendlier text for the built-in length/required checks, keyed by wire name
FIELD_MESSAGES: Dict[str, str] = {
    "municipalityCode": "Municipality code is required",
    "municipalityName": "Municipality name is required",
    "citizenName": "Name must be between 2 and 100 characters",
    "citizenEmail": "Invalid email format",
    "pickupAddress": "Pickup address is required and must not exceed 200 characters",
    "itemDescription": "Description must be between 10 and 500 characters",
    "preferredDate": "Preferred date is required",
    "preferredTimeSlot": "Preferred time slot is required",
}

VALUE_ERROR_PREFIX = "Value error, "


def _message(field: str, error: dict) -> str:
    msg = error.get("msg", "")
    # messages raised by our own validators
    if error.get("type") == "value_error" and msg.startswith(VALUE_ERROR_PREFIX):
        return msg[len(VALUE_ERROR_PREFIX):]
    return FIELD_MESSAGES.get(field, msg or "Invalid value")


def validate_create_form(
    form: CreateRequestForm,
) -> Tuple[Optional[ServiceRequestCreate], Dict[str, str]]:
    data = form.model_dump(by_alias=True)
    if not data.get("preferredDate"):
        data["preferredDate"] = None
    try:
        return ServiceRequestCreate.model_validate(data), {}
    except ValidationError as exc:
        errors: Dict[str, str] = {}
        for error in exc.errors():
            loc = error.get("loc") or ("form",)
            field = str(loc[0])
            # first problem per field is enough for an inline message
            errors.setdefault(field, _message(field, error))
        return None, errors
