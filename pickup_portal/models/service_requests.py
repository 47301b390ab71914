from __future__ import annotations

import re
from datetime import date, datetime
from typing import Dict, List, Optional

from pydantic import EmailStr, Field, field_validator

from pickup_portal.core.enums import RequestStatus, TimeSlot
from pickup_portal.models.common import PortalBaseModel


PHONE_PATTERN = re.compile(r"^[0-9]{9}$")

NOTES_MAX_LENGTH = 500


class Municipality(PortalBaseModel):
    code: str
    name: str


class StatusHistoryEntry(PortalBaseModel):
    id: Optional[int] = None
    # None only for the creation entry
    previous_status: Optional[str] = None
    new_status: str
    timestamp: datetime
    notes: Optional[str] = None


class ServiceRequest(PortalBaseModel):
    id: int
    token: Optional[str] = None
    municipality_code: Optional[str] = None
    municipality_name: str
    citizen_name: str
    citizen_email: Optional[str] = None
    citizen_phone: Optional[str] = None
    pickup_address: str
    item_description: str
    preferred_date: date
    preferred_time_slot: str
    # kept as plain text so unknown values reach the transition authority untouched
    status: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    status_history: List[StatusHistoryEntry] = Field(default_factory=list)


class ServiceRequestCreate(PortalBaseModel):
    municipality_code: str = Field(..., min_length=1)
    municipality_name: str = Field(..., min_length=1)
    citizen_name: str = Field(..., min_length=2, max_length=100)
    citizen_email: Optional[EmailStr] = None
    citizen_phone: Optional[str] = None
    pickup_address: str = Field(..., min_length=1, max_length=200)
    item_description: str = Field(..., min_length=10, max_length=500)
    preferred_date: date
    preferred_time_slot: TimeSlot = TimeSlot.MORNING

    @field_validator(
        "municipality_code",
        "municipality_name",
        "citizen_name",
        "pickup_address",
        "item_description",
        mode="before",
    )
    @classmethod
    def strip_text(cls, v):
        if isinstance(v, str):
            return v.strip()
        return v

    @field_validator("citizen_email", "citizen_phone", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v.strip() if isinstance(v, str) else v

    @field_validator("citizen_phone")
    @classmethod
    def check_phone(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not PHONE_PATTERN.match(v):
            raise ValueError("Phone must have 9 digits")
        return v

    @field_validator("preferred_date")
    @classmethod
    def check_future(cls, v: date) -> date:
        if v <= date.today():
            raise ValueError("Preferred date must be in the future")
        return v


class StatusUpdate(PortalBaseModel):
    new_status: RequestStatus
    notes: Optional[str] = Field(None, max_length=NOTES_MAX_LENGTH)


class ApiErrorBody(PortalBaseModel):
    status: Optional[int] = None
    message: str
    timestamp: Optional[str] = None
    errors: Optional[Dict[str, str]] = None
