"""
View snapshots.

Every user action produces a brand new snapshot; nothing here is mutated after
construction (models are frozen and collections are tuples). Renderers only
paint what they receive.
"""
from __future__ import annotations

from datetime import date, datetime
from typing import Dict, Optional, Tuple

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from pickup_portal.core.enums import RequestStatus, ViewErrorKind


class ViewModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True
        use_enum_values = True
        frozen = True


class NavLink(ViewModel):
    label: str
    path: str


class Feature(ViewModel):
    icon: str
    title: str
    description: str


class ViewError(ViewModel):
    kind: ViewErrorKind
    message: str
    field_errors: Dict[str, str] = Field(default_factory=dict)


class StatusBadge(ViewModel):
    value: str
    label: str
    css_class: str
    icon: str = ""


class StatusOption(ViewModel):
    value: RequestStatus
    label: str
    icon: str


class MunicipalityOption(ViewModel):
    code: str
    name: str


class TimeSlotOption(ViewModel):
    value: str
    label: str


class TimelineEntry(ViewModel):
    status: StatusBadge
    timestamp: datetime
    notes: Optional[str] = None
    previous_label: Optional[str] = None


class RequestDetail(ViewModel):
    id: int
    status: StatusBadge
    municipality_name: str
    pickup_address: str
    citizen_name: str
    citizen_email: Optional[str] = None
    citizen_phone: Optional[str] = None
    item_description: str
    preferred_date: date
    time_slot_label: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    timeline: Tuple[TimelineEntry, ...] = ()


class RequestCard(ViewModel):
    id: int
    status: StatusBadge
    municipality_name: str
    pickup_address: str
    citizen_name: str
    citizen_phone: Optional[str] = None
    item_description: str
    preferred_date: date
    time_slot_label: str
    created_at: Optional[datetime] = None
    can_update: bool
    final_marker: Optional[str] = None


class DashboardStats(ViewModel):
    total: int = 0
    received: int = 0
    assigned: int = 0
    in_progress: int = 0
    completed: int = 0
    cancelled: int = 0


class HomeView(ViewModel):
    title: str
    subtitle: str
    nav: Tuple[NavLink, ...]
    features: Tuple[Feature, ...]
    steps: Tuple[str, ...]


class CreateRequestForm(ViewModel):
    """Raw form input, echoed back so the renderer can refill the widgets."""

    municipality_code: str = ""
    municipality_name: str = ""
    citizen_name: str = ""
    citizen_email: str = ""
    citizen_phone: str = ""
    pickup_address: str = ""
    item_description: str = ""
    preferred_date: str = ""
    preferred_time_slot: str = "MORNING"


class CreateRequestView(ViewModel):
    municipalities: Tuple[MunicipalityOption, ...] = ()
    time_slots: Tuple[TimeSlotOption, ...] = ()
    form: CreateRequestForm = Field(default_factory=CreateRequestForm)
    error: Optional[ViewError] = None
    field_errors: Dict[str, str] = Field(default_factory=dict)
    success_message: Optional[str] = None
    token: Optional[str] = None
    token_note: Optional[str] = None


class CheckRequestView(ViewModel):
    token: str = ""
    request: Optional[RequestDetail] = None
    can_cancel: bool = False
    confirming_cancel: bool = False
    error: Optional[ViewError] = None
    notice: Optional[str] = None


class StaffDashboardView(ViewModel):
    seq: int = 0
    municipality_filter: str = ""
    status_filter: str = ""
    municipalities: Tuple[MunicipalityOption, ...] = ()
    status_filters: Tuple[StatusBadge, ...] = ()
    stats: DashboardStats = Field(default_factory=DashboardStats)
    cards: Tuple[RequestCard, ...] = ()
    error: Optional[ViewError] = None


class UpdateStatusDialogView(ViewModel):
    request_id: int
    current_status: StatusBadge
    options: Tuple[StatusOption, ...] = ()
    notes_max_length: int = 500
    can_submit: bool = False
    open: bool = True
    no_transitions_message: Optional[str] = None
    error: Optional[ViewError] = None


class UpdateStatusResultView(ViewModel):
    dialog: UpdateStatusDialogView
    dashboard: Optional[StaffDashboardView] = None
