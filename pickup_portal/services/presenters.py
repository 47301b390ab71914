from __future__ import annotations

from typing import Iterable, List, Optional, Sequence, Tuple

from pickup_portal.core.enums import RequestStatus, TimeSlot
from pickup_portal.models.service_requests import (
    Municipality,
    ServiceRequest,
    StatusHistoryEntry,
)
from pickup_portal.schemas.views import (
    DashboardStats,
    Feature,
    HomeView,
    MunicipalityOption,
    NavLink,
    RequestCard,
    RequestDetail,
    StatusBadge,
    TimelineEntry,
    TimeSlotOption,
    UpdateStatusDialogView,
    ViewError,
)
from pickup_portal.services.labels import (
    TIME_SLOT_LABELS,
    status_badge_class,
    status_icon,
    status_label,
    time_slot_label,
)
from pickup_portal.services.workflow import (
    can_staff_update,
    get_allowed_next,
    parse_status,
)


NAV_LINKS: Tuple[NavLink, ...] = (
    NavLink(label="Home", path="/"),
    NavLink(label="New Request", path="/create"),
    NavLink(label="Check Status", path="/check"),
    NavLink(label="Staff", path="/staff"),
)

HOME_FEATURES: Tuple[Feature, ...] = (
    Feature(
        icon="📝",
        title="Request Pickup",
        description="Schedule a collection of furniture, appliances and other bulky items.",
    ),
    Feature(
        icon="🔍",
        title="Track Status",
        description="Use your access token to follow your request at any time.",
    ),
    Feature(
        icon="❌",
        title="Cancel Anytime",
        description="Changed your mind? Cancel before the collection is completed.",
    ),
)

HOME_STEPS: Tuple[str, ...] = (
    "Fill in the request form with your address and the items to collect.",
    "Save the access token shown after submitting.",
    "Check the status of your request with that token.",
    "Leave the items outside on the scheduled date and time slot.",
)


def build_home() -> HomeView:
    return HomeView(
        title="Bulky Waste Collection",
        subtitle="Free pickup of large items, scheduled online",
        nav=NAV_LINKS,
        features=HOME_FEATURES,
        steps=HOME_STEPS,
    )


def status_badge(status: str) -> StatusBadge:
    return StatusBadge(
        value=str(status),
        label=status_label(status),
        css_class=status_badge_class(status),
        icon=status_icon(status),
    )


def status_filter_options() -> Tuple[StatusBadge, ...]:
    return tuple(status_badge(s.value) for s in RequestStatus)


def time_slot_options() -> Tuple[TimeSlotOption, ...]:
    return tuple(
        TimeSlotOption(value=slot.value, label=TIME_SLOT_LABELS[slot]) for slot in TimeSlot
    )


def municipality_options(items: Iterable[Municipality]) -> Tuple[MunicipalityOption, ...]:
    return tuple(MunicipalityOption(code=m.code, name=m.name) for m in items)


def find_municipality(
    options: Sequence[MunicipalityOption], code: str
) -> Optional[MunicipalityOption]:
    for option in options:
        if option.code == code:
            return option
    return None


def _timeline_entry(entry: StatusHistoryEntry) -> TimelineEntry:
    return TimelineEntry(
        status=status_badge(entry.new_status),
        timestamp=entry.timestamp,
        notes=entry.notes,
        previous_label=status_label(entry.previous_status) if entry.previous_status else None,
    )


def build_detail(request: ServiceRequest) -> RequestDetail:
    # newest first; equal timestamps keep the later entry on top
    history = [
        h
        for _, h in sorted(
            enumerate(request.status_history),
            key=lambda pair: (pair[1].timestamp, pair[0]),
            reverse=True,
        )
    ]
    return RequestDetail(
        id=request.id,
        status=status_badge(request.status),
        municipality_name=request.municipality_name,
        pickup_address=request.pickup_address,
        citizen_name=request.citizen_name,
        citizen_email=request.citizen_email,
        citizen_phone=request.citizen_phone,
        item_description=request.item_description,
        preferred_date=request.preferred_date,
        time_slot_label=time_slot_label(request.preferred_time_slot),
        created_at=request.created_at,
        updated_at=request.updated_at,
        timeline=tuple(_timeline_entry(h) for h in history),
    )


def _final_marker(status: str) -> Optional[str]:
    current = parse_status(status)
    if current == RequestStatus.COMPLETED:
        return "✅ Completed"
    if current == RequestStatus.CANCELLED:
        return "❌ Cancelled"
    return None


def build_card(request: ServiceRequest) -> RequestCard:
    return RequestCard(
        id=request.id,
        status=status_badge(request.status),
        municipality_name=request.municipality_name,
        pickup_address=request.pickup_address,
        citizen_name=request.citizen_name,
        citizen_phone=request.citizen_phone,
        item_description=request.item_description,
        preferred_date=request.preferred_date,
        time_slot_label=time_slot_label(request.preferred_time_slot, short=True),
        created_at=request.created_at,
        can_update=can_staff_update(request.status),
        final_marker=_final_marker(request.status),
    )


def compute_stats(requests: Sequence[ServiceRequest]) -> DashboardStats:
    def count(status: RequestStatus) -> int:
        return sum(1 for r in requests if r.status == status.value)

    return DashboardStats(
        total=len(requests),
        received=count(RequestStatus.RECEIVED),
        assigned=count(RequestStatus.ASSIGNED),
        in_progress=count(RequestStatus.IN_PROGRESS),
        completed=count(RequestStatus.COMPLETED),
        cancelled=count(RequestStatus.CANCELLED),
    )


def filter_by_status(
    requests: Sequence[ServiceRequest], status_filter: str
) -> List[ServiceRequest]:
    if not status_filter:
        return list(requests)
    return [r for r in requests if r.status == status_filter]


def build_dialog(
    request_id: int,
    current_status: str,
    error: Optional[ViewError] = None,
    open: bool = True,
) -> UpdateStatusDialogView:
    options = get_allowed_next(current_status)
    return UpdateStatusDialogView(
        request_id=request_id,
        current_status=status_badge(current_status),
        options=options,
        can_submit=bool(options) and open,
        open=open,
        no_transitions_message=(
            None if options else "No status transitions available for this request."
        ),
        error=error,
    )
