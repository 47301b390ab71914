from __future__ import annotations

from typing import Any, Dict

from pickup_portal.core.enums import RequestStatus, TimeSlot


STATUS_LABELS: Dict[RequestStatus, str] = {
    RequestStatus.RECEIVED: "Received",
    RequestStatus.ASSIGNED: "Assigned",
    RequestStatus.IN_PROGRESS: "In Progress",
    RequestStatus.COMPLETED: "Completed",
    RequestStatus.CANCELLED: "Cancelled",
}

STATUS_CSS_CLASSES: Dict[RequestStatus, str] = {
    RequestStatus.RECEIVED: "status-received",
    RequestStatus.ASSIGNED: "status-assigned",
    RequestStatus.IN_PROGRESS: "status-in-progress",
    RequestStatus.COMPLETED: "status-completed",
    RequestStatus.CANCELLED: "status-cancelled",
}

STATUS_ICONS: Dict[RequestStatus, str] = {
    RequestStatus.RECEIVED: "📥",
    RequestStatus.ASSIGNED: "👥",
    RequestStatus.IN_PROGRESS: "🚛",
    RequestStatus.COMPLETED: "✅",
    RequestStatus.CANCELLED: "❌",
}

TIME_SLOT_LABELS: Dict[TimeSlot, str] = {
    TimeSlot.MORNING: "Morning (08:00 - 12:00)",
    TimeSlot.AFTERNOON: "Afternoon (12:00 - 18:00)",
    TimeSlot.EVENING: "Evening (18:00 - 21:00)",
}

TIME_SLOT_SHORT_LABELS: Dict[TimeSlot, str] = {
    TimeSlot.MORNING: "🌅 Morning",
    TimeSlot.AFTERNOON: "☀️ Afternoon",
    TimeSlot.EVENING: "🌆 Evening",
}

BADGE_CLASS = "status-badge"


def _check_exhaustive() -> None:
    for table in (STATUS_LABELS, STATUS_CSS_CLASSES, STATUS_ICONS):
        missing = set(RequestStatus) - set(table)
        if missing:
            raise RuntimeError(f"status table missing {sorted(m.value for m in missing)}")
    for table in (TIME_SLOT_LABELS, TIME_SLOT_SHORT_LABELS):
        missing = set(TimeSlot) - set(table)
        if missing:
            raise RuntimeError(f"time slot table missing {sorted(m.value for m in missing)}")


_check_exhaustive()


def _lookup(table: Dict[Any, str], enum_type, value: Any) -> str | None:
    try:
        return table[enum_type(value)]
    except ValueError:
        return None


def status_label(status: Any) -> str:
    return _lookup(STATUS_LABELS, RequestStatus, status) or str(status)


def status_badge_class(status: Any) -> str:
    css = _lookup(STATUS_CSS_CLASSES, RequestStatus, status)
    return f"{BADGE_CLASS} {css}" if css else BADGE_CLASS


def status_icon(status: Any) -> str:
    return _lookup(STATUS_ICONS, RequestStatus, status) or ""


def time_slot_label(slot: Any, short: bool = False) -> str:
    table = TIME_SLOT_SHORT_LABELS if short else TIME_SLOT_LABELS
    return _lookup(table, TimeSlot, slot) or str(slot)
