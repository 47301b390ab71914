from __future__ import annotations

from typing import Any, Dict, Optional, Tuple

from pickup_portal.core.enums import RequestStatus
from pickup_portal.core.errors import TransitionNotAllowed
from pickup_portal.schemas.views import StatusOption


# order matters: it is the order actions are offered in
ALLOWED_TRANSITIONS: Dict[RequestStatus, Tuple[RequestStatus, ...]] = {
    RequestStatus.RECEIVED: (RequestStatus.ASSIGNED, RequestStatus.CANCELLED),
    RequestStatus.ASSIGNED: (RequestStatus.IN_PROGRESS, RequestStatus.CANCELLED),
    RequestStatus.IN_PROGRESS: (RequestStatus.COMPLETED, RequestStatus.CANCELLED),
    RequestStatus.CANCELLED: (RequestStatus.RECEIVED,),
    RequestStatus.COMPLETED: (),
}

# (label, icon) of the action that moves a request *into* the key status
TRANSITION_ACTIONS: Dict[RequestStatus, Tuple[str, str]] = {
    RequestStatus.ASSIGNED: ("Assign to Team", "👥"),
    RequestStatus.IN_PROGRESS: ("Start Collection", "🚛"),
    RequestStatus.COMPLETED: ("Mark as Completed", "✅"),
    RequestStatus.CANCELLED: ("Cancel Request", "❌"),
    RequestStatus.RECEIVED: ("Reopen Request", "🔄"),
}

TERMINAL_FOR_CITIZEN = frozenset({RequestStatus.COMPLETED, RequestStatus.CANCELLED})


def parse_status(value: Any) -> Optional[RequestStatus]:
    if isinstance(value, RequestStatus):
        return value
    if not isinstance(value, str):
        return None
    try:
        return RequestStatus(value)
    except ValueError:
        return None


def get_allowed_next(status: Any) -> Tuple[StatusOption, ...]:
    """
    Legal next statuses for `status`, in display order.
    Anything outside RequestStatus gets no options.
    """
    current = parse_status(status)
    if current is None:
        return ()
    return tuple(
        StatusOption(
            value=target,
            label=TRANSITION_ACTIONS[target][0],
            icon=TRANSITION_ACTIONS[target][1],
        )
        for target in ALLOWED_TRANSITIONS[current]
    )


def is_allowed(current_status: Any, target_status: Any) -> bool:
    target = parse_status(target_status)
    if target is None:
        return False
    return any(option.value == target for option in get_allowed_next(current_status))


def validate_transition(current_status: Any, target_status: Any) -> RequestStatus:
    if not is_allowed(current_status, target_status):
        raise TransitionNotAllowed(current_status, target_status)
    return parse_status(target_status)


def can_citizen_cancel(status: Any) -> bool:
    current = parse_status(status)
    return current is not None and current not in TERMINAL_FOR_CITIZEN


def can_staff_update(status: Any) -> bool:
    # the dashboard card only offers the dialog for non-final requests
    return can_citizen_cancel(status)
