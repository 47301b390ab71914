from enum import Enum


class RequestStatus(str, Enum):
    RECEIVED = "RECEIVED"
    ASSIGNED = "ASSIGNED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class TimeSlot(str, Enum):
    MORNING = "MORNING"
    AFTERNOON = "AFTERNOON"
    EVENING = "EVENING"


class ViewErrorKind(str, Enum):
    field = "field"
    banner = "banner"
    connection = "connection"
    generic = "generic"
