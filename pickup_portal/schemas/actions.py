from typing import Optional

from pydantic import Field

from pickup_portal.models.common import PortalBaseModel


class CancelAction(PortalBaseModel):
    token: str = Field(..., min_length=1)
    confirm: bool = False


class StatusChangeAction(PortalBaseModel):
    current_status: str
    # checked against the offered transitions by the staff view
    new_status: Optional[str] = None
    notes: Optional[str] = None
    municipality: Optional[str] = None
