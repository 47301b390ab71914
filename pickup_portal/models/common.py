# pickup_portal/models/common.py
from __future__ import annotations

from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class PortalBaseModel(BaseModel):
    """
    Base for everything exchanged with the collection API:
    - python side uses snake_case
    - wire side uses camelCase (municipalityCode, preferredTimeSlot, ...)
    """

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        use_enum_values = True
        extra = "ignore"

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
