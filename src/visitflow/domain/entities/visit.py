"""Visit records returned by the visit service."""

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class CreatedVisit:
    """Visit record produced by a successful visit-creation call."""

    uuid: str
    visit_type_display: str = ""
    start_datetime: Optional[str] = None
    location_uuid: Optional[str] = None

    @classmethod
    def from_rest(cls, data: Dict[str, Any]) -> "CreatedVisit":
        visit_type = data.get("visitType") or {}
        location = data.get("location") or {}
        return cls(
            uuid=data["uuid"],
            visit_type_display=visit_type.get("display", ""),
            start_datetime=data.get("startDatetime"),
            location_uuid=location.get("uuid"),
        )
