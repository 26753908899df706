"""Program enrollment entity."""

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class ProgramRef:
    """Reference to a program or location resource."""

    uuid: str
    display: str = ""


@dataclass(frozen=True)
class PatientEnrollment:
    """An active enrollment of the patient in a care program."""

    uuid: str
    display: str
    program: ProgramRef
    date_enrolled: str
    date_completed: Optional[str] = None
    location: Optional[ProgramRef] = None

    @property
    def is_active(self) -> bool:
        return not self.date_completed

    @classmethod
    def from_rest(cls, data: Dict[str, Any]) -> "PatientEnrollment":
        program = data.get("program") or {}
        location = data.get("location")
        return cls(
            uuid=data["uuid"],
            display=data.get("display", ""),
            program=ProgramRef(program.get("uuid", ""), program.get("display", "")),
            date_enrolled=data.get("dateEnrolled") or "",
            date_completed=data.get("dateCompleted"),
            location=ProgramRef(location["uuid"], location.get("display", "")) if location else None,
        )
