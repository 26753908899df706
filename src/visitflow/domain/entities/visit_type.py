"""Visit type and visit attribute type catalog entries."""

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class VisitType:
    """Selectable visit type."""

    uuid: str
    display: str

    @classmethod
    def from_rest(cls, data: Dict[str, Any]) -> "VisitType":
        return cls(uuid=data["uuid"], display=data.get("display") or data.get("name", ""))


@dataclass(frozen=True)
class VisitAttributeType:
    """Visit attribute definition collected by the form."""

    uuid: str
    required: bool = False
    display: Optional[str] = None
