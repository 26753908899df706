"""Outbound request payloads for visit creation and queue admission."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Mapping, Optional, Tuple

from ...domain.entities.visit_form import VisitFormSchema
from ...domain.services.attribute_requirements import build_attribute_pairs


def to_omrs_iso_string(moment: datetime) -> str:
    """Format as ``YYYY-MM-DDTHH:mm:ss.SSS+ZZZZ``; naive values are local time."""
    if moment.tzinfo is None:
        moment = moment.astimezone()
    millis = moment.microsecond // 1000
    return f"{moment.strftime('%Y-%m-%dT%H:%M:%S')}.{millis:03d}{moment.strftime('%z')}"


@dataclass(frozen=True)
class AttributePair:
    """Visit attribute value sent with the new visit."""

    attribute_type: str
    value: str


@dataclass(frozen=True)
class VisitCreationPayload:
    """Request for starting a visit. Built once per submission attempt."""

    patient: str
    start_datetime: datetime
    visit_type: str
    location: str
    attributes: Tuple[AttributePair, ...] = ()

    @classmethod
    def build(
        cls,
        patient_uuid: str,
        form: VisitFormSchema,
        attribute_values: Mapping[str, str],
    ) -> "VisitCreationPayload":
        attributes = tuple(
            AttributePair(pair["attributeType"], pair["value"])
            for pair in build_attribute_pairs(attribute_values)
        )
        return cls(
            patient=patient_uuid,
            start_datetime=form.start_datetime,
            visit_type=form.visit_type,
            location=form.selected_location,
            attributes=attributes,
        )

    def to_rest(self) -> Dict[str, Any]:
        return {
            "patient": self.patient,
            "startDatetime": to_omrs_iso_string(self.start_datetime),
            "visitType": self.visit_type,
            "location": self.location,
            "attributes": [
                {"attributeType": a.attribute_type, "value": a.value} for a in self.attributes
            ],
        }


@dataclass(frozen=True)
class QueueEntryFields:
    """Queue inputs captured by the queue-fields surface."""

    queue_location: Optional[str] = None
    service: Optional[str] = None
    priority: Optional[str] = None
    status: Optional[str] = None
    sort_weight: Optional[float] = None

    @property
    def is_empty(self) -> bool:
        return not any(
            value not in (None, "")
            for value in (self.queue_location, self.service, self.priority, self.status, self.sort_weight)
        )


@dataclass(frozen=True)
class QueueAdmissionPayload:
    """Request for placing a newly created visit in a service queue."""

    visit_uuid: str
    patient_uuid: str
    fields: QueueEntryFields
    visit_queue_number_attribute_uuid: Optional[str] = None
    started_at: datetime = field(default_factory=datetime.now)

    def to_rest(self) -> Dict[str, Any]:
        return {
            "visit": {"uuid": self.visit_uuid},
            "queueEntry": {
                "status": {"uuid": self.fields.status},
                "priority": {"uuid": self.fields.priority},
                "queue": {"uuid": self.fields.service},
                "patient": {"uuid": self.patient_uuid},
                "startedAt": to_omrs_iso_string(self.started_at),
                "sortWeight": self.fields.sort_weight,
            },
        }
