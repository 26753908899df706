"""
Shared fakes and fixtures for visitflow tests.
"""

import asyncio
from datetime import date, datetime
from typing import Any, Dict, List, Optional

import pytest

from visitflow.application.dto.visit_dto import QueueAdmissionPayload, QueueEntryFields, VisitCreationPayload
from visitflow.application.ports.services.catalog_service import AttributeTypeCatalog, ClinicalCatalogService
from visitflow.application.ports.services.notification_service import NotificationChannel
from visitflow.application.ports.services.queue_service import QueueFieldsProvider, QueueService
from visitflow.application.ports.services.visit_service import VisitService
from visitflow.core.exceptions import OpenMRSError
from visitflow.domain.entities.enrollment import PatientEnrollment, ProgramRef
from visitflow.domain.entities.visit import CreatedVisit
from visitflow.domain.entities.visit_form import VisitForm, VisitFormState
from visitflow.domain.entities.visit_type import VisitAttributeType, VisitType
from visitflow.domain.enums.workflow import TimeFormat, VisitTypeView

PATIENT_UUID = "patient-1"
LOCATION_UUID = "location-1"
OPD_VISIT = VisitType("vt-opd", "OPD Visit")
FACILITY_VISIT = VisitType("vt-facility", "Facility Visit")
TODAY = date(2026, 10, 17)


class FakeVisitService(VisitService):
    """Records create calls; optionally fails or blocks until released."""

    def __init__(self, error: Optional[Exception] = None, visit_type_display: str = "Facility Visit"):
        self.error = error
        self.visit_type_display = visit_type_display
        self.calls: List[VisitCreationPayload] = []
        self.gate: Optional[asyncio.Event] = None
        self.started = asyncio.Event()
        self.visits: Dict[str, List[Dict[str, Any]]] = {}
        self.visit_reads = 0

    async def create_visit(self, payload: VisitCreationPayload) -> CreatedVisit:
        self.calls.append(payload)
        self.started.set()
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return CreatedVisit(
            uuid=f"visit-{len(self.calls)}",
            visit_type_display=self.visit_type_display,
            location_uuid=payload.location,
        )

    async def get_patient_visits(self, patient_uuid: str) -> List[Dict[str, Any]]:
        self.visit_reads += 1
        return list(self.visits.get(patient_uuid, []))


class FakeQueueService(QueueService):
    def __init__(self, error: Optional[Exception] = None):
        self.error = error
        self.calls: List[QueueAdmissionPayload] = []
        self.gate: Optional[asyncio.Event] = None
        self.started = asyncio.Event()

    async def admit_to_queue(self, payload: QueueAdmissionPayload) -> int:
        self.calls.append(payload)
        self.started.set()
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return 201


class StaticQueueFields(QueueFieldsProvider):
    def __init__(self, fields: Optional[QueueEntryFields] = None):
        self.fields = fields

    def read_queue_fields(self) -> Optional[QueueEntryFields]:
        return self.fields


class FakeAttributeCatalog(AttributeTypeCatalog):
    def __init__(self, types=None, loading: bool = False, blocks_saving: bool = False):
        self.types = list(types or [])
        self.loading = loading
        self.blocked = blocks_saving

    @property
    def is_loading(self) -> bool:
        return self.loading

    @property
    def blocks_saving(self) -> bool:
        return self.blocked

    def get_attribute_types(self) -> List[VisitAttributeType]:
        return list(self.types)


class FakeCatalogService(ClinicalCatalogService):
    def __init__(self, visit_types=None, locations=None, enrollments=None, recommended=None):
        self.visit_types = list(visit_types if visit_types is not None else [OPD_VISIT, FACILITY_VISIT])
        self.locations = list(locations if locations is not None else [{"uuid": LOCATION_UUID, "display": "Clinic"}])
        self.enrollments = list(enrollments or [])
        self.recommended = list(recommended or [])
        self.recommendation_requests: List[tuple] = []

    async def get_visit_types(self) -> List[VisitType]:
        return list(self.visit_types)

    async def get_locations(self) -> List[Dict[str, Any]]:
        return list(self.locations)

    async def get_active_enrollments(self, patient_uuid: str) -> List[PatientEnrollment]:
        return list(self.enrollments)

    async def get_recommended_visit_types(self, patient_uuid, enrollment_uuid, program_uuid, location_uuid):
        self.recommendation_requests.append((patient_uuid, enrollment_uuid, program_uuid, location_uuid))
        return list(self.recommended)


class RecordingChannel(NotificationChannel):
    def __init__(self):
        self.notifications = []

    def notify(self, notification) -> None:
        self.notifications.append(notification)


def make_enrollment(uuid: str = "enrollment-1", program_uuid: str = "program-hiv") -> PatientEnrollment:
    return PatientEnrollment(
        uuid=uuid,
        display="HIV Care",
        program=ProgramRef(program_uuid, "HIV Program"),
        date_enrolled="2025-01-01",
    )


def valid_form(**overrides: Any) -> VisitForm:
    """A submittable form for 2026-10-17 02:30 PM at the test location."""
    values = dict(
        visit_date=TODAY,
        visit_time="02:30",
        time_format=TimeFormat.PM,
        selected_location=LOCATION_UUID,
        visit_type=FACILITY_VISIT.uuid,
        enrollment=None,
        content_switcher_index=VisitTypeView.ALL,
    )
    values.update(overrides)
    return VisitForm(VisitFormState(**values), today=lambda: TODAY)


def network_error(message: str = "network unreachable") -> OpenMRSError:
    return OpenMRSError(message)


@pytest.fixture
def visit_service():
    return FakeVisitService()


@pytest.fixture
def queue_service():
    return FakeQueueService()


@pytest.fixture
def now():
    return datetime(2026, 10, 17, 14, 30)
