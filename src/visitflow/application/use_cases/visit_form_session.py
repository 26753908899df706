"""Open Visit Form use case and the session that hosts one workflow instance."""

import uuid
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Optional

from ...core.structured_logger import get_logger
from ...domain.entities.enrollment import PatientEnrollment
from ...domain.entities.visit_form import VisitForm, build_default_form_state
from ...domain.entities.visit_type import VisitType
from ...domain.enums.workflow import SubmissionState, VisitTypeView
from ...domain.errors import DomainError
from ...domain.services.visit_type_filter import DEFAULT_PAGE_SIZE, Page, filter_visit_types, paginate
from ..dto.outcome_dto import OutcomeDirective, SubmissionOutcome
from ..ports.services.catalog_service import AttributeTypeCatalog, ClinicalCatalogService
from ..ports.services.notification_service import NotificationChannel
from ..ports.services.queue_service import QueueFieldsProvider, QueueService
from ..ports.services.visit_service import VisitService
from .dispatch_outcome import apply_directive, dispatch_outcome
from .start_visit import VisitSubmissionOrchestrator, WorkflowConfig

logger = get_logger("visitflow.session")


class UnknownEnrollmentError(DomainError):
    """Enrollment is not one of the patient's active enrollments."""

    def __init__(self, enrollment_uuid: str) -> None:
        message = f"Enrollment '{enrollment_uuid}' is not an active enrollment of the patient"
        super().__init__(message, "UNKNOWN_ENROLLMENT", {"enrollment": enrollment_uuid})


@dataclass
class SubmissionResult:
    """Terminal outcome of a submit together with its dispatched directive."""

    outcome: SubmissionOutcome
    directive: OutcomeDirective


class VisitFormSession:
    """One start-visit surface: form, orchestrator and outcome wiring."""

    def __init__(
        self,
        session_id: str,
        patient_uuid: str,
        orchestrator: VisitSubmissionOrchestrator,
        catalog: ClinicalCatalogService,
        config: WorkflowConfig,
        visit_types: List[VisitType],
        enrollments: List[PatientEnrollment],
        notification_channel: NotificationChannel,
        refresh_visit_data: Callable[[], Any],
        close_surface: Callable[[], Any],
        queue_fields: Optional[QueueFieldsProvider] = None,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> None:
        self.session_id = session_id
        self.patient_uuid = patient_uuid
        self.orchestrator = orchestrator
        self.visit_types = visit_types
        self.enrollments = enrollments
        self.queue_fields = queue_fields
        self._catalog = catalog
        self._config = config
        self._channel = notification_channel
        self._refresh_visit_data = refresh_visit_data
        self._close_surface = close_surface
        self._page_size = page_size
        self.closed = False

    @property
    def form(self) -> VisitForm:
        return self.orchestrator.form

    @property
    def state(self) -> SubmissionState:
        return self.orchestrator.state

    def edit(self, changes: Dict[str, Any], attribute_values: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        """Apply field and attribute edits; returns current field errors."""
        changes = dict(changes)
        if "enrollment" in changes:
            changes["enrollment"] = self._resolve_enrollment(changes["enrollment"])
        for attribute_type_uuid, value in (attribute_values or {}).items():
            self.orchestrator.set_attribute_value(attribute_type_uuid, value)
        if changes:
            self.orchestrator.edit(**changes)
        return dict(self.form.errors)

    def _resolve_enrollment(self, value: Any) -> Optional[PatientEnrollment]:
        if value is None or isinstance(value, PatientEnrollment):
            return value
        for enrollment in self.enrollments:
            if value in (enrollment.uuid, enrollment.program.uuid):
                return enrollment
        raise UnknownEnrollmentError(str(value))

    async def browse_visit_types(self, query: str = "", page: int = 1) -> Page[VisitType]:
        """Visit types for the current switcher view, filtered by ``query``."""
        if (
            self._config.show_recommended_visit_type_tab
            and self.form.get("content_switcher_index") == VisitTypeView.RECOMMENDED
        ):
            enrollment = self.form.get("enrollment")
            catalog = await self._catalog.get_recommended_visit_types(
                self.patient_uuid,
                enrollment.uuid if enrollment else None,
                enrollment.program.uuid if enrollment else None,
                self.form.get("selected_location") or None,
            )
        else:
            catalog = self.visit_types
        return paginate(filter_visit_types(catalog, query), page, self._page_size)

    async def submit(self) -> SubmissionResult:
        outcome = await self.orchestrator.submit()
        directive = dispatch_outcome(outcome)
        apply_directive(directive, self._channel, self._refresh_visit_data, self._close)
        return SubmissionResult(outcome=outcome, directive=directive)

    def discard(self) -> None:
        """Close the surface, cancelling any in-flight call."""
        self.orchestrator.cancel()
        self._close()

    def _close(self) -> None:
        if self.closed:
            return
        self.closed = True
        logger.info(
            "Visit form closed",
            session_id=self.session_id,
            patient_uuid=self.patient_uuid,
            state=self.state.value,
            dirty=self.form.dirty,
        )
        self._close_surface()


@dataclass
class OpenVisitFormRequest:
    """Request for opening a start-visit form."""

    patient_uuid: str
    now: Optional[datetime] = None
    session_id: Optional[str] = None


class OpenVisitFormUseCase:
    """Loads catalogs and creates a session with default form values."""

    def __init__(
        self,
        catalog: ClinicalCatalogService,
        visit_service: VisitService,
        attribute_types: AttributeTypeCatalog,
        config: WorkflowConfig,
        session_location_uuid: Optional[str] = None,
        queue_service: Optional[QueueService] = None,
        page_size: int = DEFAULT_PAGE_SIZE,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._catalog = catalog
        self._visit_service = visit_service
        self._attribute_types = attribute_types
        self._config = config
        self._session_location_uuid = session_location_uuid
        self._queue_service = queue_service
        self._page_size = page_size
        self._today = today

    async def execute(
        self,
        request: OpenVisitFormRequest,
        notification_channel: NotificationChannel,
        refresh_visit_data: Callable[[], Any],
        close_surface: Callable[[], Any],
        queue_fields: Optional[QueueFieldsProvider] = None,
    ) -> VisitFormSession:
        """Execute the open visit form use case."""
        visit_types = await self._catalog.get_visit_types()
        locations = await self._catalog.get_locations()
        enrollments = [
            e for e in await self._catalog.get_active_enrollments(request.patient_uuid) if e.is_active
        ]

        state = build_default_form_state(
            now=request.now or datetime.now(),
            session_location_uuid=self._session_location_uuid,
            locations=locations,
            visit_types=visit_types,
            enrollments=enrollments,
            show_recommended_visit_type_tab=self._config.show_recommended_visit_type_tab,
        )
        session_id = request.session_id or str(uuid.uuid4())
        form = VisitForm(state, today=self._today)
        orchestrator = VisitSubmissionOrchestrator(
            patient_uuid=request.patient_uuid,
            form=form,
            visit_service=self._visit_service,
            attribute_types=self._attribute_types,
            config=self._config,
            queue_service=self._queue_service,
            queue_fields=queue_fields,
            session_id=session_id,
        )
        logger.info(
            "Visit form opened",
            session_id=session_id,
            patient_uuid=request.patient_uuid,
            visit_types=len(visit_types),
            enrollments=len(enrollments),
        )
        return VisitFormSession(
            session_id=session_id,
            patient_uuid=request.patient_uuid,
            orchestrator=orchestrator,
            catalog=self._catalog,
            config=self._config,
            visit_types=visit_types,
            enrollments=enrollments,
            notification_channel=notification_channel,
            refresh_visit_data=refresh_visit_data,
            close_surface=close_surface,
            queue_fields=queue_fields,
            page_size=self._page_size,
        )
