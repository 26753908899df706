"""Start Visit use case: the visit submission state machine.

A submission validates the form, checks required visit attributes, creates
the visit and, when configured, admits the new visit to a service queue.
Queue admission failure never turns a created visit into a failed submission.
"""

import asyncio
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Awaitable, Dict, FrozenSet, Generic, Optional, Tuple, TypeVar, Union

from ...core.config import VisitFormSettings
from ...core.structured_logger import get_logger
from ...domain.entities.visit import CreatedVisit
from ...domain.entities.visit_form import VisitForm
from ...domain.enums.workflow import SubmissionEvent, SubmissionState
from ...domain.errors import (
    AttributeTypesUnavailableError,
    SubmissionInProgressError,
    WorkflowClosedError,
)
from ...domain.services.attribute_requirements import find_missing_required_attributes
from ..dto.outcome_dto import SubmissionOutcome
from ..dto.visit_dto import QueueAdmissionPayload, VisitCreationPayload
from ..ports.services.catalog_service import AttributeTypeCatalog
from ..ports.services.queue_service import QueueFieldsProvider, QueueService
from ..ports.services.visit_service import VisitService

T = TypeVar("T")

logger = get_logger("visitflow.workflow")

S = SubmissionState
E = SubmissionEvent

_TRANSITIONS: Dict[Tuple[SubmissionState, SubmissionEvent], FrozenSet[SubmissionState]] = {
    (S.IDLE, E.FIELD_EDITED): frozenset({S.IDLE}),
    (S.ATTRIBUTE_CHECK_FAILED, E.FIELD_EDITED): frozenset({S.IDLE}),
    (S.FAILED, E.FIELD_EDITED): frozenset({S.IDLE}),
    (S.IDLE, E.SUBMIT): frozenset({S.SUBMITTING, S.ATTRIBUTE_CHECK_FAILED}),
    (S.ATTRIBUTE_CHECK_FAILED, E.SUBMIT): frozenset({S.SUBMITTING, S.ATTRIBUTE_CHECK_FAILED}),
    (S.FAILED, E.SUBMIT): frozenset({S.SUBMITTING, S.ATTRIBUTE_CHECK_FAILED}),
    (S.SUBMITTING, E.VISIT_CREATION_SUCCEEDED): frozenset({S.VISIT_CREATED}),
    (S.SUBMITTING, E.VISIT_CREATION_FAILED): frozenset({S.FAILED}),
    (S.VISIT_CREATED, E.VISIT_COMPLETED): frozenset({S.SUCCEEDED}),
    (S.VISIT_CREATED, E.QUEUE_ADMISSION_STARTED): frozenset({S.QUEUE_ADMITTING}),
    (S.QUEUE_ADMITTING, E.QUEUE_ADMISSION_SUCCEEDED): frozenset({S.SUCCEEDED}),
    (S.QUEUE_ADMITTING, E.QUEUE_ADMISSION_FAILED): frozenset({S.SUCCEEDED_WITH_QUEUE_WARNING}),
}
for _state in (S.IDLE, S.ATTRIBUTE_CHECK_FAILED, S.SUBMITTING, S.VISIT_CREATED, S.QUEUE_ADMITTING, S.FAILED):
    _TRANSITIONS[(_state, E.CANCEL)] = frozenset({S.CANCELLED})


class InvalidTransitionError(RuntimeError):
    """Raised when an event is not allowed in the current state."""


@dataclass(frozen=True)
class CallSucceeded(Generic[T]):
    value: T


@dataclass(frozen=True)
class CallFailed:
    message: str
    error: Optional[BaseException] = None
    cancelled: bool = False


CallResult = Union[CallSucceeded[T], CallFailed]


@dataclass(frozen=True)
class WorkflowConfig:
    """Feature toggles the orchestrator is built with."""

    show_recommended_visit_type_tab: bool = False
    show_service_queue_fields: bool = False
    visit_queue_number_attribute_uuid: Optional[str] = None

    @classmethod
    def from_settings(cls, settings: VisitFormSettings) -> "WorkflowConfig":
        return cls(
            show_recommended_visit_type_tab=settings.show_recommended_visit_type_tab,
            show_service_queue_fields=settings.show_service_queue_fields,
            visit_queue_number_attribute_uuid=settings.visit_queue_number_attribute_uuid,
        )


def _error_message(exc: BaseException) -> str:
    return getattr(exc, "message", None) or str(exc) or type(exc).__name__


class VisitSubmissionOrchestrator:
    """Drives one start-visit workflow instance from Idle to a terminal state."""

    def __init__(
        self,
        patient_uuid: str,
        form: VisitForm,
        visit_service: VisitService,
        attribute_types: AttributeTypeCatalog,
        config: WorkflowConfig,
        queue_service: Optional[QueueService] = None,
        queue_fields: Optional[QueueFieldsProvider] = None,
        session_id: Optional[str] = None,
    ) -> None:
        self._patient_uuid = patient_uuid
        self._form = form
        self._visit_service = visit_service
        self._attribute_types = attribute_types
        self._config = config
        self._queue_service = queue_service
        self._queue_fields = queue_fields
        self._session_id = session_id
        self._state = SubmissionState.IDLE
        self._in_flight: Optional["asyncio.Future[Any]"] = None
        self._cancelled = False
        self.last_outcome: Optional[SubmissionOutcome] = None

    @property
    def state(self) -> SubmissionState:
        return self._state

    @property
    def form(self) -> VisitForm:
        return self._form

    @property
    def can_submit(self) -> bool:
        """Whether the submit control is enabled."""
        return (
            self._state in (S.IDLE, S.ATTRIBUTE_CHECK_FAILED, S.FAILED)
            and self._form.is_valid
            and not self._attribute_types.is_loading
            and not self._attribute_types.blocks_saving
        )

    @property
    def is_closed(self) -> bool:
        return self._state == S.CANCELLED or self._state.is_success

    def handle(self, event: SubmissionEvent, target: SubmissionState) -> SubmissionState:
        """Apply ``event`` moving to ``target``; rejects transitions the table does not allow."""
        allowed = _TRANSITIONS.get((self._state, event), frozenset())
        if target not in allowed:
            raise InvalidTransitionError(
                f"Event {event.value} cannot move {self._state.value} to {target.value}"
            )
        previous, self._state = self._state, target
        logger.info(
            "Visit submission transition",
            session_id=self._session_id,
            patient_uuid=self._patient_uuid,
            event=event.value,
            from_state=previous.value,
            to_state=target.value,
        )
        return target

    def edit(self, **changes: Any) -> Dict[str, str]:
        """Apply field edits. Fields stay editable while a call is in flight."""
        if self.is_closed:
            raise WorkflowClosedError(self._state.value)
        errors = self._form.update(**changes)
        self._on_edit()
        return errors

    def set_attribute_value(self, attribute_type_uuid: str, value: Optional[str]) -> None:
        if self.is_closed:
            raise WorkflowClosedError(self._state.value)
        self._form.set_attribute_value(attribute_type_uuid, value)
        self._on_edit()

    def _on_edit(self) -> None:
        if not self._state.is_in_flight:
            self.handle(E.FIELD_EDITED, S.IDLE)

    def cancel(self) -> None:
        """Close the workflow; cancels any in-flight remote call."""
        if self.is_closed:
            return
        self._cancelled = True
        if self._in_flight is not None and not self._in_flight.done():
            self._in_flight.cancel()
        self.handle(E.CANCEL, S.CANCELLED)
        self.last_outcome = SubmissionOutcome(state=S.CANCELLED)

    async def submit(self) -> SubmissionOutcome:
        """Run one submission attempt to a terminal state.

        Local conditions raise DomainError subclasses before any remote call.
        Remote failures are returned as terminal outcomes, never raised.
        """
        if self.is_closed:
            raise WorkflowClosedError(self._state.value)
        if self._state.is_in_flight:
            raise SubmissionInProgressError(self._state.value)

        form_data = self._form.validated()

        if self._attribute_types.is_loading:
            raise AttributeTypesUnavailableError("still loading")
        if self._attribute_types.blocks_saving:
            raise AttributeTypesUnavailableError("failed to load")

        missing = find_missing_required_attributes(
            self._attribute_types.get_attribute_types(), self._form.attribute_values
        )
        if missing:
            self.handle(E.SUBMIT, S.ATTRIBUTE_CHECK_FAILED)
            return self._finish(
                SubmissionOutcome(state=S.ATTRIBUTE_CHECK_FAILED, missing_attributes=tuple(missing))
            )

        payload = VisitCreationPayload.build(
            self._patient_uuid, form_data, self._form.attribute_values
        )
        self.handle(E.SUBMIT, S.SUBMITTING)

        created = await self._call(self._visit_service.create_visit(payload))
        if self._cancelled:
            # The call may have resolved despite the cancel; keep the visit it created
            late_visit = created.value if isinstance(created, CallSucceeded) else None
            return self._finish(SubmissionOutcome(state=S.CANCELLED, visit=late_visit))
        if isinstance(created, CallFailed):
            self.handle(E.VISIT_CREATION_FAILED, S.FAILED)
            return self._finish(
                SubmissionOutcome(
                    state=S.FAILED,
                    start_datetime=payload.start_datetime,
                    error_message=created.message,
                )
            )

        visit: CreatedVisit = created.value
        self.handle(E.VISIT_CREATION_SUCCEEDED, S.VISIT_CREATED)

        queue_payload = self._queue_admission_payload(visit)
        if queue_payload is None:
            self.handle(E.VISIT_COMPLETED, S.SUCCEEDED)
            return self._finish(
                SubmissionOutcome(state=S.SUCCEEDED, visit=visit, start_datetime=payload.start_datetime)
            )

        self.handle(E.QUEUE_ADMISSION_STARTED, S.QUEUE_ADMITTING)
        admitted = await self._call(self._queue_service.admit_to_queue(queue_payload))
        if self._cancelled:
            return self._finish(SubmissionOutcome(state=S.CANCELLED, visit=visit))
        if isinstance(admitted, CallFailed):
            self.handle(E.QUEUE_ADMISSION_FAILED, S.SUCCEEDED_WITH_QUEUE_WARNING)
            return self._finish(
                SubmissionOutcome(
                    state=S.SUCCEEDED_WITH_QUEUE_WARNING,
                    visit=visit,
                    start_datetime=payload.start_datetime,
                    queue_error_message=admitted.message,
                )
            )

        self.handle(E.QUEUE_ADMISSION_SUCCEEDED, S.SUCCEEDED)
        return self._finish(
            SubmissionOutcome(
                state=S.SUCCEEDED,
                visit=visit,
                start_datetime=payload.start_datetime,
                queue_admitted=True,
            )
        )

    def _queue_admission_payload(self, visit: CreatedVisit) -> Optional[QueueAdmissionPayload]:
        """Queue request built from the queue inputs as they are right now."""
        if not self._config.show_service_queue_fields:
            return None
        if self._queue_service is None or self._queue_fields is None:
            return None
        fields = self._queue_fields.read_queue_fields()
        if fields is None:
            return None
        return QueueAdmissionPayload(
            visit_uuid=visit.uuid,
            patient_uuid=self._patient_uuid,
            fields=fields,
            visit_queue_number_attribute_uuid=self._config.visit_queue_number_attribute_uuid,
            started_at=datetime.now(),
        )

    async def _call(self, call: Awaitable[T]) -> CallResult:
        """Await a remote call under its own cancellation handle."""
        task = asyncio.ensure_future(call)
        self._in_flight = task
        try:
            return CallSucceeded(await task)
        except asyncio.CancelledError:
            if self._cancelled:
                return CallFailed("cancelled", cancelled=True)
            raise
        except Exception as exc:
            logger.error(
                "Remote call failed",
                session_id=self._session_id,
                patient_uuid=self._patient_uuid,
                state=self._state.value,
                error=_error_message(exc),
            )
            return CallFailed(_error_message(exc), error=exc)
        finally:
            self._in_flight = None

    def _finish(self, outcome: SubmissionOutcome) -> SubmissionOutcome:
        self.last_outcome = outcome
        return outcome
