"""Start-visit form endpoints.

A form session lives from open until it is discarded or a submission
succeeds. Closing a session removes it from the store.
"""

import logging
import uuid
from dataclasses import asdict
from datetime import datetime
from enum import Enum
from functools import partial
from typing import Any, Dict, Optional

from fastapi import APIRouter, Query, Request, status

from ...adapters.notifications.collecting_channel import CollectingNotificationChannel
from ...adapters.queue.form_queue_fields import FormQueueFieldsProvider
from ...adapters.sessions.session_store import SessionEntry
from ...application.use_cases.visit_form_session import OpenVisitFormRequest as OpenVisitFormDTO
from ..deps import AttributeTypeCatalogDep, OpenVisitFormUseCaseDep, SessionStoreDep, VisitCacheDep
from ..errors import APIError, VisitFormNotFoundError
from ..schemas import (
    ApiResponse,
    NotificationSchema,
    OpenVisitFormRequest,
    PatientVisitsResponse,
    QueueFieldsSchema,
    SubmitVisitFormResponse,
    VisitFormResponse,
    VisitFormUpdateRequest,
    VisitSchema,
    VisitTypePageResponse,
    VisitTypeSchema,
)
from ..schemas.visit_form import EnrollmentSchema
from ..utils.responses import ok

router = APIRouter(tags=["Visit Forms"])
logger = logging.getLogger("visitflow")


def _raw(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return value


def _get_entry(store, session_id: str) -> SessionEntry:
    entry = store.get(session_id)
    if entry is None:
        raise VisitFormNotFoundError(session_id)
    return entry


def _form_view(entry: SessionEntry, attribute_types) -> VisitFormResponse:
    session = entry.session
    state = session.form.state
    queue_fields = entry.queue_fields.read_queue_fields()
    return VisitFormResponse(
        session_id=session.session_id,
        patient_uuid=session.patient_uuid,
        state=session.state.value,
        visit_date=_raw(state.visit_date),
        visit_time=state.visit_time or "",
        time_format=_raw(state.time_format) or "",
        selected_location=state.selected_location or "",
        visit_type=state.visit_type,
        enrollment=state.enrollment.uuid if state.enrollment else None,
        content_switcher_index=_raw(state.content_switcher_index),
        attribute_values=dict(session.form.attribute_values),
        queue_fields=QueueFieldsSchema(**asdict(queue_fields)) if queue_fields else None,
        errors=dict(session.form.errors),
        dirty=session.form.dirty,
        can_submit=session.orchestrator.can_submit,
        attribute_types_loading=attribute_types.is_loading,
        enrollments=[
            EnrollmentSchema(
                uuid=e.uuid,
                display=e.display,
                program_uuid=e.program.uuid,
                program_display=e.program.display,
            )
            for e in session.enrollments
        ],
    )


@router.post(
    "/patients/{patient_uuid}/visit-forms",
    response_model=ApiResponse[VisitFormResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Open a start-visit form for a patient",
)
async def open_visit_form(
    http_request: Request,
    patient_uuid: str,
    use_case: OpenVisitFormUseCaseDep,
    store: SessionStoreDep,
    cache: VisitCacheDep,
    attribute_types: AttributeTypeCatalogDep,
    request: Optional[OpenVisitFormRequest] = None,
):
    now = None
    if request is not None and request.now:
        try:
            now = datetime.fromisoformat(request.now)
        except ValueError:
            raise APIError("INVALID_INPUT", f"Invalid client time '{request.now}'", 422) from None

    session_id = str(uuid.uuid4())
    channel = CollectingNotificationChannel()
    queue_fields = FormQueueFieldsProvider()
    session = await use_case.execute(
        OpenVisitFormDTO(patient_uuid=patient_uuid, now=now, session_id=session_id),
        notification_channel=channel,
        refresh_visit_data=partial(cache.invalidate, patient_uuid),
        close_surface=partial(store.remove, session_id),
        queue_fields=queue_fields,
    )
    entry = SessionEntry(session=session, channel=channel, queue_fields=queue_fields)
    store.add(entry)
    logger.info(f"Visit form session {session_id} opened for patient {patient_uuid}")
    return ok(http_request, data=_form_view(entry, attribute_types), message="Created")


@router.get(
    "/visit-forms/{session_id}",
    response_model=ApiResponse[VisitFormResponse],
    summary="Read a start-visit form",
)
async def get_visit_form(
    http_request: Request,
    session_id: str,
    store: SessionStoreDep,
    attribute_types: AttributeTypeCatalogDep,
):
    entry = _get_entry(store, session_id)
    return ok(http_request, data=_form_view(entry, attribute_types))


@router.patch(
    "/visit-forms/{session_id}",
    response_model=ApiResponse[VisitFormResponse],
    summary="Edit start-visit form fields",
)
async def update_visit_form(
    http_request: Request,
    session_id: str,
    request: VisitFormUpdateRequest,
    store: SessionStoreDep,
    attribute_types: AttributeTypeCatalogDep,
):
    """Apply a partial edit and re-validate the whole form.

    Field errors are reported in the response body, not as an HTTP error.
    """
    entry = _get_entry(store, session_id)
    changes: Dict[str, Any] = request.model_dump(exclude_unset=True)
    attribute_values = changes.pop("attribute_values", None)
    queue_changes = changes.pop("queue_fields", None)
    if changes.get("enrollment") == "":
        changes["enrollment"] = None

    if queue_changes:
        entry.queue_fields.update(**queue_changes)
    entry.session.edit(changes, attribute_values)
    return ok(http_request, data=_form_view(entry, attribute_types))


@router.delete(
    "/visit-forms/{session_id}",
    response_model=ApiResponse[VisitFormResponse],
    summary="Discard a start-visit form",
)
async def discard_visit_form(
    http_request: Request,
    session_id: str,
    store: SessionStoreDep,
    attribute_types: AttributeTypeCatalogDep,
):
    """Close the form. Any in-flight call is cancelled."""
    entry = _get_entry(store, session_id)
    entry.session.discard()
    return ok(http_request, data=_form_view(entry, attribute_types), message="Discarded")


@router.get(
    "/visit-forms/{session_id}/visit-types",
    response_model=ApiResponse[VisitTypePageResponse],
    summary="Search visit types for the current view",
)
async def list_visit_types(
    http_request: Request,
    session_id: str,
    store: SessionStoreDep,
    query: str = Query("", description="Case-insensitive display name filter"),
    page: int = Query(1, ge=1, description="1-based page number"),
):
    entry = _get_entry(store, session_id)
    result = await entry.session.browse_visit_types(query, page)
    return ok(
        http_request,
        data=VisitTypePageResponse(
            results=[VisitTypeSchema(uuid=v.uuid, display=v.display) for v in result.results],
            current_page=result.current_page,
            total_pages=result.total_pages,
            total_items=result.total_items,
            has_next=result.has_next,
            has_previous=result.has_previous,
        ),
    )


@router.post(
    "/visit-forms/{session_id}/submit",
    response_model=ApiResponse[SubmitVisitFormResponse],
    summary="Start the visit",
)
async def submit_visit_form(
    http_request: Request,
    session_id: str,
    store: SessionStoreDep,
):
    """Run one submission attempt to a terminal state.

    Remote failures are reported in the body with a 200 status; local
    conditions (invalid form, submission in flight, attribute types not
    ready) are rejected before any remote call.
    """
    entry = _get_entry(store, session_id)
    result = await entry.session.submit()
    outcome = result.outcome
    visit = outcome.visit
    response = SubmitVisitFormResponse(
        session_id=session_id,
        state=outcome.state.value,
        visit=VisitSchema(**asdict(visit)) if visit else None,
        error_message=outcome.error_message,
        queue_admitted=outcome.queue_admitted,
        queue_error_message=outcome.queue_error_message,
        missing_attributes=list(outcome.missing_attributes),
        notifications=[
            NotificationSchema(
                kind=n.kind.value,
                title=n.title,
                description=n.description,
                critical=n.critical,
                inline=n.inline,
            )
            for n in entry.channel.drain()
        ],
        refresh_visit_data=result.directive.refresh_visit_data,
        closed=entry.session.closed,
    )
    return ok(http_request, data=response)


@router.get(
    "/patients/{patient_uuid}/visits",
    response_model=ApiResponse[PatientVisitsResponse],
    tags=["Patients"],
    summary="List a patient's visits",
)
async def list_patient_visits(http_request: Request, patient_uuid: str, cache: VisitCacheDep):
    visits = await cache.get_visits(patient_uuid)
    return ok(
        http_request,
        data=PatientVisitsResponse(
            patient_uuid=patient_uuid, version=cache.version(patient_uuid), visits=visits
        ),
    )
