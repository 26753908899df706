"""
Visit form API schemas.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class OpenVisitFormRequest(BaseModel):
    """Optional overrides when opening a start-visit form."""

    now: Optional[str] = Field(None, description="Client clock (ISO 8601) used for the default date and time")


class QueueFieldsSchema(BaseModel):
    """Queue inputs captured alongside the visit form."""

    queue_location: Optional[str] = Field(None, description="Queue location UUID")
    service: Optional[str] = Field(None, description="Queue (service) UUID")
    priority: Optional[str] = Field(None, description="Priority concept UUID")
    status: Optional[str] = Field(None, description="Status concept UUID")
    sort_weight: Optional[float] = Field(None, description="Sort weight within the queue")


class VisitFormUpdateRequest(BaseModel):
    """Partial form edit. Only fields present in the body are applied."""

    visit_date: Optional[str] = Field(None, description="Visit date (YYYY-MM-DD)")
    visit_time: Optional[str] = Field(None, description="Visit time on a 12-hour clock (hh:mm)")
    time_format: Optional[str] = Field(None, description="AM or PM")
    selected_location: Optional[str] = Field(None, description="Visit location UUID")
    visit_type: Optional[str] = Field(None, description="Visit type UUID")
    enrollment: Optional[str] = Field(None, description="Enrollment or program UUID")
    content_switcher_index: Optional[int] = Field(None, description="0 for recommended, 1 for all visit types")
    attribute_values: Dict[str, str] = Field(default_factory=dict, description="Visit attribute values by type UUID")
    queue_fields: Optional[QueueFieldsSchema] = Field(None, description="Queue inputs")


class EnrollmentSchema(BaseModel):
    uuid: str
    display: str
    program_uuid: str
    program_display: str = ""


class VisitFormResponse(BaseModel):
    """Current state of a start-visit form session."""

    session_id: str
    patient_uuid: str
    state: str
    visit_date: Optional[str] = None
    visit_time: str = ""
    time_format: str = ""
    selected_location: str = ""
    visit_type: Optional[str] = None
    enrollment: Optional[str] = None
    content_switcher_index: Optional[int] = None
    attribute_values: Dict[str, str] = Field(default_factory=dict)
    queue_fields: Optional[QueueFieldsSchema] = None
    errors: Dict[str, str] = Field(default_factory=dict, description="Field-scoped validation errors")
    dirty: bool = False
    can_submit: bool = False
    attribute_types_loading: bool = False
    enrollments: List[EnrollmentSchema] = Field(default_factory=list)


class VisitTypeSchema(BaseModel):
    uuid: str
    display: str


class VisitTypePageResponse(BaseModel):
    """One page of visit types for the current switcher view."""

    results: List[VisitTypeSchema]
    current_page: int
    total_pages: int
    total_items: int
    has_next: bool
    has_previous: bool


class NotificationSchema(BaseModel):
    kind: str
    title: str
    description: str = ""
    critical: bool = False
    inline: bool = False


class VisitSchema(BaseModel):
    uuid: str
    visit_type_display: str = ""
    start_datetime: Optional[str] = None
    location_uuid: Optional[str] = None


class SubmitVisitFormResponse(BaseModel):
    """Terminal outcome of a submission attempt."""

    session_id: str
    state: str
    visit: Optional[VisitSchema] = None
    error_message: Optional[str] = None
    queue_admitted: bool = False
    queue_error_message: Optional[str] = None
    missing_attributes: List[str] = Field(default_factory=list)
    notifications: List[NotificationSchema] = Field(default_factory=list)
    refresh_visit_data: bool = False
    closed: bool = False


class PatientVisitsResponse(BaseModel):
    patient_uuid: str
    version: int = Field(..., description="Cache version; bumps whenever visit data is refreshed")
    visits: List[Dict[str, Any]] = Field(default_factory=list)
