"""API request and response schemas."""

from .common import ApiResponse, ErrorResponse
from .visit_form import (
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

__all__ = [
    "ApiResponse",
    "ErrorResponse",
    "NotificationSchema",
    "OpenVisitFormRequest",
    "PatientVisitsResponse",
    "QueueFieldsSchema",
    "SubmitVisitFormResponse",
    "VisitFormResponse",
    "VisitFormUpdateRequest",
    "VisitSchema",
    "VisitTypePageResponse",
    "VisitTypeSchema",
]
