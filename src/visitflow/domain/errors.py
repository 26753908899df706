"""
Domain-specific error types for business rule violations.
"""

from typing import Any, Dict, Optional


class DomainError(Exception):
    """Base domain error."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)


class InvalidVisitTimeError(DomainError):
    """Clock time is not a valid 12-hour hh:mm value."""

    def __init__(self, value: str) -> None:
        message = f"Invalid visit time: {value!r}. Expected hh:mm on a 12-hour clock"
        super().__init__(message, "INVALID_VISIT_TIME", {"visit_time": value})


class FormNotSubmittableError(DomainError):
    """The form state violates the visit form schema."""

    def __init__(self, errors: Dict[str, str]) -> None:
        message = "Visit form has invalid fields: " + ", ".join(sorted(errors))
        super().__init__(message, "FORM_NOT_SUBMITTABLE", {"errors": errors})


class SubmissionInProgressError(DomainError):
    """A submission is already in flight for this workflow."""

    def __init__(self, state: str) -> None:
        message = f"A visit submission is already in progress (state: {state})"
        super().__init__(message, "SUBMISSION_IN_PROGRESS", {"state": state})


class WorkflowClosedError(DomainError):
    """The workflow surface was closed; no further events are accepted."""

    def __init__(self, state: str) -> None:
        message = f"Visit form is closed (state: {state})"
        super().__init__(message, "WORKFLOW_CLOSED", {"state": state})


class AttributeTypesUnavailableError(DomainError):
    """Visit attribute types are still loading or failed to load."""

    def __init__(self, reason: str) -> None:
        message = f"Visit attribute types unavailable: {reason}"
        super().__init__(message, "ATTRIBUTE_TYPES_UNAVAILABLE", {"reason": reason})


class UnknownFormFieldError(DomainError):
    """Edit targets a field the visit form does not have."""

    def __init__(self, field: str) -> None:
        message = f"Unknown visit form field: {field}"
        super().__init__(message, "UNKNOWN_FORM_FIELD", {"field": field})
