from typing import Dict

from ..domain.errors import DomainError


class APIError(Exception):
    def __init__(self, code: str, message: str, http_status: int = 400, details: dict = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.http_status = http_status
        self.details = details


class NotFoundError(APIError):
    def __init__(self, message: str, details: dict = None):
        super().__init__("NOT_FOUND", message, 404, details)


# Domain-specific
class VisitFormNotFoundError(NotFoundError):
    def __init__(self, session_id: str):
        super().__init__(f"Visit form not found ({session_id})", {"session_id": session_id})


DOMAIN_ERROR_STATUS: Dict[str, int] = {
    "INVALID_VISIT_TIME": 422,
    "FORM_NOT_SUBMITTABLE": 422,
    "UNKNOWN_FORM_FIELD": 422,
    "UNKNOWN_ENROLLMENT": 422,
    "SUBMISSION_IN_PROGRESS": 409,
    "WORKFLOW_CLOSED": 409,
    "ATTRIBUTE_TYPES_UNAVAILABLE": 503,
}


def domain_error_status(exc: DomainError) -> int:
    return DOMAIN_ERROR_STATUS.get(exc.error_code or "", 400)
