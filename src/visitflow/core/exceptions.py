"""
Exception handling for visitflow.

This module provides the exception classes raised by the infrastructure
layers (configuration and remote service adapters).
"""

from typing import Any, Dict, Optional


class VisitFlowException(Exception):
    """Base exception class for visitflow."""

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


class ExternalServiceError(VisitFlowException):
    """Raised when there's an external service error."""

    def __init__(
        self, service: str, message: str, details: Optional[Dict[str, Any]] = None
    ) -> None:
        self.service = service
        full_message = f"{service} service error: {message}"
        super().__init__(full_message, "EXTERNAL_SERVICE_ERROR", details)


class OpenMRSError(ExternalServiceError):
    """Raised when the OpenMRS REST API rejects a request or is unreachable."""

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.status = status
        details = dict(details or {})
        if status is not None:
            details.setdefault("status", status)
        super().__init__("OpenMRS", message, details)
