from typing import Any, Optional
from fastapi import Request
from ..schemas.common import ApiResponse, ErrorResponse

def ok(request: Optional[Request], data: Any = None, message: str = "") -> ApiResponse[Any]:
    req_id = getattr(request.state, "request_id", None) if request is not None else None
    return ApiResponse(success=True, message=message, request_id=req_id or "", data=data)

def fail(request: Optional[Request], error: str, message: str, details: Optional[dict] = None) -> ErrorResponse:
    req_id = getattr(request.state, "request_id", None) if request is not None else None
    return ErrorResponse(error=error, message=message, request_id=req_id or "", details=details or {})
