"""
FastAPI application factory and main app configuration.
"""

import asyncio
import logging
import time
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .api.deps import get_attribute_type_catalog
from .api.errors import APIError, domain_error_status
from .api.routers import health, visit_forms
from .api.schemas.common import ErrorResponse
from .core.config import get_settings
from .core.exceptions import ExternalServiceError, VisitFlowException
from .core.structured_logger import configure_logging
from .domain.errors import DomainError

logger = logging.getLogger("visitflow")


def _log_load_failure(task: asyncio.Task) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error(f"Visit attribute type loading failed: {exc!r}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    settings = get_settings()
    configure_logging(settings.logging)
    logger.info(f"Starting {settings.app_name} v{settings.app_version} ({settings.app_env})")

    # Attribute type labels load in the background; submissions are deferred until done
    load_task = None
    catalog = app.dependency_overrides.get(get_attribute_type_catalog, get_attribute_type_catalog)()
    load = getattr(catalog, "load", None)
    if load is not None:
        load_task = asyncio.create_task(load())
        load_task.add_done_callback(_log_load_failure)
        logger.info("Visit attribute type loading started")

    yield

    if load_task is not None and not load_task.done():
        load_task.cancel()
        try:
            await load_task
        except asyncio.CancelledError:
            pass
    logger.info(f"Shutting down {settings.app_name}")


def _error_response(request: Request, status_code: int, error: str, message: str, details=None) -> JSONResponse:
    req_id = getattr(request.state, "request_id", None)
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(
            error=error,
            message=message,
            request_id=req_id or "",
            details=details or {},
        ).model_dump(),
    )


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="VisitFlow",
        description="Start-visit workflow service for OpenMRS",
        version=settings.app_version,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors.allowed_origins,
        allow_credentials=False,
        allow_methods=settings.cors.allowed_methods,
        allow_headers=settings.cors.allowed_headers,
        max_age=600,
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        request.state.request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info(
            f"{request.method} {request.url.path} -> {response.status_code} "
            f"({elapsed_ms:.1f} ms) request_id={request.state.request_id}"
        )
        response.headers["X-Request-ID"] = request.state.request_id
        return response

    app.include_router(health.router)
    app.include_router(visit_forms.router)

    @app.exception_handler(DomainError)
    async def domain_error_handler(request: Request, exc: DomainError):
        status_code = domain_error_status(exc)
        logger.warning(f"DomainError: {exc.error_code} ({status_code}) {exc.message}")
        return _error_response(
            request, status_code, exc.error_code or "DOMAIN_ERROR", exc.message, exc.details
        )

    @app.exception_handler(APIError)
    async def api_error_handler(request: Request, exc: APIError):
        logger.error(f"APIError: {exc.code} ({exc.http_status}) {exc.message}")
        return _error_response(request, exc.http_status, exc.code, exc.message, exc.details)

    @app.exception_handler(ExternalServiceError)
    async def external_service_error_handler(request: Request, exc: ExternalServiceError):
        logger.error(f"ExternalServiceError: {exc.message}")
        return _error_response(request, 502, exc.error_code or "EXTERNAL_SERVICE_ERROR", exc.message, exc.details)

    @app.exception_handler(VisitFlowException)
    async def visitflow_error_handler(request: Request, exc: VisitFlowException):
        logger.error(f"VisitFlowException: {exc.error_code} {exc.message}")
        return _error_response(request, 500, exc.error_code or "INTERNAL_ERROR", exc.message, exc.details)

    @app.exception_handler(RequestValidationError)
    async def request_validation_error_handler(request: Request, exc: RequestValidationError):
        error_messages = []
        for error in exc.errors():
            loc = " -> ".join(str(x) for x in error.get("loc", []))
            error_messages.append(f"{loc}: {error.get('msg', 'Validation error')}")
        logger.error(f"ValidationError on {request.method} {request.url.path}: {error_messages}")
        return _error_response(
            request,
            422,
            "INVALID_INPUT",
            f"Input validation failed: {'; '.join(error_messages)}",
            {"path": request.url.path},
        )

    return app


# Create the app instance
app = create_app()
