"""Taskboard Backend: FastAPI application entry point."""

import signal
import uuid
from contextlib import asynccontextmanager

# CRITICAL ORDER: configure_structlog MUST be called before all other app imports
# (structlog caches the processor chain on first use).
from taskboard.core.logging import configure_structlog
from taskboard.core.config import get_settings as _get_settings_early

_early_settings = _get_settings_early()
configure_structlog(
    log_level="DEBUG" if _early_settings.debug else "INFO",
    json_logs=not _early_settings.debug,
)

import structlog

from fastapi import FastAPI, Request, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from taskboard.api.routes import api_router
from taskboard.core.config import get_settings
from taskboard.core.exceptions import InternalFailureError, InvalidArgumentError, TaskboardError
from taskboard.db import init_db, close_db
from taskboard.middleware.correlation import (
    setup_correlation_middleware,
    get_correlation_id,
)

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    # SIGTERM flips this so the health check returns 503 while draining
    app.state.shutting_down = False

    def handle_sigterm(signum, frame):
        app.state.shutting_down = True
        logger.info("sigterm_received", action="health_check_503_draining_connections")

    signal.signal(signal.SIGTERM, handle_sigterm)

    settings = get_settings()
    logger.info("startup_begin", app_name=settings.app_name, debug=settings.debug)

    await init_db()
    logger.info("db_initialized")

    yield

    logger.info("shutdown_begin")
    await close_db()
    logger.info("shutdown_complete")


def _error_response(request: Request, status_code: int, code: str, detail, **log_fields) -> JSONResponse:
    """Log the error with a fresh debug_id and return the sanitized body."""
    debug_id = str(uuid.uuid4())
    logger.error(
        log_fields.pop("event", "http_exception"),
        status_code=status_code,
        code=code,
        debug_id=debug_id,
        correlation_id=get_correlation_id(),
        path=request.url.path,
        method=request.method,
        user_id=getattr(request.state, "user_id", None),
        tenant_id=getattr(request.state, "tenant_id", None),
        **log_fields,
    )
    return JSONResponse(
        status_code=status_code,
        content={"detail": detail, "code": code, "debug_id": debug_id},
    )


async def taskboard_exception_handler(request: Request, exc: TaskboardError) -> JSONResponse:
    """Translate domain errors to HTTP. Internal failures are never echoed."""
    if exc.status_code >= 500:
        return _error_response(
            request,
            exc.status_code,
            exc.code,
            "Internal server error",
            event="internal_failure",
            error=exc.message,
            cause=repr(exc.__cause__) if exc.__cause__ else None,
        )
    return _error_response(request, exc.status_code, exc.code, exc.message, event="client_error")


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Global exception handler for HTTPException with debug_id tracking."""
    codes = {401: "unauthenticated", 403: "forbidden", 404: "not_found"}
    code = codes.get(exc.status_code, "invalid_argument" if exc.status_code < 500 else "internal_failure")
    return _error_response(request, exc.status_code, code, exc.detail, event="http_exception")


def _validation_detail(errors) -> str:
    """One message for the first failing field, worded like the service errors."""
    if not errors:
        return "Invalid request body"
    error = errors[0]
    fields = [
        part for part in error.get("loc", ()) if isinstance(part, str) and part not in ("body", "query", "path")
    ]
    if not fields:
        return "Invalid request body"
    if error.get("type") == "missing" or error.get("input", "") is None:
        return f"{fields[-1]} is required"
    return f"Invalid {fields[-1]}"


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Request bodies or parameters that fail validation are invalid arguments."""
    errors = exc.errors()
    return _error_response(
        request,
        InvalidArgumentError.status_code,
        InvalidArgumentError.code,
        _validation_detail(errors),
        event="request_validation_failed",
        errors=[f"{'.'.join(str(p) for p in e.get('loc', ()))}: {e.get('msg')}" for e in errors],
    )


async def storage_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Storage errors that escaped the services surface as internal failures."""
    return _error_response(
        request,
        500,
        InternalFailureError.code,
        "Internal server error",
        event="storage_exception",
        error=str(exc),
        error_type=type(exc).__name__,
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Global exception handler for unhandled errors with debug_id tracking.

    Logs full exception with traceback, returns generic 500 to client.
    """
    return _error_response(
        request,
        500,
        InternalFailureError.code,
        "Internal server error",
        event="unhandled_exception",
        error=str(exc),
        error_type=type(exc).__name__,
        exc_info=exc,
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.exception_handler(TaskboardError)(taskboard_exception_handler)
    app.exception_handler(HTTPException)(http_exception_handler)
    app.exception_handler(RequestValidationError)(validation_exception_handler)
    app.exception_handler(SQLAlchemyError)(storage_exception_handler)
    app.exception_handler(Exception)(generic_exception_handler)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Multi-tenant task tracking with per-project stage workflows",
        version="0.1.0",
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_url, *settings.cors_origins],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Correlation ID middleware (runs first on incoming requests)
    setup_correlation_middleware(app)

    register_exception_handlers(app)

    app.include_router(api_router, prefix="/api")

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "taskboard.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
