"""Exception handlers for the application."""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from spotify_explorer.exceptions import ExplorerException
from spotify_explorer.logging_config import get_logger, log_with_context
from spotify_explorer.middleware.logging_middleware import redact_sensitive_data
from spotify_explorer.models import ErrorResponse

logger = get_logger(__name__)


async def explorer_exception_handler(request: Request, exc: ExplorerException) -> JSONResponse:
    """Render explorer exceptions as structured JSON with their HTTP status."""
    log_with_context(
        logger,
        "warning",
        "Explorer error",
        error_code=exc.code.value,
        error_message=exc.message,
        status_code=exc.status_code,
        method=request.method,
        url=redact_sensitive_data(str(request.url)),
        event_type="explorer_error",
    )

    error = ErrorResponse(code=exc.code.value, message=exc.message, details=exc.details)
    return JSONResponse(status_code=exc.status_code, content={"error": error.model_dump()})


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log unexpected exceptions and hide their details from clients."""
    log_with_context(
        logger,
        "error",
        "Unhandled exception",
        error=str(exc),
        error_type=type(exc).__name__,
        method=request.method,
        url=redact_sensitive_data(str(request.url)),
        event_type="unhandled_error",
    )
    logger.error("Exception traceback:", exc_info=exc)

    return JSONResponse(
        status_code=500,
        content={"error": {"code": "INTERNAL_ERROR", "message": "Internal server error"}},
    )


def register_error_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the application."""
    app.add_exception_handler(ExplorerException, explorer_exception_handler)
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_exception_handler(Exception, general_exception_handler)
