"""Centralized exception handlers for the API."""
from fastapi import Request
from fastapi.responses import JSONResponse

from coupon_allocator.exceptions import BaseAppException, AlreadyClaimedError
from coupon_allocator.utils.logging import get_context_logger
from api.error_codes import get_http_status

logger = get_context_logger("api_exceptions")


def handle_app_exception(request: Request, exc: BaseAppException) -> JSONResponse:
    """
    Handle all application exceptions.

    Expected rejections keep their specific message; server faults get the
    generic message for their code and never expose exception details.
    """
    status_code, default_message = get_http_status(exc.error_code)
    trace_id = getattr(request.state, "trace_id", None)

    error_content = {
        "success": False,
        "error": {
            "code": exc.error_code.name,
            "type": exc.__class__.__name__
        }
    }

    if status_code >= 500:
        logger.error(
            f"Request failed: {exc.message}",
            extra={"trace_id": trace_id, "path": request.url.path, **exc.details}
        )
        error_content["message"] = default_message
    else:
        error_content["message"] = str(exc) or default_message

    if isinstance(exc, AlreadyClaimedError) and exc.remaining_seconds is not None:
        error_content["timeRemaining"] = exc.remaining_seconds

    if trace_id:
        error_content["trace_id"] = trace_id

    return JSONResponse(status_code=status_code, content=error_content)


def handle_unexpected_exception(request: Request, exc: Exception) -> JSONResponse:
    """
    Handle exceptions that weren't caught by the application handler.

    Logs the full exception and returns a generic error to the client.
    """
    trace_id = getattr(request.state, "trace_id", "unknown")

    logger.exception(
        "Unexpected exception in API",
        extra={
            "trace_id": trace_id,
            "path": request.url.path,
            "method": request.method,
            "exception_type": type(exc).__name__
        }
    )

    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "message": "An unexpected error occurred",
            "error": {
                "code": "INTERNAL_ERROR",
                "type": "InternalServerError"
            },
            "trace_id": trace_id
        }
    )


def register_exception_handlers(app):
    """
    Register all exception handlers with the FastAPI app.

    Args:
        app: FastAPI application instance
    """
    app.add_exception_handler(BaseAppException, handle_app_exception)
    app.add_exception_handler(Exception, handle_unexpected_exception)
