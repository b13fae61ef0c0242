"""
Error handling utilities for the coupon allocator.

Translates SQLAlchemy failures into DatabaseError so that callers only
deal with the application taxonomy.
"""
from typing import Optional, Any, Dict
from sqlalchemy.exc import IntegrityError, OperationalError

from coupon_allocator.exceptions import DatabaseError, ErrorCode
from coupon_allocator.utils.logging import get_context_logger


def handle_database_error(
    exception: Exception,
    operation: str,
    logger: Any = None,
    trace_id: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None
) -> None:
    """
    Standardized handler for database errors.

    Args:
        exception: The exception that occurred
        operation: Name of the operation that failed
        logger: Logger instance to use (optional)
        trace_id: Trace ID for logging context (optional)
        details: Additional error details (optional)

    Raises:
        DatabaseError: A standardized error wrapping the original exception
    """
    if logger is None:
        logger = get_context_logger("database", trace_id=trace_id)

    error_code = ErrorCode.DATABASE_ERROR
    error_msg = f"Database error in {operation}: {str(exception)}"
    error_details = details or {}

    if isinstance(exception, IntegrityError):
        error_code = ErrorCode.DATABASE_CONSTRAINT_ERROR
        error_details["error_type"] = "constraint_violation"
    elif isinstance(exception, OperationalError):
        if "connection" in str(exception).lower():
            error_code = ErrorCode.DATABASE_CONNECTION_ERROR
            error_details["error_type"] = "connection_error"
        elif "locked" in str(exception).lower() or "timeout" in str(exception).lower():
            error_details["error_type"] = "timeout"

    logger.error(error_msg)

    raise DatabaseError(
        error_msg,
        error_code=error_code,
        original_exception=exception,
        operation=operation,
        details=error_details
    )
