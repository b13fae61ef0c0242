"""Centralized error code to HTTP status mapping."""
from coupon_allocator.exceptions import ErrorCode

# Map internal error codes to HTTP status codes and user-facing messages
ERROR_CODE_MAP = {
    ErrorCode.VALIDATION_ERROR: {
        "status": 422,
        "message": "Validation failed"
    },
    ErrorCode.ALREADY_CLAIMED: {
        "status": 429,
        "message": "You have already claimed a coupon. Please try again later."
    },
    ErrorCode.POOL_EXHAUSTED: {
        "status": 404,
        "message": "No available coupons"
    },
    ErrorCode.DUPLICATE_IDENTITY: {
        "status": 409,
        "message": "Duplicate claim detected"
    },
    ErrorCode.IDENTITY_RESOLUTION_ERROR: {
        "status": 500,
        "message": "Failed to claim coupon"
    },
    ErrorCode.DATABASE_ERROR: {
        "status": 500,
        "message": "Database operation failed"
    },
    ErrorCode.DATABASE_CONNECTION_ERROR: {
        "status": 500,
        "message": "Database operation failed"
    },
    ErrorCode.DATABASE_CONSTRAINT_ERROR: {
        "status": 500,
        "message": "Database operation failed"
    },
    ErrorCode.INTERNAL_ERROR: {
        "status": 500,
        "message": "Internal server error"
    },
}


def get_http_status(error_code: ErrorCode) -> tuple[int, str]:
    """
    Get HTTP status code and message for an error code.

    Args:
        error_code: Internal error code

    Returns:
        Tuple of (status_code, message)
    """
    mapping = ERROR_CODE_MAP.get(error_code, {
        "status": 500,
        "message": "Internal server error"
    })

    return mapping["status"], mapping["message"]
