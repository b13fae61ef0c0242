"""
Exception definitions for coupon allocation.
Defines custom exceptions used throughout the claim allocator.
"""
from enum import Enum
from typing import Optional, Dict, Any

class ErrorCode(Enum):
    """Standardized error codes for application exceptions."""
    # Validation errors (1000-1999)
    VALIDATION_ERROR = 1000

    # Resource errors (2000-2999)
    POOL_EXHAUSTED = 2000
    DUPLICATE_IDENTITY = 2001

    # Claim window errors (3000-3999)
    ALREADY_CLAIMED = 3000

    # Database errors (4000-4999)
    DATABASE_ERROR = 4000
    DATABASE_CONNECTION_ERROR = 4001
    DATABASE_CONSTRAINT_ERROR = 4002

    # Configuration errors (7000-7999)
    IDENTITY_RESOLUTION_ERROR = 7000

    # System errors (9000-9999)
    INTERNAL_ERROR = 9000


class BaseAppException(Exception):
    """Base exception for all application exceptions."""
    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        original_exception: Optional[Exception] = None,
        details: Optional[Dict[str, Any]] = None,
        **kwargs
    ):
        self.message = message
        self.error_code = error_code
        self.original_exception = original_exception
        self.details = details or {}

        for key, value in kwargs.items():
            self.details[key] = value

        if original_exception:
            self.details["original_error"] = str(original_exception)

        super().__init__(self.message)


class ValidationError(BaseAppException):
    """Exception raised for validation errors."""
    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        error_code: ErrorCode = ErrorCode.VALIDATION_ERROR,
        **kwargs
    ):
        details = kwargs.pop("details", {}) or {}
        if field:
            details["field"] = field
        if value is not None:
            details["value"] = str(value)

        super().__init__(
            message=message,
            error_code=error_code,
            details=details,
            **kwargs
        )


class IdentityResolutionError(BaseAppException):
    """Raised when no client identity can be derived from the request.

    Only reachable in a misconfigured deployment (no peer address and no
    forwarding header), so it is surfaced as an internal error.
    """
    def __init__(
        self,
        message: str = "Unable to resolve client identity",
        error_code: ErrorCode = ErrorCode.IDENTITY_RESOLUTION_ERROR,
        **kwargs
    ):
        super().__init__(message=message, error_code=error_code, **kwargs)


class AlreadyClaimedError(BaseAppException):
    """Raised when the identity holds a live claim record."""
    def __init__(
        self,
        message: str = "You have already claimed a coupon. Please try again later.",
        remaining_seconds: Optional[int] = None,
        error_code: ErrorCode = ErrorCode.ALREADY_CLAIMED,
        **kwargs
    ):
        details = kwargs.pop("details", {}) or {}
        self.remaining_seconds = remaining_seconds
        if remaining_seconds is not None:
            details["time_remaining"] = remaining_seconds

        super().__init__(
            message=message,
            error_code=error_code,
            details=details,
            **kwargs
        )


class PoolExhaustedError(BaseAppException):
    """Raised when no unclaimed coupon is left in the pool."""
    def __init__(
        self,
        message: str = "No available coupons",
        error_code: ErrorCode = ErrorCode.POOL_EXHAUSTED,
        **kwargs
    ):
        super().__init__(message=message, error_code=error_code, **kwargs)


class DuplicateIdentityError(BaseAppException):
    """Raised when a live claim record already exists for the identity.

    Carries the remaining seconds of the record that won the insert.
    """
    def __init__(
        self,
        message: str,
        identity: Optional[str] = None,
        remaining_seconds: int = 0,
        error_code: ErrorCode = ErrorCode.DUPLICATE_IDENTITY,
        **kwargs
    ):
        details = kwargs.pop("details", {}) or {}
        self.identity = identity
        self.remaining_seconds = remaining_seconds
        if identity:
            details["identity"] = identity

        super().__init__(
            message=message,
            error_code=error_code,
            details=details,
            **kwargs
        )


class DatabaseError(BaseAppException):
    """Exception raised for database errors."""
    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        error_code: ErrorCode = ErrorCode.DATABASE_ERROR,
        **kwargs
    ):
        details = kwargs.pop("details", {}) or {}
        if operation:
            details["operation"] = operation

        super().__init__(
            message=message,
            error_code=error_code,
            details=details,
            **kwargs
        )
