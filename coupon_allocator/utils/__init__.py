"""
Utility functions for the coupon allocator.

This module provides logging, datetime and error handling helpers used
throughout the allocator services.
"""
from .logging import (
    get_context_logger,
    with_context,
    configure_logging
)
from .datetime_utils import (
    ensure_timezone_aware,
    format_iso_datetime,
    get_current_datetime,
    seconds_until
)
from .error_handling import handle_database_error

__all__ = [
    # Logging
    "get_context_logger",
    "with_context",
    "configure_logging",

    # Datetime utilities
    "ensure_timezone_aware",
    "format_iso_datetime",
    "get_current_datetime",
    "seconds_until",

    # Errors
    "handle_database_error",
]
