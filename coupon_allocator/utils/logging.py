"""Logging utilities with context."""
import logging
import json
import os
import sys
import traceback
import socket
from datetime import datetime, timezone
from typing import Dict, Any, Optional, Union, cast
from logging.handlers import RotatingFileHandler

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
LOG_FORMAT = os.environ.get("LOG_FORMAT", "json")  # 'json' or 'text'
LOG_FILE = os.environ.get("LOG_FILE", None)  # File path or None for stdout
LOG_MAX_BYTES = int(os.environ.get("LOG_MAX_BYTES", 10485760))
LOG_BACKUP_COUNT = int(os.environ.get("LOG_BACKUP_COUNT", 5))
HOSTNAME = socket.gethostname()
SERVICE_NAME = os.environ.get("SERVICE_NAME", "coupon_allocator")
ENVIRONMENT = os.environ.get("ENVIRONMENT", "development")

SENSITIVE_FIELDS = {
    "password", "token", "secret", "auth", "credential", "cookie"
}

# LogRecord attributes that are not user context
_RESERVED_ATTRS = set(vars(logging.makeLogRecord({})).keys()) | {"message", "asctime"}


class JsonFormatter(logging.Formatter):
    """Formatter for JSON-structured logs."""

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.now(timezone.utc).isoformat()

        log_data = {
            "timestamp": timestamp,
            "level": record.levelname,
            "logger": record.name,
            "message": self._safe_str(record.getMessage()),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "service": SERVICE_NAME,
            "hostname": HOSTNAME,
            "environment": ENVIRONMENT,
        }

        if record.exc_info:
            try:
                log_data["exception"] = {
                    "exception_type": record.exc_info[0].__name__,
                    "exception_message": str(record.exc_info[1]),
                    "traceback": traceback.format_exception(*record.exc_info)
                }
            except (AttributeError, TypeError) as e:
                log_data["exception"] = {
                    "exception_type": "unknown",
                    "exception_message": "Error formatting exception info",
                    "format_error": str(e)
                }

        # Context passed through `extra` or a ContextAdapter
        for key, value in record.__dict__.items():
            if key in log_data or key in _RESERVED_ATTRS or key.startswith("_"):
                continue
            try:
                json.dumps({key: value})
                log_data[key] = value
            except (TypeError, ValueError):
                log_data[key] = self._safe_str(value)

        self._redact_sensitive_data(log_data)

        try:
            return json.dumps(log_data)
        except (TypeError, ValueError):
            return json.dumps({
                "message": "Error serializing log data",
                "original_message": self._safe_str(log_data)
            })

    def _safe_str(self, obj: Any) -> str:
        try:
            return str(obj)
        except Exception:
            return "<<Error converting to string>>"

    def _redact_sensitive_data(self, data: Any) -> None:
        """Recursively redact sensitive data."""
        if isinstance(data, dict):
            for key, value in list(data.items()):
                is_sensitive = any(sensitive in str(key).lower() for sensitive in SENSITIVE_FIELDS)
                if is_sensitive and isinstance(value, (str, int, float)):
                    data[key] = "********"
                else:
                    self._redact_sensitive_data(value)
        elif isinstance(data, list):
            for item in data:
                self._redact_sensitive_data(item)


class TextFormatter(logging.Formatter):
    """Formatter for human-readable text logs."""

    def __init__(self) -> None:
        super().__init__(
            fmt="%(asctime)s [%(levelname)s] %(name)s - %(message)s"
        )


class ContextAdapter(logging.LoggerAdapter):
    """Logger adapter that adds context to all log messages."""

    def process(self, msg: str, kwargs: Dict[str, Any]) -> tuple:
        if 'extra' not in kwargs:
            kwargs['extra'] = {}

        for key, value in self.extra.items():
            if key not in kwargs['extra']:
                kwargs['extra'][key] = value

        return msg, kwargs


def configure_logging() -> None:
    """Configure global logging settings."""
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    log_level = getattr(logging, LOG_LEVEL, logging.INFO)
    root_logger.setLevel(log_level)

    if LOG_FORMAT.lower() == "json":
        formatter = JsonFormatter()
    else:
        formatter = TextFormatter()

    if LOG_FILE:
        try:
            handler = RotatingFileHandler(
                filename=LOG_FILE,
                maxBytes=LOG_MAX_BYTES,
                backupCount=LOG_BACKUP_COUNT
            )
        except (IOError, PermissionError) as e:
            sys.stderr.write(f"Error creating log file {LOG_FILE}: {e}. Using stdout instead.\n")
            handler = logging.StreamHandler(sys.stdout)
    else:
        handler = logging.StreamHandler(sys.stdout)

    handler.setFormatter(formatter)
    root_logger.addHandler(handler)


def get_context_logger(
    name: str,
    trace_id: Optional[str] = None,
    identity: Optional[str] = None,
    **additional_context
) -> logging.LoggerAdapter:
    """
    Get a logger with consistent context.

    Args:
        name: Logger name
        trace_id: Trace ID for request tracking
        identity: Resolved client identity
        additional_context: Additional context key-value pairs

    Returns:
        Logger adapter with context
    """
    context = additional_context.copy()

    if trace_id:
        context["trace_id"] = trace_id
    if identity:
        context["identity"] = identity

    return ContextAdapter(logging.getLogger(name), context)


def with_context(
    logger_obj: Union[logging.Logger, logging.LoggerAdapter],
    **context
) -> logging.LoggerAdapter:
    """Create a new logger with additional context merged in."""
    if isinstance(logger_obj, ContextAdapter):
        new_context = dict(logger_obj.extra)
        new_context.update(context)
        return ContextAdapter(logger_obj.logger, new_context)
    if isinstance(logger_obj, logging.Logger):
        return ContextAdapter(logger_obj, context)
    return cast(logging.LoggerAdapter, logger_obj)


configure_logging()
