"""Structured logging configuration for bundle tooling."""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Optional


class StructuredFormatter(logging.Formatter):
    """JSON formatter emitting one object per line."""

    def __init__(self, service_name: str):
        super().__init__()
        self.service_name = service_name

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": self.service_name,
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": self.formatException(record.exc_info),
            }

        # Context fields passed through log_with_context()
        for key, value in record.__dict__.items():
            if key.startswith("extra_"):
                log_data[key.replace("extra_", "", 1)] = value

        return json.dumps(log_data, default=str)


class ContextTextFormatter(logging.Formatter):
    """Plain text formatter that appends extra_* context as key=value pairs."""

    def __init__(self):
        super().__init__("%(asctime)s %(levelname)-7s %(name)s: %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = [
            f"{key.replace('extra_', '', 1)}={value}"
            for key, value in record.__dict__.items()
            if key.startswith("extra_")
        ]
        if context:
            line = f"{line} [{' '.join(context)}]"
        return line


def setup_logging(
    service_name: str = "cpres",
    level: str = "INFO",
    json_format: bool = False,
) -> logging.Handler:
    """Configure logging for a command line session.

    Args:
        service_name: Name reported in structured records
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: Emit JSON lines instead of plain text

    Returns:
        The installed handler
    """
    handler = logging.StreamHandler(sys.stderr)
    if json_format:
        handler.setFormatter(StructuredFormatter(service_name))
    else:
        handler.setFormatter(ContextTextFormatter())

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    return handler


def log_with_context(
    logger: logging.Logger,
    level: str,
    message: str,
    exc_info: Optional[bool] = None,
    **extra_fields: Any,
):
    """Log a message with additional context fields.

    Args:
        logger: Logger instance
        level: Log level (debug, info, warning, error, critical)
        message: Log message
        exc_info: Attach the current exception to the record
        **extra_fields: Additional fields to include in the record
    """
    extra = {f"extra_{k}": v for k, v in extra_fields.items()}

    log_method = getattr(logger, level.lower())
    log_method(message, extra=extra, exc_info=exc_info)
