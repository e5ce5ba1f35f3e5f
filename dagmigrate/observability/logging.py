"""
dagmigrate Structured Logging.

JSON and text formatters for the `dagmigrate` logger hierarchy, plus a
context-carrying logger wrapper so every record emitted during a migration
run can carry the operation, direction and migration id.
"""

import json
import logging
import sys
import traceback
from datetime import datetime, timezone
from typing import Any, Dict, Optional

ROOT_LOGGER_NAME = "dagmigrate"

# Attributes present on every LogRecord; anything else came in via `extra`
_RESERVED_ATTRS = frozenset(
    {
        "name",
        "msg",
        "args",
        "created",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "exc_info",
        "exc_text",
        "thread",
        "threadName",
        "message",
        "taskName",
    }
)

_loggers: Dict[str, "StructuredLogger"] = {}


def _extra_fields(record: logging.LogRecord) -> Dict[str, Any]:
    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in _RESERVED_ATTRS and not key.startswith("_")
    }


class JSONFormatter(logging.Formatter):
    """
    Render log records as single-line JSON objects.

    Each line carries the timestamp, level, logger, message, service name and
    source location, plus any `extra` fields passed to the logging call.
    """

    def __init__(
        self,
        service_name: str = "dagmigrate",
        include_traceback: bool = True,
        extra_fields: Optional[Dict[str, Any]] = None,
    ):
        """
        Initialize JSON formatter.

        Args:
            service_name: Value of the "service" field
            include_traceback: Include the formatted traceback for exceptions
            extra_fields: Static fields added to every record
        """
        super().__init__()
        self.service_name = service_name
        self.include_traceback = include_traceback
        self.extra_fields = extra_fields or {}

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": self.service_name,
            "source": {
                "file": record.filename,
                "line": record.lineno,
                "function": record.funcName,
            },
        }

        if record.exc_info:
            exc_type, exc_value, _ = record.exc_info
            entry["exception"] = {
                "type": exc_type.__name__ if exc_type else None,
                "message": str(exc_value) if exc_value else None,
            }
            if self.include_traceback:
                entry["exception"]["traceback"] = traceback.format_exception(
                    *record.exc_info
                )

        extra = {}
        for key, value in _extra_fields(record).items():
            try:
                json.dumps(value)
                extra[key] = value
            except (TypeError, ValueError):
                extra[key] = str(value)
        if extra:
            entry["extra"] = extra

        if self.extra_fields:
            entry.update(self.extra_fields)

        return json.dumps(entry, default=str)


class TextFormatter(logging.Formatter):
    """Readable single-record text output with optional context fields."""

    def __init__(self, include_context: bool = True):
        super().__init__()
        self.include_context = include_context

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as readable text."""
        timestamp = datetime.fromtimestamp(record.created, tz=timezone.utc).strftime(
            "%Y-%m-%d %H:%M:%S"
        )
        lines = [f"{timestamp} {record.levelname:8s} [{record.name}] {record.getMessage()}"]

        if self.include_context:
            context = _extra_fields(record)
            if context:
                lines.append(
                    "  context: " + ", ".join(f"{k}={v}" for k, v in context.items())
                )

        if record.exc_info:
            lines.append(self.formatException(record.exc_info))

        return "\n".join(lines)


class StructuredLogger:
    """
    Logger wrapper that injects persistent context into every record.

    Usage:
        logger = get_logger(__name__)
        with logger.with_context(operation="up"):
            logger.info("Applying migration", migration_id=str(mid))
    """

    def __init__(self, name: str):
        self._logger = logging.getLogger(name)
        self._context: Dict[str, Any] = {}

    @property
    def context(self) -> Dict[str, Any]:
        return dict(self._context)

    def set_context(self, **kwargs: Any) -> None:
        """Set context fields for all subsequent records."""
        self._context.update(kwargs)

    def with_context(self, **kwargs: Any) -> "LogContext":
        """Context manager that adds fields for the duration of a block."""
        return LogContext(self, kwargs)

    def _log(self, level: int, msg: str, *args: Any, exc_info: bool = False, **kwargs: Any):
        extra = {**self._context, **kwargs}
        self._logger.log(level, msg, *args, exc_info=exc_info, extra=extra)

    def debug(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log(logging.DEBUG, msg, *args, **kwargs)

    def info(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log(logging.INFO, msg, *args, **kwargs)

    def warning(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log(logging.WARNING, msg, *args, **kwargs)

    def error(self, msg: str, *args: Any, exc_info: bool = False, **kwargs: Any) -> None:
        self._log(logging.ERROR, msg, *args, exc_info=exc_info, **kwargs)

    def exception(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """Log an error with the active exception's traceback."""
        self._log(logging.ERROR, msg, *args, exc_info=True, **kwargs)


class LogContext:
    """Temporarily extends a StructuredLogger's context."""

    def __init__(self, logger: StructuredLogger, context: Dict[str, Any]):
        self._logger = logger
        self._context = context
        self._previous: Dict[str, Any] = {}

    def __enter__(self) -> StructuredLogger:
        for key in self._context:
            if key in self._logger._context:
                self._previous[key] = self._logger._context[key]
        self._logger.set_context(**self._context)
        return self._logger

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        for key in self._context:
            if key in self._previous:
                self._logger._context[key] = self._previous[key]
            else:
                self._logger._context.pop(key, None)
        return False


def setup_logging(
    level: str = "INFO",
    format_type: str = "text",
    service_name: str = "dagmigrate",
    output: str = "stderr",
    extra_fields: Optional[Dict[str, Any]] = None,
) -> logging.Logger:
    """
    Configure the `dagmigrate` logger hierarchy.

    Args:
        level: DEBUG, INFO, WARNING, ERROR or CRITICAL
        format_type: "json" or "text"
        service_name: Service name written by the JSON formatter
        output: "stderr", "stdout", or a file path
        extra_fields: Static fields added to every JSON record

    Returns:
        The configured root `dagmigrate` logger
    """
    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    if output == "stderr":
        handler = logging.StreamHandler(sys.stderr)
    elif output == "stdout":
        handler = logging.StreamHandler(sys.stdout)
    else:
        handler = logging.FileHandler(output)

    if format_type.lower() == "json":
        handler.setFormatter(
            JSONFormatter(service_name=service_name, extra_fields=extra_fields)
        )
    else:
        handler.setFormatter(TextFormatter())

    root_logger.addHandler(handler)
    return root_logger


def get_logger(name: str) -> StructuredLogger:
    """Get (or create) the StructuredLogger for a module name."""
    if name not in _loggers:
        _loggers[name] = StructuredLogger(name)
    return _loggers[name]
