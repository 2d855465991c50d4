"""Plugin framework logging - Structured logging with OTEL trace context.

Provides structured JSON logging with automatic trace context injection, so
lifecycle and dispatch logs line up with the host's request traces.

Usage:
    from bizbox_plugins.telemetry.logging import get_logger

    logger = get_logger("registry")
    logger.info("Plugin initialized", plugin_id="booking")
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from opentelemetry import trace

from bizbox_plugins.types import LogFormat, LogLevel

# Attributes every LogRecord carries; anything else came in through extra=
_RESERVED_ATTRS = frozenset(
    {
        "name", "msg", "args", "created", "filename", "funcName",
        "levelname", "levelno", "lineno", "module", "msecs",
        "pathname", "process", "processName", "relativeCreated",
        "stack_info", "exc_info", "exc_text", "thread", "threadName",
        "message", "taskName",
    }
)

_LEVELS = {
    LogLevel.DEBUG: logging.DEBUG,
    LogLevel.INFO: logging.INFO,
    LogLevel.WARN: logging.WARNING,
    LogLevel.ERROR: logging.ERROR,
}

_NAMESPACE = "bizbox"

# Updated by configure_logging()
_defaults: dict[str, Any] = {"level": logging.INFO, "format": LogFormat.JSON}


class StructuredLogFormatter(logging.Formatter):
    """JSON formatter with trace context injection.

    Formats log records as JSON with:
    - timestamp (ISO 8601)
    - level
    - component (logger name)
    - message
    - trace_id / span_id (if a span is recording)
    - Additional fields from extra (plugin_id, hook, event, ...)
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON.

        Args:
            record: Log record to format

        Returns:
            JSON-formatted log string
        """
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "component": record.name,
            "message": record.getMessage(),
        }

        span = trace.get_current_span()
        if span and span.is_recording():
            ctx = span.get_span_context()
            if ctx.is_valid:
                log_data["trace_id"] = format(ctx.trace_id, "032x")
                log_data["span_id"] = format(ctx.span_id, "016x")

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS:
                log_data[key] = value

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


class TextLogFormatter(logging.Formatter):
    """Single-line text formatter that appends extra fields as key=value."""

    def format(self, record: logging.LogRecord) -> str:
        base = f"{record.levelname:<7} [{record.name}] {record.getMessage()}"
        extras = " ".join(
            f"{key}={value}"
            for key, value in record.__dict__.items()
            if key not in _RESERVED_ATTRS
        )
        line = f"{base} {extras}" if extras else base
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def _make_formatter(log_format: LogFormat) -> logging.Formatter:
    if log_format == LogFormat.JSON:
        return StructuredLogFormatter()
    return TextLogFormatter()


class PluginLogger:
    """Structured logger with trace context support.

    Wraps Python logging with:
    - Automatic trace context injection
    - Structured JSON output
    - Keyword fields as structured extras
    """

    def __init__(
        self,
        name: str,
        level: int | None = None,
        log_format: LogFormat | None = None,
    ):
        """Initialize logger.

        Args:
            name: Logger name (component name)
            level: Logging level (defaults to the configured level)
            log_format: Output format for the attached handler
        """
        self._logger = logging.getLogger(f"{_NAMESPACE}.{name}")
        self._logger.setLevel(level if level is not None else _defaults["level"])

        # configure_logging() puts a handler on the namespace root
        if not self._logger.handlers and not logging.getLogger(_NAMESPACE).handlers:
            handler = logging.StreamHandler(sys.stderr)
            handler.setFormatter(_make_formatter(log_format or _defaults["format"]))
            self._logger.addHandler(handler)

    @property
    def name(self) -> str:
        return self._logger.name

    def _log(self, level: int, message: str, **kwargs: Any) -> None:
        """Log message with extra fields.

        Args:
            level: Log level
            message: Log message
            **kwargs: Additional fields to include
        """
        self._logger.log(level, message, extra=kwargs)

    def debug(self, message: str, **kwargs: Any) -> None:
        """Log debug message."""
        self._log(logging.DEBUG, message, **kwargs)

    def info(self, message: str, **kwargs: Any) -> None:
        """Log info message."""
        self._log(logging.INFO, message, **kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        """Log warning message."""
        self._log(logging.WARNING, message, **kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        """Log error message."""
        self._log(logging.ERROR, message, **kwargs)

    def exception(self, message: str, **kwargs: Any) -> None:
        """Log exception with traceback."""
        self._logger.exception(message, extra=kwargs)


# Logger cache
_loggers: dict[str, PluginLogger] = {}


def get_logger(
    name: str,
    level: int | None = None,
    log_format: LogFormat | None = None,
) -> PluginLogger:
    """Get or create a structured logger.

    Args:
        name: Logger name (component name)
        level: Logging level
        log_format: Output format, used only when the logger is first created

    Returns:
        PluginLogger instance
    """
    if name not in _loggers:
        _loggers[name] = PluginLogger(name, level, log_format)
    return _loggers[name]


def configure_logging(
    level: LogLevel = LogLevel.INFO, log_format: LogFormat = LogFormat.JSON
) -> None:
    """Route every bizbox.* logger through one handler on the namespace root.

    Args:
        level: Level applied to loggers created from now on
        log_format: Output format of the namespace handler
    """
    _defaults["level"] = _LEVELS[level]
    _defaults["format"] = log_format

    root = logging.getLogger(_NAMESPACE)
    root.setLevel(_LEVELS[level])
    for handler in list(root.handlers):
        root.removeHandler(handler)
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(_make_formatter(log_format))
    root.addHandler(handler)

    # Drop per-component handlers so records are not written twice
    for cached in _loggers.values():
        inner = logging.getLogger(cached.name)
        inner.setLevel(_LEVELS[level])
        for handler in list(inner.handlers):
            inner.removeHandler(handler)


def reset_loggers() -> None:
    """Reset logger cache (for testing)."""
    global _loggers
    _loggers = {}
