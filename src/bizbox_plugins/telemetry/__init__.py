"""Plugin framework telemetry - structured logging."""

from .logging import (
    PluginLogger,
    StructuredLogFormatter,
    TextLogFormatter,
    configure_logging,
    get_logger,
    reset_loggers,
)

__all__ = [
    "PluginLogger",
    "StructuredLogFormatter",
    "TextLogFormatter",
    "configure_logging",
    "get_logger",
    "reset_loggers",
]
