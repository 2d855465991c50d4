"""Shared enumerations for the BizBox plugin framework."""

from enum import Enum


class LogLevel(str, Enum):
    """Log verbosity level."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"


class LogFormat(str, Enum):
    """Log output format."""

    TEXT = "text"
    JSON = "json"


class PluginStatus(str, Enum):
    """Lifecycle state of a registered plugin."""

    REGISTERED = "registered"
    INITIALIZING = "initializing"
    ACTIVE = "active"
    ERROR = "error"
    DISABLED = "disabled"

    @property
    def is_terminal(self) -> bool:
        """ERROR and DISABLED only leave through unregister + register."""
        return self in (PluginStatus.ERROR, PluginStatus.DISABLED)


class IssueType(str, Enum):
    """Severity of a compatibility issue."""

    ERROR = "error"
    WARNING = "warning"


class HttpMethod(str, Enum):
    """HTTP methods a plugin route may declare."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    PATCH = "PATCH"


class ErrorPolicy(str, Enum):
    """How hook and event dispatch treats a failing handler."""

    FAIL_FAST = "fail_fast"  # First failure aborts the dispatch
    ISOLATE = "isolate"  # Log, skip the handler, keep going


class CompatibilityPolicy(str, Enum):
    """Whether error-level compatibility issues block initialization."""

    ADVISORY = "advisory"
    ENFORCE = "enforce"


class VersionMatching(str, Enum):
    """How a dependency's required version is compared to the available one."""

    EXACT = "exact"  # Literal string equality
    COMPATIBLE = "compatible"  # Same major, actual >= required
