"""Plugin framework error types."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Error source categories."""

    VALIDATION = "VALIDATION"
    REGISTRY = "REGISTRY"
    LIFECYCLE = "LIFECYCLE"
    HOOK = "HOOK"
    EVENT = "EVENT"
    CONFIG = "CONFIG"


@dataclass(eq=False)
class PluginError(Exception):
    """Structured error with context. Base exception for all framework errors."""

    # Identity
    code: str  # e.g., "PLUGIN_NOT_FOUND"
    category: ErrorCategory

    # Messages
    message: str  # Human-readable summary
    detail: str | None = None  # Extended explanation
    suggestion: str | None = None  # Actionable fix

    # Context
    plugin_id: str | None = None  # Which plugin the error concerns

    # Underlying exception, if any
    cause: BaseException | None = None

    # Metadata
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self) -> None:
        """Set Exception message."""
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Serialize for host responses.

        Returns:
            Dictionary representation of the error
        """
        if isinstance(self.cause, PluginError):
            cause: Any = self.cause.to_dict()
        elif self.cause is not None:
            cause = {"type": type(self.cause).__name__, "message": str(self.cause)}
        else:
            cause = None

        return {
            "code": self.code,
            "category": self.category.value,
            "message": self.message,
            "detail": self.detail,
            "suggestion": self.suggestion,
            "plugin_id": self.plugin_id,
            "timestamp": self.timestamp.isoformat(),
            "cause": cause,
        }


@dataclass(eq=False)
class ManifestValidationError(PluginError):
    """A manifest or plugin config failed validation."""

    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["errors"] = list(self.errors)
        data["warnings"] = list(self.warnings)
        return data


@dataclass(eq=False)
class ConfigError(PluginError):
    """Framework configuration could not be loaded or is invalid."""


@dataclass(eq=False)
class DuplicateRegistrationError(PluginError):
    """A plugin with the same id is already registered."""


@dataclass(eq=False)
class PluginNotFoundError(PluginError):
    """An operation referenced an unknown plugin id."""


@dataclass(eq=False)
class PluginNotActiveError(PluginError):
    """An operation requires the plugin to be active."""

    status: str | None = None


@dataclass(eq=False)
class InitializationError(PluginError):
    """A plugin, or one of its dependencies, failed to initialize."""

    @property
    def origin_plugin_id(self) -> str | None:
        """Id of the plugin whose own failure started the chain.

        When B fails while A is initializing it as a dependency, the error
        raised to the caller names A and its cause names B; this walks down
        to B.
        """
        error: InitializationError = self
        while isinstance(error.cause, InitializationError):
            error = error.cause
        return error.plugin_id

    @property
    def chain(self) -> list[str]:
        """Plugin ids from the one the caller asked for down to the origin."""
        ids: list[str] = []
        error: BaseException | None = self
        while isinstance(error, InitializationError):
            if error.plugin_id:
                ids.append(error.plugin_id)
            error = error.cause
        return ids


@dataclass(eq=False)
class PluginLifecycleError(PluginError):
    """A plugin's destroy() failed while it was being disabled."""


@dataclass(eq=False)
class HookNotDefinedError(PluginError):
    """A handler targeted a hook that is not in the catalog (strict mode)."""

    hook_name: str | None = None


@dataclass(eq=False)
class HookExecutionError(PluginError):
    """A hook handler raised while the hook was executing."""

    hook_name: str | None = None


@dataclass(eq=False)
class EventHandlerError(PluginError):
    """An event handler raised while the event was being emitted."""

    event_type: str | None = None


@dataclass
class ErrorTemplate:
    """Template for creating errors."""

    code: str
    category: ErrorCategory
    message_template: str  # "Plugin {plugin_id} not found"
    error_class: type[PluginError] = PluginError
    detail_template: str | None = None
    suggestion_template: str | None = None
