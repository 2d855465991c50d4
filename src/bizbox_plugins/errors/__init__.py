"""Plugin framework error handling - Structured errors with context."""

from .errors import (
    ConfigError,
    DuplicateRegistrationError,
    ErrorCategory,
    ErrorTemplate,
    EventHandlerError,
    HookExecutionError,
    HookNotDefinedError,
    InitializationError,
    ManifestValidationError,
    PluginError,
    PluginLifecycleError,
    PluginNotActiveError,
    PluginNotFoundError,
)
from .factory import ErrorFactory, create_error, get_error_factory, wrap_error
from .registry import ErrorRegistry

__all__ = [
    # Core error types
    "PluginError",
    "ErrorCategory",
    "ErrorTemplate",
    "ManifestValidationError",
    "ConfigError",
    "DuplicateRegistrationError",
    "PluginNotFoundError",
    "PluginNotActiveError",
    "InitializationError",
    "PluginLifecycleError",
    "HookNotDefinedError",
    "HookExecutionError",
    "EventHandlerError",
    # Registry and factory
    "ErrorRegistry",
    "ErrorFactory",
    # Convenience functions
    "get_error_factory",
    "create_error",
    "wrap_error",
]
