"""Shared types for the plugin framework.

Import from here rather than submodules:
    from bizbox_plugins.types import PluginStatus, ValidationResult
"""

from .enums import (
    CompatibilityPolicy,
    ErrorPolicy,
    HttpMethod,
    IssueType,
    LogFormat,
    LogLevel,
    PluginStatus,
    VersionMatching,
)
from .validation import (
    CompatibilityIssue,
    CompatibilityResult,
    ConfigValidationResult,
    ValidationIssue,
    ValidationResult,
)

__all__ = [
    # Enums
    "LogLevel",
    "LogFormat",
    "PluginStatus",
    "IssueType",
    "HttpMethod",
    "ErrorPolicy",
    "CompatibilityPolicy",
    "VersionMatching",
    # Results
    "ValidationResult",
    "CompatibilityIssue",
    "CompatibilityResult",
    "ValidationIssue",
    "ConfigValidationResult",
]
