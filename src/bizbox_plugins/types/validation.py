"""Validation and compatibility result types."""

from dataclasses import dataclass, field
from typing import Any

from .enums import IssueType


@dataclass
class ValidationResult:
    """Result of validating a manifest or a plugin config.

    Used by:
    - validate_manifest()
    - validate_config()
    - PluginManager.register_plugin (gates registration)

    Errors block, warnings are advisory only.
    """

    valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        """Ensure valid is False if there are errors."""
        if self.errors:
            self.valid = False

    @classmethod
    def from_lists(cls, errors: list[str], warnings: list[str]) -> "ValidationResult":
        """Build a result whose validity follows from the error list."""
        return cls(valid=not errors, errors=errors, warnings=warnings)


@dataclass
class CompatibilityIssue:
    """Single dependency problem found by the compatibility checker."""

    type: IssueType
    message: str
    dependency: str | None = None
    expected_version: str | None = None
    actual_version: str | None = None

    @property
    def is_error(self) -> bool:
        return self.type == IssueType.ERROR

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"type": self.type.value, "message": self.message}
        if self.dependency is not None:
            data["dependency"] = self.dependency
        if self.expected_version is not None:
            data["expectedVersion"] = self.expected_version
        if self.actual_version is not None:
            data["actualVersion"] = self.actual_version
        return data


@dataclass
class CompatibilityResult:
    """Result of checking a manifest against the available plugins.

    compatible is recomputed from the issues, so it is True iff no issue
    has type ERROR.
    """

    compatible: bool = True
    issues: list[CompatibilityIssue] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.compatible = not any(issue.is_error for issue in self.issues)

    @property
    def errors(self) -> list[CompatibilityIssue]:
        return [issue for issue in self.issues if issue.is_error]

    @property
    def warnings(self) -> list[CompatibilityIssue]:
        return [issue for issue in self.issues if not issue.is_error]


@dataclass
class ValidationIssue:
    """Single configuration problem (error or warning)."""

    path: str  # e.g., "plugins[0].settings" or "registry.version_matching"
    message: str
    severity: str = "error"  # "error" | "warning"


@dataclass
class ConfigValidationResult:
    """Result of ConfigLoader.validate()."""

    valid: bool
    errors: list[ValidationIssue] = field(default_factory=list)
    warnings: list[ValidationIssue] = field(default_factory=list)

    def __post_init__(self) -> None:
        """Ensure valid is False if there are errors."""
        if self.errors:
            self.valid = False
