"""Plugin manifests: model, validation, version matching, compatibility."""

from .compatibility import check_compatibility, detect_circular_dependencies, format_cycle
from .models import PermissionDescriptor, PluginManifest, RouteDescriptor
from .validator import (
    PLUGIN_ID_PATTERN,
    VERSION_PATTERN,
    is_valid_plugin_id,
    is_valid_version,
    validate_config,
    validate_manifest,
)
from .versioning import compare_versions, is_compatible_release, parse_version, version_satisfies

__all__ = [
    # Models
    "PluginManifest",
    "RouteDescriptor",
    "PermissionDescriptor",
    # Validation
    "validate_manifest",
    "validate_config",
    "is_valid_plugin_id",
    "is_valid_version",
    "PLUGIN_ID_PATTERN",
    "VERSION_PATTERN",
    # Versions
    "parse_version",
    "compare_versions",
    "is_compatible_release",
    "version_satisfies",
    # Compatibility
    "check_compatibility",
    "detect_circular_dependencies",
    "format_cycle",
]
