"""Manifest and plugin config validation.

Both validators are pure: they never raise for bad input and never touch
the registry. They collect every problem into a ValidationResult so a host
can show all of them at once. PluginManager.register_plugin turns an
invalid result into a ManifestValidationError.
"""

import re
from collections.abc import Mapping
from typing import Any

from bizbox_plugins.types import HttpMethod, ValidationResult

from .models import PluginManifest

PLUGIN_ID_PATTERN = re.compile(r"^[a-z0-9-]+$")
VERSION_PATTERN = re.compile(r"^[0-9]+\.[0-9]+\.[0-9]+$")

REQUIRED_FIELDS = ("id", "name", "version", "description", "author")
VALID_METHODS = frozenset(m.value for m in HttpMethod)


def is_valid_plugin_id(value: Any) -> bool:
    """Check a plugin id against ^[a-z0-9-]+$."""
    return isinstance(value, str) and PLUGIN_ID_PATTERN.fullmatch(value) is not None


def is_valid_version(value: Any) -> bool:
    """Check a version against strict MAJOR.MINOR.PATCH (no pre-release/build)."""
    return isinstance(value, str) and VERSION_PATTERN.fullmatch(value) is not None


def validate_manifest(manifest: PluginManifest | Mapping[str, Any]) -> ValidationResult:
    """Validate a plugin manifest.

    Args:
        manifest: PluginManifest or raw manifest mapping

    Returns:
        ValidationResult; valid iff there are no errors
    """
    errors: list[str] = []
    warnings: list[str] = []

    if isinstance(manifest, Mapping):
        errors.extend(_check_raw_shape(manifest))
        manifest = PluginManifest.from_dict(manifest)

    # Required fields
    for field_name in REQUIRED_FIELDS:
        value = getattr(manifest, field_name, None)
        if not value or (isinstance(value, str) and not value.strip()):
            errors.append(f"Missing required field: {field_name}")

    # Identity format
    if manifest.id and not is_valid_plugin_id(manifest.id):
        errors.append("Plugin ID must contain only lowercase letters, numbers, and hyphens")

    if manifest.version and not is_valid_version(manifest.version):
        errors.append("Plugin version must follow semantic versioning (x.y.z)")

    # Dependencies
    for dep_id, dep_version in manifest.dependencies.items():
        if not is_valid_plugin_id(dep_id):
            errors.append(f"Invalid dependency ID: {dep_id}")
        if not is_valid_version(dep_version):
            errors.append(f"Invalid dependency version for {dep_id}: {dep_version}")

    for dep_id, dep_version in manifest.peer_dependencies.items():
        if not is_valid_plugin_id(dep_id):
            errors.append(f"Invalid peer dependency ID: {dep_id}")
        if not is_valid_version(dep_version):
            errors.append(f"Invalid peer dependency version for {dep_id}: {dep_version}")

    # Routes
    for route in manifest.routes:
        if not route.method or not route.path or not route.handler:
            errors.append("Route must include method, path, and handler")

        if route.method and route.method not in VALID_METHODS:
            errors.append(f"Invalid HTTP method: {route.method}")

        if route.path and not str(route.path).startswith("/"):
            warnings.append(f"Route path should start with '/': {route.path}")

    # Permissions
    for permission in manifest.permissions:
        if not permission.resource or permission.actions is None or not permission.description:
            errors.append("Permission must include resource, actions, and description")

        actions = permission.actions
        if actions is not None and not isinstance(actions, (list, tuple, set, frozenset)):
            errors.append("Permission actions must be an array")

    # Recommended metadata
    if not manifest.homepage:
        warnings.append("Consider adding a homepage URL")

    if not manifest.repository:
        warnings.append("Consider adding a repository URL")

    if not manifest.license:
        warnings.append("Consider specifying a license")

    return ValidationResult.from_lists(errors, warnings)


def _check_raw_shape(data: Mapping[str, Any]) -> list[str]:
    """Type checks only a raw mapping can fail; the model would drop these values."""
    errors: list[str] = []

    for key in ("dependencies", "peerDependencies", "peer_dependencies"):
        if key in data and data[key] is not None and not isinstance(data[key], Mapping):
            errors.append(f"'{key}' field must be a dictionary")

    for key in ("routes", "permissions"):
        if key in data and data[key] is not None and not isinstance(data[key], (list, tuple)):
            errors.append(f"'{key}' field must be a list")

    for field_name in REQUIRED_FIELDS:
        value = data.get(field_name)
        if value is not None and not isinstance(value, str):
            errors.append(f"'{field_name}' field must be a string")

    return errors


def validate_config(config: Any, schema: Mapping[str, Any] | None = None) -> ValidationResult:
    """Validate a per-plugin configuration block.

    Args:
        config: Plugin configuration, expected {"enabled": bool, "settings": {...}}
        schema: Optional mapping of setting name -> expected type (or tuple of
            types). Settings of the wrong type produce warnings only.

    Returns:
        ValidationResult; valid iff there are no errors
    """
    errors: list[str] = []
    warnings: list[str] = []

    if not isinstance(config, Mapping):
        errors.append("Configuration must be an object")
        return ValidationResult(valid=False, errors=errors, warnings=warnings)

    if "enabled" in config and not isinstance(config["enabled"], bool):
        errors.append("'enabled' must be a boolean")

    settings = config.get("settings")
    if "settings" in config and not isinstance(settings, Mapping):
        errors.append("'settings' must be an object")

    if schema and isinstance(settings, Mapping):
        for key, expected in schema.items():
            if key in settings and not isinstance(settings[key], expected):
                type_name = (
                    " | ".join(t.__name__ for t in expected)
                    if isinstance(expected, tuple)
                    else expected.__name__
                )
                warnings.append(f"Setting '{key}' should be of type {type_name}")

    return ValidationResult.from_lists(errors, warnings)
