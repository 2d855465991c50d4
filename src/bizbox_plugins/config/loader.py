"""Plugin framework configuration loader."""

import os
import re
import typing
from dataclasses import fields
from enum import Enum
from pathlib import Path
from typing import Any

import yaml

from bizbox_plugins.errors import create_error
from bizbox_plugins.manifest import is_valid_plugin_id, validate_config
from bizbox_plugins.telemetry.logging import get_logger
from bizbox_plugins.types import (
    CompatibilityPolicy,
    ConfigValidationResult,
    ErrorPolicy,
    LogFormat,
    LogLevel,
    ValidationIssue,
    VersionMatching,
)

from .models import FrameworkConfig

CONFIG_PATH_ENV = "BIZBOX_PLUGINS_CONFIG"
DEFAULT_CONFIG_FILE = "bizbox-plugins.yaml"

_ENV_PATTERN = re.compile(r"\$\{([^}:]+)(?::([?-])([^}]*))?\}")

_TOP_LEVEL_KEYS = {"registry", "logging", "plugins"}

_REGISTRY_ENUMS: dict[str, type[Enum]] = {
    "hook_error_policy": ErrorPolicy,
    "event_error_policy": ErrorPolicy,
    "compatibility_policy": CompatibilityPolicy,
    "version_matching": VersionMatching,
}

_LOGGING_ENUMS: dict[str, type[Enum]] = {
    "level": LogLevel,
    "format": LogFormat,
}


def resolve_env_vars(value: str) -> str:
    """Resolve environment variable references in string.

    Supports:
    - ${VAR} - Required, error if not set
    - ${VAR:-default} - With default value
    - ${VAR:?error message} - Required with custom error

    Raises:
        ConfigError: If a required variable is not set
    """

    def replacer(match: re.Match[str]) -> str:
        var_name, operator, operand = match.groups()

        env_value = os.environ.get(var_name)
        if env_value is not None:
            return env_value

        if operator == "-":
            return operand or ""
        if operator == "?":
            raise create_error(
                "CONFIG_INVALID",
                detail=operand or f"Required environment variable {var_name} not set",
            )
        raise create_error(
            "CONFIG_INVALID",
            detail=f"Required environment variable {var_name} not set",
        )

    return _ENV_PATTERN.sub(replacer, value)


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dictionaries; override wins on conflicts."""
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def _resolve_env_vars_recursive(data: Any) -> Any:
    if isinstance(data, dict):
        return {k: _resolve_env_vars_recursive(v) for k, v in data.items()}
    if isinstance(data, list):
        return [_resolve_env_vars_recursive(item) for item in data]
    if isinstance(data, str):
        return resolve_env_vars(data)
    return data


def _coerce_enum(enum_type: type[Enum], value: Any) -> Enum:
    """Look up an enum member by value, ignoring case.

    Raises:
        ValueError: If nothing matches
    """
    if isinstance(value, enum_type):
        return value
    if isinstance(value, str):
        for candidate in (value, value.lower(), value.upper()):
            try:
                return enum_type(candidate)
            except ValueError:
                continue
    raise ValueError(f"{value!r} is not a valid {enum_type.__name__}")


class ConfigLoader:
    """Load and validate plugin framework configuration."""

    def __init__(self) -> None:
        self._config: FrameworkConfig | None = None
        self._config_path: Path | None = None
        self._logger = get_logger("config")

    def load(
        self,
        path: str | Path | None = None,
        use_defaults: bool = True,
        overrides: dict[str, Any] | None = None,
    ) -> FrameworkConfig:
        """Load configuration from file.

        Resolution order if path not specified:
        1. BIZBOX_PLUGINS_CONFIG environment variable
        2. ./bizbox-plugins.yaml
        3. If use_defaults=True and no file found, default configuration

        Args:
            path: Optional path to config file
            use_defaults: Use default config when no file is found
            overrides: Values deep-merged over the file contents

        Raises:
            ConfigError: If the file is missing (use_defaults=False) or invalid
        """
        if path is None:
            path = self._resolve_config_path()

        config_path = Path(path)

        if not config_path.exists():
            if use_defaults:
                self._logger.info("No config file found, using default configuration")
                return self.load_from_dict(overrides or {})
            raise create_error(
                "CONFIG_INVALID",
                detail=f"Configuration file not found: {config_path}",
            )

        try:
            with config_path.open() as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise create_error(
                "CONFIG_INVALID",
                detail=f"Invalid YAML in config file: {e}",
            ) from e

        if not isinstance(data, dict):
            raise create_error(
                "CONFIG_INVALID",
                detail=f"Top level of {config_path} must be a mapping",
            )

        data = _resolve_env_vars_recursive(data)
        if overrides:
            data = deep_merge(data, overrides)
        return self.load_from_dict(data, config_path)

    def load_defaults(self) -> FrameworkConfig:
        """Default configuration, without a file."""
        return self.load_from_dict({})

    def load_from_dict(
        self, data: dict[str, Any], config_path: Path | None = None
    ) -> FrameworkConfig:
        """Load configuration from an already-parsed mapping.

        Raises:
            ConfigError: If configuration is invalid
        """
        validation = self.validate(data)
        for issue in validation.warnings:
            self._logger.warning("Config warning", path=issue.path, issue=issue.message)

        if not validation.valid:
            error_messages = [f"- {issue.path}: {issue.message}" for issue in validation.errors]
            raise create_error(
                "CONFIG_INVALID",
                detail="Configuration validation failed:\n" + "\n".join(error_messages),
            )

        try:
            config = self._convert_field(FrameworkConfig, data)
        except (TypeError, ValueError) as e:
            raise create_error(
                "CONFIG_INVALID",
                detail=f"Failed to parse configuration: {e}",
            ) from e

        self._config = config
        self._config_path = config_path
        self._logger.info(
            "Configuration loaded",
            path=str(config_path) if config_path else None,
            plugins=len(config.plugins),
        )
        return config

    def validate(self, data: dict[str, Any]) -> ConfigValidationResult:
        """Validate config data without loading.

        Returns:
            ConfigValidationResult with errors and warnings
        """
        errors: list[ValidationIssue] = []
        warnings: list[ValidationIssue] = []

        for key in data:
            if key not in _TOP_LEVEL_KEYS:
                warnings.append(
                    ValidationIssue(
                        path=key,
                        message=f"Unknown configuration key: {key}",
                        severity="warning",
                    )
                )

        if "registry" in data:
            self._validate_section(data["registry"], "registry", _REGISTRY_ENUMS, errors)
            registry = data["registry"]
            if isinstance(registry, dict) and "strict_hooks" in registry:
                if not isinstance(registry["strict_hooks"], bool):
                    errors.append(
                        ValidationIssue(
                            path="registry.strict_hooks",
                            message="strict_hooks must be a boolean",
                        )
                    )

        if "logging" in data:
            self._validate_section(data["logging"], "logging", _LOGGING_ENUMS, errors)

        if "plugins" in data:
            self._validate_plugins(data["plugins"], errors, warnings)

        return ConfigValidationResult(valid=True, errors=errors, warnings=warnings)

    def get(self) -> FrameworkConfig:
        """Current configuration.

        Raises:
            ConfigError: If configuration not loaded
        """
        if self._config is None:
            raise create_error("CONFIG_INVALID", detail="Configuration not loaded")
        return self._config

    def reload(self) -> FrameworkConfig:
        """Load the last loaded file again.

        Raises:
            ConfigError: If no config path is set or reload fails
        """
        if self._config_path is None:
            raise create_error("CONFIG_INVALID", detail="No config path set, cannot reload")
        return self.load(self._config_path)

    def _validate_section(
        self,
        section: Any,
        name: str,
        enums: dict[str, type[Enum]],
        errors: list[ValidationIssue],
    ) -> None:
        if not isinstance(section, dict):
            errors.append(ValidationIssue(path=name, message=f"{name} must be a dictionary"))
            return

        for key, enum_type in enums.items():
            if key not in section:
                continue
            try:
                _coerce_enum(enum_type, section[key])
            except ValueError:
                allowed = ", ".join(str(m.value) for m in enum_type)
                errors.append(
                    ValidationIssue(
                        path=f"{name}.{key}",
                        message=f"{key} must be one of: {allowed}",
                    )
                )

    def _validate_plugins(
        self,
        plugins: Any,
        errors: list[ValidationIssue],
        warnings: list[ValidationIssue],
    ) -> None:
        if not isinstance(plugins, list):
            errors.append(ValidationIssue(path="plugins", message="plugins must be a list"))
            return

        seen: set[str] = set()
        for index, entry in enumerate(plugins):
            path = f"plugins[{index}]"
            if not isinstance(entry, dict):
                errors.append(ValidationIssue(path=path, message="Plugin entry must be an object"))
                continue

            plugin_id = entry.get("id")
            if not is_valid_plugin_id(plugin_id):
                errors.append(
                    ValidationIssue(
                        path=f"{path}.id",
                        message="Plugin ID must contain only lowercase letters, numbers, and hyphens",
                    )
                )
            elif plugin_id in seen:
                errors.append(
                    ValidationIssue(
                        path=f"{path}.id",
                        message=f"Duplicate plugin entry: {plugin_id}",
                    )
                )
            else:
                seen.add(plugin_id)

            result = validate_config(entry)
            errors.extend(ValidationIssue(path=path, message=msg) for msg in result.errors)
            warnings.extend(
                ValidationIssue(path=path, message=msg, severity="warning")
                for msg in result.warnings
            )

    def _resolve_config_path(self) -> Path:
        env_path = os.environ.get(CONFIG_PATH_ENV)
        if env_path:
            return Path(env_path)
        return Path(DEFAULT_CONFIG_FILE)

    def _convert_field(self, field_type: Any, value: Any) -> Any:
        """Convert a parsed YAML value to the annotated field type."""
        if value is None:
            return None

        origin = typing.get_origin(field_type)

        if origin is list:
            args = typing.get_args(field_type)
            if args and isinstance(value, list):
                return [self._convert_field(args[0], item) for item in value]
            return value

        if origin is dict:
            return dict(value) if isinstance(value, dict) else value

        if hasattr(field_type, "__dataclass_fields__"):
            if not isinstance(value, dict):
                return value
            kwargs = {
                f.name: self._convert_field(f.type, value[f.name])
                for f in fields(field_type)
                if f.name in value
            }
            return field_type(**kwargs)

        if isinstance(field_type, type) and issubclass(field_type, Enum):
            return _coerce_enum(field_type, value)

        return value


_default_loader: ConfigLoader | None = None


def get_config_loader() -> ConfigLoader:
    """Default config loader singleton."""
    global _default_loader  # noqa: PLW0603
    if _default_loader is None:
        _default_loader = ConfigLoader()
    return _default_loader


def load_config(path: str | Path | None = None) -> FrameworkConfig:
    """Convenience function to load config."""
    return get_config_loader().load(path)
