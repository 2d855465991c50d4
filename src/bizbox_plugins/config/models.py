"""Plugin framework configuration data models."""

from dataclasses import dataclass, field
from typing import Any

from bizbox_plugins.types import (
    CompatibilityPolicy,
    ErrorPolicy,
    LogFormat,
    LogLevel,
    VersionMatching,
)


@dataclass
class RegistryConfig:
    """How the registry reacts to failures and checks dependencies."""

    hook_error_policy: ErrorPolicy = ErrorPolicy.FAIL_FAST
    event_error_policy: ErrorPolicy = ErrorPolicy.FAIL_FAST
    compatibility_policy: CompatibilityPolicy = CompatibilityPolicy.ADVISORY
    version_matching: VersionMatching = VersionMatching.EXACT
    strict_hooks: bool = False  # Only allow hooks from the catalog


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: LogLevel = LogLevel.INFO
    format: LogFormat = LogFormat.JSON


@dataclass
class PluginConfigEntry:
    """Per-plugin configuration.

    ``settings`` is handed to the plugin instance as its ``config`` when it
    is registered.
    """

    id: str
    enabled: bool = True
    settings: dict[str, Any] = field(default_factory=dict)


@dataclass
class FrameworkConfig:
    """Root configuration object."""

    registry: RegistryConfig = field(default_factory=RegistryConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    plugins: list[PluginConfigEntry] = field(default_factory=list)

    def get_plugin_entry(self, plugin_id: str) -> PluginConfigEntry | None:
        for entry in self.plugins:
            if entry.id == plugin_id:
                return entry
        return None


def enabled_plugin_ids(config: FrameworkConfig) -> list[str]:
    """Ids of configured plugins marked enabled, in file order."""
    return [entry.id for entry in config.plugins if entry.enabled]
