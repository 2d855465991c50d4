"""Plugin framework configuration."""

from .loader import (
    CONFIG_PATH_ENV,
    DEFAULT_CONFIG_FILE,
    ConfigLoader,
    deep_merge,
    get_config_loader,
    load_config,
    resolve_env_vars,
)
from .models import (
    FrameworkConfig,
    LoggingConfig,
    PluginConfigEntry,
    RegistryConfig,
    enabled_plugin_ids,
)

__all__ = [
    # Models
    "FrameworkConfig",
    "RegistryConfig",
    "LoggingConfig",
    "PluginConfigEntry",
    "enabled_plugin_ids",
    # Loader
    "ConfigLoader",
    "get_config_loader",
    "load_config",
    "resolve_env_vars",
    "deep_merge",
    "CONFIG_PATH_ENV",
    "DEFAULT_CONFIG_FILE",
]
