"""BizBox Plugins - in-process plugin lifecycle and extensibility registry.

Manifest validation, dependency compatibility checking, and a plugin manager
with hooks and events for the BizBox platform.
"""

from bizbox_plugins.manifest import PluginManifest, check_compatibility, validate_manifest
from bizbox_plugins.plugins import BasePlugin, PluginContext, PluginManager

__version__ = "0.1.0"
__all__ = [
    "__version__",
    "BasePlugin",
    "PluginContext",
    "PluginManager",
    "PluginManifest",
    "validate_manifest",
    "check_compatibility",
]
