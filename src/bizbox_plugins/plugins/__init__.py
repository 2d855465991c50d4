"""BizBox Plugin Framework.

Lifecycle, hooks and events for in-process plugins.

Usage:
    from bizbox_plugins.plugins import BasePlugin, PluginManager, StandardHooks

    class AuditPlugin(BasePlugin):
        async def initialize(self, context):
            self.register_hook(StandardHooks.DATA_AFTER_CREATE, self.record)

        async def destroy(self):
            pass

        def record(self, entity_type, data, result, context):
            ...

    manager = PluginManager()
    await manager.register_plugin(AuditPlugin(), audit_manifest)
    await manager.initialize_plugin("audit")

    # Execute hooks
    results = await manager.execute_hook(StandardHooks.DATA_AFTER_CREATE, "invoice", data, row, ctx)
"""

from .base import BasePlugin, PluginAPI
from .events import PLATFORM_EVENTS, EventBus, PlatformEvents
from .hooks import (
    DEFAULT_PRIORITY,
    STANDARD_HOOK_DEFINITIONS,
    STANDARD_HOOKS,
    HookSystem,
    StandardHooks,
)
from .manager import PluginManager
from .registry import PluginRegistry
from .types import (
    EventHandler,
    EventPayload,
    EventSubscription,
    HookDefinition,
    HookHandler,
    HookResult,
    PluginContext,
    PluginRecord,
    RegisteredHook,
)

__all__ = [
    # Base class
    "BasePlugin",
    "PluginAPI",
    # Lifecycle
    "PluginManager",
    "PluginRegistry",
    # Hooks
    "HookSystem",
    "StandardHooks",
    "STANDARD_HOOKS",
    "STANDARD_HOOK_DEFINITIONS",
    "DEFAULT_PRIORITY",
    # Events
    "EventBus",
    "PlatformEvents",
    "PLATFORM_EVENTS",
    # Types
    "PluginContext",
    "PluginRecord",
    "HookResult",
    "HookDefinition",
    "RegisteredHook",
    "HookHandler",
    "EventHandler",
    "EventPayload",
    "EventSubscription",
]
