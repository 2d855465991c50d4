"""BizBox plugin base class and the API handle plugins talk through.

Plugins subclass BasePlugin and implement initialize() and destroy(). When a
plugin is registered, the manager binds a PluginAPI scoped to its id; the
helpers on BasePlugin (register_hook, subscribe_to_event, emit, ...) go
through that handle, so a plugin never touches the registry's own maps.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from bizbox_plugins.manifest import PluginManifest
from bizbox_plugins.telemetry.logging import PluginLogger, get_logger

from .types import EventHandler, HookHandler, PluginContext, RegisteredHook

if TYPE_CHECKING:
    from .manager import PluginManager


class PluginAPI:
    """Operations a registered plugin may perform, scoped to its id."""

    def __init__(self, manager: "PluginManager", plugin_id: str):
        self._manager = manager
        self.plugin_id = plugin_id

    def register_hook(
        self, hook_name: str, handler: HookHandler, priority: int = 10
    ) -> RegisteredHook:
        return self._manager.register_hook(self.plugin_id, hook_name, handler, priority)

    def subscribe_to_event(
        self, event_type: str, handler: EventHandler, once: bool = False
    ) -> str:
        return self._manager.subscribe_to_event(self.plugin_id, event_type, handler, once=once)

    def unsubscribe(self, subscription_id: str) -> bool:
        """Remove one of this plugin's own subscriptions.

        Returns:
            False if the id is unknown or belongs to someone else
        """
        return self._manager.unsubscribe(subscription_id, plugin_id=self.plugin_id)

    async def emit(self, event_type: str, data: Any = None, tenant: Any = None) -> None:
        """Emit an event with this plugin as its source."""
        await self._manager.emit_event(event_type, data, tenant=tenant, source=self.plugin_id)

    async def execute_hook(self, hook_name: str, *args: Any) -> list[Any]:
        return await self._manager.execute_hook(hook_name, *args)

    async def execute_filter_hook(self, hook_name: str, initial_value: Any, *args: Any) -> Any:
        return await self._manager.execute_filter_hook(hook_name, initial_value, *args)

    def is_plugin_active(self, plugin_id: str) -> bool:
        return self._manager.is_plugin_active(plugin_id)


class BasePlugin(ABC):
    """Base class for BizBox plugins.

    Lifecycle:
    1. register_plugin(instance, manifest) - the manager binds a PluginAPI
    2. initialize(context) - called once, after the plugin's dependencies
    3. destroy() - called once, when the plugin is disabled

    Subclasses may set a class-level ``manifest`` so the host can register
    them without passing one explicitly.

    Attributes:
        manifest: Default manifest for this plugin class
        config: Plugin-specific settings from the framework config
    """

    manifest: PluginManifest | None = None

    def __init__(self, config: dict[str, Any] | None = None):
        """Initialize the plugin.

        Args:
            config: Plugin-specific settings (the ``settings`` of its
                config entry)
        """
        self.config = config or {}
        self._api: PluginAPI | None = None
        self._logger: PluginLogger | None = None

    @abstractmethod
    async def initialize(self, context: PluginContext | None) -> None:
        """Acquire resources and register hooks and event handlers.

        Raising here puts the plugin in ERROR state.
        """

    @abstractmethod
    async def destroy(self) -> None:
        """Release everything acquired in initialize()."""

    # Binding

    def bind(self, api: PluginAPI) -> None:
        """Attach the API handle. Called by the manager on registration."""
        self._api = api
        self._logger = get_logger(f"plugin.{api.plugin_id}")

    @property
    def api(self) -> PluginAPI:
        if self._api is None:
            raise RuntimeError(f"{self.__class__.__name__} is not registered with a plugin manager")
        return self._api

    @property
    def plugin_id(self) -> str | None:
        return self._api.plugin_id if self._api else None

    @property
    def logger(self) -> PluginLogger:
        if self._logger is None:
            self._logger = get_logger(f"plugin.{self.__class__.__name__}")
        return self._logger

    # Helpers for subclasses

    def register_hook(
        self, hook_name: str, handler: HookHandler, priority: int = 10
    ) -> RegisteredHook:
        return self.api.register_hook(hook_name, handler, priority)

    def subscribe_to_event(
        self, event_type: str, handler: EventHandler, once: bool = False
    ) -> str:
        return self.api.subscribe_to_event(event_type, handler, once=once)

    async def emit(self, event_type: str, data: Any = None, tenant: Any = None) -> None:
        await self.api.emit(event_type, data, tenant=tenant)

    async def execute_hook(self, hook_name: str, *args: Any) -> list[Any]:
        return await self.api.execute_hook(hook_name, *args)

    async def execute_filter_hook(self, hook_name: str, initial_value: Any, *args: Any) -> Any:
        return await self.api.execute_filter_hook(hook_name, initial_value, *args)

    def get_metadata(self) -> dict[str, Any]:
        """Summary of the plugin's manifest, for admin tooling."""
        if self.manifest is None:
            return {"id": self.plugin_id, "class": self.__class__.__name__}
        return {
            "id": self.manifest.id,
            "name": self.manifest.name,
            "version": self.manifest.version,
            "description": self.manifest.description,
            "author": self.manifest.author,
            "tags": list(self.manifest.tags),
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(id={self.plugin_id!r})"
