"""Plugin manager: the host-facing facade over registry, hooks and events.

A host builds one PluginManager at startup (or one per test), registers
plugin instances with their manifests, then initializes them:

    manager = PluginManager()
    await manager.register_plugin(AuditPlugin(), audit_manifest)
    await manager.initialize_all_plugins(PluginContext(tenant=tenant))

Initialization walks hard dependencies depth-first in declaration order, so
a plugin's dependencies are always active before its own initialize() runs.
Disabling does not cascade; use get_dependents() to find plugins left
running on top of a disabled one.
"""

import asyncio
from collections.abc import Mapping
from typing import Any, cast

from bizbox_plugins.config import FrameworkConfig
from bizbox_plugins.errors import (
    EventHandlerError,
    HookExecutionError,
    InitializationError,
    PluginError,
    create_error,
    wrap_error,
)
from bizbox_plugins.manifest import PluginManifest, validate_manifest
from bizbox_plugins.telemetry.logging import configure_logging, get_logger
from bizbox_plugins.types import (
    CompatibilityPolicy,
    CompatibilityResult,
    ErrorPolicy,
    PluginStatus,
    VersionMatching,
)

from .base import BasePlugin, PluginAPI
from .events import EventBus, PlatformEvents
from .hooks import DEFAULT_PRIORITY, HookSystem, StandardHooks
from .registry import PluginRegistry
from .types import EventHandler, HookHandler, PluginContext, PluginRecord, RegisteredHook


class PluginManager:
    """Registers plugins and drives their lifecycle.

    Attributes:
        registry: Plugin records and lifecycle state
        hooks: Hook table and catalog
        events: Event subscriptions
        compatibility_policy: Whether error-level compatibility issues
            block initialization
        initialized: True once initialize_all_plugins() has completed
    """

    def __init__(
        self,
        hook_error_policy: ErrorPolicy = ErrorPolicy.FAIL_FAST,
        event_error_policy: ErrorPolicy = ErrorPolicy.FAIL_FAST,
        compatibility_policy: CompatibilityPolicy = CompatibilityPolicy.ADVISORY,
        version_matching: VersionMatching = VersionMatching.EXACT,
        strict_hooks: bool = False,
        plugin_settings: Mapping[str, dict[str, Any]] | None = None,
    ):
        self.registry = PluginRegistry(version_matching=version_matching)
        self.hooks = HookSystem(error_policy=hook_error_policy, strict=strict_hooks)
        self.events = EventBus(error_policy=event_error_policy)
        self.compatibility_policy = compatibility_policy
        self.initialized = False
        self._plugin_settings = dict(plugin_settings or {})
        self._logger = get_logger("plugins.manager")

    @classmethod
    def from_config(cls, config: FrameworkConfig, setup_logging: bool = True) -> "PluginManager":
        """Build a manager from loaded framework configuration.

        Args:
            config: Loaded configuration
            setup_logging: Apply config.logging to the bizbox loggers

        Returns:
            Manager with the configured policies; settings of configured
            plugins are handed to matching instances on registration
        """
        if setup_logging:
            configure_logging(config.logging.level, config.logging.format)

        registry_config = config.registry
        return cls(
            hook_error_policy=registry_config.hook_error_policy,
            event_error_policy=registry_config.event_error_policy,
            compatibility_policy=registry_config.compatibility_policy,
            version_matching=registry_config.version_matching,
            strict_hooks=registry_config.strict_hooks,
            plugin_settings={entry.id: entry.settings for entry in config.plugins},
        )

    # Registration

    async def register_plugin(
        self,
        instance: BasePlugin,
        manifest: PluginManifest | Mapping[str, Any] | None = None,
    ) -> PluginRecord:
        """Validate a manifest and register a plugin instance.

        Args:
            instance: Plugin to register
            manifest: Its manifest; defaults to the instance's class-level
                manifest

        Returns:
            The new record, in REGISTERED state

        Raises:
            ManifestValidationError: If the manifest has errors; nothing is
                registered
            DuplicateRegistrationError: If the id is already registered
        """
        if manifest is None:
            manifest = instance.manifest if instance.manifest is not None else {}

        validation = validate_manifest(manifest)
        if isinstance(manifest, Mapping):
            manifest = PluginManifest.from_dict(manifest)

        if not validation.valid:
            self._logger.error(
                "Plugin manifest rejected",
                plugin_id=manifest.id or None,
                errors=validation.errors,
            )
            raise create_error(
                "MANIFEST_INVALID",
                plugin_id=manifest.id or None,
                errors=validation.errors,
                warnings=validation.warnings,
                error_summary="; ".join(validation.errors),
            )

        record = self.registry.add(instance, manifest)
        for warning in validation.warnings:
            self._logger.warning("Manifest warning", plugin_id=manifest.id, warning=warning)

        instance.manifest = manifest
        if not instance.config and manifest.id in self._plugin_settings:
            instance.config = dict(self._plugin_settings[manifest.id])
        instance.bind(PluginAPI(self, manifest.id))

        await self._notify(
            PlatformEvents.PLUGIN_REGISTERED,
            {"plugin_id": manifest.id, "version": manifest.version},
        )
        return record

    async def unregister_plugin(self, plugin_id: str) -> None:
        """Drop a plugin, disabling it first if it is active.

        This is the way out of ERROR and DISABLED: unregister, then
        register a fresh instance.

        Raises:
            PluginNotFoundError: If the id is unknown
            HookExecutionError: If a plugin.beforeDestroy handler fails; the
                record stays, still ACTIVE
            PluginLifecycleError: If disabling fails; the record stays, in
                ERROR state
        """
        if self.registry.is_active(plugin_id):
            await self.disable_plugin(plugin_id)

        self._detach(plugin_id)
        self.registry.remove(plugin_id)

    # Lifecycle

    async def initialize_plugin(
        self, plugin_id: str, context: PluginContext | None = None
    ) -> None:
        """Initialize a plugin and, first, its hard dependencies.

        A no-op for an already active plugin.

        Raises:
            PluginNotFoundError: If the id is unknown
            InitializationError: If the plugin or any dependency failed;
                ``origin_plugin_id`` names the plugin whose own
                initialize() (or compatibility check) failed first
            HookExecutionError: If a plugin.afterInitialize handler fails for
                the requested plugin, which stays active. The same failure
                for a dependency is logged and initialization continues.
        """
        self.registry.require(plugin_id)
        await self._initialize(plugin_id, context)

    async def initialize_all_plugins(self, context: PluginContext | None = None) -> None:
        """Initialize every registered plugin, dependencies first.

        Plugins already active or in a terminal state are skipped. Stops
        at the first failure.

        Raises:
            InitializationError: From the first plugin that fails
        """
        for record in self.registry.all():
            if record.status == PluginStatus.REGISTERED:
                await self._initialize(record.id, context)

        self.initialized = True
        self._logger.info(
            "All plugins initialized", active=len(self.registry.with_status(PluginStatus.ACTIVE))
        )

    async def disable_plugin(self, plugin_id: str) -> None:
        """Destroy an active plugin and remove its hooks and subscriptions.

        Dependents stay active.

        Raises:
            PluginNotFoundError: If the id is unknown
            PluginNotActiveError: If the plugin is not active
            HookExecutionError: If a plugin.beforeDestroy handler fails;
                destroy() is not called and the plugin stays ACTIVE with its
                hooks and subscriptions in place
            PluginLifecycleError: If destroy() failed; the plugin is left in
                ERROR state with its hooks and subscriptions removed
        """
        record = self.registry.require(plugin_id)
        if record.status != PluginStatus.ACTIVE:
            raise create_error(
                "PLUGIN_NOT_ACTIVE", plugin_id=plugin_id, status=record.status.value
            )

        # A failing beforeDestroy handler aborts the disable; the plugin stays active
        await self.hooks.execute_hook(StandardHooks.PLUGIN_BEFORE_DESTROY, plugin_id)

        try:
            await record.instance.destroy()
        except Exception as e:
            self._detach(plugin_id)
            self.registry.transition(plugin_id, PluginStatus.ERROR, e)
            self._logger.error("Plugin destroy failed", plugin_id=plugin_id, error=str(e))
            raise wrap_error("PLUGIN_DESTROY_FAILED", e, plugin_id=plugin_id) from e

        self._detach(plugin_id)
        self.registry.transition(plugin_id, PluginStatus.DISABLED)
        self._logger.info("Plugin disabled", plugin_id=plugin_id)

        still_active = [d for d in self.registry.get_dependents(plugin_id) if self.registry.is_active(d)]
        if still_active:
            self._logger.warning(
                "Disabled plugin has active dependents",
                plugin_id=plugin_id,
                dependents=still_active,
            )

        await self._notify(PlatformEvents.PLUGIN_DISABLED, {"plugin_id": plugin_id})

    async def shutdown(self) -> None:
        """Disable every active plugin, dependents before dependencies.

        Every plugin is attempted; the first failure is raised at the end.
        """
        first_error: PluginError | None = None
        for plugin_id in reversed(self.registry.activation_order()):
            try:
                await self.disable_plugin(plugin_id)
            except PluginError as e:
                if first_error is None:
                    first_error = e
        self.initialized = False
        if first_error is not None:
            raise first_error

    async def _initialize(
        self, plugin_id: str, context: PluginContext | None, as_dependency: bool = False
    ) -> None:
        record = self.registry.require(plugin_id)

        if record.status == PluginStatus.ACTIVE:
            return
        if record.status == PluginStatus.INITIALIZING:
            raise create_error(
                "PLUGIN_INIT_FAILED",
                plugin_id=plugin_id,
                reason="circular dependency (plugin is already initializing)",
            )
        if record.status.is_terminal:
            raise create_error(
                "PLUGIN_INIT_FAILED",
                plugin_id=plugin_id,
                reason=f"plugin is {record.status.value}; unregister and register it again",
            )

        self.registry.transition(plugin_id, PluginStatus.INITIALIZING)
        self._logger.info("Initializing plugin", plugin_id=plugin_id)

        try:
            self._check_compatibility(plugin_id)

            for dep_id in record.manifest.dependencies:
                await self._initialize(dep_id, context, as_dependency=True)

            await self.hooks.execute_hook(StandardHooks.PLUGIN_BEFORE_INITIALIZE, plugin_id, context)
            await record.instance.initialize(context)
        except asyncio.CancelledError as e:
            self._detach(plugin_id)
            self.registry.transition(plugin_id, PluginStatus.ERROR, e)
            raise
        except Exception as e:
            error = self._initialization_error(plugin_id, e)
            self._detach(plugin_id)
            self.registry.transition(plugin_id, PluginStatus.ERROR, error)
            self._logger.error(
                "Plugin initialization failed",
                plugin_id=plugin_id,
                origin=error.origin_plugin_id,
                error=str(e),
            )
            await self._notify(
                PlatformEvents.PLUGIN_ERROR,
                {"plugin_id": plugin_id, "error": str(error)},
            )
            raise error from e

        self.registry.transition(plugin_id, PluginStatus.ACTIVE)
        self._logger.info("Plugin initialized", plugin_id=plugin_id)

        try:
            await self.hooks.execute_hook(StandardHooks.PLUGIN_AFTER_INITIALIZE, plugin_id, context)
        except HookExecutionError as e:
            # Only the plugin the caller asked for surfaces this error
            if not as_dependency:
                raise
            self._logger.error("afterInitialize hook failed", plugin_id=plugin_id, error=str(e))
        finally:
            await self._notify(PlatformEvents.PLUGIN_INITIALIZED, {"plugin_id": plugin_id})

    def _initialization_error(self, plugin_id: str, error: Exception) -> InitializationError:
        """The InitializationError to raise for plugin_id failing with error."""
        if isinstance(error, InitializationError):
            if error.plugin_id == plugin_id:
                return error
            reason = f"dependency {error.plugin_id} failed to initialize"
        else:
            reason = str(error) or type(error).__name__

        return cast(
            InitializationError,
            create_error("PLUGIN_INIT_FAILED", cause=error, plugin_id=plugin_id, reason=reason),
        )

    def _check_compatibility(self, plugin_id: str) -> None:
        result = self.registry.check_compatibility(plugin_id)
        for issue in result.issues:
            self._logger.warning(
                "Compatibility issue",
                plugin_id=plugin_id,
                severity=issue.type.value,
                issue=issue.message,
                dependency=issue.dependency,
            )

        if not result.compatible and self.compatibility_policy == CompatibilityPolicy.ENFORCE:
            raise create_error(
                "PLUGIN_INIT_FAILED",
                plugin_id=plugin_id,
                reason="; ".join(issue.message for issue in result.errors),
            )

    def _detach(self, plugin_id: str) -> None:
        """Remove every hook handler and event subscription owned by a plugin."""
        hooks_removed = self.hooks.unregister_plugin_hooks(plugin_id)
        subs_removed = self.events.unsubscribe_plugin(plugin_id)
        if hooks_removed or subs_removed:
            self._logger.debug(
                "Plugin detached",
                plugin_id=plugin_id,
                hooks=hooks_removed,
                subscriptions=subs_removed,
            )

    # Hooks

    def register_hook(
        self,
        plugin_id: str,
        hook_name: str,
        handler: HookHandler,
        priority: int = DEFAULT_PRIORITY,
    ) -> RegisteredHook:
        """Register a plugin's handler for a hook.

        Raises:
            PluginNotFoundError: If the plugin is not registered
            PluginNotActiveError: If the plugin is in ERROR or DISABLED state
            HookNotDefinedError: With strict hooks, for a hook outside the catalog
        """
        self._require_usable(plugin_id)
        return self.hooks.register_hook(hook_name, handler, plugin_id, priority)

    async def execute_hook(self, hook_name: str, *args: Any) -> list[Any]:
        """Call every handler for a hook; results in handler order."""
        return await self.hooks.execute_hook(hook_name, *args)

    async def execute_filter_hook(self, hook_name: str, initial_value: Any, *args: Any) -> Any:
        """Pass a value through every handler for a hook."""
        return await self.hooks.execute_filter_hook(hook_name, initial_value, *args)

    async def execute_validation_hook(self, hook_name: str, *args: Any) -> bool:
        """True unless some handler for the hook returns False."""
        return await self.hooks.execute_validation_hook(hook_name, *args)

    # Events

    def subscribe_to_event(
        self,
        plugin_id: str | None,
        event_type: str,
        handler: EventHandler,
        once: bool = False,
    ) -> str:
        """Subscribe a handler to an event.

        Args:
            plugin_id: Owning plugin, or None for a host subscription that
                no plugin lifecycle removes

        Returns:
            Subscription id
        """
        if plugin_id is not None:
            self._require_usable(plugin_id)
        return self.events.subscribe(event_type, handler, plugin_id=plugin_id, once=once)

    def unsubscribe(self, subscription_id: str, plugin_id: str | None = None) -> bool:
        """Remove a subscription; with plugin_id, only one that plugin owns."""
        return self.events.unsubscribe(subscription_id, plugin_id=plugin_id)

    async def emit_event(
        self,
        event_type: str,
        data: Any = None,
        tenant: Any = None,
        source: str | None = None,
        correlation_id: str | None = None,
    ) -> None:
        """Deliver an event to its subscribers, one at a time."""
        await self.events.emit(
            event_type, data, tenant=tenant, source=source, correlation_id=correlation_id
        )

    async def _notify(self, event_type: str, data: Any) -> None:
        """Emit a lifecycle notification. A failing handler is logged, not raised."""
        try:
            await self.emit_event(event_type, data, source="plugin-manager")
        except EventHandlerError as e:
            self._logger.error("Lifecycle notification handler failed", event=event_type, error=str(e))

    def _require_usable(self, plugin_id: str) -> PluginRecord:
        record = self.registry.require(plugin_id)
        if record.status.is_terminal:
            raise create_error(
                "PLUGIN_NOT_ACTIVE", plugin_id=plugin_id, status=record.status.value
            )
        return record

    # Queries

    def get_plugin(self, plugin_id: str) -> BasePlugin | None:
        record = self.registry.get(plugin_id)
        return record.instance if record else None

    def get_plugin_info(self, plugin_id: str) -> dict[str, Any] | None:
        """Record summary plus the number of hook handlers the plugin owns."""
        record = self.registry.get(plugin_id)
        if record is None:
            return None
        info = record.to_dict()
        info["hooks"] = len(self.hooks.get_plugin_hooks(plugin_id))
        return info

    def is_plugin_active(self, plugin_id: str) -> bool:
        return self.registry.is_active(plugin_id)

    def get_active_plugins(self) -> list[BasePlugin]:
        return [r.instance for r in self.registry.with_status(PluginStatus.ACTIVE)]

    def list_plugins(self) -> list[dict[str, Any]]:
        """Info for every registered plugin, in registration order."""
        return [r.to_dict() for r in self.registry.all()]

    def check_plugin_compatibility(self, plugin_id: str) -> CompatibilityResult:
        """Compatibility of a registered plugin with everything registered."""
        return self.registry.check_compatibility(plugin_id)

    def get_dependents(self, plugin_id: str) -> list[str]:
        """Registered plugins with a hard dependency on plugin_id."""
        return self.registry.get_dependents(plugin_id)

    def get_system_health(self) -> dict[str, Any]:
        counts = self.registry.status_counts()
        return {
            "total_plugins": len(self.registry),
            "active_plugins": counts[PluginStatus.ACTIVE.value],
            "error_plugins": counts[PluginStatus.ERROR.value],
            "disabled_plugins": counts[PluginStatus.DISABLED.value],
            "total_hooks": sum(
                len(self.hooks.get_hooks(name)) for name in self.hooks.get_registered_hook_names()
            ),
            "total_event_types": len(self.events.get_event_types()),
            "initialized": self.initialized,
        }
