"""Hook system: named extension points handled by plugins.

Handlers run one at a time, higher priority first and in registration order
within a priority, so a handler can rely on earlier handlers having run.
Three ways to execute a hook:

- execute_hook: collect every handler's result, positionally
- execute_filter_hook: thread a value through the handlers
- execute_validation_hook: all handlers must approve

A failing handler aborts the call (ErrorPolicy.FAIL_FAST, the default) or is
logged and skipped (ErrorPolicy.ISOLATE).
"""

from typing import Any

from bizbox_plugins.errors import create_error, wrap_error
from bizbox_plugins.telemetry.logging import get_logger
from bizbox_plugins.types import ErrorPolicy

from .types import HookDefinition, HookHandler, HookResult, RegisteredHook, call_handler

DEFAULT_PRIORITY = 10


class HookSystem:
    """Hook table plus an optional catalog of defined hook points.

    Attributes:
        error_policy: What a failing handler does to the running call
        strict: If True, handlers can only target hooks in the catalog
    """

    def __init__(
        self,
        error_policy: ErrorPolicy = ErrorPolicy.FAIL_FAST,
        strict: bool = False,
    ):
        self.error_policy = error_policy
        self.strict = strict
        self._hooks: dict[str, list[RegisteredHook]] = {}
        self._definitions: dict[str, HookDefinition] = {}
        self._logger = get_logger("plugins.hooks")
        self._register_standard_hooks()

    # Catalog

    def define_hook(self, definition: HookDefinition) -> None:
        """Add a hook point to the catalog.

        Raises:
            ValueError: If a hook with that name is already defined
        """
        if definition.name in self._definitions:
            raise ValueError(f"Hook {definition.name} is already defined")
        self._definitions[definition.name] = definition
        self._logger.debug("Hook defined", hook=definition.name)

    def is_hook_defined(self, hook_name: str) -> bool:
        return hook_name in self._definitions

    def get_hook_definition(self, hook_name: str) -> HookDefinition | None:
        return self._definitions.get(hook_name)

    def get_defined_hooks(self) -> list[str]:
        """Names of every hook in the catalog."""
        return list(self._definitions)

    # Hook table

    def register_hook(
        self,
        hook_name: str,
        handler: HookHandler,
        plugin_id: str,
        priority: int = DEFAULT_PRIORITY,
    ) -> RegisteredHook:
        """Add a handler to a hook.

        Args:
            hook_name: Hook to handle
            handler: Sync or async callable
            plugin_id: Owning plugin; its handlers go away when it is disabled
            priority: Higher runs earlier; ties keep registration order

        Returns:
            The hook table entry

        Raises:
            HookNotDefinedError: In strict mode, if the hook is not in the catalog
        """
        if self.strict and hook_name not in self._definitions:
            raise create_error("HOOK_NOT_DEFINED", hook_name=hook_name, plugin_id=plugin_id)

        entry = RegisteredHook(
            name=hook_name, handler=handler, plugin_id=plugin_id, priority=priority
        )
        handlers = self._hooks.setdefault(hook_name, [])
        handlers.append(entry)
        # list.sort is stable, so equal priorities stay in registration order
        handlers.sort(key=lambda h: -h.priority)

        self._logger.debug(
            "Hook registered", hook=hook_name, plugin_id=plugin_id, priority=priority
        )
        return entry

    def unregister_plugin_hooks(self, plugin_id: str) -> int:
        """Remove every handler owned by plugin_id.

        Returns:
            Number of handlers removed
        """
        removed = 0
        for hook_name in list(self._hooks):
            handlers = self._hooks[hook_name]
            kept = [h for h in handlers if h.plugin_id != plugin_id]
            removed += len(handlers) - len(kept)
            if kept:
                self._hooks[hook_name] = kept
            else:
                del self._hooks[hook_name]

        if removed:
            self._logger.debug("Hooks removed", plugin_id=plugin_id, count=removed)
        return removed

    def get_hooks(self, hook_name: str) -> list[RegisteredHook]:
        """Handlers for a hook, in execution order."""
        return list(self._hooks.get(hook_name, []))

    def get_plugin_hooks(self, plugin_id: str) -> list[RegisteredHook]:
        """Every handler registered by a plugin."""
        return [h for handlers in self._hooks.values() for h in handlers if h.plugin_id == plugin_id]

    def get_registered_hook_names(self) -> list[str]:
        """Hooks that currently have at least one handler."""
        return list(self._hooks)

    def clear(self) -> None:
        """Drop every handler (the catalog is kept)."""
        self._hooks = {}

    # Execution

    async def execute_hook(self, hook_name: str, *args: Any) -> list[Any]:
        """Call every handler of a hook and collect the results.

        Returns:
            Results in handler order. Under ISOLATE, failed handlers
            contribute no entry.

        Raises:
            HookExecutionError: Under FAIL_FAST, on the first failing handler
        """
        handlers = self.get_hooks(hook_name)
        if not handlers:
            return []

        self._logger.debug("Executing hook", hook=hook_name, handlers=len(handlers))

        results: list[Any] = []
        for entry in handlers:
            try:
                results.append(await call_handler(entry.handler, *args))
            except Exception as e:
                self._handle_failure(entry, e)
        return results

    async def execute_filter_hook(self, hook_name: str, initial_value: Any, *args: Any) -> Any:
        """Thread a value through every handler of a hook.

        Each handler is called as handler(value, *args). A non-None return
        (or a HookResult's data) becomes the new value.

        Returns:
            The final value
        """
        value = initial_value
        for entry in self.get_hooks(hook_name):
            try:
                result = await call_handler(entry.handler, value, *args)
            except Exception as e:
                self._handle_failure(entry, e)
                continue

            if isinstance(result, HookResult):
                value = result.data
            elif result is not None:
                value = result
        return value

    async def execute_validation_hook(self, hook_name: str, *args: Any) -> bool:
        """Ask every handler of a hook to approve.

        Returns:
            False as soon as a handler returns False (or, under ISOLATE,
            raises); True otherwise, including when there are no handlers
        """
        for entry in self.get_hooks(hook_name):
            try:
                result = await call_handler(entry.handler, *args)
            except Exception as e:
                self._handle_failure(entry, e)
                return False

            if result is False:
                return False
        return True

    def _handle_failure(self, entry: RegisteredHook, error: Exception) -> None:
        """Raise (FAIL_FAST) or log (ISOLATE) a handler failure."""
        if self.error_policy == ErrorPolicy.FAIL_FAST:
            self._logger.error(
                "Hook handler failed",
                hook=entry.name,
                plugin_id=entry.plugin_id,
                error=str(error),
            )
            raise wrap_error(
                "HOOK_HANDLER_FAILED", error, hook_name=entry.name, plugin_id=entry.plugin_id
            ) from error

        self._logger.warning(
            "Hook handler failed (isolated)",
            hook=entry.name,
            plugin_id=entry.plugin_id,
            error=str(error),
        )

    def _register_standard_hooks(self) -> None:
        """Load the standard hook catalog."""
        for definition in STANDARD_HOOK_DEFINITIONS:
            self._definitions[definition.name] = definition


class StandardHooks:
    """Standard hook names for easy reference."""

    # Plugin lifecycle
    PLUGIN_BEFORE_INITIALIZE = "plugin.beforeInitialize"
    PLUGIN_AFTER_INITIALIZE = "plugin.afterInitialize"
    PLUGIN_BEFORE_DESTROY = "plugin.beforeDestroy"

    # Request lifecycle
    REQUEST_BEFORE_PROCESS = "request.beforeProcess"
    REQUEST_AFTER_PROCESS = "request.afterProcess"

    # Data lifecycle
    DATA_BEFORE_CREATE = "data.beforeCreate"
    DATA_AFTER_CREATE = "data.afterCreate"
    DATA_BEFORE_UPDATE = "data.beforeUpdate"
    DATA_AFTER_UPDATE = "data.afterUpdate"
    DATA_BEFORE_DELETE = "data.beforeDelete"
    DATA_AFTER_DELETE = "data.afterDelete"

    # Validation
    VALIDATE_USER = "validate.user"
    VALIDATE_BUSINESS = "validate.business"

    # UI extension
    UI_ADMIN_MENU = "ui.adminMenu"
    UI_DASHBOARD = "ui.dashboard"

    # Website builder
    WEBSITE_COMPONENTS = "website.components"
    WEBSITE_BEFORE_RENDER = "website.beforeRender"
    WEBSITE_AFTER_RENDER = "website.afterRender"


STANDARD_HOOKS = StandardHooks

STANDARD_HOOK_DEFINITIONS: tuple[HookDefinition, ...] = (
    HookDefinition(
        StandardHooks.PLUGIN_BEFORE_INITIALIZE,
        "Called before a plugin is initialized",
        ["plugin_id", "context"],
    ),
    HookDefinition(
        StandardHooks.PLUGIN_AFTER_INITIALIZE,
        "Called after a plugin is initialized",
        ["plugin_id", "context"],
    ),
    HookDefinition(
        StandardHooks.PLUGIN_BEFORE_DESTROY,
        "Called before a plugin is destroyed",
        ["plugin_id"],
    ),
    HookDefinition(
        StandardHooks.REQUEST_BEFORE_PROCESS,
        "Called before processing a request",
        ["request", "context"],
    ),
    HookDefinition(
        StandardHooks.REQUEST_AFTER_PROCESS,
        "Called after processing a request",
        ["request", "response", "context"],
    ),
    HookDefinition(
        StandardHooks.DATA_BEFORE_CREATE,
        "Called before creating data",
        ["entity_type", "data", "context"],
    ),
    HookDefinition(
        StandardHooks.DATA_AFTER_CREATE,
        "Called after creating data",
        ["entity_type", "data", "result", "context"],
    ),
    HookDefinition(
        StandardHooks.DATA_BEFORE_UPDATE,
        "Called before updating data",
        ["entity_type", "id", "data", "context"],
    ),
    HookDefinition(
        StandardHooks.DATA_AFTER_UPDATE,
        "Called after updating data",
        ["entity_type", "id", "data", "result", "context"],
    ),
    HookDefinition(
        StandardHooks.DATA_BEFORE_DELETE,
        "Called before deleting data",
        ["entity_type", "id", "context"],
    ),
    HookDefinition(
        StandardHooks.DATA_AFTER_DELETE,
        "Called after deleting data",
        ["entity_type", "id", "context"],
    ),
    HookDefinition(
        StandardHooks.VALIDATE_USER,
        "Validate user data",
        ["user_data", "context"],
        "boolean",
    ),
    HookDefinition(
        StandardHooks.VALIDATE_BUSINESS,
        "Validate business data",
        ["business_data", "context"],
        "boolean",
    ),
    HookDefinition(
        StandardHooks.UI_ADMIN_MENU,
        "Add items to admin menu",
        ["menu_items", "context"],
        "menu_items",
    ),
    HookDefinition(
        StandardHooks.UI_DASHBOARD,
        "Add widgets to dashboard",
        ["widgets", "context"],
        "widgets",
    ),
    HookDefinition(
        StandardHooks.WEBSITE_COMPONENTS,
        "Register website components",
        ["components", "context"],
        "components",
    ),
    HookDefinition(
        StandardHooks.WEBSITE_BEFORE_RENDER,
        "Called before rendering a website page",
        ["page", "context"],
    ),
    HookDefinition(
        StandardHooks.WEBSITE_AFTER_RENDER,
        "Called after rendering a website page",
        ["page", "html", "context"],
    ),
)
