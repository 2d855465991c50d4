"""Error registry for creating errors from templates."""

import dataclasses
from typing import Any

from .errors import (
    ConfigError,
    DuplicateRegistrationError,
    ErrorCategory,
    ErrorTemplate,
    EventHandlerError,
    HookExecutionError,
    HookNotDefinedError,
    InitializationError,
    ManifestValidationError,
    PluginError,
    PluginLifecycleError,
    PluginNotActiveError,
    PluginNotFoundError,
)

# Fields every PluginError has; anything else in the context is matched
# against the subclass's own dataclass fields.
_BASE_FIELDS = {f.name for f in dataclasses.fields(PluginError)}


class ErrorRegistry:
    """Registry of error templates. Creates errors from templates + context."""

    def __init__(self) -> None:
        """Initialize error registry with built-in templates."""
        self._templates: dict[str, ErrorTemplate] = {}
        self._load_builtin_templates()

    def get_template(self, code: str) -> ErrorTemplate | None:
        """Get template by error code.

        Args:
            code: Error code to look up

        Returns:
            ErrorTemplate if found, None otherwise
        """
        return self._templates.get(code)

    def list_codes(self) -> list[str]:
        """List all registered error codes."""
        return list(self._templates.keys())

    def register_template(self, template: ErrorTemplate) -> None:
        """Add or replace a template (hosts may add their own codes)."""
        self._templates[template.code] = template

    def create(
        self,
        code: str,
        context: dict[str, Any] | None = None,
        cause: BaseException | None = None,
    ) -> PluginError:
        """Create error instance from template + context.

        Context keys that match a field of the template's error class
        (plugin_id, errors, hook_name, ...) are set on the instance as well
        as being available for interpolation.

        Args:
            code: Error code
            context: Context variables for template interpolation
            cause: Optional underlying exception

        Returns:
            PluginError subclass instance

        Raises:
            ValueError: If error code not found
        """
        template = self.get_template(code)
        if not template:
            msg = f"Unknown error code: {code}"
            raise ValueError(msg)

        context = context or {}

        message = self._interpolate(template.message_template, context)
        detail = context.get("detail") or self._interpolate(template.detail_template, context)
        suggestion = self._interpolate(template.suggestion_template, context)

        if message is None:
            message = f"Error {code}"

        extra = {
            f.name: context[f.name]
            for f in dataclasses.fields(template.error_class)
            if f.name not in _BASE_FIELDS and f.name in context
        }

        return template.error_class(
            code=template.code,
            category=template.category,
            message=message,
            detail=detail,
            suggestion=suggestion,
            plugin_id=context.get("plugin_id"),
            cause=cause,
            **extra,
        )

    def _interpolate(
        self,
        template: str | None,
        context: dict[str, Any],
    ) -> str | None:
        """Safe string interpolation.

        Args:
            template: Template string with {var} placeholders
            context: Context variables

        Returns:
            Interpolated string or None if template is None
        """
        if template is None:
            return None

        try:
            return template.format(**context)
        except KeyError:
            # Missing context variable - return template as-is
            return template

    def _load_builtin_templates(self) -> None:
        """Load hardcoded built-in templates."""
        # VALIDATION Errors
        self._templates["MANIFEST_INVALID"] = ErrorTemplate(
            code="MANIFEST_INVALID",
            category=ErrorCategory.VALIDATION,
            message_template="Plugin manifest for '{plugin_id}' is invalid",
            error_class=ManifestValidationError,
            detail_template="{error_summary}",
            suggestion_template="Fix the listed manifest errors and register the plugin again",
        )

        self._templates["PLUGIN_CONFIG_INVALID"] = ErrorTemplate(
            code="PLUGIN_CONFIG_INVALID",
            category=ErrorCategory.VALIDATION,
            message_template="Configuration for plugin '{plugin_id}' is invalid",
            error_class=ManifestValidationError,
            detail_template="{error_summary}",
            suggestion_template="Check the plugin's 'enabled' and 'settings' entries",
        )

        # CONFIG Errors
        self._templates["CONFIG_INVALID"] = ErrorTemplate(
            code="CONFIG_INVALID",
            category=ErrorCategory.CONFIG,
            message_template="Invalid plugin framework configuration",
            error_class=ConfigError,
            suggestion_template="Check the configuration file syntax and values",
        )

        # REGISTRY Errors
        self._templates["PLUGIN_ALREADY_REGISTERED"] = ErrorTemplate(
            code="PLUGIN_ALREADY_REGISTERED",
            category=ErrorCategory.REGISTRY,
            message_template="Plugin {plugin_id} is already registered",
            error_class=DuplicateRegistrationError,
            suggestion_template="Unregister the existing plugin before registering it again",
        )

        self._templates["PLUGIN_NOT_FOUND"] = ErrorTemplate(
            code="PLUGIN_NOT_FOUND",
            category=ErrorCategory.REGISTRY,
            message_template="Plugin {plugin_id} not found",
            error_class=PluginNotFoundError,
            suggestion_template="Register the plugin before using it",
        )

        # LIFECYCLE Errors
        self._templates["PLUGIN_NOT_ACTIVE"] = ErrorTemplate(
            code="PLUGIN_NOT_ACTIVE",
            category=ErrorCategory.LIFECYCLE,
            message_template="Plugin {plugin_id} is not active (status: {status})",
            error_class=PluginNotActiveError,
            suggestion_template="Initialize the plugin first",
        )

        self._templates["PLUGIN_INIT_FAILED"] = ErrorTemplate(
            code="PLUGIN_INIT_FAILED",
            category=ErrorCategory.LIFECYCLE,
            message_template="Failed to initialize plugin {plugin_id}: {reason}",
            error_class=InitializationError,
            suggestion_template="Unregister and register the plugin again to retry",
        )

        self._templates["PLUGIN_DESTROY_FAILED"] = ErrorTemplate(
            code="PLUGIN_DESTROY_FAILED",
            category=ErrorCategory.LIFECYCLE,
            message_template="Failed to disable plugin {plugin_id}: {reason}",
            error_class=PluginLifecycleError,
        )

        # HOOK Errors
        self._templates["HOOK_NOT_DEFINED"] = ErrorTemplate(
            code="HOOK_NOT_DEFINED",
            category=ErrorCategory.HOOK,
            message_template="Hook {hook_name} is not defined",
            error_class=HookNotDefinedError,
            suggestion_template="Define it first using define_hook()",
        )

        self._templates["HOOK_HANDLER_FAILED"] = ErrorTemplate(
            code="HOOK_HANDLER_FAILED",
            category=ErrorCategory.HOOK,
            message_template="Error executing hook {hook_name} for plugin {plugin_id}: {reason}",
            error_class=HookExecutionError,
        )

        # EVENT Errors
        self._templates["EVENT_HANDLER_FAILED"] = ErrorTemplate(
            code="EVENT_HANDLER_FAILED",
            category=ErrorCategory.EVENT,
            message_template="Error in event handler for {event_type} (plugin {plugin_id}): {reason}",
            error_class=EventHandlerError,
        )
