"""Error factory for creating PluginErrors."""

from typing import Any

from .errors import PluginError
from .registry import ErrorRegistry


class ErrorFactory:
    """Creates PluginErrors from codes or from arbitrary exceptions."""

    def __init__(self, registry: ErrorRegistry | None = None):
        """Initialize error factory.

        Args:
            registry: Error registry (defaults to new ErrorRegistry())
        """
        self.registry = registry or ErrorRegistry()

    def create(
        self,
        code: str,
        context: dict[str, Any] | None = None,
        cause: BaseException | None = None,
        **kwargs: Any,
    ) -> PluginError:
        """Create PluginError directly from code.

        Args:
            code: Error code
            context: Context variables for template interpolation
            cause: Optional underlying exception
            **kwargs: Additional context variables

        Returns:
            PluginError instance
        """
        merged_context = dict(context or {})
        merged_context.update(kwargs)

        return self.registry.create(code=code, context=merged_context, cause=cause)

    def wrap(self, code: str, error: BaseException, **context: Any) -> PluginError:
        """Create an error for code with error as its cause.

        The cause's text is available to templates as {reason} unless the
        caller supplies one.

        Args:
            code: Error code
            error: Underlying exception
            **context: Context variables for template interpolation

        Returns:
            PluginError instance
        """
        context.setdefault("reason", str(error) or type(error).__name__)
        return self.create(code, context, cause=error)


# Convenience singleton
_default_factory: ErrorFactory | None = None


def get_error_factory() -> ErrorFactory:
    """Get default error factory singleton.

    Returns:
        Default ErrorFactory instance
    """
    global _default_factory  # noqa: PLW0603
    if _default_factory is None:
        _default_factory = ErrorFactory()
    return _default_factory


def create_error(code: str, cause: BaseException | None = None, **context: Any) -> PluginError:
    """Convenience function to create error.

    Args:
        code: Error code
        cause: Optional underlying exception
        **context: Context variables for template interpolation

    Returns:
        PluginError instance
    """
    return get_error_factory().create(code, context, cause=cause)


def wrap_error(code: str, error: BaseException, **context: Any) -> PluginError:
    """Convenience wrapper around ErrorFactory.wrap on the default factory."""
    return get_error_factory().wrap(code, error, **context)
