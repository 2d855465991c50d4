"""Plugin framework types and context dataclasses.

This module defines the core types shared by the hook system, the event bus
and the registry:
- PluginContext: opaque host context handed to initialize()
- HookResult: optional wrapper a filter-hook handler may return
- HookDefinition / RegisteredHook: hook catalog and hook table entries
- EventPayload / EventSubscription: event bus payload and subscriptions
- PluginRecord: registry-owned lifecycle record
"""

import inspect
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from bizbox_plugins.manifest import PluginManifest
from bizbox_plugins.types import PluginStatus

if TYPE_CHECKING:
    from .base import BasePlugin

T = TypeVar("T")

HookHandler = Callable[..., Any]
EventHandler = Callable[["EventPayload"], Awaitable[None] | None]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


async def call_handler(handler: Callable[..., Any], *args: Any) -> Any:
    """Call a sync or async handler and return its (awaited) result."""
    result = handler(*args)
    if inspect.isawaitable(result):
        result = await result
    return result


@dataclass
class PluginContext:
    """Context passed to BasePlugin.initialize.

    The framework never looks inside; its shape belongs to the host's
    tenant and auth layer.
    """

    tenant: Any = None
    user: Any = None
    request: Any = None
    extras: dict[str, Any] = field(default_factory=dict)


@dataclass
class HookResult(Generic[T]):
    """Result of a filter-hook handler.

    Handlers may return a plain value instead; HookResult lets a handler
    say explicitly whether it changed the value.

    Attributes:
        data: The (possibly modified) value
        modified: Whether the handler modified the value
        metadata: Optional metadata from the handler
    """

    data: T
    modified: bool = False
    metadata: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def unchanged(cls, data: T) -> "HookResult[T]":
        """Create a result indicating data was not modified."""
        return cls(data=data, modified=False)

    @classmethod
    def changed(cls, data: T, metadata: dict[str, Any] | None = None) -> "HookResult[T]":
        """Create a result indicating data was modified."""
        return cls(data=data, modified=True, metadata=metadata or {})


@dataclass
class HookDefinition:
    """Catalog entry describing a hook point."""

    name: str
    description: str
    parameters: list[str] = field(default_factory=list)
    return_type: str | None = None


@dataclass
class RegisteredHook:
    """Hook table entry: one handler registered by one plugin."""

    name: str
    handler: HookHandler
    plugin_id: str
    priority: int = 10
    registered_at: datetime = field(default_factory=_utcnow)


@dataclass
class EventPayload:
    """What every event handler receives."""

    type: str
    data: Any = None
    tenant: Any = None
    timestamp: datetime = field(default_factory=_utcnow)
    source: str | None = None
    correlation_id: str | None = None


@dataclass
class EventSubscription:
    """Event bus entry: one handler for one event type."""

    id: str
    event_type: str
    handler: EventHandler
    plugin_id: str | None = None  # None for host-owned subscriptions
    once: bool = False


@dataclass
class PluginRecord:
    """Registry-owned wrapper around a registered plugin.

    Only the registry changes status; plugin instances never do.
    """

    manifest: PluginManifest
    instance: "BasePlugin"
    status: PluginStatus = PluginStatus.REGISTERED
    registered_at: datetime = field(default_factory=_utcnow)
    initialized_at: datetime | None = None
    error: BaseException | None = None

    @property
    def id(self) -> str:
        return self.manifest.id

    def to_dict(self) -> dict[str, Any]:
        """Serialize for admin tooling."""
        return {
            "id": self.manifest.id,
            "name": self.manifest.name,
            "version": self.manifest.version,
            "status": self.status.value,
            "registered_at": self.registered_at.isoformat(),
            "initialized_at": self.initialized_at.isoformat() if self.initialized_at else None,
            "error": str(self.error) if self.error else None,
            "dependencies": list(self.manifest.dependencies),
        }
