"""Event bus: named occurrences broadcast to subscribed handlers.

Handlers are awaited one after another in subscription order; an event is
never delivered to two handlers concurrently. Unlike hooks, events return
nothing to the emitter.
"""

from collections.abc import Callable
from typing import Any

from bizbox_plugins.errors import wrap_error
from bizbox_plugins.telemetry.logging import get_logger
from bizbox_plugins.types import ErrorPolicy

from .types import EventHandler, EventPayload, EventSubscription, call_handler


class EventBus:
    """Event subscriptions and sequential fan-out."""

    def __init__(self, error_policy: ErrorPolicy = ErrorPolicy.FAIL_FAST):
        self.error_policy = error_policy
        self._subscriptions: dict[str, list[EventSubscription]] = {}
        self._subscription_counter = 0
        self._logger = get_logger("plugins.events")

    def subscribe(
        self,
        event_type: str,
        handler: EventHandler,
        plugin_id: str | None = None,
        once: bool = False,
    ) -> str:
        """Subscribe a handler to an event type.

        Args:
            event_type: Event to listen for
            handler: Sync or async callable taking an EventPayload
            plugin_id: Owning plugin, or None for host subscriptions
            once: Remove the subscription after its first delivery

        Returns:
            Subscription id, for unsubscribe()
        """
        self._subscription_counter += 1
        subscription = EventSubscription(
            id=f"sub_{self._subscription_counter}",
            event_type=event_type,
            handler=handler,
            plugin_id=plugin_id,
            once=once,
        )
        self._subscriptions.setdefault(event_type, []).append(subscription)

        self._logger.debug(
            "Subscribed to event",
            event=event_type,
            subscription_id=subscription.id,
            plugin_id=plugin_id,
        )
        return subscription.id

    def once(self, event_type: str, handler: EventHandler, plugin_id: str | None = None) -> str:
        """Subscribe for a single delivery."""
        return self.subscribe(event_type, handler, plugin_id=plugin_id, once=True)

    def unsubscribe(self, subscription_id: str, plugin_id: str | None = None) -> bool:
        """Remove one subscription.

        Args:
            subscription_id: Id returned by subscribe()
            plugin_id: If given, only a subscription owned by this plugin is removed

        Returns:
            True if it existed (and, with plugin_id, belonged to that plugin)
        """
        for event_type, subscriptions in list(self._subscriptions.items()):
            for index, subscription in enumerate(subscriptions):
                if subscription.id == subscription_id:
                    if plugin_id is not None and subscription.plugin_id != plugin_id:
                        return False
                    del subscriptions[index]
                    if not subscriptions:
                        del self._subscriptions[event_type]
                    return True
        return False

    def unsubscribe_plugin(self, plugin_id: str) -> int:
        """Remove every subscription owned by plugin_id.

        Returns:
            Number of subscriptions removed
        """
        return self._remove_where(lambda sub: sub.plugin_id == plugin_id)

    async def emit(
        self,
        event_type: str,
        data: Any = None,
        tenant: Any = None,
        source: str | None = None,
        correlation_id: str | None = None,
    ) -> None:
        """Deliver an event to its subscribers, in subscription order.

        Raises:
            EventHandlerError: Under FAIL_FAST, on the first failing handler;
                later handlers are not called
        """
        subscriptions = list(self._subscriptions.get(event_type, []))
        if not subscriptions:
            self._logger.debug("No subscribers for event", event=event_type)
            return

        payload = EventPayload(
            type=event_type,
            data=data,
            tenant=tenant,
            source=source,
            correlation_id=correlation_id,
        )

        self._logger.debug("Emitting event", event=event_type, subscribers=len(subscriptions))

        for subscription in subscriptions:
            if subscription.once and not self.unsubscribe(subscription.id):
                # Already consumed by a nested emit
                continue
            try:
                await call_handler(subscription.handler, payload)
            except Exception as e:
                if self.error_policy == ErrorPolicy.FAIL_FAST:
                    self._logger.error(
                        "Event handler failed",
                        event=event_type,
                        plugin_id=subscription.plugin_id,
                        error=str(e),
                    )
                    raise wrap_error(
                        "EVENT_HANDLER_FAILED",
                        e,
                        event_type=event_type,
                        plugin_id=subscription.plugin_id,
                    ) from e
                self._logger.warning(
                    "Event handler failed (isolated)",
                    event=event_type,
                    plugin_id=subscription.plugin_id,
                    error=str(e),
                )

    def get_event_types(self) -> list[str]:
        """Event types with at least one subscription."""
        return list(self._subscriptions)

    def get_subscription_count(self, event_type: str) -> int:
        return len(self._subscriptions.get(event_type, []))

    def get_subscriptions(self, event_type: str) -> list[EventSubscription]:
        return list(self._subscriptions.get(event_type, []))

    def get_plugin_subscriptions(self, plugin_id: str) -> list[EventSubscription]:
        return [
            sub for subs in self._subscriptions.values() for sub in subs if sub.plugin_id == plugin_id
        ]

    def clear(self) -> None:
        """Drop every subscription (for testing)."""
        self._subscriptions = {}
        self._subscription_counter = 0

    def _remove_where(self, predicate: Callable[[EventSubscription], bool]) -> int:
        removed = 0
        for event_type in list(self._subscriptions):
            subscriptions = self._subscriptions[event_type]
            kept = [sub for sub in subscriptions if not predicate(sub)]
            removed += len(subscriptions) - len(kept)
            if kept:
                self._subscriptions[event_type] = kept
            else:
                del self._subscriptions[event_type]
        return removed


class PlatformEvents:
    """Predefined event types for the platform."""

    # Plugin lifecycle events
    PLUGIN_REGISTERED = "plugin.registered"
    PLUGIN_INITIALIZED = "plugin.initialized"
    PLUGIN_DISABLED = "plugin.disabled"
    PLUGIN_ERROR = "plugin.error"

    # Tenant events
    TENANT_CREATED = "tenant.created"
    TENANT_UPDATED = "tenant.updated"
    TENANT_DELETED = "tenant.deleted"

    # User events
    USER_CREATED = "user.created"
    USER_UPDATED = "user.updated"
    USER_DELETED = "user.deleted"
    USER_LOGIN = "user.login"
    USER_LOGOUT = "user.logout"

    # Business events
    BUSINESS_UPDATED = "business.updated"

    # Generic data events
    DATA_CREATED = "data.created"
    DATA_UPDATED = "data.updated"
    DATA_DELETED = "data.deleted"


PLATFORM_EVENTS = PlatformEvents
