"""Tests for the event bus."""

import pytest

from bizbox_plugins.errors import EventHandlerError
from bizbox_plugins.plugins import EventBus, PlatformEvents
from bizbox_plugins.types import ErrorPolicy


@pytest.fixture
def bus() -> EventBus:
    """Return an event bus with default policies."""
    return EventBus()


class TestSubscriptions:
    """Tests for subscribe/unsubscribe."""

    def test_subscription_ids_are_unique(self, bus):
        first = bus.subscribe("user.created", lambda e: None)
        second = bus.subscribe("user.created", lambda e: None)
        assert first != second
        assert bus.get_subscription_count("user.created") == 2

    def test_unsubscribe(self, bus):
        """Test unsubscribe removes one subscription and reports it."""
        sub_id = bus.subscribe("user.created", lambda e: None)
        assert bus.unsubscribe(sub_id) is True
        assert bus.unsubscribe(sub_id) is False
        assert bus.get_event_types() == []

    def test_unsubscribe_checks_owner(self, bus):
        """Test an owner-restricted unsubscribe leaves other plugins' subscriptions."""
        sub_id = bus.subscribe("user.created", lambda e: None, plugin_id="crm")
        assert bus.unsubscribe(sub_id, plugin_id="audit") is False
        assert bus.get_subscription_count("user.created") == 1
        assert bus.unsubscribe(sub_id, plugin_id="crm") is True

    def test_unsubscribe_plugin(self, bus):
        """Test all of a plugin's subscriptions go at once."""
        bus.subscribe("user.created", lambda e: None, plugin_id="crm")
        bus.subscribe("user.deleted", lambda e: None, plugin_id="crm")
        bus.subscribe("user.created", lambda e: None, plugin_id="audit")
        bus.subscribe("user.created", lambda e: None)

        assert bus.unsubscribe_plugin("crm") == 2
        assert bus.get_plugin_subscriptions("crm") == []
        assert bus.get_subscription_count("user.created") == 2
        assert bus.get_event_types() == ["user.created"]

    def test_clear(self, bus):
        bus.subscribe("user.created", lambda e: None)
        bus.clear()
        assert bus.get_event_types() == []


class TestEmit:
    """Tests for event delivery."""

    @pytest.mark.asyncio
    async def test_payload_delivered(self, bus):
        """Test handlers receive a payload with data and metadata."""
        received = []
        bus.subscribe(PlatformEvents.USER_CREATED, received.append)

        await bus.emit(
            PlatformEvents.USER_CREATED,
            {"id": 7},
            tenant="tenant-1",
            source="accounts",
            correlation_id="req-1",
        )

        assert len(received) == 1
        payload = received[0]
        assert payload.type == "user.created"
        assert payload.data == {"id": 7}
        assert payload.tenant == "tenant-1"
        assert payload.source == "accounts"
        assert payload.correlation_id == "req-1"
        assert payload.timestamp is not None

    @pytest.mark.asyncio
    async def test_sequential_registration_order(self, bus):
        """Test async and sync handlers run one after another in order."""
        calls = []

        async def first(event):
            calls.append("first")

        def second(event):
            calls.append("second")

        async def third(event):
            calls.append("third")

        bus.subscribe("data.created", first)
        bus.subscribe("data.created", second)
        bus.subscribe("data.created", third)
        await bus.emit("data.created")
        assert calls == ["first", "second", "third"]

    @pytest.mark.asyncio
    async def test_no_subscribers(self, bus):
        await bus.emit("nobody.listens", {"x": 1})

    @pytest.mark.asyncio
    async def test_once_delivers_once(self, bus):
        """Test once-subscriptions are removed after the first delivery."""
        received = []
        bus.once("tenant.created", received.append)

        await bus.emit("tenant.created", 1)
        await bus.emit("tenant.created", 2)

        assert [e.data for e in received] == [1]
        assert bus.get_subscription_count("tenant.created") == 0

    @pytest.mark.asyncio
    async def test_once_survives_nested_emit(self, bus):
        """Test a nested emit of the same event does not redeliver a once handler."""
        received = []

        async def reentrant(event):
            if event.data == "outer":
                await bus.emit("loop", "inner")

        bus.subscribe("loop", reentrant)
        bus.once("loop", lambda e: received.append(e.data))

        await bus.emit("loop", "outer")
        assert received == ["inner"]

    @pytest.mark.asyncio
    async def test_fail_fast(self, bus):
        """Test a failing handler raises and stops delivery."""
        calls = []

        def broken(event):
            raise RuntimeError("handler broke")

        bus.subscribe("user.login", broken, plugin_id="audit")
        bus.subscribe("user.login", lambda e: calls.append(e))

        with pytest.raises(EventHandlerError) as exc_info:
            await bus.emit("user.login")

        assert exc_info.value.event_type == "user.login"
        assert exc_info.value.plugin_id == "audit"
        assert calls == []

    @pytest.mark.asyncio
    async def test_isolate_continues(self):
        """Test isolated failures do not stop later handlers."""
        bus = EventBus(error_policy=ErrorPolicy.ISOLATE)
        calls = []

        def broken(event):
            raise RuntimeError("handler broke")

        bus.subscribe("user.login", broken)
        bus.subscribe("user.login", lambda e: calls.append(e.type))

        await bus.emit("user.login")
        assert calls == ["user.login"]
