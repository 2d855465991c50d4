"""Tests for BasePlugin and the PluginAPI handle."""

import pytest

from bizbox_plugins.plugins import BasePlugin, PluginAPI, PluginContext
from tests.mocks import RecordingPlugin, make_manifest


class PricingPlugin(BasePlugin):
    """Plugin that wires itself up through the helper methods."""

    manifest = make_manifest("pricing", tags=["billing"])

    def __init__(self):
        super().__init__()
        self.seen_events = []

    async def initialize(self, context: PluginContext | None) -> None:
        self.register_hook("data.beforeCreate", self.add_tax, priority=5)
        self.subscribe_to_event("order.placed", self.seen_events.append)

    async def destroy(self) -> None:
        pass

    def add_tax(self, record):
        return {**record, "tax": round(record["amount"] * 0.2, 2)}


class TestBinding:
    """Tests for the unbound and bound plugin states."""

    def test_unbound_api_raises(self):
        plugin = RecordingPlugin()
        assert plugin.plugin_id is None
        with pytest.raises(RuntimeError, match="not registered"):
            plugin.register_hook("data.beforeCreate", lambda r: r)

    def test_unbound_logger_uses_class_name(self):
        assert RecordingPlugin().logger.name == "bizbox.plugin.RecordingPlugin"

    @pytest.mark.asyncio
    async def test_register_binds_api(self, manager):
        plugin = RecordingPlugin()
        await manager.register_plugin(plugin, make_manifest("crm"))

        assert isinstance(plugin.api, PluginAPI)
        assert plugin.plugin_id == "crm"
        assert plugin.logger.name == "bizbox.plugin.crm"
        assert repr(plugin) == "RecordingPlugin(id='crm')"


class TestMetadata:
    """Tests for get_metadata."""

    def test_without_manifest(self):
        assert RecordingPlugin().get_metadata() == {"id": None, "class": "RecordingPlugin"}

    def test_class_level_manifest(self):
        metadata = PricingPlugin().get_metadata()
        assert metadata["id"] == "pricing"
        assert metadata["version"] == "1.0.0"
        assert metadata["tags"] == ["billing"]


class TestHelpers:
    """Tests for the helpers plugins use during initialize()."""

    @pytest.mark.asyncio
    async def test_hooks_and_events_through_api(self, manager):
        """Test hooks and subscriptions are owned by the plugin's id."""
        plugin = PricingPlugin()
        await manager.register_plugin(plugin)
        await manager.initialize_plugin("pricing")

        assert [h.plugin_id for h in manager.hooks.get_plugin_hooks("pricing")] == ["pricing"]
        result = await plugin.execute_filter_hook("data.beforeCreate", {"amount": 10})
        assert result == {"amount": 10, "tax": 2.0}

        await manager.emit_event("order.placed", {"order": 1})
        assert [e.data for e in plugin.seen_events] == [{"order": 1}]

    @pytest.mark.asyncio
    async def test_emit_sets_source(self, manager):
        received = []
        manager.subscribe_to_event(None, "invoice.sent", received.append)
        plugin = RecordingPlugin()
        await manager.register_plugin(plugin, make_manifest("invoices"))

        await plugin.emit("invoice.sent", {"number": 42}, tenant="tenant-1")

        assert received[0].source == "invoices"
        assert received[0].tenant == "tenant-1"

    @pytest.mark.asyncio
    async def test_api_reports_other_plugins(self, manager):
        crm = RecordingPlugin()
        await manager.register_plugin(crm, make_manifest("crm"))
        await manager.register_plugin(RecordingPlugin(), make_manifest("core"))
        await manager.initialize_plugin("core")

        assert crm.api.is_plugin_active("core") is True
        assert crm.api.is_plugin_active("crm") is False
        assert await crm.execute_hook("nothing.registered") == []

    @pytest.mark.asyncio
    async def test_unsubscribe_only_own_subscriptions(self, manager):
        """Test a plugin cannot remove another plugin's subscription through its handle."""
        crm, audit = RecordingPlugin(), RecordingPlugin()
        await manager.register_plugin(crm, make_manifest("crm"))
        await manager.register_plugin(audit, make_manifest("audit"))
        received = []
        audit_sub = audit.subscribe_to_event("user.created", received.append)
        crm_sub = crm.subscribe_to_event("user.created", lambda e: None)

        assert crm.api.unsubscribe(audit_sub) is False
        await manager.emit_event("user.created", {"id": 1})
        assert [e.data for e in received] == [{"id": 1}]

        assert crm.api.unsubscribe(crm_sub) is True
        assert audit.api.unsubscribe(audit_sub) is True
        assert manager.events.get_subscription_count("user.created") == 0
