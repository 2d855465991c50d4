"""Plugin registry: records, lifecycle state and the dependency graph.

The registry owns every PluginRecord and is the only place a plugin's status
changes. It does no I/O and calls no plugin code; PluginManager drives the
async lifecycle (initialize/destroy, hooks, events) on top of it.

Allowed transitions:

    REGISTERED   -> INITIALIZING
    INITIALIZING -> ACTIVE | ERROR
    REGISTERED   -> ERROR
    ACTIVE       -> DISABLED | ERROR

ERROR and DISABLED are terminal; unregister() and register() again to retry.
"""

from collections.abc import Mapping
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from bizbox_plugins.errors import create_error
from bizbox_plugins.manifest import PluginManifest, check_compatibility
from bizbox_plugins.telemetry.logging import get_logger
from bizbox_plugins.types import CompatibilityResult, PluginStatus, VersionMatching

from .types import PluginRecord

if TYPE_CHECKING:
    from .base import BasePlugin

_TRANSITIONS: dict[PluginStatus, frozenset[PluginStatus]] = {
    PluginStatus.REGISTERED: frozenset({PluginStatus.INITIALIZING, PluginStatus.ERROR}),
    PluginStatus.INITIALIZING: frozenset({PluginStatus.ACTIVE, PluginStatus.ERROR}),
    PluginStatus.ACTIVE: frozenset({PluginStatus.DISABLED, PluginStatus.ERROR}),
    PluginStatus.ERROR: frozenset(),
    PluginStatus.DISABLED: frozenset(),
}


class PluginRegistry:
    """Registry of plugin records keyed by plugin id.

    Attributes:
        version_matching: How dependency versions are compared
    """

    def __init__(self, version_matching: VersionMatching = VersionMatching.EXACT):
        """Initialize an empty plugin registry."""
        self.version_matching = version_matching
        self._records: dict[str, PluginRecord] = {}
        self._activation_order: list[str] = []
        self._logger = get_logger("plugins.registry")

    def __contains__(self, plugin_id: object) -> bool:
        return plugin_id in self._records

    def __len__(self) -> int:
        return len(self._records)

    # Registration

    def add(self, instance: "BasePlugin", manifest: PluginManifest) -> PluginRecord:
        """Store a new record in REGISTERED state.

        The manifest must already be validated.

        Raises:
            DuplicateRegistrationError: If the id is taken; the existing
                record is left untouched
        """
        if manifest.id in self._records:
            raise create_error("PLUGIN_ALREADY_REGISTERED", plugin_id=manifest.id)

        record = PluginRecord(manifest=manifest, instance=instance)
        self._records[manifest.id] = record
        self._logger.info(
            "Plugin registered", plugin_id=manifest.id, version=manifest.version
        )
        return record

    def remove(self, plugin_id: str) -> PluginRecord:
        """Drop a record.

        Raises:
            PluginNotFoundError: If the id is unknown
        """
        record = self.require(plugin_id)
        del self._records[plugin_id]
        if plugin_id in self._activation_order:
            self._activation_order.remove(plugin_id)
        self._logger.info("Plugin unregistered", plugin_id=plugin_id)
        return record

    # State

    def transition(
        self, plugin_id: str, status: PluginStatus, error: BaseException | None = None
    ) -> PluginRecord:
        """Move a plugin to a new lifecycle state.

        Raises:
            PluginNotFoundError: If the id is unknown
            ValueError: If the transition is not allowed
        """
        record = self.require(plugin_id)
        if status not in _TRANSITIONS[record.status]:
            raise ValueError(
                f"Invalid transition for plugin {plugin_id}: "
                f"{record.status.value} -> {status.value}"
            )

        if record.status == PluginStatus.ACTIVE:
            self._activation_order.remove(plugin_id)

        record.status = status
        if status == PluginStatus.ACTIVE:
            record.initialized_at = datetime.now(timezone.utc)
            record.error = None
            self._activation_order.append(plugin_id)
        elif status == PluginStatus.ERROR:
            record.error = error

        self._logger.debug("Plugin status changed", plugin_id=plugin_id, status=status.value)
        return record

    # Queries

    def get(self, plugin_id: str) -> PluginRecord | None:
        return self._records.get(plugin_id)

    def require(self, plugin_id: str) -> PluginRecord:
        """Get a record or raise PluginNotFoundError."""
        record = self._records.get(plugin_id)
        if record is None:
            raise create_error("PLUGIN_NOT_FOUND", plugin_id=plugin_id)
        return record

    def all(self) -> list[PluginRecord]:
        """Every record, in registration order."""
        return list(self._records.values())

    def with_status(self, status: PluginStatus) -> list[PluginRecord]:
        return [r for r in self._records.values() if r.status == status]

    def is_active(self, plugin_id: str) -> bool:
        record = self._records.get(plugin_id)
        return record is not None and record.status == PluginStatus.ACTIVE

    def manifests(self) -> Mapping[str, PluginManifest]:
        """Manifests of every registered plugin, by id."""
        return {plugin_id: r.manifest for plugin_id, r in self._records.items()}

    def status_counts(self) -> dict[str, int]:
        counts = {status.value: 0 for status in PluginStatus}
        for record in self._records.values():
            counts[record.status.value] += 1
        return counts

    # Dependency graph

    def check_compatibility(self, plugin_id: str) -> CompatibilityResult:
        """Check a registered plugin against every other registered plugin."""
        record = self.require(plugin_id)
        return check_compatibility(record.manifest, self.manifests(), self.version_matching)

    def get_dependents(self, plugin_id: str) -> list[str]:
        """Ids of registered plugins with a hard dependency on plugin_id."""
        return [
            other_id
            for other_id, record in self._records.items()
            if plugin_id in record.manifest.dependencies
        ]

    def activation_order(self) -> list[str]:
        """Ids of active plugins, in the order they became active.

        Dependencies always become active before their dependents, so the
        reverse of this list is a safe shutdown order.
        """
        return list(self._activation_order)
