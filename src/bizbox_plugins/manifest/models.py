"""Plugin manifest data models.

A manifest is the static declaration of a plugin's identity and contract.
Building one never validates it; run validate_manifest() for that, so a
malformed manifest can still be represented and reported on.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any


@dataclass
class RouteDescriptor:
    """HTTP route a plugin exposes. The framework validates, never serves."""

    method: str | None = None  # GET | POST | PUT | DELETE | PATCH
    path: str | None = None  # Conventionally starts with "/"
    handler: str | None = None  # Handler reference, resolved by the host
    middleware: list[str] = field(default_factory=list)
    permissions: list[str] = field(default_factory=list)
    description: str | None = None

    @classmethod
    def from_dict(cls, data: Any) -> "RouteDescriptor":
        if isinstance(data, RouteDescriptor):
            return data
        if not isinstance(data, Mapping):
            return cls()
        return cls(
            method=data.get("method"),
            path=data.get("path"),
            handler=data.get("handler"),
            middleware=list(data.get("middleware") or []),
            permissions=list(data.get("permissions") or []),
            description=data.get("description"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "method": self.method,
            "path": self.path,
            "handler": self.handler,
            "middleware": list(self.middleware),
            "permissions": list(self.permissions),
            "description": self.description,
        }


@dataclass
class PermissionDescriptor:
    """Permission a plugin asks the host to grant."""

    resource: str | None = None
    actions: Any = None  # Expected: list/tuple/set of action names
    description: str | None = None
    conditions: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Any) -> "PermissionDescriptor":
        if isinstance(data, PermissionDescriptor):
            return data
        if not isinstance(data, Mapping):
            return cls()
        return cls(
            resource=data.get("resource"),
            actions=data.get("actions"),
            description=data.get("description"),
            conditions=dict(data.get("conditions") or {}),
        )

    def to_dict(self) -> dict[str, Any]:
        actions = self.actions
        if isinstance(actions, (set, frozenset, tuple)):
            actions = sorted(actions) if isinstance(actions, (set, frozenset)) else list(actions)
        return {
            "resource": self.resource,
            "actions": actions,
            "description": self.description,
            "conditions": dict(self.conditions),
        }


@dataclass
class PluginManifest:
    """Static declaration of a plugin's identity, version and contract.

    Attributes:
        id: Lowercase alphanumeric + hyphen, unique within a registry
        name: Human-readable plugin name
        version: Strict MAJOR.MINOR.PATCH
        description: What the plugin does
        author: Who maintains it
        dependencies: Hard dependencies, plugin id -> required version
        peer_dependencies: Soft dependencies, plugin id -> required version
        routes: Ordered route descriptors
        permissions: Requested permissions
        hooks: Hook names the plugin intends to handle (informational)
        tags: Free-form discovery tags
        min_core_version / max_core_version: Supported framework range
        homepage / repository / license: Recommended metadata
    """

    id: str = ""
    name: str = ""
    version: str = ""
    description: str = ""
    author: str = ""
    dependencies: dict[str, str] = field(default_factory=dict)
    peer_dependencies: dict[str, str] = field(default_factory=dict)
    routes: list[RouteDescriptor] = field(default_factory=list)
    permissions: list[PermissionDescriptor] = field(default_factory=list)
    hooks: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    min_core_version: str | None = None
    max_core_version: str | None = None
    homepage: str | None = None
    repository: str | None = None
    license: str | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PluginManifest":
        """Build a manifest from a raw mapping (e.g. a parsed plugin.json).

        camelCase keys used by manifest files (peerDependencies,
        minCoreVersion, maxCoreVersion) are accepted. Values of the wrong
        shape are dropped here and reported by validate_manifest().
        """
        return cls(
            id=data.get("id") or "",
            name=data.get("name") or "",
            version=data.get("version") or "",
            description=data.get("description") or "",
            author=data.get("author") or "",
            dependencies=_as_str_map(data.get("dependencies")),
            peer_dependencies=_as_str_map(
                data.get("peer_dependencies", data.get("peerDependencies"))
            ),
            routes=[RouteDescriptor.from_dict(r) for r in _as_list(data.get("routes"))],
            permissions=[
                PermissionDescriptor.from_dict(p) for p in _as_list(data.get("permissions"))
            ],
            hooks=[str(h) for h in _as_list(data.get("hooks"))],
            tags=[str(t) for t in _as_list(data.get("tags"))],
            min_core_version=data.get("min_core_version", data.get("minCoreVersion")),
            max_core_version=data.get("max_core_version", data.get("maxCoreVersion")),
            homepage=data.get("homepage"),
            repository=data.get("repository"),
            license=data.get("license"),
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize using the manifest-file key names."""
        data: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "version": self.version,
            "description": self.description,
            "author": self.author,
            "dependencies": dict(self.dependencies),
            "peerDependencies": dict(self.peer_dependencies),
            "routes": [r.to_dict() for r in self.routes],
            "permissions": [p.to_dict() for p in self.permissions],
            "hooks": list(self.hooks),
            "tags": list(self.tags),
        }
        for key, value in (
            ("minCoreVersion", self.min_core_version),
            ("maxCoreVersion", self.max_core_version),
            ("homepage", self.homepage),
            ("repository", self.repository),
            ("license", self.license),
        ):
            if value is not None:
                data[key] = value
        return data


def _as_str_map(value: Any) -> dict[str, str]:
    if not isinstance(value, Mapping):
        return {}
    return {str(k): v for k, v in value.items()}


def _as_list(value: Any) -> list[Any]:
    if isinstance(value, (list, tuple)):
        return list(value)
    return []
