"""Tests for manifest and plugin config validation."""

import pytest

from bizbox_plugins.manifest import (
    PermissionDescriptor,
    PluginManifest,
    RouteDescriptor,
    is_valid_plugin_id,
    is_valid_version,
    validate_config,
    validate_manifest,
)
from tests.mocks import make_manifest


class TestRequiredFields:
    """Tests for required manifest fields."""

    def test_complete_manifest_is_valid(self):
        """Test a complete manifest has no errors and no warnings."""
        result = validate_manifest(make_manifest("crm"))
        assert result.valid is True
        assert result.errors == []
        assert result.warnings == []

    @pytest.mark.parametrize("field_name", ["id", "name", "version", "description", "author"])
    def test_each_missing_field_reported(self, field_name):
        """Test a missing required field produces exactly its own error."""
        result = validate_manifest(make_manifest("crm", **{field_name: ""}))
        assert result.valid is False
        assert f"Missing required field: {field_name}" in result.errors
        assert sum(e.startswith("Missing required field") for e in result.errors) == 1

    def test_one_error_per_missing_field(self):
        """Test an empty manifest lists every required field once."""
        result = validate_manifest({})
        assert result.valid is False
        assert result.errors == [
            "Missing required field: id",
            "Missing required field: name",
            "Missing required field: version",
            "Missing required field: description",
            "Missing required field: author",
        ]

    def test_whitespace_only_counts_as_missing(self):
        """Test whitespace-only values are treated as missing."""
        result = validate_manifest(make_manifest("crm", author="   "))
        assert "Missing required field: author" in result.errors


class TestIdentityFormat:
    """Tests for plugin id and version formats."""

    @pytest.mark.parametrize("plugin_id", ["CRM", "my_plugin", "my plugin", "crm!", "Crm-tools"])
    def test_invalid_plugin_ids(self, plugin_id):
        """Test ids with uppercase letters, underscores or symbols are rejected."""
        result = validate_manifest(make_manifest(plugin_id))
        assert result.valid is False
        assert "Plugin ID must contain only lowercase letters, numbers, and hyphens" in result.errors

    @pytest.mark.parametrize("plugin_id", ["crm", "crm-tools", "a1", "123", "-"])
    def test_valid_plugin_ids(self, plugin_id):
        """Test lowercase, digits and hyphens are accepted."""
        assert is_valid_plugin_id(plugin_id) is True

    @pytest.mark.parametrize("version", ["1.0", "1", "1.0.0-beta", "1.0.0+build", "v1.0.0", "1.0.0.0", "a.b.c"])
    def test_invalid_versions(self, version):
        """Test anything but strict MAJOR.MINOR.PATCH is rejected."""
        result = validate_manifest(make_manifest("crm", version=version))
        assert result.valid is False
        assert "Plugin version must follow semantic versioning (x.y.z)" in result.errors

    @pytest.mark.parametrize("version", ["0.0.0", "1.2.3", "10.20.30"])
    def test_valid_versions(self, version):
        """Test strict semantic versions are accepted."""
        assert is_valid_version(version) is True

    def test_non_string_version_is_invalid(self):
        """Test non-string values never match."""
        assert is_valid_version(1) is False
        assert is_valid_plugin_id(None) is False

    @pytest.mark.parametrize("version", ["١.٠.٠", "１.２.３", "1.0.٣"])
    def test_non_ascii_digits_rejected(self, version):
        """Test only ASCII digits count in a version."""
        assert is_valid_version(version) is False
        result = validate_manifest(make_manifest("crm", version=version))
        assert "Plugin version must follow semantic versioning (x.y.z)" in result.errors


class TestDependencies:
    """Tests for dependency and peer dependency entries."""

    def test_invalid_dependency_id(self):
        """Test a malformed dependency id is an error."""
        result = validate_manifest(make_manifest("crm", dependencies={"Core_Lib": "1.0.0"}))
        assert "Invalid dependency ID: Core_Lib" in result.errors

    def test_invalid_dependency_version(self):
        """Test a range instead of an exact version is an error."""
        result = validate_manifest(make_manifest("crm", dependencies={"core": "^1.0.0"}))
        assert "Invalid dependency version for core: ^1.0.0" in result.errors

    def test_invalid_peer_dependency(self):
        """Test peer dependencies are checked the same way."""
        result = validate_manifest(
            make_manifest("crm", peer_dependencies={"Ui_Kit": "2.0"})
        )
        assert "Invalid peer dependency ID: Ui_Kit" in result.errors
        assert "Invalid peer dependency version for Ui_Kit: 2.0" in result.errors

    def test_valid_dependencies(self):
        """Test well-formed dependencies add no errors."""
        result = validate_manifest(
            make_manifest(
                "crm",
                dependencies={"core": "1.0.0"},
                peer_dependencies={"ui-kit": "2.1.0"},
            )
        )
        assert result.valid is True


class TestRoutes:
    """Tests for route descriptors."""

    def test_incomplete_route(self):
        """Test a route without a handler is an error."""
        manifest = make_manifest("crm", routes=[RouteDescriptor(method="GET", path="/contacts")])
        result = validate_manifest(manifest)
        assert "Route must include method, path, and handler" in result.errors

    def test_invalid_method(self):
        """Test methods outside GET/POST/PUT/DELETE/PATCH are errors."""
        route = RouteDescriptor(method="OPTIONS", path="/contacts", handler="list_contacts")
        result = validate_manifest(make_manifest("crm", routes=[route]))
        assert "Invalid HTTP method: OPTIONS" in result.errors

    def test_path_without_slash_is_warning(self):
        """Test a relative path only warns."""
        route = RouteDescriptor(method="GET", path="contacts", handler="list_contacts")
        result = validate_manifest(make_manifest("crm", routes=[route]))
        assert result.valid is True
        assert "Route path should start with '/': contacts" in result.warnings

    def test_routes_from_raw_mapping(self):
        """Test routes given as dictionaries are checked too."""
        data = make_manifest("crm").to_dict()
        data["routes"] = [{"method": "TRACE", "path": "/x", "handler": "h"}]
        result = validate_manifest(data)
        assert "Invalid HTTP method: TRACE" in result.errors


class TestPermissions:
    """Tests for permission descriptors."""

    def test_incomplete_permission(self):
        """Test a permission without a description is an error."""
        permission = PermissionDescriptor(resource="contacts", actions=["read"])
        result = validate_manifest(make_manifest("crm", permissions=[permission]))
        assert "Permission must include resource, actions, and description" in result.errors

    def test_actions_must_be_array(self):
        """Test a string of actions is rejected."""
        permission = PermissionDescriptor(
            resource="contacts", actions="read", description="Read contacts"
        )
        result = validate_manifest(make_manifest("crm", permissions=[permission]))
        assert "Permission actions must be an array" in result.errors

    def test_missing_actions(self):
        permission = PermissionDescriptor(resource="contacts", description="Read contacts")
        result = validate_manifest(make_manifest("crm", permissions=[permission]))
        assert "Permission must include resource, actions, and description" in result.errors

    def test_empty_actions_accepted(self):
        """Test an empty action list counts as present."""
        result = validate_manifest(
            {
                "id": "crm",
                "name": "CRM",
                "version": "1.0.0",
                "description": "Contacts",
                "author": "BizBox",
                "permissions": [{"resource": "r", "actions": [], "description": "x"}],
            }
        )
        assert result.valid is True
        assert result.errors == []

    def test_valid_permission(self):
        """Test a complete permission adds no errors."""
        permission = PermissionDescriptor(
            resource="contacts", actions=["read", "write"], description="Manage contacts"
        )
        result = validate_manifest(make_manifest("crm", permissions=[permission]))
        assert result.valid is True


class TestRecommendedMetadata:
    """Tests for metadata warnings."""

    def test_missing_metadata_warns_only(self):
        """Test homepage, repository and license only produce warnings."""
        manifest = PluginManifest(
            id="crm", name="CRM", version="1.0.0", description="Contacts", author="BizBox"
        )
        result = validate_manifest(manifest)
        assert result.valid is True
        assert result.warnings == [
            "Consider adding a homepage URL",
            "Consider adding a repository URL",
            "Consider specifying a license",
        ]


class TestRawManifests:
    """Tests for validating raw mappings."""

    def test_camel_case_keys_accepted(self):
        """Test peerDependencies in a raw mapping is validated."""
        data = make_manifest("crm").to_dict()
        data["peerDependencies"] = {"ui-kit": "1.0"}
        result = validate_manifest(data)
        assert "Invalid peer dependency version for ui-kit: 1.0" in result.errors

    def test_wrong_shapes_reported(self):
        """Test wrong container types are errors rather than crashes."""
        data = make_manifest("crm").to_dict()
        data["dependencies"] = ["core"]
        data["routes"] = "GET /"
        data["version"] = 1
        result = validate_manifest(data)
        assert "'dependencies' field must be a dictionary" in result.errors
        assert "'routes' field must be a list" in result.errors
        assert "'version' field must be a string" in result.errors


class TestValidateConfig:
    """Tests for per-plugin config validation."""

    def test_valid_config(self):
        """Test a well-formed config block."""
        result = validate_config({"enabled": True, "settings": {"page_size": 50}})
        assert result.valid is True

    def test_empty_config_is_valid(self):
        """Test both keys are optional."""
        assert validate_config({}).valid is True

    def test_non_mapping_config(self):
        """Test a config that is not an object."""
        result = validate_config(["enabled"])
        assert result.valid is False
        assert result.errors == ["Configuration must be an object"]

    def test_enabled_must_be_bool(self):
        """Test 'enabled' rejects truthy strings."""
        result = validate_config({"enabled": "yes"})
        assert "'enabled' must be a boolean" in result.errors

    def test_settings_must_be_mapping(self):
        """Test 'settings' must be an object."""
        result = validate_config({"settings": "page_size=50"})
        assert "'settings' must be an object" in result.errors

    def test_schema_mismatch_is_warning(self):
        """Test schema type mismatches warn instead of failing."""
        result = validate_config(
            {"settings": {"page_size": "50", "theme": "dark"}},
            schema={"page_size": int, "theme": str},
        )
        assert result.valid is True
        assert result.warnings == ["Setting 'page_size' should be of type int"]

    def test_schema_with_type_tuple(self):
        """Test a tuple of types is reported with all names."""
        result = validate_config(
            {"settings": {"limit": "ten"}},
            schema={"limit": (int, float)},
        )
        assert result.warnings == ["Setting 'limit' should be of type int | float"]
