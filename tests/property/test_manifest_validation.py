"""Property-based tests for manifest validation and version matching."""

import pytest
from hypothesis import assume, given, settings
from hypothesis import strategies as st

from bizbox_plugins.manifest import (
    compare_versions,
    is_compatible_release,
    is_valid_plugin_id,
    is_valid_version,
    validate_manifest,
    version_satisfies,
)
from bizbox_plugins.types import VersionMatching
from tests.mocks import make_manifest

# =============================================================================
# Strategies
# =============================================================================

plugin_ids = st.from_regex(r"^[a-z0-9-]{1,30}$", fullmatch=True)

ascii_text = st.text(
    alphabet=st.characters(min_codepoint=32, max_codepoint=126), min_size=1, max_size=30
)

version_parts = st.tuples(
    st.integers(min_value=0, max_value=50),
    st.integers(min_value=0, max_value=50),
    st.integers(min_value=0, max_value=50),
)


def _version(parts: tuple[int, int, int]) -> str:
    return ".".join(str(p) for p in parts)


# =============================================================================
# Plugin ids and versions
# =============================================================================


@pytest.mark.property
class TestIdentifiers:
    """Property tests for id and version syntax."""

    @given(plugin_ids)
    @settings(max_examples=50)
    def test_generated_ids_are_valid(self, plugin_id):
        assert is_valid_plugin_id(plugin_id)

    @given(ascii_text)
    @settings(max_examples=100)
    def test_ids_with_other_characters_rejected(self, text):
        assume(any(not (c.islower() or c.isdigit() or c == "-") for c in text))
        assert not is_valid_plugin_id(text)

    @given(version_parts)
    @settings(max_examples=50)
    def test_three_part_versions_valid(self, parts):
        assert is_valid_version(_version(parts))

    @given(version_parts, st.sampled_from(["-beta", "-rc.1", "+build.5", ".0", ""]))
    @settings(max_examples=50)
    def test_prerelease_and_short_versions_rejected(self, parts, suffix):
        version = _version(parts) + suffix if suffix else f"{parts[0]}.{parts[1]}"
        assert not is_valid_version(version)

    @given(plugin_ids, version_parts)
    @settings(max_examples=50)
    def test_complete_manifest_is_valid(self, plugin_id, parts):
        """Any valid id and version with the other fields set validates cleanly."""
        result = validate_manifest(make_manifest(plugin_id, version=_version(parts)))
        assert result.valid is True
        assert result.errors == []
        assert result.warnings == []

    @given(plugin_ids, st.sampled_from(["name", "description", "author"]))
    @settings(max_examples=30)
    def test_blank_required_field_reported(self, plugin_id, field_name):
        result = validate_manifest(make_manifest(plugin_id, **{field_name: ""}))
        assert result.valid is False
        assert f"Missing required field: {field_name}" in result.errors


# =============================================================================
# Version matching
# =============================================================================


@pytest.mark.property
class TestVersionMatching:
    """Property tests for version comparison and matching modes."""

    @given(version_parts, version_parts)
    @settings(max_examples=100)
    def test_compare_matches_tuple_order(self, a, b):
        expected = (a > b) - (a < b)
        assert compare_versions(_version(a), _version(b)) == expected

    @given(version_parts, version_parts)
    @settings(max_examples=100)
    def test_exact_is_string_equality(self, a, b):
        assert version_satisfies(_version(a), _version(b)) == (a == b)

    @given(version_parts)
    @settings(max_examples=50)
    def test_compatible_accepts_itself(self, parts):
        version = _version(parts)
        assert version_satisfies(version, version, VersionMatching.COMPATIBLE)

    @given(version_parts, version_parts)
    @settings(max_examples=100)
    def test_compatible_never_accepts_older(self, actual, required):
        assume(actual < required)
        assert not is_compatible_release(_version(actual), _version(required))

    @given(version_parts, version_parts)
    @settings(max_examples=100)
    def test_compatible_never_crosses_major(self, actual, required):
        assume(actual[0] != required[0])
        assert not is_compatible_release(_version(actual), _version(required))
