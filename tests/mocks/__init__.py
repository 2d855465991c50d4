"""Test mocks for bizbox-plugins.

Provides test doubles for plugin framework tests:
- RecordingPlugin: Plugin that journals its lifecycle calls
- make_manifest: Manifest that validates with no warnings
"""

from .plugins import RecordingPlugin, make_manifest

__all__ = ["RecordingPlugin", "make_manifest"]
