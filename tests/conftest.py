"""
Pytest configuration and shared fixtures for plugin framework tests.
"""

from collections.abc import Generator
from pathlib import Path

import pytest

from bizbox_plugins.plugins import PluginContext, PluginManager
from bizbox_plugins.telemetry.logging import reset_loggers


# =============================================================================
# Path Fixtures
# =============================================================================


@pytest.fixture(scope="session")
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


# =============================================================================
# Plugin Fixtures
# =============================================================================


@pytest.fixture
def manager() -> PluginManager:
    """Return a fresh plugin manager with default policies."""
    return PluginManager()


@pytest.fixture
def journal() -> list[str]:
    """Return a shared lifecycle journal."""
    return []


@pytest.fixture
def context() -> PluginContext:
    """Return a host context."""
    return PluginContext(tenant={"id": "tenant-1"}, user={"id": "user-1"})


@pytest.fixture(autouse=True)
def reset_logger_state() -> Generator[None, None, None]:
    """Reset cached loggers around each test."""
    reset_loggers()
    yield
    reset_loggers()


# =============================================================================
# Pytest Configuration
# =============================================================================


def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "property: Property-based tests (hypothesis)")
    config.addinivalue_line("markers", "lifecycle: Plugin lifecycle tests")
