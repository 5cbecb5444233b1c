"""
Pytest configuration and shared fixtures for multirustkit tests.
"""

import pytest

# Import test fixtures to make them available to all tests
# These imports register the fixtures with pytest's fixture discovery system
# ruff: noqa: F401
from tests.fixtures.homes import (
    cfg,
    fake_toolchain_dir,
    installed_toolchain,
    multirust_home,
    notifications,
    notifier,
    project_dir,
)


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: marks tests as unit tests")
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )


@pytest.fixture(autouse=True)
def reset_caches():
    """Reset any module-level caches between tests."""
    from multirustkit.core import platform

    platform.clear_platform_cache()
    yield
    platform.clear_platform_cache()
