"""
Unit tests for updating every release channel.
"""

import sys

import pytest

from multirustkit.core.exceptions import InstallSourceFailure
from multirustkit.toolchain.channels import (
    UPDATE_CHANNELS,
    ToolVersions,
    update_all_channels,
)
from multirustkit.toolchain.installer import InstallResult, InstallSourceKind, InstallStatus
from multirustkit.toolchain.proxy import UNKNOWN_VERSION
from multirustkit.toolchain.toolchain import Toolchain
from tests.fixtures.homes import install_fake_toolchain


@pytest.fixture
def attempted(monkeypatch):
    """Replace dist installs; 'beta' fails, every attempt is recorded."""
    calls = []

    def fake_install_from_dist(self):
        calls.append(self.name)
        if self.name == "beta":
            raise InstallSourceFailure("beta", "network unreachable")
        return InstallResult(self.name, InstallSourceKind.DIST, InstallStatus.INSTALLED)

    monkeypatch.setattr(Toolchain, "install_from_dist", fake_install_from_dist)
    return calls


@pytest.mark.unit
class TestUpdateAllChannels:
    """Tests for update_all_channels."""

    def test_channel_order(self):
        assert UPDATE_CHANNELS == ("stable", "beta", "nightly")

    def test_failure_is_isolated(self, cfg, attempted):
        """Test a failing beta does not stop stable or nightly."""
        report = update_all_channels(cfg)

        assert attempted == ["stable", "beta", "nightly"]
        assert [(r.channel, r.success) for r in report.results] == [
            ("stable", True),
            ("beta", False),
            ("nightly", True),
        ]
        assert "network unreachable" in report.results[1].error
        assert report.results[0].status is InstallStatus.INSTALLED
        assert report.failed_channels() == ["beta"]
        assert not report.all_succeeded

    def test_failure_emits_warning(self, cfg, attempted, notifications):
        update_all_channels(cfg)
        warnings = [n.message for n in notifications if n.level.value == "warning"]
        assert any("beta" in message for message in warnings)

    @pytest.mark.skipif(sys.platform == "win32", reason="fake binaries are shell scripts")
    def test_version_summary(self, cfg, attempted):
        """Test versions are best effort: missing binaries read 'unknown'."""
        install_fake_toolchain(cfg, "stable")
        install_fake_toolchain(cfg, "beta", binaries=("rustc",))

        report = update_all_channels(cfg)

        by_channel = {v.channel: v for v in report.versions}
        assert by_channel["stable"].rustc.startswith("rustc 1.0.0-fake")
        assert by_channel["stable"].cargo.startswith("cargo 1.0.0-fake")
        assert by_channel["beta"].cargo == UNKNOWN_VERSION
        assert by_channel["nightly"].installed is False


class TestToolVersions:
    """Tests for ToolVersions."""

    def test_not_installed(self, cfg):
        versions = ToolVersions.query(cfg.get_toolchain("nightly"))
        assert versions.installed is False
        assert versions.rustc == UNKNOWN_VERSION
