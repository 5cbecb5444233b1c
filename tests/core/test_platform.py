"""
Unit tests for platform detection.
"""

from unittest.mock import patch

import pytest

from multirustkit.core.platform import PlatformInfo, detect_platform


class TestPlatformInfo:
    """Tests for PlatformInfo."""

    @pytest.mark.parametrize(
        "os_name,arch,triple",
        [
            ("linux", "x86_64", "x86_64-unknown-linux-gnu"),
            ("macos", "aarch64", "aarch64-apple-darwin"),
            ("windows", "x86_64", "x86_64-pc-windows-msvc"),
            ("freebsd", "x86_64", "x86_64-unknown-freebsd"),
        ],
    )
    def test_target_triple(self, os_name, arch, triple):
        assert PlatformInfo(os_name, arch).target_triple() == triple

    @pytest.mark.parametrize(
        "os_name,var",
        [
            ("linux", "LD_LIBRARY_PATH"),
            ("macos", "DYLD_LIBRARY_PATH"),
            ("windows", "PATH"),
        ],
    )
    def test_library_path_var(self, os_name, var):
        assert PlatformInfo(os_name, "x86_64").library_path_var() == var

    def test_executable_suffix(self):
        assert PlatformInfo("windows", "x86_64").executable_suffix() == ".exe"
        assert PlatformInfo("linux", "x86_64").executable_suffix() == ""


class TestDetectPlatform:
    """Tests for detect_platform."""

    def test_normalizes_architecture(self):
        with patch("platform.system", return_value="Darwin"), patch(
            "platform.machine", return_value="arm64"
        ):
            info = detect_platform()

        assert info == PlatformInfo("macos", "aarch64")

    def test_result_is_cached(self):
        assert detect_platform() is detect_platform()
