"""
Unit tests for the metadata version gate.

Tests marker detection, the stale check, legacy override migration and
deleting all data.
"""

import shutil
import sys
from unittest.mock import patch

import pytest

from multirustkit.core.exceptions import (
    MetadataVersionMismatch,
    PersistenceError,
    UnsupportedMetadataVersion,
)
from multirustkit.core.metadata import (
    CURRENT_METADATA_VERSION,
    MetadataState,
    parse_legacy_overrides,
)


def write_marker(cfg, value):
    cfg.home.mkdir(parents=True, exist_ok=True)
    (cfg.home / "version").write_text(value + "\n")


class TestState:
    """Tests for version detection."""

    def test_fresh_home_is_current(self, cfg):
        """Test a home with no state and no marker needs no upgrade."""
        assert cfg.metadata.read_version() is None
        assert cfg.metadata.state() is MetadataState.CURRENT

    def test_marker_is_read(self, cfg):
        write_marker(cfg, CURRENT_METADATA_VERSION)
        assert cfg.metadata.read_version() == CURRENT_METADATA_VERSION
        assert cfg.metadata.state() is MetadataState.CURRENT

    def test_old_marker_is_stale(self, cfg):
        write_marker(cfg, "1")
        assert cfg.metadata.state() is MetadataState.STALE

    def test_legacy_state_without_marker_is_version_one(self, cfg):
        """Test homes written before markers existed are detected."""
        cfg.home.mkdir(parents=True)
        (cfg.home / "overrides").write_text("/proj;nightly\n")

        assert cfg.metadata.read_version() == "1"
        assert cfg.metadata.state() is MetadataState.STALE

    def test_toolchains_without_marker_are_version_one(self, cfg):
        (cfg.toolchains_dir / "stable").mkdir(parents=True)
        assert cfg.metadata.read_version() == "1"


@pytest.mark.unit
class TestCheck:
    """Tests for the gate check."""

    def test_check_stamps_fresh_home(self, cfg):
        """Test the first gated command writes the current marker."""
        cfg.metadata.check()
        assert (cfg.home / "version").read_text().strip() == CURRENT_METADATA_VERSION

    def test_check_passes_on_current_marker(self, cfg):
        write_marker(cfg, CURRENT_METADATA_VERSION)
        cfg.metadata.check()

    def test_check_fails_on_old_marker(self, cfg):
        """Test stale metadata is refused with a hint to upgrade."""
        write_marker(cfg, "1")

        with pytest.raises(MetadataVersionMismatch, match="upgrade-data") as exc_info:
            cfg.metadata.check()

        assert exc_info.value.found == "1"
        assert exc_info.value.expected == CURRENT_METADATA_VERSION

    def test_check_does_not_migrate(self, cfg):
        """Test checking never rewrites stale state."""
        cfg.home.mkdir(parents=True)
        (cfg.home / "overrides").write_text("/proj;nightly\n")

        with pytest.raises(MetadataVersionMismatch):
            cfg.metadata.check()

        assert (cfg.home / "overrides").exists()
        assert not (cfg.home / "version").exists()

    @pytest.mark.parametrize("marker", ["99", "banana"])
    def test_check_on_unsupported_marker(self, cfg, marker):
        """Test a newer or unknown marker does not point at upgrade-data."""
        write_marker(cfg, marker)

        with pytest.raises(UnsupportedMetadataVersion) as exc_info:
            cfg.metadata.check()

        assert "upgrade-data" not in str(exc_info.value)


@pytest.mark.unit
class TestUpgrade:
    """Tests for upgrade-data."""

    def test_upgrade_then_check_succeeds(self, cfg):
        """Test stale -> upgrade -> marker current -> check passes."""
        write_marker(cfg, "1")

        assert cfg.metadata.upgrade() is True

        assert cfg.metadata.read_marker() == CURRENT_METADATA_VERSION
        cfg.metadata.check()

    def test_upgrade_migrates_legacy_overrides(self, cfg, tmp_path):
        """Test v1 overrides move into the override database."""
        proj = tmp_path / "proj"
        other = tmp_path / "other"
        proj.mkdir()
        other.mkdir()
        cfg.home.mkdir(parents=True)
        (cfg.home / "overrides").write_text(f"{proj};nightly\n\n{other};beta-2015-06-01\n")

        cfg.metadata.upgrade()

        entries = {entry.path: entry for entry in cfg.override_db.list()}
        assert entries[str(proj.resolve())].toolchain == "nightly"
        assert entries[str(proj.resolve())].reason == "manual"
        assert entries[str(other.resolve())].toolchain == "beta-2015-06-01"
        assert not (cfg.home / "overrides").exists()

    def test_upgrade_on_current_is_noop(self, cfg):
        write_marker(cfg, CURRENT_METADATA_VERSION)
        assert cfg.metadata.upgrade() is False

    def test_upgrade_from_newer_version_fails(self, cfg):
        """Test there are no downgrades."""
        write_marker(cfg, "99")

        with pytest.raises(UnsupportedMetadataVersion) as exc_info:
            cfg.metadata.upgrade()

        assert "upgrade-data" not in str(exc_info.value)
        assert cfg.metadata.read_marker() == "99"

    def test_unknown_older_version_is_upgraded(self, cfg, notifications):
        """Test any schema below the current one can be upgraded."""
        write_marker(cfg, "0")

        assert cfg.metadata.upgrade() is True

        assert cfg.metadata.read_marker() == CURRENT_METADATA_VERSION
        warnings = [n.message for n in notifications if n.level.value == "warning"]
        assert any("unknown metadata version 0" in message for message in warnings)
        cfg.metadata.check()

    def test_unparseable_marker_fails(self, cfg):
        write_marker(cfg, "banana")
        with pytest.raises(UnsupportedMetadataVersion):
            cfg.metadata.upgrade()
        assert cfg.metadata.read_marker() == "banana"


class TestParseLegacyOverrides:
    """Tests for the v1 override file parser."""

    def test_parses_lines(self):
        entries = parse_legacy_overrides("/a;stable\n/b;nightly\n")
        assert [(e.path, e.toolchain) for e in entries] == [
            ("/a", "stable"),
            ("/b", "nightly"),
        ]

    def test_skips_blank_and_malformed_lines(self):
        entries = parse_legacy_overrides("\n/a;stable\nno-separator\n;nightly\n")
        assert [e.path for e in entries] == ["/a"]

    def test_path_containing_semicolon(self):
        """Test the last separator splits path from toolchain."""
        entries = parse_legacy_overrides("/odd;dir;stable\n")
        assert entries[0].path == "/odd;dir"
        assert entries[0].toolchain == "stable"


class TestDeleteAll:
    """Tests for delete-data."""

    def test_removes_home(self, cfg):
        (cfg.toolchains_dir / "stable").mkdir(parents=True)
        (cfg.home / "default").write_text("stable\n")

        cfg.metadata.delete_all()

        assert not cfg.home.exists()

    def test_missing_home_is_noop(self, cfg):
        cfg.metadata.delete_all()
        assert not cfg.home.exists()

    @pytest.mark.skipif(sys.platform == "win32", reason="symlinks need privileges on Windows")
    def test_symlinked_home_removes_target(self, cfg, tmp_path):
        """Test a home that is a link loses both the link and the data behind it."""
        data = tmp_path / "real-home"
        (data / "toolchains" / "stable").mkdir(parents=True)
        (data / "default").write_text("stable\n")
        cfg.home.symlink_to(data, target_is_directory=True)

        cfg.metadata.delete_all()

        assert not data.exists()
        assert not cfg.home.exists() and not cfg.home.is_symlink()

    def test_removal_failure(self, cfg):
        (cfg.toolchains_dir / "stable").mkdir(parents=True)

        with patch.object(shutil, "rmtree", side_effect=OSError(16, "Device or resource busy")):
            with pytest.raises(PersistenceError, match="busy"):
                cfg.metadata.delete_all()

        assert cfg.home.exists()

    def test_stamp_failure(self, cfg):
        with patch("multirustkit.core.metadata.atomic_write", side_effect=OSError("read-only")):
            with pytest.raises(PersistenceError, match="read-only"):
                cfg.metadata.stamp()
