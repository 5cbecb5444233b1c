"""
Unit tests for the Toolchain entity.
"""

import sys

import pytest

from multirustkit.core.exceptions import (
    BinaryNotFound,
    InvalidToolchainName,
    ToolchainNotInstalled,
)
from multirustkit.toolchain.toolchain import Toolchain, validate_toolchain_name


class TestValidateToolchainName:
    """Tests for toolchain name validation."""

    @pytest.mark.parametrize(
        "name", ["stable", "nightly-2015-06-01", "1.0.0", "my-local-build"]
    )
    def test_valid_names(self, name):
        assert validate_toolchain_name(name) == name

    @pytest.mark.parametrize("name", ["", ".", "..", "-v", "a/b", "a\\b"])
    def test_invalid_names(self, name):
        with pytest.raises(InvalidToolchainName):
            validate_toolchain_name(name)

    def test_constructor_validates(self, cfg):
        with pytest.raises(InvalidToolchainName):
            Toolchain(cfg, "../escape")


class TestLayout:
    """Tests for prefix layout helpers."""

    def test_prefix_under_toolchains_dir(self, cfg):
        toolchain = cfg.get_toolchain("nightly")
        assert toolchain.prefix == cfg.toolchains_dir / "nightly"
        assert toolchain.update_hash_file == cfg.update_hash_dir / "nightly"

    def test_prefixes_are_unique_per_name(self, cfg):
        assert cfg.get_toolchain("stable").prefix != cfg.get_toolchain("beta").prefix

    def test_creation_does_not_touch_disk(self, cfg):
        cfg.get_toolchain("nightly")
        assert not cfg.home.exists()

    def test_exists_reads_filesystem(self, cfg, installed_toolchain):
        """Test existence is never cached."""
        toolchain = cfg.get_toolchain("nightly")
        assert not toolchain.exists()

        installed_toolchain("nightly")

        assert toolchain.exists()

    @pytest.mark.skipif(sys.platform == "win32", reason="no .exe suffix on POSIX")
    def test_binary_file(self, cfg):
        toolchain = cfg.get_toolchain("nightly")
        assert toolchain.binary_file("rustc") == toolchain.prefix / "bin" / "rustc"

    @pytest.mark.parametrize("name", ["../../bin/sh", "..", "", "sub/rustc", "..\\x"])
    def test_binary_file_rejects_paths(self, cfg, name):
        """Test binary names cannot escape the toolchain's bin directory."""
        with pytest.raises(BinaryNotFound):
            cfg.get_toolchain("nightly").binary_file(name)

    def test_lib_and_doc_dirs(self, cfg):
        toolchain = cfg.get_toolchain("nightly")
        assert toolchain.lib_dir() == toolchain.prefix / "lib"
        assert toolchain.doc_dir() == toolchain.prefix / "share" / "doc" / "rust" / "html"


@pytest.mark.unit
class TestRemove:
    """Tests for Toolchain.remove."""

    def test_remove_deletes_prefix_and_hash(self, cfg, installed_toolchain):
        installed_toolchain("nightly")
        toolchain = cfg.get_toolchain("nightly")
        toolchain.update_hash_file.parent.mkdir(parents=True)
        toolchain.update_hash_file.write_text("abc\n")

        toolchain.remove()

        assert not toolchain.prefix.exists()
        assert not toolchain.update_hash_file.exists()

    def test_remove_missing_raises(self, cfg):
        with pytest.raises(ToolchainNotInstalled):
            cfg.get_toolchain("nightly").remove()

    @pytest.mark.skipif(sys.platform == "win32", reason="symlinks need privileges")
    def test_remove_linked_keeps_source(self, cfg, fake_toolchain_dir):
        """Test removing a linked toolchain only removes the link."""
        toolchain = cfg.get_toolchain("dev")
        toolchain.install_from_dir(fake_toolchain_dir, link=True)
        assert toolchain.is_linked()

        toolchain.remove()

        assert not toolchain.prefix.exists() and not toolchain.is_linked()
        assert (fake_toolchain_dir / "bin" / "rustc").exists()


class TestSelection:
    """Tests for make_default and make_override."""

    def test_make_default(self, cfg):
        cfg.get_toolchain("beta").make_default()
        assert cfg.find_default().name == "beta"

    def test_make_override(self, cfg, project_dir):
        entry = cfg.get_toolchain("nightly").make_override(project_dir)

        assert entry.toolchain == "nightly"
        assert entry.reason == "manual"
        assert cfg.override_db.get(project_dir) == entry

    def test_ld_path_env(self, cfg):
        toolchain = cfg.get_toolchain("nightly")
        env = toolchain.ld_path_env({})
        assert str(toolchain.lib_dir()) in env.values()
