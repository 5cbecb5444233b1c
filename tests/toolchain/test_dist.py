"""
Unit tests for distribution archive lookup.
"""

import pytest
import responses

from multirustkit.core.exceptions import InstallSourceFailure
from multirustkit.toolchain.dist import (
    DistManifest,
    fetch_remote_hash,
    read_stored_hash,
    write_stored_hash,
)

ROOT = "https://dist.example.test/dist"
TRIPLE = "x86_64-unknown-linux-gnu"
HASH = "ab" * 32


class TestDistManifest:
    """Tests for DistManifest.for_toolchain."""

    @pytest.mark.parametrize("channel", ["stable", "beta", "nightly"])
    def test_channel(self, channel):
        manifest = DistManifest.for_toolchain(channel, ROOT, TRIPLE)
        assert manifest.archive_url == f"{ROOT}/rust-{channel}-{TRIPLE}.tar.gz"

    def test_dated_channel(self):
        manifest = DistManifest.for_toolchain("nightly-2015-06-01", ROOT, TRIPLE)
        assert manifest.archive_url == f"{ROOT}/2015-06-01/rust-nightly-{TRIPLE}.tar.gz"

    @pytest.mark.parametrize("version", ["1.0.0", "1.2"])
    def test_version(self, version):
        manifest = DistManifest.for_toolchain(version, ROOT, TRIPLE)
        assert manifest.archive_url == f"{ROOT}/rust-{version}-{TRIPLE}.tar.gz"

    def test_custom_name_is_not_distributable(self):
        with pytest.raises(InstallSourceFailure, match="not a distributable"):
            DistManifest.for_toolchain("my-build", ROOT, TRIPLE)

    def test_trailing_slash_in_root(self):
        manifest = DistManifest.for_toolchain("stable", ROOT + "/", TRIPLE)
        assert manifest.archive_url == f"{ROOT}/rust-stable-{TRIPLE}.tar.gz"

    def test_hash_url_and_name(self):
        manifest = DistManifest.for_toolchain("stable", ROOT, TRIPLE)
        assert manifest.hash_url == manifest.archive_url + ".sha256"
        assert manifest.archive_name == f"rust-stable-{TRIPLE}.tar.gz"


class TestFetchRemoteHash:
    """Tests for fetch_remote_hash."""

    @responses.activate
    def test_parses_first_token(self):
        manifest = DistManifest.for_toolchain("stable", ROOT, TRIPLE)
        responses.add(
            responses.GET, manifest.hash_url, body=f"{HASH.upper()}  {manifest.archive_name}\n"
        )

        assert fetch_remote_hash(manifest) == HASH

    @responses.activate
    def test_malformed_file(self):
        manifest = DistManifest.for_toolchain("stable", ROOT, TRIPLE)
        responses.add(responses.GET, manifest.hash_url, body="<html>not found</html>")

        with pytest.raises(InstallSourceFailure, match="malformed"):
            fetch_remote_hash(manifest)

    @responses.activate
    def test_http_error_is_install_failure(self):
        manifest = DistManifest.for_toolchain("stable", ROOT, TRIPLE)
        responses.add(responses.GET, manifest.hash_url, status=404)

        with pytest.raises(InstallSourceFailure):
            fetch_remote_hash(manifest)


class TestStoredHash:
    """Tests for the update-hash files."""

    def test_round_trip(self, tmp_path):
        hash_file = tmp_path / "update-hash" / "stable"
        write_stored_hash(hash_file, HASH)
        assert read_stored_hash(hash_file) == HASH

    def test_missing(self, tmp_path):
        assert read_stored_hash(tmp_path / "missing") is None
