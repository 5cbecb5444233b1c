"""
Remote distribution channel.

Maps a toolchain name to the archive published on the distribution server
and keeps track of the hash of the archive that was last installed, so that
`update` can skip the download when nothing changed.

Archive naming on the server:
    stable | beta | nightly      -> rust-<channel>-<triple>.tar.gz
    <channel>-YYYY-MM-DD         -> <date>/rust-<channel>-<triple>.tar.gz
    X.Y.Z | X.Y                  -> rust-<version>-<triple>.tar.gz

Every archive has a sibling `<archive>.sha256` file whose first token is the
hex digest.
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from multirustkit.core.download import (
    ChecksumError,
    DownloadError,
    download_file,
    fetch_text,
)
from multirustkit.core.exceptions import InstallSourceFailure, PersistenceError
from multirustkit.core.filesystem import atomic_write
from multirustkit.core.platform import detect_host_triple

logger = logging.getLogger(__name__)

CHANNELS = ("stable", "beta", "nightly")

_DATED_CHANNEL = re.compile(r"^(stable|beta|nightly)-(\d{4}-\d{2}-\d{2})$")
_VERSION = re.compile(r"^\d+\.\d+(\.\d+)?$")
_SHA256 = re.compile(r"^[0-9a-fA-F]{64}$")


@dataclass(frozen=True)
class DistManifest:
    """Location of one toolchain's distribution archive."""

    toolchain: str
    archive_url: str

    @property
    def hash_url(self) -> str:
        return f"{self.archive_url}.sha256"

    @property
    def archive_name(self) -> str:
        return self.archive_url.rsplit("/", 1)[-1]

    @classmethod
    def for_toolchain(
        cls, name: str, dist_root: str, triple: Optional[str] = None
    ) -> "DistManifest":
        """
        Build the manifest for a toolchain name.

        Raises:
            InstallSourceFailure: If the name is not a distributable channel,
                dated channel or release version
        """
        triple = triple or detect_host_triple()
        root = dist_root.rstrip("/")

        if name in CHANNELS or _VERSION.match(name):
            url = f"{root}/rust-{name}-{triple}.tar.gz"
        else:
            dated = _DATED_CHANNEL.match(name)
            if not dated:
                raise InstallSourceFailure(
                    name,
                    "not a distributable toolchain name; use a channel "
                    "(stable, beta, nightly), a dated channel or a version",
                )
            channel, date = dated.groups()
            url = f"{root}/{date}/rust-{channel}-{triple}.tar.gz"

        return cls(toolchain=name, archive_url=url)


def fetch_remote_hash(manifest: DistManifest, timeout: int = 30) -> str:
    """
    Download and parse the `.sha256` file for a manifest.

    Raises:
        InstallSourceFailure: If the file cannot be fetched or is malformed
    """
    try:
        text = fetch_text(manifest.hash_url, timeout=timeout)
    except DownloadError as e:
        raise InstallSourceFailure(manifest.toolchain, str(e)) from e

    tokens = text.split()
    if not tokens or not _SHA256.match(tokens[0]):
        raise InstallSourceFailure(
            manifest.toolchain, f"malformed checksum file at {manifest.hash_url}"
        )
    return tokens[0].lower()


def download_archive(
    manifest: DistManifest, destination_dir: Path, expected_hash: str, timeout: int = 30
) -> Path:
    """
    Download the archive into `destination_dir`, verifying its hash.

    Raises:
        InstallSourceFailure: On network or checksum failure
    """
    destination = Path(destination_dir) / manifest.archive_name
    try:
        return download_file(
            manifest.archive_url,
            destination,
            expected_sha256=expected_hash,
            timeout=timeout,
        )
    except (DownloadError, ChecksumError) as e:
        raise InstallSourceFailure(manifest.toolchain, str(e)) from e


def read_stored_hash(hash_file: Path) -> Optional[str]:
    """Return the hash recorded for the installed archive, if any."""
    if not hash_file.exists():
        return None
    value = hash_file.read_text(encoding="utf-8").strip()
    return value or None


def write_stored_hash(hash_file: Path, value: str) -> None:
    try:
        atomic_write(hash_file, value + "\n")
    except OSError as e:
        raise PersistenceError(f"could not record update hash in {hash_file}: {e}") from e
    logger.debug(f"Recorded update hash in {hash_file}")


__all__ = [
    "CHANNELS",
    "DistManifest",
    "fetch_remote_hash",
    "download_archive",
    "read_stored_hash",
    "write_stored_hash",
]
