"""
Metadata version gate.

The multirust home carries a `version` marker naming the schema of the
persisted state. Every management command except `upgrade-data` and
`delete-data` checks the marker first and refuses to run against stale
state; nothing is migrated implicitly.

Schema history:
    1: overrides stored in a plain-text `overrides` file, one `path;toolchain`
       entry per line
    2: overrides stored in `overrides.json` together with the override reason
"""

import logging
from enum import Enum
from pathlib import Path
from typing import List, Optional

from multirustkit.core.directory import (
    DEFAULT_FILE,
    LEGACY_OVERRIDES_FILE,
    OVERRIDES_FILE,
    TOOLCHAINS_DIR,
    VERSION_FILE,
)
from multirustkit.core.exceptions import (
    MetadataVersionMismatch,
    PersistenceError,
    UnsupportedMetadataVersion,
)
from multirustkit.core.filesystem import FilesystemError, atomic_write, is_link, safe_rmtree
from multirustkit.core.notifications import Notifier
from multirustkit.core.overrides import REASON_MANUAL, OverrideDB, OverrideEntry

logger = logging.getLogger(__name__)

CURRENT_METADATA_VERSION = "2"
LEGACY_METADATA_VERSION = "1"


class MetadataState(Enum):
    CURRENT = "current"
    STALE = "stale"


class MetadataGate:
    """
    Guards state-mutating operations behind a schema version check.

    Attributes:
        home: multirust home directory
        override_db: Override database migrated by `upgrade()`
    """

    def __init__(self, home: Path, override_db: OverrideDB, notifier: Notifier):
        self.home = Path(home)
        self.override_db = override_db
        self.notifier = notifier
        self.version_file = self.home / VERSION_FILE

    def read_marker(self) -> Optional[str]:
        """Return the raw marker contents, or None when there is no marker."""
        if not self.version_file.exists():
            return None
        try:
            return self.version_file.read_text(encoding="utf-8").strip()
        except OSError as e:
            raise PersistenceError(
                f"could not read metadata marker '{self.version_file}': {e}"
            ) from e

    def _has_unversioned_state(self) -> bool:
        if (self.home / LEGACY_OVERRIDES_FILE).exists():
            return True
        if (self.home / DEFAULT_FILE).exists():
            return True
        toolchains = self.home / TOOLCHAINS_DIR
        return toolchains.is_dir() and any(toolchains.iterdir())

    def read_version(self) -> Optional[str]:
        """
        Return the effective metadata version.

        A home without a marker is either fresh (None) or was written before
        markers existed, in which case it is schema 1.
        """
        marker = self.read_marker()
        if marker is not None:
            return marker
        if self._has_unversioned_state():
            return LEGACY_METADATA_VERSION
        return None

    def state(self) -> MetadataState:
        version = self.read_version()
        if version is None or version == CURRENT_METADATA_VERSION:
            return MetadataState.CURRENT
        return MetadataState.STALE

    def stamp(self) -> None:
        """
        Write the current version marker.

        Raises:
            PersistenceError: If the marker cannot be written
        """
        try:
            atomic_write(self.version_file, CURRENT_METADATA_VERSION + "\n")
        except OSError as e:
            raise PersistenceError(
                f"could not write metadata marker '{self.version_file}': {e}"
            ) from e
        logger.debug(f"Stamped metadata version {CURRENT_METADATA_VERSION}")

    def check(self) -> None:
        """
        Require current metadata.

        A fresh home is stamped with the current version so that later
        invocations recognise it.

        Raises:
            MetadataVersionMismatch: If the on-disk version is older
            UnsupportedMetadataVersion: If it is newer or not a version at all
        """
        version = self.read_version()
        if version is None:
            self.stamp()
            return
        if version == CURRENT_METADATA_VERSION:
            return
        if _is_older(version):
            raise MetadataVersionMismatch(version, CURRENT_METADATA_VERSION)
        raise UnsupportedMetadataVersion(version, CURRENT_METADATA_VERSION)

    def upgrade(self) -> bool:
        """
        Migrate persisted state to the current schema.

        Any version older than the current one is migrated. Versions before
        schema 1 are unknown to this build and get the schema 1 treatment.

        Returns:
            True if anything was migrated, False if already current

        Raises:
            UnsupportedMetadataVersion: If the on-disk version is newer or unknown
        """
        version = self.read_version()

        if version is None or version == CURRENT_METADATA_VERSION:
            self.notifier.info("metadata is already up to date")
            if version is None:
                self.stamp()
            return False

        if not _is_older(version):
            # No downgrades
            raise UnsupportedMetadataVersion(version, CURRENT_METADATA_VERSION)

        if int(version) < int(LEGACY_METADATA_VERSION):
            self.notifier.warning(
                f"unknown metadata version {version}; "
                f"upgrading it as version {LEGACY_METADATA_VERSION}"
            )

        self.notifier.info(
            f"upgrading metadata from version {version} to {CURRENT_METADATA_VERSION}"
        )
        try:
            self._migrate_legacy_overrides()
        except OSError as e:
            raise PersistenceError(f"could not migrate legacy overrides: {e}") from e
        self.stamp()
        self.notifier.info("metadata upgrade complete")
        return True

    def _migrate_legacy_overrides(self) -> None:
        legacy = self.home / LEGACY_OVERRIDES_FILE
        if not legacy.exists():
            return

        entries = parse_legacy_overrides(legacy.read_text(encoding="utf-8"))
        if entries:
            self.override_db.insert_many(entries)
        self.notifier.verbose(
            f"migrated {len(entries)} override(s) into {OVERRIDES_FILE}"
        )
        legacy.unlink()

    def delete_all(self) -> None:
        """
        Remove every piece of persisted state, regardless of version.

        When the home is a link, the directory it points to is emptied and
        removed as well as the link itself.

        Raises:
            PersistenceError: If anything cannot be removed
        """
        if not self.home.exists() and not self.home.is_symlink():
            self.notifier.verbose(f"nothing to delete at '{self.home}'")
            return

        try:
            if is_link(self.home):
                target = self.home.resolve()
                safe_rmtree(target)
            safe_rmtree(self.home)
        except (FilesystemError, ValueError) as e:
            raise PersistenceError(f"could not delete multirust data: {e}") from e
        self.notifier.info(f"deleted multirust data at '{self.home}'")


def _is_older(version: str) -> bool:
    """True if `version` is a schema number below the current one."""
    try:
        return int(version) < int(CURRENT_METADATA_VERSION)
    except ValueError:
        return False


def parse_legacy_overrides(text: str) -> List[OverrideEntry]:
    """
    Parse schema-1 override lines of the form `path;toolchain`.

    Blank lines are skipped; malformed lines are skipped with a warning.
    """
    entries = []
    for line_no, line in enumerate(text.splitlines(), start=1):
        line = line.strip()
        if not line:
            continue
        path, sep, toolchain = line.rpartition(";")
        if not sep or not path or not toolchain:
            logger.warning(f"Skipping malformed override line {line_no}: {line!r}")
            continue
        entries.append(OverrideEntry(path=path, toolchain=toolchain, reason=REASON_MANUAL))
    return entries
