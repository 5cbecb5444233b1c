"""
Override database: per-directory toolchain pins.

The database maps absolute directory paths to a toolchain name and the reason
the override exists. It is persisted to `overrides.json` in the multirust
home; every mutation is a locked read-modify-write followed by an atomic
replace of the file, so concurrent invocations may lose an update but never
leave a torn file behind.

Lookups walk from the queried directory up to the filesystem root, so an
override set on a project root also applies to every directory below it.
"""

import json
import logging
from dataclasses import dataclass
from functools import total_ordering
from pathlib import Path
from typing import Dict, List, Optional, Union

from multirustkit.core.directory import current_dir
from multirustkit.core.exceptions import OverrideDatabaseError, PersistenceError
from multirustkit.core.filesystem import atomic_write, normalize_path
from multirustkit.core.locking import LockManager
from multirustkit.core.notifications import Notifier

logger = logging.getLogger(__name__)

OVERRIDE_DB_VERSION = 2
REASON_MANUAL = "manual"


@total_ordering
@dataclass(frozen=True)
class OverrideEntry:
    """One directory override. Entries sort by path."""

    path: str
    toolchain: str
    reason: str = REASON_MANUAL

    def __lt__(self, other: "OverrideEntry") -> bool:
        if not isinstance(other, OverrideEntry):
            return NotImplemented
        return (self.path, self.toolchain) < (other.path, other.toolchain)

    def to_dict(self) -> dict:
        return {"toolchain": self.toolchain, "reason": self.reason}

    def __str__(self) -> str:
        return f"{self.path}\t{self.toolchain}"


class OverrideDB:
    """
    Persistent mapping of directory path to OverrideEntry.

    Example:
        >>> db = OverrideDB(home / "overrides.json", LockManager(home / "lock"), notifier)
        >>> db.insert(Path("/work/proj"), "nightly")
        >>> db.find(Path("/work/proj/src"))
        OverrideEntry(path='/work/proj', toolchain='nightly', reason='manual')
    """

    def __init__(self, db_path: Path, lock_manager: LockManager, notifier: Notifier):
        self.db_path = Path(db_path)
        self.lock_manager = lock_manager
        self.notifier = notifier

    @staticmethod
    def _key(path: Union[str, Path]) -> str:
        return str(normalize_path(path))

    def _load(self) -> Dict[str, OverrideEntry]:
        if not self.db_path.exists():
            return {}

        try:
            with open(self.db_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            raise OverrideDatabaseError(
                f"could not read override database {self.db_path}: {e}"
            ) from e

        if not isinstance(data, dict) or not isinstance(data.get("overrides"), dict):
            raise OverrideDatabaseError(
                f"override database {self.db_path} has an invalid format"
            )

        entries = {}
        for path, item in data["overrides"].items():
            try:
                entries[path] = OverrideEntry(
                    path=path,
                    toolchain=item["toolchain"],
                    reason=item.get("reason", REASON_MANUAL),
                )
            except (KeyError, TypeError) as e:
                raise OverrideDatabaseError(
                    f"override database {self.db_path} has an invalid entry for {path}"
                ) from e
        return entries

    def _save(self, entries: Dict[str, OverrideEntry]) -> None:
        data = {
            "version": OVERRIDE_DB_VERSION,
            "overrides": {
                path: entries[path].to_dict() for path in sorted(entries)
            },
        }
        try:
            atomic_write(self.db_path, json.dumps(data, indent=2, ensure_ascii=False))
        except OSError as e:
            raise PersistenceError(
                f"could not write override database {self.db_path}: {e}"
            ) from e
        logger.debug(f"Saved override database with {len(entries)} entries")

    def insert(
        self, path: Union[str, Path], toolchain: str, reason: str = REASON_MANUAL
    ) -> OverrideEntry:
        """Set the override for exactly `path`, replacing any previous entry."""
        key = self._key(path)
        entry = OverrideEntry(path=key, toolchain=toolchain, reason=reason)

        with self.lock_manager.overrides_lock():
            entries = self._load()
            previous = entries.get(key)
            entries[key] = entry
            self._save(entries)

        if previous and previous.toolchain != toolchain:
            self.notifier.verbose(
                f"replacing override for '{key}' ({previous.toolchain} -> {toolchain})"
            )
        self.notifier.info(f"override toolchain for '{key}' set to '{toolchain}'")
        return entry

    def insert_many(self, entries: List[OverrideEntry]) -> None:
        """Insert several entries in one write (used by metadata migration)."""
        with self.lock_manager.overrides_lock():
            current = self._load()
            for entry in entries:
                key = self._key(entry.path)
                current[key] = OverrideEntry(key, entry.toolchain, entry.reason)
            self._save(current)

    def remove(self, path: Union[str, Path]) -> bool:
        """
        Remove the override for exactly `path`.

        Returns:
            True if an entry was removed; False if there was none (no-op)
        """
        key = self._key(path)

        with self.lock_manager.overrides_lock():
            entries = self._load()
            if key not in entries:
                self.notifier.verbose(f"no override for directory '{key}'")
                return False
            del entries[key]
            self._save(entries)

        self.notifier.info(f"override removed for '{key}'")
        return True

    def remove_current_directory(self) -> bool:
        """Remove the override for the current working directory."""
        return self.remove(current_dir())

    def get(self, path: Union[str, Path]) -> Optional[OverrideEntry]:
        """Return the entry for exactly `path`, if any."""
        return self._load().get(self._key(path))

    def find(self, directory: Union[str, Path]) -> Optional[OverrideEntry]:
        """
        Find the override that applies to `directory`.

        Checks the directory itself, then each parent up to the root. The
        nearest match wins.
        """
        entries = self._load()
        if not entries:
            return None

        start = normalize_path(directory)
        for candidate in (start, *start.parents):
            entry = entries.get(str(candidate))
            if entry is not None:
                logger.debug(f"Override for {start} found at {candidate}")
                return entry
        return None

    def list(self) -> List[OverrideEntry]:
        """Return all entries sorted by path."""
        return sorted(self._load().values())
