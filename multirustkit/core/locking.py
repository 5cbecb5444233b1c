"""
Cross-process locking for multirustkit state.

Two shells running the tool at once must never tear a state file. Writes are
already atomic (see filesystem.atomic_write); these locks additionally
serialize read-modify-write cycles on the override database and installs of
the same toolchain, using the `filelock` library.

Usage:
    lock_manager = LockManager(home / "lock")
    with lock_manager.overrides_lock():
        entries = load()
        entries[path] = entry
        save(entries)
"""

import logging
from contextlib import contextmanager
from pathlib import Path

from filelock import FileLock, Timeout

from multirustkit.core.exceptions import LockTimeout

logger = logging.getLogger(__name__)


class LockManager:
    """
    Manages lock files under the multirust home directory.

    Attributes:
        lock_dir: Directory where lock files are stored
        timeout: Default wait time in seconds
    """

    def __init__(self, lock_dir: Path, timeout: int = 30):
        self.lock_dir = Path(lock_dir)
        self.timeout = timeout

    @contextmanager
    def _acquire(self, name: str, timeout: int, what: str):
        self.lock_dir.mkdir(parents=True, exist_ok=True)
        lock_path = self.lock_dir / f"{name}.lock"
        lock = FileLock(lock_path, timeout=timeout)

        try:
            with lock:
                logger.debug(f"Acquired lock: {lock_path}")
                yield
            logger.debug(f"Released lock: {lock_path}")
        except Timeout as e:
            logger.error(f"Could not acquire {what} lock after {timeout}s")
            raise LockTimeout(
                f"could not acquire {what} lock after {timeout}s. "
                "Another multirust process may be running."
            ) from e

    @contextmanager
    def overrides_lock(self):
        """Serialize read-modify-write cycles on the override database."""
        with self._acquire("overrides", self.timeout, "override database"):
            yield

    @contextmanager
    def toolchain_lock(self, toolchain: str, timeout: int = 300):
        """
        Serialize installs and removals of one toolchain.

        Args:
            toolchain: Toolchain name
            timeout: Maximum wait in seconds (installs can be slow)
        """
        with self._acquire(f"toolchain-{toolchain}", timeout, f"toolchain '{toolchain}'"):
            yield


__all__ = ["LockManager"]
