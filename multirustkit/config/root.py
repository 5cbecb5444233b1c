"""
Configuration root.

`Cfg` is the access object over everything persisted in the multirust home:
toolchain prefixes, the override database, the default toolchain pointer and
the metadata marker. One instance is built per process invocation.
"""

import logging
import os
import webbrowser
from enum import Enum
from pathlib import Path
from typing import List, Mapping, Optional, Sequence, Tuple, Union

from multirustkit.core.directory import (
    DEFAULT_FILE,
    LOCK_DIR,
    OVERRIDES_FILE,
    SETTINGS_FILE,
    TEMP_DIR,
    TOOLCHAINS_DIR,
    UPDATE_HASH_DIR,
    ensure_home_structure,
    get_multirust_home,
)
from multirustkit.core.exceptions import (
    BinaryNotFound,
    MultirustError,
    NoDefaultToolchain,
    PersistenceError,
    ToolchainNotInstalled,
)
from multirustkit.core.filesystem import atomic_write
from multirustkit.core.locking import LockManager
from multirustkit.core.metadata import MetadataGate
from multirustkit.core.notifications import Notifier
from multirustkit.core.overrides import OverrideDB
from multirustkit.core.settings import Settings, load_settings
from multirustkit.toolchain.channels import UpdateAllReport, update_all_channels
from multirustkit.toolchain.proxy import ProxyCommand, create_command
from multirustkit.toolchain.toolchain import Toolchain, validate_toolchain_name

logger = logging.getLogger(__name__)

DOC_INDEX_PAGE = "index.html"
DOC_STD_PAGE = "std/index.html"


class ResolutionSource(Enum):
    """Where the toolchain for a directory came from."""

    OVERRIDE = "override"
    DEFAULT = "default"


class Cfg:
    """
    Configuration root for one invocation.

    Attributes:
        home: multirust home directory
        toolchains_dir: Parent of every toolchain prefix
        update_hash_dir: Hashes of installed dist archives
        temp_dir: Staging area for installs
        settings: Effective settings
        lock_manager: Cross-process locks
        override_db: Directory overrides
        metadata: Metadata version gate
        notifier: Notification channel
    """

    def __init__(self, home: Path, notifier: Notifier, settings: Optional[Settings] = None):
        self.home = Path(home)
        self.notifier = notifier
        self.settings = settings or Settings()

        self.toolchains_dir = self.home / TOOLCHAINS_DIR
        self.update_hash_dir = self.home / UPDATE_HASH_DIR
        self.temp_dir = self.home / TEMP_DIR
        self.default_file = self.home / DEFAULT_FILE

        self.lock_manager = LockManager(
            self.home / LOCK_DIR, timeout=self.settings.lock_timeout
        )
        self.override_db = OverrideDB(
            self.home / OVERRIDES_FILE, self.lock_manager, notifier
        )
        self.metadata = MetadataGate(self.home, self.override_db, notifier)

    @classmethod
    def from_env(
        cls,
        notifier: Optional[Notifier] = None,
        home: Optional[Union[str, Path]] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> "Cfg":
        """
        Build the configuration root from the environment.

        Args:
            notifier: Notification channel (a logging-backed one by default)
            home: Explicit home directory, bypassing $MULTIRUST_HOME
            environ: Environment to read (defaults to os.environ)
        """
        environ = os.environ if environ is None else environ
        home = Path(home) if home is not None else get_multirust_home(environ)
        settings = load_settings(home / SETTINGS_FILE, environ)
        logger.debug(f"Using multirust home {home}")
        return cls(home, notifier or Notifier(), settings)

    # ------------------------------------------------------------------
    # Toolchains
    # ------------------------------------------------------------------

    def get_toolchain(self, name: str) -> Toolchain:
        return Toolchain(self, name)

    def list_toolchains(self) -> List[str]:
        """Sorted names of installed toolchains."""
        if not self.toolchains_dir.is_dir():
            return []
        return sorted(
            entry.name
            for entry in self.toolchains_dir.iterdir()
            if entry.is_dir() and not entry.name.startswith(".")
        )

    def update_all_channels(self) -> UpdateAllReport:
        return update_all_channels(self)

    # ------------------------------------------------------------------
    # Default pointer
    # ------------------------------------------------------------------

    def find_default(self) -> Optional[Toolchain]:
        """Return the default toolchain, or None when none is configured."""
        if not self.default_file.exists():
            return None
        name = self.default_file.read_text(encoding="utf-8").strip()
        if not name:
            return None
        return self.get_toolchain(name)

    def set_default(self, name: str) -> None:
        validate_toolchain_name(name)
        try:
            atomic_write(self.default_file, name + "\n")
        except OSError as e:
            raise PersistenceError(f"could not write default toolchain: {e}") from e
        self.notifier.info(f"default toolchain set to '{name}'")

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def find_override(
        self, directory: Union[str, Path]
    ) -> Optional[Tuple[Toolchain, str]]:
        """Return the override toolchain for `directory` and the reason it applies."""
        entry = self.override_db.find(directory)
        if entry is None:
            return None
        reason = f"directory override due to '{entry.path}'"
        return self.get_toolchain(entry.toolchain), reason

    def toolchain_for_dir(
        self, directory: Union[str, Path]
    ) -> Tuple[Toolchain, ResolutionSource, str]:
        """
        Resolve the toolchain for a directory.

        An override on the directory or any ancestor wins; otherwise the
        default toolchain is used.

        Raises:
            NoDefaultToolchain: If neither applies
        """
        found = self.find_override(directory)
        if found is not None:
            toolchain, reason = found
            return toolchain, ResolutionSource.OVERRIDE, reason

        default = self.find_default()
        if default is not None:
            return default, ResolutionSource.DEFAULT, "default toolchain"

        raise NoDefaultToolchain()

    def create_command_for_dir(
        self, directory: Union[str, Path], binary: str, args: Sequence[str] = ()
    ) -> ProxyCommand:
        toolchain, source, _ = self.toolchain_for_dir(directory)
        logger.debug(f"Resolved {toolchain.name} ({source.value}) for {binary}")
        return create_command(toolchain, binary, args)

    def which_binary(self, directory: Union[str, Path], binary: str) -> Path:
        """
        Path of `binary` in the toolchain resolved for `directory`.

        Raises:
            ToolchainNotInstalled, BinaryNotFound
        """
        toolchain, _, _ = self.toolchain_for_dir(directory)
        if not toolchain.exists():
            raise ToolchainNotInstalled(toolchain.name)
        path = toolchain.binary_file(binary)
        if not path.is_file():
            raise BinaryNotFound(toolchain.name, binary, path)
        return path

    def doc_path_for_dir(self, directory: Union[str, Path], page: str) -> Path:
        toolchain, _, _ = self.toolchain_for_dir(directory)
        if not toolchain.exists():
            raise ToolchainNotInstalled(toolchain.name)
        path = toolchain.doc_dir() / page
        if not path.exists():
            raise MultirustError(
                f"toolchain '{toolchain.name}' has no documentation at '{path}'"
            )
        return path

    def open_docs_for_dir(self, directory: Union[str, Path], page: str) -> Path:
        """Open a documentation page of the resolved toolchain in a browser."""
        path = self.doc_path_for_dir(directory, page)
        self.notifier.verbose(f"opening {path}")
        if not webbrowser.open(path.as_uri()):
            raise MultirustError(f"could not open a browser for '{path}'")
        return path

    # ------------------------------------------------------------------
    # Metadata
    # ------------------------------------------------------------------

    def check_metadata_version(self) -> None:
        """
        Fail unless persisted state uses the current schema.

        Raises:
            MetadataVersionMismatch: If the marker does not match
        """
        self.metadata.check()
        try:
            ensure_home_structure(self.home)
        except OSError as e:
            raise PersistenceError(f"could not create '{self.home}': {e}") from e

    def upgrade_data(self) -> bool:
        return self.metadata.upgrade()

    def delete_data(self) -> None:
        self.metadata.delete_all()


__all__ = ["Cfg", "ResolutionSource", "DOC_INDEX_PAGE", "DOC_STD_PAGE"]
