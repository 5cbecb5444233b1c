"""
Toolchain entity.

A Toolchain is a name plus a prefix directory under `<home>/toolchains`.
Creating one never touches the filesystem; whether it is installed is always
read from disk.
"""

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Dict, Mapping, Optional, Sequence, Union

from multirustkit.core.exceptions import (
    BinaryNotFound,
    InvalidToolchainName,
    PersistenceError,
    ToolchainNotInstalled,
)
from multirustkit.core.filesystem import FilesystemError, is_link, safe_rmtree
from multirustkit.core.overrides import REASON_MANUAL, OverrideEntry
from multirustkit.core.platform import detect_platform
from multirustkit.toolchain.installer import InstallOptions, InstallResult, install
from multirustkit.toolchain.proxy import build_env

if TYPE_CHECKING:
    from multirustkit.config.root import Cfg

logger = logging.getLogger(__name__)


def is_plain_name(name: str) -> bool:
    """True for a single path component: not empty, not `.`/`..`, no separators."""
    return bool(name) and name not in (".", "..") and not any(
        c in name for c in ("/", "\\", "\0")
    )


def validate_toolchain_name(name: str) -> str:
    """
    Check that a toolchain name can be used as a directory name.

    Raises:
        InvalidToolchainName: If the name is empty, contains a path
            separator, is `.`/`..`, or starts with `-`
    """
    if not is_plain_name(name) or name.startswith("-"):
        raise InvalidToolchainName(name)
    return name


class Toolchain:
    """
    One named toolchain.

    Attributes:
        cfg: Configuration root the toolchain belongs to
        name: Toolchain name (channel, dated channel, version or custom name)
        prefix: Installation prefix
        update_hash_file: Hash of the dist archive the prefix was built from
    """

    def __init__(self, cfg: "Cfg", name: str):
        self.cfg = cfg
        self.name = validate_toolchain_name(name)
        self.prefix = cfg.toolchains_dir / name
        self.update_hash_file = cfg.update_hash_dir / name

    def __repr__(self) -> str:
        return f"Toolchain({self.name!r})"

    def __eq__(self, other) -> bool:
        if not isinstance(other, Toolchain):
            return NotImplemented
        return self.prefix == other.prefix

    def __hash__(self) -> int:
        return hash(self.prefix)

    # ------------------------------------------------------------------
    # Layout
    # ------------------------------------------------------------------

    def exists(self) -> bool:
        """True if the prefix is a directory (a link to one counts)."""
        return self.prefix.is_dir()

    def is_linked(self) -> bool:
        return is_link(self.prefix)

    def bin_dir(self) -> Path:
        return self.prefix / "bin"

    def binary_file(self, binary: str) -> Path:
        """
        Path of `binary` inside the prefix (with `.exe` on Windows).

        Raises:
            BinaryNotFound: If the name could point outside `bin/`
        """
        if not is_plain_name(binary):
            raise BinaryNotFound(self.name, binary)
        suffix = detect_platform().executable_suffix()
        if suffix and binary.endswith(suffix):
            suffix = ""
        return self.bin_dir() / f"{binary}{suffix}"

    def lib_dir(self) -> Path:
        return self.prefix / "lib"

    def doc_dir(self) -> Path:
        return self.prefix / "share" / "doc" / "rust" / "html"

    def ld_path_env(self, base_env: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
        """Environment for child processes with this toolchain's libraries first."""
        return build_env(self.lib_dir(), base_env)

    # ------------------------------------------------------------------
    # Installation
    # ------------------------------------------------------------------

    def install(self, options: InstallOptions, update: bool = False) -> InstallResult:
        return install(self, options, update=update)

    def install_from_dist(self) -> InstallResult:
        """Fetch from the distribution server, even when already installed."""
        return install(self, InstallOptions(), update=True)

    def install_from_dist_if_not_installed(self) -> InstallResult:
        return install(self, InstallOptions(), update=False)

    def install_from_installers(self, installers: Sequence[Union[str, Path]]) -> InstallResult:
        options = InstallOptions(installers=[Path(p) for p in installers])
        return install(self, options, update=False)

    def install_from_dir(self, source: Union[str, Path], link: bool) -> InstallResult:
        """Copy `source` into the prefix, or make the prefix a link to it."""
        source = Path(source)
        if link:
            options = InstallOptions(link_local=source)
        else:
            options = InstallOptions(copy_local=source)
        return install(self, options, update=False)

    def remove(self) -> None:
        """
        Uninstall the toolchain.

        A linked toolchain loses only its link; the directory it points to is
        left alone.

        Raises:
            ToolchainNotInstalled: If there is nothing to remove
        """
        with self.cfg.lock_manager.toolchain_lock(self.name):
            if not self.exists() and not self.is_linked():
                raise ToolchainNotInstalled(self.name)

            self.cfg.notifier.info(f"uninstalling toolchain '{self.name}'")
            try:
                safe_rmtree(self.prefix, require_prefix=self.cfg.toolchains_dir)
            except (FilesystemError, ValueError) as e:
                raise PersistenceError(
                    f"failed to remove toolchain '{self.name}': {e}"
                ) from e
            self.update_hash_file.unlink(missing_ok=True)

        self.cfg.notifier.info(f"toolchain '{self.name}' uninstalled")

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def make_default(self) -> None:
        self.cfg.set_default(self.name)

    def make_override(self, directory: Union[str, Path]) -> OverrideEntry:
        return self.cfg.override_db.insert(directory, self.name, REASON_MANUAL)


__all__ = ["Toolchain", "validate_toolchain_name"]
