"""
Installation orchestration.

Exactly one source populates a toolchain prefix per invocation, chosen in
strict precedence order (first match wins, the rest is ignored):

    1. installer packages   (--installer, may be repeated)
    2. local copy           (--copy-local DIR)
    3. local link           (--link-local DIR)
    4. remote distribution  (no flag)

Every install is built in a staging directory under `<home>/tmp` and renamed
into place only when it is complete. A failed install removes the staging
area and leaves any previous prefix exactly as it was.
"""

import logging
import os
import subprocess
import tempfile
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, List, Optional, Sequence

from multirustkit.core.exceptions import InstallSourceFailure
from multirustkit.core.filesystem import (
    FilesystemError,
    create_link,
    extract_archive,
    is_archive,
    is_link,
    merge_tree,
    recursive_copy,
    safe_rmtree,
)
from multirustkit.toolchain.dist import (
    DistManifest,
    download_archive,
    fetch_remote_hash,
    read_stored_hash,
    write_stored_hash,
)

if TYPE_CHECKING:
    from multirustkit.toolchain.toolchain import Toolchain

logger = logging.getLogger(__name__)

INSTALL_SCRIPT = "install.sh"


class InstallSourceKind(Enum):
    INSTALLERS = "installers"
    COPY_LOCAL = "copy-local"
    LINK_LOCAL = "link-local"
    DIST = "dist"


class InstallStatus(Enum):
    INSTALLED = "installed"
    ALREADY_INSTALLED = "already installed"
    UP_TO_DATE = "up to date"
    UPDATED = "updated"


@dataclass
class InstallOptions:
    """Install sources requested on the command line."""

    installers: List[Path] = field(default_factory=list)
    copy_local: Optional[Path] = None
    link_local: Optional[Path] = None

    def has_explicit_source(self) -> bool:
        return select_source(self) is not InstallSourceKind.DIST


@dataclass
class InstallResult:
    """Outcome of one install."""

    toolchain: str
    source: InstallSourceKind
    status: InstallStatus

    @property
    def changed(self) -> bool:
        return self.status in (InstallStatus.INSTALLED, InstallStatus.UPDATED)


def select_source(options: InstallOptions) -> InstallSourceKind:
    """Pick the install source by precedence: installers, copy, link, dist."""
    if options.installers:
        return InstallSourceKind.INSTALLERS
    if options.copy_local is not None:
        return InstallSourceKind.COPY_LOCAL
    if options.link_local is not None:
        return InstallSourceKind.LINK_LOCAL
    return InstallSourceKind.DIST


class StagedInstall:
    """
    Staging area for one prefix, promoted by rename on success.

    Usage:
        with StagedInstall(cfg.temp_dir, toolchain.prefix) as staged:
            recursive_copy(source, staged.path)
            staged.promote()

    Leaving the block without calling `promote()` (normally, or through an
    exception) discards everything that was staged.
    """

    def __init__(self, temp_dir: Path, prefix: Path):
        self.temp_dir = Path(temp_dir)
        self.prefix = Path(prefix)
        self.root: Optional[Path] = None
        self.promoted = False

    @property
    def path(self) -> Path:
        """Staged prefix; does not exist until a source creates it."""
        return self.root / "prefix"

    def __enter__(self) -> "StagedInstall":
        self.temp_dir.mkdir(parents=True, exist_ok=True)
        self.root = Path(tempfile.mkdtemp(prefix="install-", dir=self.temp_dir))
        logger.debug(f"Staging {self.prefix.name} in {self.root}")
        return self

    def promote(self) -> None:
        """
        Rename the staged prefix to its final location.

        An existing prefix is moved aside first and restored if the rename
        fails; it is deleted when the staging area is cleaned up.
        """
        if not self.path.exists() and not is_link(self.path):
            raise FilesystemError(f"Nothing was staged for {self.prefix.name}")

        self.prefix.parent.mkdir(parents=True, exist_ok=True)
        previous = None
        if self.prefix.exists() or is_link(self.prefix):
            previous = self.root / "previous"
            os.rename(self.prefix, previous)

        try:
            os.rename(self.path, self.prefix)
        except OSError as e:
            if previous is not None:
                os.rename(previous, self.prefix)
            raise FilesystemError(
                f"Failed to move staged toolchain into {self.prefix}: {e}"
            ) from e

        self.promoted = True
        logger.debug(f"Promoted staged install to {self.prefix}")

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.root is None:
            return False
        # Links inside the staging root are removed first so the directories
        # they point at are never descended into.
        for name in ("prefix", "previous"):
            if is_link(self.root / name):
                safe_rmtree(self.root / name)
        safe_rmtree(self.root, require_prefix=self.temp_dir)
        if exc_type is not None:
            logger.debug(f"Discarded staged install of {self.prefix.name}")
        return False


def install(
    toolchain: "Toolchain", options: InstallOptions, *, update: bool
) -> InstallResult:
    """
    Install `toolchain` from the source selected by `options`.

    Args:
        toolchain: Target toolchain
        options: Requested sources
        update: When true, a dist install always fetches and compares even
            if the toolchain is already installed

    Raises:
        InstallSourceFailure: If the source cannot populate the prefix
    """
    kind = select_source(options)
    cfg = toolchain.cfg

    with cfg.lock_manager.toolchain_lock(toolchain.name):
        if kind is InstallSourceKind.DIST:
            status = _install_from_dist(toolchain, update)
        else:
            status = _install_from_local(toolchain, kind, options)

    logger.debug(f"Install of {toolchain.name} from {kind.value}: {status.value}")
    return InstallResult(toolchain=toolchain.name, source=kind, status=status)


def _install_from_local(
    toolchain: "Toolchain", kind: InstallSourceKind, options: InstallOptions
) -> InstallStatus:
    cfg = toolchain.cfg
    notifier = cfg.notifier
    installed_before = toolchain.exists()

    if kind is InstallSourceKind.INSTALLERS:
        for package in options.installers:
            if not Path(package).exists():
                raise InstallSourceFailure(
                    toolchain.name, f"installer not found: {package}"
                )
    else:
        source = options.copy_local if kind is InstallSourceKind.COPY_LOCAL else options.link_local
        if not Path(source).is_dir():
            raise InstallSourceFailure(
                toolchain.name, f"not a directory: {source}"
            )

    try:
        with StagedInstall(cfg.temp_dir, toolchain.prefix) as staged:
            if kind is InstallSourceKind.INSTALLERS:
                for package in options.installers:
                    notifier.info(f"installing '{toolchain.name}' from {package}")
                    install_package(Path(package), staged.path, staged.root)
            elif kind is InstallSourceKind.COPY_LOCAL:
                notifier.info(f"copying '{options.copy_local}' to '{toolchain.prefix}'")
                recursive_copy(options.copy_local, staged.path)
            else:
                notifier.info(f"linking '{toolchain.prefix}' to '{options.link_local}'")
                create_link(options.link_local, staged.path)
            staged.promote()
    except (FilesystemError, OSError, ValueError) as e:
        raise InstallSourceFailure(toolchain.name, str(e)) from e

    # A locally sourced prefix no longer matches any dist archive
    toolchain.update_hash_file.unlink(missing_ok=True)

    notifier.info(f"toolchain '{toolchain.name}' installed")
    return InstallStatus.UPDATED if installed_before else InstallStatus.INSTALLED


def _install_from_dist(toolchain: "Toolchain", update: bool) -> InstallStatus:
    cfg = toolchain.cfg
    notifier = cfg.notifier
    installed_before = toolchain.exists()

    if installed_before and not update:
        notifier.info(f"toolchain '{toolchain.name}' is already installed")
        return InstallStatus.ALREADY_INSTALLED

    timeout = cfg.settings.download_timeout
    manifest = DistManifest.for_toolchain(toolchain.name, cfg.settings.dist_root)
    notifier.verbose(f"checking {manifest.hash_url}")
    remote_hash = fetch_remote_hash(manifest, timeout=timeout)

    if installed_before and read_stored_hash(toolchain.update_hash_file) == remote_hash:
        notifier.info(f"toolchain '{toolchain.name}' is already up to date")
        return InstallStatus.UP_TO_DATE

    if installed_before:
        notifier.info(f"updating existing install for '{toolchain.name}'")
    else:
        notifier.info(f"installing toolchain '{toolchain.name}'")

    try:
        with StagedInstall(cfg.temp_dir, toolchain.prefix) as staged:
            notifier.info(f"downloading {manifest.archive_url}")
            archive = download_archive(manifest, staged.root, remote_hash, timeout=timeout)
            install_package(archive, staged.path, staged.root)
            staged.promote()
    except (FilesystemError, OSError, ValueError) as e:
        raise InstallSourceFailure(toolchain.name, str(e)) from e

    write_stored_hash(toolchain.update_hash_file, remote_hash)
    notifier.info(f"toolchain '{toolchain.name}' installed")
    return InstallStatus.UPDATED if installed_before else InstallStatus.INSTALLED


def install_package(package: Path, prefix: Path, work_dir: Path) -> None:
    """
    Install one installer package into `prefix`.

    `package` is an archive or a directory. When the unpacked tree carries an
    `install.sh` it is run with `--prefix`; otherwise the tree is merged into
    the prefix as-is.

    Raises:
        FilesystemError: If the package cannot be unpacked or installed
    """
    if package.is_dir():
        source_root = package
        unpacked = False
    elif is_archive(package):
        unpack_dir = Path(tempfile.mkdtemp(prefix="unpack-", dir=work_dir))
        extract_archive(package, unpack_dir)
        source_root = _package_root(unpack_dir)
        unpacked = True
    else:
        raise FilesystemError(f"Unsupported installer package: {package.name}")

    prefix.mkdir(parents=True, exist_ok=True)

    script = source_root / INSTALL_SCRIPT
    if script.is_file():
        _run_install_script(script, prefix)
    elif unpacked:
        merge_tree(source_root, prefix)
    else:
        recursive_copy(source_root, prefix)


def _package_root(unpack_dir: Path) -> Path:
    """Descend into the single top-level directory most archives carry."""
    entries = list(unpack_dir.iterdir())
    if len(entries) == 1 and entries[0].is_dir() and not entries[0].is_symlink():
        return entries[0]
    return unpack_dir


def _run_install_script(script: Path, prefix: Path) -> None:
    command = ["sh", str(script), f"--prefix={prefix}", "--disable-ldconfig"]
    logger.debug(f"Running {' '.join(command)}")

    result = subprocess.run(command, cwd=script.parent, check=False)
    if result.returncode != 0:
        raise FilesystemError(
            f"{INSTALL_SCRIPT} failed with exit code {result.returncode}"
        )


__all__ = [
    "InstallSourceKind",
    "InstallStatus",
    "InstallOptions",
    "InstallResult",
    "StagedInstall",
    "select_source",
    "install",
    "install_package",
]
