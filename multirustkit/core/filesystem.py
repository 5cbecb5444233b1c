"""
File system utilities for multirustkit.

This module provides the file operations the rest of the package builds on:
- Atomic writes (temp file + rename) for every persisted state file
- Guarded recursive deletion of toolchain prefixes and staging areas
- Directory copy and directory link creation (symlink, junction on Windows)
- Archive extraction (tar.gz, tar.xz, tar.bz2, zip) with traversal checks

A reader never observes a partially written state file: writes go to a
temporary file in the same directory which is then renamed over the target.
"""

import os
import shutil
import subprocess
import sys
import tarfile
import tempfile
import zipfile
from pathlib import Path
from typing import Optional, Union

IS_WINDOWS = os.name == "nt"


# ============================================================================
# Error Handling
# ============================================================================


class FilesystemError(Exception):
    """Base exception for filesystem operations."""

    pass


class LinkCreationError(FilesystemError):
    """Failed to create a symbolic link or junction."""

    pass


class ArchiveExtractionError(FilesystemError):
    """Failed to extract an archive."""

    pass


class UnsupportedArchiveFormat(ArchiveExtractionError):
    """Archive format is not supported."""

    pass


class InsecureArchiveError(ArchiveExtractionError):
    """Archive contains insecure paths (directory traversal attempt)."""

    pass


# ============================================================================
# Path Utilities
# ============================================================================


def normalize_path(path: Union[str, Path]) -> Path:
    """
    Normalize a path for consistent comparison.

    Resolves symlinks and makes the path absolute. Used as the key format of
    the override database so that `/proj/./src` and `/proj/src` collide.

    Example:
        >>> normalize_path("./foo/../bar")
        PosixPath('/absolute/path/to/bar')
    """
    return Path(path).expanduser().resolve()


def is_link(path: Path) -> bool:
    """Return True for symlinks and, on Windows, directory junctions."""
    if path.is_symlink():
        return True
    is_junction = getattr(os.path, "isjunction", None)
    return bool(is_junction and is_junction(path))


# ============================================================================
# Safe File Operations
# ============================================================================


def atomic_write(
    file_path: Union[str, Path], content: Union[str, bytes], encoding: str = "utf-8"
) -> None:
    """
    Write file atomically using temp file + rename.

    This ensures the file is never in a partially-written state.
    If the write fails, the original file (if any) remains unchanged.

    Args:
        file_path: Path to write to
        content: Content to write (string or bytes)
        encoding: Text encoding (used only for string content)

    Example:
        >>> atomic_write('overrides.json', '{"version": 2}')
    """
    file_path = Path(file_path)
    file_path.parent.mkdir(parents=True, exist_ok=True)

    # Same directory as the target so the rename stays on one filesystem
    temp_fd, temp_path_str = tempfile.mkstemp(
        dir=file_path.parent, prefix=f".{file_path.name}.", suffix=".tmp"
    )
    temp_path = Path(temp_path_str)

    try:
        if isinstance(content, str):
            with open(temp_fd, "w", encoding=encoding) as f:
                f.write(content)
                f.flush()
                os.fsync(f.fileno())
        else:
            with open(temp_fd, "wb") as f:
                f.write(content)
                f.flush()
                os.fsync(f.fileno())

        temp_path.replace(file_path)

    except Exception:
        try:
            temp_path.unlink(missing_ok=True)
        except OSError:
            pass
        raise


def safe_rmtree(
    path: Union[str, Path], require_prefix: Optional[Union[str, Path]] = None
) -> None:
    """
    Safely remove a directory tree with safeguards.

    Links are unlinked rather than followed, so removing a linked toolchain
    never touches the directory it points to.

    Args:
        path: Directory to remove
        require_prefix: If specified, path must be under this directory

    Raises:
        ValueError: If path is not under require_prefix
        FilesystemError: If deletion fails

    Example:
        >>> safe_rmtree('/home/user/.multirust/tmp/staging', require_prefix='/home/user/.multirust')
    """
    path = Path(path).absolute()

    if require_prefix is not None:
        require_prefix = Path(require_prefix).resolve()
        parent = path.parent.resolve()
        if not (parent / path.name).is_relative_to(require_prefix):
            raise ValueError(
                f"Refusing to delete '{path}': not under required prefix '{require_prefix}'"
            )

    if is_link(path):
        try:
            if IS_WINDOWS and path.is_dir():
                os.rmdir(path)
            else:
                path.unlink()
        except OSError as e:
            raise FilesystemError(f"Failed to remove link '{path}': {e}")
        return

    if not path.exists():
        return

    if not path.is_dir():
        raise FilesystemError(f"Path is not a directory: {path}")

    try:
        if IS_WINDOWS:

            def handle_remove_readonly(func, failed_path, exc):
                """Error handler for Windows read-only files."""
                if not os.access(failed_path, os.W_OK):
                    os.chmod(failed_path, 0o777)
                    func(failed_path)
                else:
                    raise exc[1]

            shutil.rmtree(path, onerror=handle_remove_readonly)
        else:
            shutil.rmtree(path)

    except Exception as e:
        raise FilesystemError(f"Failed to remove directory '{path}': {e}")


def recursive_copy(source: Union[str, Path], destination: Union[str, Path]) -> None:
    """
    Recursively copy a directory tree, preserving symlinks and metadata.

    Args:
        source: Source directory
        destination: Destination directory (created if missing)

    Example:
        >>> recursive_copy('/opt/rust-build', '/home/user/.multirust/tmp/staging')
    """
    source = Path(source)
    destination = Path(destination)

    if not source.exists():
        raise FilesystemError(f"Source does not exist: {source}")

    if not source.is_dir():
        raise FilesystemError(f"Source is not a directory: {source}")

    try:
        shutil.copytree(
            source,
            destination,
            symlinks=True,
            dirs_exist_ok=True,
        )
    except (shutil.Error, OSError) as e:
        raise FilesystemError(f"Failed to copy '{source}' to '{destination}': {e}")


def merge_tree(source: Path, destination: Path) -> None:
    """Move every entry of source into destination, replacing clashes."""
    destination.mkdir(parents=True, exist_ok=True)
    for item in source.iterdir():
        target = destination / item.name
        if item.is_dir() and not item.is_symlink() and target.is_dir():
            merge_tree(item, target)
            continue
        if target.is_dir() and not is_link(target):
            shutil.rmtree(target)
        elif target.exists() or target.is_symlink():
            target.unlink()
        shutil.move(str(item), str(target))


# ============================================================================
# Link Creation
# ============================================================================


def create_link(source: Union[str, Path], target: Union[str, Path]) -> None:
    """
    Create a directory link at target pointing to source.

    Unix gets a symbolic link; Windows gets a junction point since those do
    not require administrator rights.

    Args:
        source: Existing directory the link refers to
        target: Path where the link is created (must not exist)

    Raises:
        LinkCreationError: If the link cannot be created
    """
    source = Path(source).resolve()
    target = Path(target)

    if not source.is_dir():
        raise LinkCreationError(f"Link source must be a directory: {source}")

    if target.exists() or target.is_symlink():
        raise LinkCreationError(f"Link target already exists: {target}")

    target.parent.mkdir(parents=True, exist_ok=True)

    try:
        if IS_WINDOWS:
            result = subprocess.run(
                ["cmd", "/c", "mklink", "/J", str(target), str(source)],
                capture_output=True,
                text=True,
                check=False,
            )
            if result.returncode != 0:
                raise LinkCreationError(
                    f"Failed to create junction from {target} to {source}: "
                    f"{result.stderr.strip()}"
                )
        else:
            os.symlink(source, target, target_is_directory=True)
    except OSError as e:
        raise LinkCreationError(f"Failed to create link {target} -> {source}: {e}")


# ============================================================================
# Archive Extraction
# ============================================================================


def _validate_archive_path(path: str, destination: Path) -> None:
    """
    Validate that an archive member path is safe to extract.

    Raises:
        InsecureArchiveError: If path attempts directory traversal
    """
    member_path = (destination / path).resolve()

    if not member_path.is_relative_to(destination.resolve()):
        raise InsecureArchiveError(
            f"Archive member '{path}' attempts directory traversal. "
            "This is a security risk and extraction has been blocked."
        )


def is_archive(path: Union[str, Path]) -> bool:
    """Return True if the file name has a supported archive extension."""
    name = Path(path).name.lower()
    return name.endswith(
        (".zip", ".tar.gz", ".tgz", ".tar.xz", ".txz", ".tar.bz2", ".tbz2", ".tar")
    )


def extract_archive(archive_path: Union[str, Path], destination: Union[str, Path]) -> None:
    """
    Extract an archive to a destination directory.

    Supported formats: .zip, .tar.gz/.tgz, .tar.xz/.txz, .tar.bz2/.tbz2, .tar

    Raises:
        UnsupportedArchiveFormat: If archive format is not recognized
        ArchiveExtractionError: If extraction fails
        InsecureArchiveError: If archive contains malicious paths

    Example:
        >>> extract_archive('rust-nightly-x86_64-unknown-linux-gnu.tar.gz', '/tmp/unpack')
    """
    archive_path = Path(archive_path)
    destination = Path(destination)

    if not archive_path.exists():
        raise ArchiveExtractionError(f"Archive not found: {archive_path}")

    destination.mkdir(parents=True, exist_ok=True)
    archive_name = archive_path.name.lower()

    try:
        if archive_name.endswith(".zip"):
            _extract_zip(archive_path, destination)
        elif archive_name.endswith((".tar.gz", ".tgz")):
            _extract_tar(archive_path, destination, "r:gz")
        elif archive_name.endswith((".tar.xz", ".txz")):
            _extract_tar(archive_path, destination, "r:xz")
        elif archive_name.endswith((".tar.bz2", ".tbz2")):
            _extract_tar(archive_path, destination, "r:bz2")
        elif archive_name.endswith(".tar"):
            _extract_tar(archive_path, destination, "r:")
        else:
            raise UnsupportedArchiveFormat(
                f"Unsupported archive format: {archive_path.name}. "
                "Supported: .zip, .tar.gz, .tar.xz, .tar.bz2, .tar"
            )
    except (InsecureArchiveError, UnsupportedArchiveFormat):
        raise
    except Exception as e:
        raise ArchiveExtractionError(f"Failed to extract {archive_path}: {e}")


def _extract_zip(archive_path: Path, destination: Path) -> None:
    """Extract a ZIP archive."""
    with zipfile.ZipFile(archive_path, "r") as zf:
        members = zf.namelist()
        for member in members:
            _validate_archive_path(member, destination)
        zf.extractall(destination)


def _extract_tar(archive_path: Path, destination: Path, mode: str) -> None:
    """Extract a tar archive with specified compression."""
    with tarfile.open(archive_path, mode) as tar:
        for member in tar.getmembers():
            _validate_archive_path(member.name, destination)

        if sys.version_info >= (3, 12):
            tar.extractall(destination, filter="data")
        else:
            tar.extractall(destination)


__all__ = [
    "FilesystemError",
    "LinkCreationError",
    "ArchiveExtractionError",
    "UnsupportedArchiveFormat",
    "InsecureArchiveError",
    "normalize_path",
    "is_link",
    "atomic_write",
    "safe_rmtree",
    "recursive_copy",
    "merge_tree",
    "create_link",
    "is_archive",
    "extract_archive",
]
