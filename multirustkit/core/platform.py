"""
Host platform detection.

Distribution archives are named after the host target triple
(e.g. `rust-nightly-x86_64-unknown-linux-gnu.tar.gz`), and the proxy needs
to know which environment variable holds the shared-library search path.

Usage:
    from multirustkit.core.platform import detect_platform

    info = detect_platform()
    print(info.target_triple())  # x86_64-unknown-linux-gnu
"""

import functools
import platform
from dataclasses import dataclass


@dataclass(frozen=True)
class PlatformInfo:
    """
    Host platform information.

    Attributes:
        os: Operating system ('windows', 'linux', 'macos', 'freebsd')
        arch: CPU architecture in target-triple spelling ('x86_64', 'aarch64', 'i686')
    """

    os: str
    arch: str

    def target_triple(self) -> str:
        """
        Get the host target triple used in distribution archive names.

        Example:
            >>> PlatformInfo("linux", "x86_64").target_triple()
            'x86_64-unknown-linux-gnu'
        """
        if self.os == "linux":
            return f"{self.arch}-unknown-linux-gnu"
        if self.os == "macos":
            return f"{self.arch}-apple-darwin"
        if self.os == "windows":
            return f"{self.arch}-pc-windows-msvc"
        if self.os == "freebsd":
            return f"{self.arch}-unknown-freebsd"
        return f"{self.arch}-unknown-{self.os}"

    def library_path_var(self) -> str:
        """Name of the environment variable searched for shared libraries."""
        if self.os == "windows":
            return "PATH"
        if self.os == "macos":
            return "DYLD_LIBRARY_PATH"
        return "LD_LIBRARY_PATH"

    def executable_suffix(self) -> str:
        return ".exe" if self.os == "windows" else ""

    def __str__(self) -> str:
        return f"{self.os}-{self.arch}"


@functools.lru_cache(maxsize=1)
def detect_platform() -> PlatformInfo:
    """
    Detect current platform information.

    This function is cached - it only runs detection once per process.
    """
    return PlatformInfo(os=_detect_os(), arch=_detect_architecture())


def _detect_os() -> str:
    system = platform.system().lower()

    if system == "windows":
        return "windows"
    elif system == "darwin":
        return "macos"
    return system


def _detect_architecture() -> str:
    machine = platform.machine().lower()

    if machine in ("x86_64", "amd64", "x64"):
        return "x86_64"
    elif machine in ("aarch64", "arm64"):
        return "aarch64"
    elif machine in ("i386", "i686", "x86"):
        return "i686"
    # Unknown machines are passed through unchanged
    return machine


def detect_host_triple() -> str:
    """Shortcut for `detect_platform().target_triple()`."""
    return detect_platform().target_triple()


def clear_platform_cache():
    """Clear cached detection result (used by tests)."""
    detect_platform.cache_clear()
