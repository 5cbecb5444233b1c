"""
Centralized exception hierarchy for multirustkit.

Every error that can reach the command dispatcher derives from
MultirustError. The dispatcher prints the message and exits with status 1,
so messages are written to be shown to the user as-is.
"""

from pathlib import Path
from typing import Optional


# ============================================================================
# Base Exceptions
# ============================================================================


class MultirustError(Exception):
    """Base exception for all multirustkit errors."""

    pass


class ConfigError(MultirustError):
    """Raised when the settings file cannot be read or is invalid."""

    pass


class LockTimeout(MultirustError):
    """Raised when a state lock cannot be acquired within the timeout."""

    pass


class WorkingDirectoryUnavailable(MultirustError):
    """Raised when the current working directory cannot be determined."""

    def __init__(self, reason: str = ""):
        msg = "could not locate working directory"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


# ============================================================================
# Dispatch Exceptions
# ============================================================================


class UnknownBinary(MultirustError):
    """Raised when invoked under a name that is neither a manager nor a proxy."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"don't know how to proxy that binary: {name}")


# ============================================================================
# Toolchain Exceptions
# ============================================================================


class InvalidToolchainName(MultirustError):
    """Raised when a toolchain name cannot be used as a directory name."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"invalid toolchain name: '{name}'")


class NoDefaultToolchain(MultirustError):
    """Raised when no override applies and no default toolchain is configured."""

    def __init__(self):
        super().__init__(
            "no default toolchain configured. run `multirust default <toolchain>`"
        )


class ToolchainNotInstalled(MultirustError):
    """Raised when a resolved toolchain has no prefix on disk."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"toolchain '{name}' is not installed")


class BinaryNotFound(MultirustError):
    """Raised when the requested binary is missing from a toolchain prefix."""

    def __init__(self, toolchain: str, binary: str, path: Optional[Path] = None):
        self.toolchain = toolchain
        self.binary = binary
        self.path = path
        super().__init__(f"toolchain '{toolchain}' does not have the binary `{binary}`")


class InstallSourceFailure(MultirustError):
    """Raised when populating a toolchain prefix fails (network, archive, filesystem)."""

    def __init__(self, toolchain: str, reason: str):
        self.toolchain = toolchain
        self.reason = reason
        super().__init__(f"failed to install toolchain '{toolchain}': {reason}")


class ProxySpawnFailure(MultirustError):
    """Raised when the child process for a proxied binary cannot be started."""

    def __init__(self, binary: str, reason: str):
        self.binary = binary
        self.reason = reason
        super().__init__(f"failed to run `{binary}`: {reason}")


# ============================================================================
# Persisted State Exceptions
# ============================================================================


class MetadataVersionMismatch(MultirustError):
    """Raised when on-disk metadata does not match the running version."""

    def __init__(self, found: str, expected: str):
        self.found = found
        self.expected = expected
        super().__init__(
            f"multirust metadata is out of date (found version {found}, "
            f"expected {expected}). run `multirust upgrade-data`"
        )


class UnsupportedMetadataVersion(MetadataVersionMismatch):
    """Raised when on-disk metadata is newer than, or unknown to, the running version."""

    def __init__(self, found: str, expected: str):
        self.found = found
        self.expected = expected
        MultirustError.__init__(
            self,
            f"multirust metadata version {found} is not supported by this version "
            f"of multirust (expected {expected}). install a newer multirust, or run "
            f"`multirust delete-data` to start over",
        )


class OverrideDatabaseError(MultirustError):
    """Raised when the override database file is unreadable or corrupt."""

    pass


class PersistenceError(MultirustError):
    """Raised when persisted state cannot be written or removed."""

    pass
