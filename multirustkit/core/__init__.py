"""
Core functionality for multirustkit.

This package contains the foundational modules that other components depend on:
persisted state (overrides, metadata marker, settings), filesystem and network
helpers, locking, platform detection and the notification channel.
"""

from .directory import (
    get_multirust_home,
    ensure_home_structure,
    current_dir,
)

from .locking import LockManager

from .platform import (
    PlatformInfo,
    detect_platform,
    detect_host_triple,
    clear_platform_cache,
)

from .notifications import (
    NotificationLevel,
    Notification,
    LoggingNotifyHandler,
    Notifier,
)

from .overrides import OverrideEntry, OverrideDB

from .metadata import (
    CURRENT_METADATA_VERSION,
    MetadataGate,
    MetadataState,
)

from .settings import Settings, load_settings

from .exceptions import (
    MultirustError,
    ConfigError,
    LockTimeout,
    WorkingDirectoryUnavailable,
    UnknownBinary,
    InvalidToolchainName,
    NoDefaultToolchain,
    ToolchainNotInstalled,
    BinaryNotFound,
    InstallSourceFailure,
    ProxySpawnFailure,
    MetadataVersionMismatch,
    OverrideDatabaseError,
    PersistenceError,
    UnsupportedMetadataVersion,
)

__all__ = [
    # Directory
    "get_multirust_home",
    "ensure_home_structure",
    "current_dir",
    # Locking
    "LockManager",
    # Platform
    "PlatformInfo",
    "detect_platform",
    "detect_host_triple",
    "clear_platform_cache",
    # Notifications
    "NotificationLevel",
    "Notification",
    "LoggingNotifyHandler",
    "Notifier",
    # Persisted state
    "OverrideEntry",
    "OverrideDB",
    "CURRENT_METADATA_VERSION",
    "MetadataGate",
    "MetadataState",
    "Settings",
    "load_settings",
    # Exceptions
    "MultirustError",
    "ConfigError",
    "LockTimeout",
    "WorkingDirectoryUnavailable",
    "UnknownBinary",
    "InvalidToolchainName",
    "NoDefaultToolchain",
    "ToolchainNotInstalled",
    "BinaryNotFound",
    "InstallSourceFailure",
    "ProxySpawnFailure",
    "MetadataVersionMismatch",
    "OverrideDatabaseError",
    "PersistenceError",
    "UnsupportedMetadataVersion",
]
