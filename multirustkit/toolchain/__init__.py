"""
Toolchain management module for multirustkit.

This module provides functionality for:
- The Toolchain entity (prefix layout, install, remove)
- Installation orchestration from installers, local directories or dist
- Remote distribution archive lookup
- Proxy execution of toolchain binaries
- Updating every release channel
"""

from multirustkit.toolchain.toolchain import Toolchain, validate_toolchain_name
from multirustkit.toolchain.installer import (
    InstallOptions,
    InstallResult,
    InstallSourceKind,
    InstallStatus,
    StagedInstall,
    install,
    select_source,
)
from multirustkit.toolchain.dist import DistManifest, fetch_remote_hash
from multirustkit.toolchain.proxy import (
    ProxyCommand,
    build_env,
    create_command,
    query_version,
    run_command,
)
from multirustkit.toolchain.channels import (
    UPDATE_CHANNELS,
    ChannelUpdateResult,
    ToolVersions,
    UpdateAllReport,
    update_all_channels,
)

__all__ = [
    "Toolchain",
    "validate_toolchain_name",
    "InstallOptions",
    "InstallResult",
    "InstallSourceKind",
    "InstallStatus",
    "StagedInstall",
    "install",
    "select_source",
    "DistManifest",
    "fetch_remote_hash",
    "ProxyCommand",
    "build_env",
    "create_command",
    "query_version",
    "run_command",
    "UPDATE_CHANNELS",
    "ChannelUpdateResult",
    "ToolVersions",
    "UpdateAllReport",
    "update_all_channels",
]
