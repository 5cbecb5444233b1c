"""
Update every release channel.

Each channel in UPDATE_CHANNELS is updated independently: a failure in one
channel is recorded and the remaining channels are still attempted. After
all attempts the installed compiler and build-tool versions are collected
for a summary.
"""

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, List, Optional

from multirustkit.core.exceptions import MultirustError
from multirustkit.toolchain.installer import InstallStatus
from multirustkit.toolchain.proxy import UNKNOWN_VERSION, query_version

if TYPE_CHECKING:
    from multirustkit.config.root import Cfg
    from multirustkit.toolchain.toolchain import Toolchain

logger = logging.getLogger(__name__)

UPDATE_CHANNELS = ("stable", "beta", "nightly")


@dataclass
class ChannelUpdateResult:
    """Outcome of updating one channel."""

    channel: str
    success: bool
    status: Optional[InstallStatus] = None
    error: Optional[str] = None


@dataclass
class ToolVersions:
    """Installed tool versions of one toolchain."""

    channel: str
    installed: bool
    rustc: str = UNKNOWN_VERSION
    cargo: str = UNKNOWN_VERSION

    @classmethod
    def query(cls, toolchain: "Toolchain") -> "ToolVersions":
        if not toolchain.exists():
            return cls(channel=toolchain.name, installed=False)
        return cls(
            channel=toolchain.name,
            installed=True,
            rustc=query_version(toolchain, "rustc"),
            cargo=query_version(toolchain, "cargo"),
        )


@dataclass
class UpdateAllReport:
    """Per-channel results followed by the version summary."""

    results: List[ChannelUpdateResult] = field(default_factory=list)
    versions: List[ToolVersions] = field(default_factory=list)

    @property
    def all_succeeded(self) -> bool:
        return all(result.success for result in self.results)

    def failed_channels(self) -> List[str]:
        return [result.channel for result in self.results if not result.success]


def update_channel(cfg: "Cfg", channel: str) -> ChannelUpdateResult:
    """Update one channel, capturing any multirust error as a failed result."""
    try:
        result = cfg.get_toolchain(channel).install_from_dist()
    except MultirustError as e:
        logger.debug(f"Update of '{channel}' failed: {e}")
        cfg.notifier.warning(f"update of '{channel}' failed: {e}")
        return ChannelUpdateResult(channel=channel, success=False, error=str(e))
    return ChannelUpdateResult(channel=channel, success=True, status=result.status)


def update_all_channels(cfg: "Cfg", channels=UPDATE_CHANNELS) -> UpdateAllReport:
    """
    Update every channel, then query the installed versions.

    Never raises for a single channel's failure.
    """
    report = UpdateAllReport()

    for channel in channels:
        report.results.append(update_channel(cfg, channel))

    for channel in channels:
        report.versions.append(ToolVersions.query(cfg.get_toolchain(channel)))

    failed = report.failed_channels()
    if failed:
        logger.debug(f"Channels failed to update: {', '.join(failed)}")
    return report


__all__ = [
    "UPDATE_CHANNELS",
    "ChannelUpdateResult",
    "ToolVersions",
    "UpdateAllReport",
    "update_channel",
    "update_all_channels",
]
