"""
show-default and show-override command implementations.
"""

import logging

from multirustkit.cli.utils import print_tool_versions, safe_print
from multirustkit.core.directory import current_dir

logger = logging.getLogger(__name__)


def run_show_default(args, cfg) -> int:
    """Print the default toolchain, its location and tool versions."""
    toolchain = cfg.find_default()
    if toolchain is None:
        print("no default toolchain configured. run `multirust help default`")
        return 0

    safe_print(f"default toolchain: {toolchain.name}")
    safe_print(f"default location: {toolchain.prefix}")
    print_tool_versions(toolchain)
    return 0


def run_show_override(args, cfg) -> int:
    """Print the override for the current directory, or fall back to the default."""
    found = cfg.find_override(current_dir())
    if found is None:
        print("no override")
        return run_show_default(args, cfg)

    toolchain, reason = found
    safe_print(f"override toolchain: {toolchain.name}")
    safe_print(f"override location: {toolchain.prefix}")
    safe_print(f"override reason: {reason}")
    print_tool_versions(toolchain)
    return 0
