"""
Shared utilities for CLI commands.

Provides the console output helpers used across several commands so that
version listings and prompts look the same everywhere.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

from multirustkit.toolchain.channels import ToolVersions
from multirustkit.toolchain.installer import InstallOptions
from multirustkit.toolchain.proxy import query_version
from multirustkit.toolchain.toolchain import Toolchain

logger = logging.getLogger(__name__)

VERSION_BINARIES = ("rustc", "cargo")


# ============================================================================
# Console Output
# ============================================================================


def safe_print(message: str = "", file=None):
    """
    Print message with safe encoding handling for limited consoles.

    Paths with characters the console cannot encode are printed with
    replacement characters instead of failing.

    Args:
        message: Message to print
        file: Output file (default: stdout)
    """
    try:
        print(message, file=file)
    except UnicodeEncodeError:
        stream = file or sys.stdout
        encoding = getattr(stream, "encoding", None) or "ascii"
        print(message.encode(encoding, errors="replace").decode(encoding), file=file)


def print_tool_versions(toolchain: Toolchain) -> None:
    """Print `--version` of rustc and cargo, framed by blank lines."""
    print()
    if toolchain.exists():
        for binary in VERSION_BINARIES:
            if toolchain.binary_file(binary).is_file():
                safe_print(query_version(toolchain, binary))
            else:
                print(f"(no {binary} command in toolchain?)")
    else:
        print("(toolchain not installed)")
    print()


def print_version_summary(versions: ToolVersions) -> None:
    """Print a version summary collected by update-all."""
    print()
    if versions.installed:
        safe_print(versions.rustc)
        safe_print(versions.cargo)
    else:
        print("(toolchain not installed)")
    print()


# ============================================================================
# Input
# ============================================================================


def read_line(prompt: str) -> Optional[str]:
    """
    Print a prompt and read one line from stdin.

    Returns:
        The line without its trailing newline, or None at end of input
    """
    print(prompt, end="", flush=True)
    line = sys.stdin.readline()
    if not line:
        return None
    return line.rstrip("\r\n")


def confirm(prompt: str) -> bool:
    """True only when the user answers exactly `y` or `Y`."""
    return read_line(prompt) in ("y", "Y")


# ============================================================================
# Argument Helpers
# ============================================================================


def install_options_from_args(args) -> InstallOptions:
    """Build InstallOptions from the shared --installer/--copy-local/--link-local flags."""
    return InstallOptions(
        installers=[Path(p) for p in (getattr(args, "installer", None) or [])],
        copy_local=Path(args.copy_local) if getattr(args, "copy_local", None) else None,
        link_local=Path(args.link_local) if getattr(args, "link_local", None) else None,
    )

