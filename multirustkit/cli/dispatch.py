"""
Command dispatcher.

Every console script installed by multirustkit points at `main()`. The name
the process was started under selects the mode through ENTRY_POINTS:

    multirust, multirust-rs, multirustkit   -> management subcommands
    rustc, rustdoc, cargo, rust-lldb, rust-gdb -> proxy to the active toolchain

`multirust run <binary> [args...]` is also a proxy call, unless the binary
token starts with `-`. Any other name fails with UnknownBinary without
starting a child process.

This is the only place where errors become exit codes: a MultirustError is
printed as `error: <message>` on stdout and the process exits with 1; a
proxied child's exit code is passed through unchanged.
"""

import logging
import sys
from dataclasses import dataclass, field
from enum import Enum
from pathlib import PurePath
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from multirustkit.cli.parser import CLI, configure_logging
from multirustkit.config.root import Cfg
from multirustkit.core.directory import current_dir
from multirustkit.core.exceptions import MultirustError, UnknownBinary
from multirustkit.core.notifications import LoggingNotifyHandler, Notifier
from multirustkit.toolchain.proxy import run_command

logger = logging.getLogger(__name__)


class InvocationMode(Enum):
    MANAGER = "manager"
    PROXY = "proxy"


MANAGER_NAMES = ("multirust", "multirust-rs", "multirustkit")
PROXY_NAMES = ("rustc", "rustdoc", "cargo", "rust-lldb", "rust-gdb")

ENTRY_POINTS: Dict[str, InvocationMode] = {
    **{name: InvocationMode.MANAGER for name in MANAGER_NAMES},
    **{name: InvocationMode.PROXY for name in PROXY_NAMES},
}

RUN_SUBCOMMAND = "run"


@dataclass(frozen=True)
class Invocation:
    """
    A classified process invocation.

    Attributes:
        mode: Manager or proxy
        binary: Program to proxy, or the manager name in manager mode
        args: Remaining arguments, forwarded verbatim in proxy mode
    """

    mode: InvocationMode
    binary: str
    args: Tuple[str, ...] = field(default_factory=tuple)


def invocation_name(arg0: str) -> str:
    """
    Reduce argv[0] to the name used for dispatch.

    Example:
        >>> invocation_name("/home/me/.cargo/bin/cargo.exe")
        'cargo'
    """
    name = PurePath(arg0).name
    if name.lower().endswith(".exe"):
        name = name[: -len(".exe")]
    return name


def classify(argv: Sequence[str]) -> Invocation:
    """
    Decide whether argv is a management call or a proxy call.

    Raises:
        UnknownBinary: If argv[0] is not a known entry point
    """
    if not argv:
        raise UnknownBinary("")

    name = invocation_name(argv[0])
    mode = ENTRY_POINTS.get(name)
    if mode is None:
        raise UnknownBinary(name)

    rest = tuple(argv[1:])
    if mode is InvocationMode.PROXY:
        return Invocation(InvocationMode.PROXY, name, rest)

    if len(rest) >= 2 and rest[0] == RUN_SUBCOMMAND and not rest[1].startswith("-"):
        return Invocation(InvocationMode.PROXY, rest[1], rest[2:])

    return Invocation(InvocationMode.MANAGER, name, rest)


def run_proxy(invocation: Invocation, environ: Optional[Mapping[str, str]] = None) -> int:
    """Run the proxied binary from the toolchain resolved for the current directory."""
    cfg = Cfg.from_env(Notifier(LoggingNotifyHandler()), environ=environ)
    command = cfg.create_command_for_dir(current_dir(), invocation.binary, invocation.args)
    return run_command(command)


def run(argv: Optional[List[str]] = None, environ: Optional[Mapping[str, str]] = None) -> int:
    """
    Classify and execute one invocation, returning the exit code.

    Args:
        argv: Full argument vector including argv[0] (defaults to sys.argv)
        environ: Environment used to locate state (defaults to os.environ)
    """
    argv = sys.argv if argv is None else argv

    try:
        invocation = classify(argv)
        if invocation.mode is InvocationMode.PROXY:
            configure_logging(verbose=False)
            return run_proxy(invocation, environ)
        cli = CLI(prog=invocation.binary, environ=environ)
        return cli.run(list(invocation.args))
    except MultirustError as e:
        logger.debug("Command failed", exc_info=True)
        print(f"error: {e}")
        return 1
    except KeyboardInterrupt:
        return 130  # Standard exit code for SIGINT


def main(argv: Optional[List[str]] = None):
    """Console script entry point."""
    sys.exit(run(argv))


__all__ = [
    "ENTRY_POINTS",
    "MANAGER_NAMES",
    "PROXY_NAMES",
    "InvocationMode",
    "Invocation",
    "invocation_name",
    "classify",
    "run_proxy",
    "run",
    "main",
]
