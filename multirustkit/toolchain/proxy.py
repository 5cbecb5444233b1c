"""
Proxy execution engine.

Runs a binary from a resolved toolchain as a child process. The toolchain's
library directory is prepended to the platform's shared-library search path
in a copy of the environment handed to the child; the parent's `os.environ`
is never touched. Standard streams are inherited, arguments are forwarded
verbatim, and the child's exit code becomes the caller's exit code.
"""

import logging
import os
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Dict, List, Mapping, Optional, Sequence

from multirustkit.core.exceptions import (
    BinaryNotFound,
    ProxySpawnFailure,
    ToolchainNotInstalled,
)
from multirustkit.core.platform import detect_platform

if TYPE_CHECKING:
    from multirustkit.toolchain.toolchain import Toolchain

logger = logging.getLogger(__name__)

UNKNOWN_VERSION = "unknown"


def library_path_var() -> str:
    """Environment variable holding the shared-library search path on this host."""
    return detect_platform().library_path_var()


def build_env(
    lib_dir: Path, base_env: Optional[Mapping[str, str]] = None
) -> Dict[str, str]:
    """
    Return a copy of `base_env` with `lib_dir` prepended to the library path.

    Args:
        lib_dir: Toolchain library directory
        base_env: Environment to start from (defaults to os.environ)

    Example:
        >>> env = build_env(Path("/home/me/.multirust/toolchains/nightly/lib"), {})
        >>> env["LD_LIBRARY_PATH"]
        '/home/me/.multirust/toolchains/nightly/lib'
    """
    env = dict(os.environ if base_env is None else base_env)
    var = library_path_var()
    existing = env.get(var)
    if existing:
        env[var] = f"{lib_dir}{os.pathsep}{existing}"
    else:
        env[var] = str(lib_dir)
    return env


@dataclass
class ProxyCommand:
    """A fully prepared child invocation."""

    binary_path: Path
    args: List[str] = field(default_factory=list)
    env: Dict[str, str] = field(default_factory=dict)

    def argv(self) -> List[str]:
        return [str(self.binary_path), *self.args]


def create_command(
    toolchain: "Toolchain",
    binary: str,
    args: Sequence[str] = (),
    base_env: Optional[Mapping[str, str]] = None,
) -> ProxyCommand:
    """
    Prepare a command running `binary` from `toolchain`.

    Raises:
        ToolchainNotInstalled: If the toolchain prefix does not exist
        BinaryNotFound: If the binary is not a file inside the prefix
    """
    if not toolchain.exists():
        raise ToolchainNotInstalled(toolchain.name)

    binary_path = toolchain.binary_file(binary)
    if not binary_path.is_file():
        raise BinaryNotFound(toolchain.name, binary, binary_path)

    return ProxyCommand(
        binary_path=binary_path,
        args=list(args),
        env=toolchain.ld_path_env(base_env),
    )


def run_command(command: ProxyCommand) -> int:
    """
    Run the command with inherited stdio and return its exit code.

    A child killed by a signal (negative return code) reports 1.

    Raises:
        ProxySpawnFailure: If the child process cannot be started
    """
    logger.debug(f"Running {command.binary_path} with {len(command.args)} argument(s)")

    try:
        result = subprocess.run(command.argv(), env=command.env, check=False)
    except OSError as e:
        raise ProxySpawnFailure(command.binary_path.name, str(e)) from e

    code = result.returncode
    if code is None or code < 0:
        logger.debug(f"Child exited abnormally ({code}); reporting 1")
        return 1
    return code


def query_version(toolchain: "Toolchain", binary: str, timeout: int = 30) -> str:
    """
    Return the first line of `<binary> --version`, or "unknown".

    Best effort: any failure (missing toolchain, missing binary, spawn error,
    non-zero exit) yields "unknown".
    """
    try:
        command = create_command(toolchain, binary, ["--version"])
    except (ToolchainNotInstalled, BinaryNotFound) as e:
        logger.debug(f"Version query skipped: {e}")
        return UNKNOWN_VERSION

    try:
        result = subprocess.run(
            command.argv(),
            env=command.env,
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False,
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.debug(f"Version query for {binary} failed: {e}")
        return UNKNOWN_VERSION

    output = result.stdout.strip()
    if result.returncode != 0 or not output:
        return UNKNOWN_VERSION
    return output.splitlines()[0]


__all__ = [
    "UNKNOWN_VERSION",
    "library_path_var",
    "build_env",
    "ProxyCommand",
    "create_command",
    "run_command",
    "query_version",
]
