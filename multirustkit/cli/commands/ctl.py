"""
Ctl command implementation.

Machine-readable queries used by scripts and editor integrations.
"""

from multirustkit.cli.utils import safe_print
from multirustkit.core.directory import current_dir
from multirustkit.core.exceptions import NoDefaultToolchain


def run(args, cfg) -> int:
    """
    Run a ctl query.

    Args:
        args: Parsed command-line arguments with:
            - ctl_command: home | override-toolchain | default-toolchain | toolchain-sysroot
            - toolchain: Toolchain name (toolchain-sysroot only)
        cfg: Configuration root

    Returns:
        Exit code (0 for success)
    """
    command = args.ctl_command

    if command == "home":
        safe_print(str(cfg.home))
    elif command == "override-toolchain":
        toolchain, _, _ = cfg.toolchain_for_dir(current_dir())
        safe_print(toolchain.name)
    elif command == "default-toolchain":
        toolchain = cfg.find_default()
        if toolchain is None:
            raise NoDefaultToolchain()
        safe_print(toolchain.name)
    elif command == "toolchain-sysroot":
        safe_print(str(cfg.get_toolchain(args.toolchain).prefix))
    return 0
