"""
Which command implementation.
"""

from multirustkit.cli.utils import safe_print
from multirustkit.core.directory import current_dir


def run(args, cfg) -> int:
    """Print the full path of a binary in the toolchain for the current directory."""
    safe_print(str(cfg.which_binary(current_dir(), args.binary)))
    return 0
