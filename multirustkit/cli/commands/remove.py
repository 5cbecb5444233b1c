"""
remove-override and remove-toolchain command implementations.
"""

import logging

logger = logging.getLogger(__name__)


def run_remove_override(args, cfg) -> int:
    """
    Remove the override for `--override PATH`, or for the current directory.

    Removing a path that has no override is not an error.
    """
    if args.override:
        cfg.override_db.remove(args.override)
    else:
        cfg.override_db.remove_current_directory()
    return 0


def run_remove_toolchain(args, cfg) -> int:
    cfg.get_toolchain(args.toolchain).remove()
    return 0
