"""
Default command implementation.

Installs the toolchain when needed and makes it the global default.
"""

import logging

from multirustkit.cli.utils import install_options_from_args

logger = logging.getLogger(__name__)


def install_selected(toolchain, args) -> None:
    """Install from the explicit source if one was given, else from dist when missing."""
    options = install_options_from_args(args)
    if options.has_explicit_source():
        toolchain.install(options)
    else:
        toolchain.install_from_dist_if_not_installed()


def run(args, cfg) -> int:
    """
    Run the default command.

    Args:
        args: Parsed command-line arguments with:
            - toolchain: Toolchain to make the default
            - installer, copy_local, link_local: Explicit install sources
        cfg: Configuration root

    Returns:
        Exit code (0 for success)
    """
    toolchain = cfg.get_toolchain(args.toolchain)
    install_selected(toolchain, args)
    toolchain.make_default()
    return 0
