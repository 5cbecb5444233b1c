"""
Override command implementation.

Installs the toolchain when needed and pins it to the current directory.
"""

import logging

from multirustkit.cli.commands.default import install_selected
from multirustkit.core.directory import current_dir

logger = logging.getLogger(__name__)


def run(args, cfg) -> int:
    """Run the override command."""
    directory = current_dir()
    toolchain = cfg.get_toolchain(args.toolchain)
    install_selected(toolchain, args)
    toolchain.make_override(directory)
    return 0
