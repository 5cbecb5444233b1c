"""
upgrade-data and delete-data command implementations.

Both run without the metadata version check.
"""

import logging

from multirustkit.cli.utils import confirm

logger = logging.getLogger(__name__)

DELETE_PROMPT = (
    "This will delete all toolchains, overrides, aliases, and other multirust "
    "data associated with this user. Continue? (y/n) "
)


def run_upgrade_data(args, cfg) -> int:
    cfg.upgrade_data()
    return 0


def run_delete_data(args, cfg) -> int:
    """
    Delete every piece of multirust state.

    Unless `--no-prompt` is given, one line is read from stdin and only `y`
    or `Y` proceeds. Anything else, including end of input, aborts.
    """
    if not args.no_prompt and not confirm(DELETE_PROMPT):
        print("aborting")
        return 0

    cfg.delete_data()
    return 0
