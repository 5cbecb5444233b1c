"""
Update command implementation.

`multirust update <toolchain>` installs or refreshes one toolchain;
`multirust update` with no toolchain refreshes every release channel.
"""

import logging

from multirustkit.cli.utils import (
    install_options_from_args,
    print_version_summary,
)

logger = logging.getLogger(__name__)


def run(args, cfg) -> int:
    """
    Run the update command.

    Args:
        args: Parsed command-line arguments with:
            - toolchain: Toolchain to update (all channels if omitted)
            - installer, copy_local, link_local: Explicit install sources
        cfg: Configuration root

    Returns:
        Exit code (0 for success)
    """
    if not args.toolchain:
        return _update_all_channels(cfg)

    toolchain = cfg.get_toolchain(args.toolchain)
    options = install_options_from_args(args)

    if options.has_explicit_source():
        toolchain.install(options)
    else:
        toolchain.install_from_dist()
    return 0


def _update_all_channels(cfg) -> int:
    report = cfg.update_all_channels()

    for result in report.results:
        outcome = "succeeded" if result.success else "FAILED"
        print(f"'{result.channel}' update {outcome}")

    for versions in report.versions:
        print(f"{versions.channel} revision:")
        print_version_summary(versions)

    return 0
