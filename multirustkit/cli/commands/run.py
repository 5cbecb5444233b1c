"""
Run command implementation.

`multirust run <binary> [args...]` is normally intercepted by the dispatcher
before argument parsing; this handles the same request when it reaches the
subcommand parser.
"""

from multirustkit.core.directory import current_dir
from multirustkit.toolchain.proxy import run_command


def run(args, cfg) -> int:
    command = cfg.create_command_for_dir(current_dir(), args.binary, args.args)
    return run_command(command)
