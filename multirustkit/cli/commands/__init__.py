"""
Management subcommand implementations.

Each module exposes `run(args, cfg) -> int` (or several `run_*` functions for
closely related subcommands) returning the process exit code.
"""
