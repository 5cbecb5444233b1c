"""
multirust CLI argument parser.

This module implements the management command-line interface using argparse.
Errors raised by commands propagate to the dispatcher in
`multirustkit.cli.dispatch`, which prints them and sets the exit code.
"""

import argparse
import importlib
import logging
from pathlib import Path
from typing import List, Mapping, Optional

from multirustkit.config.root import Cfg
from multirustkit.core.notifications import LoggingNotifyHandler, Notifier

# Get version from package
try:
    from importlib.metadata import PackageNotFoundError, version

    __version__ = version("multirustkit")
except PackageNotFoundError:
    __version__ = "0.1.0"

logger = logging.getLogger(__name__)

# Subcommands that must work on stale or unreadable metadata
METADATA_BYPASS_COMMANDS = frozenset({"upgrade-data", "delete-data"})

# Command name -> (module, function)
COMMAND_MAP = {
    "update": ("multirustkit.cli.commands.update", "run"),
    "default": ("multirustkit.cli.commands.default", "run"),
    "override": ("multirustkit.cli.commands.override", "run"),
    "show-default": ("multirustkit.cli.commands.show", "run_show_default"),
    "show-override": ("multirustkit.cli.commands.show", "run_show_override"),
    "list-overrides": ("multirustkit.cli.commands.lists", "run_list_overrides"),
    "list-toolchains": ("multirustkit.cli.commands.lists", "run_list_toolchains"),
    "remove-override": ("multirustkit.cli.commands.remove", "run_remove_override"),
    "remove-toolchain": ("multirustkit.cli.commands.remove", "run_remove_toolchain"),
    "upgrade-data": ("multirustkit.cli.commands.data", "run_upgrade_data"),
    "delete-data": ("multirustkit.cli.commands.data", "run_delete_data"),
    "which": ("multirustkit.cli.commands.which", "run"),
    "doc": ("multirustkit.cli.commands.doc", "run"),
    "ctl": ("multirustkit.cli.commands.ctl", "run"),
    "run": ("multirustkit.cli.commands.run", "run"),
}


def configure_logging(verbose: bool = False) -> None:
    """
    Configure logging for one invocation.

    Args:
        verbose: DEBUG level with logger names instead of bare INFO messages
    """
    if verbose:
        level = logging.DEBUG
        format_str = "%(levelname)s [%(name)s] %(message)s"
    else:
        level = logging.INFO
        format_str = "%(message)s"

    logging.basicConfig(
        level=level,
        format=format_str,
        force=True,  # Reconfigure if already configured
    )


class CLI:
    """multirust management command-line interface."""

    def __init__(self, prog: str = "multirust", environ: Optional[Mapping[str, str]] = None):
        """
        Initialize CLI with argument parser.

        Args:
            prog: Program name shown in usage messages
            environ: Environment used to locate the home directory
        """
        self.prog = prog
        self.environ = environ
        self.parser = self._create_parser()

    def _create_parser(self) -> argparse.ArgumentParser:
        """
        Create argument parser with all subcommands.

        Returns:
            Configured ArgumentParser instance
        """
        parser = argparse.ArgumentParser(
            prog=self.prog,
            description="multirust - manage multiple Rust toolchains",
            epilog=f'Use "{self.prog} COMMAND --help" for command-specific help',
            formatter_class=argparse.RawDescriptionHelpFormatter,
        )

        # Global options
        parser.add_argument(
            "--version", action="version", version=f"multirustkit {__version__}"
        )
        parser.add_argument(
            "--verbose", "-v", action="store_true", help="Enable verbose output"
        )

        # Subcommands
        subparsers = parser.add_subparsers(
            dest="command", help="Available commands", metavar="COMMAND"
        )

        self._add_update_command(subparsers)
        self._add_default_command(subparsers)
        self._add_override_command(subparsers)
        self._add_show_commands(subparsers)
        self._add_list_commands(subparsers)
        self._add_remove_commands(subparsers)
        self._add_data_commands(subparsers)
        self._add_which_command(subparsers)
        self._add_doc_command(subparsers)
        self._add_ctl_command(subparsers)
        self._add_run_command(subparsers)

        return parser

    @staticmethod
    def _add_install_source_args(parser):
        """Add the --installer/--copy-local/--link-local flags."""
        parser.add_argument(
            "--installer",
            action="append",
            type=Path,
            metavar="PATH",
            help="Install from a local installer package (may be repeated)",
        )
        parser.add_argument(
            "--copy-local",
            type=Path,
            metavar="DIR",
            help="Install by copying a local toolchain directory",
        )
        parser.add_argument(
            "--link-local",
            type=Path,
            metavar="DIR",
            help="Install by linking to a local toolchain directory",
        )

    def _add_update_command(self, subparsers):
        """Add 'update' subcommand."""
        parser = subparsers.add_parser(
            "update",
            help="Install or update a toolchain",
            description=(
                "Install or update a toolchain. Without a toolchain name, "
                "update the stable, beta and nightly channels."
            ),
        )
        parser.add_argument("toolchain", nargs="?", help="Toolchain to update")
        self._add_install_source_args(parser)

    def _add_default_command(self, subparsers):
        """Add 'default' subcommand."""
        parser = subparsers.add_parser(
            "default",
            help="Set the default toolchain",
            description="Install the toolchain if needed and make it the default",
        )
        parser.add_argument("toolchain", help="Toolchain name")
        self._add_install_source_args(parser)

    def _add_override_command(self, subparsers):
        """Add 'override' subcommand."""
        parser = subparsers.add_parser(
            "override",
            help="Set the toolchain override for the current directory",
            description=(
                "Install the toolchain if needed and use it for the current "
                "directory and everything below it"
            ),
        )
        parser.add_argument("toolchain", help="Toolchain name")
        self._add_install_source_args(parser)

    def _add_show_commands(self, subparsers):
        subparsers.add_parser("show-default", help="Show the default toolchain")
        subparsers.add_parser(
            "show-override", help="Show the override for the current directory"
        )

    def _add_list_commands(self, subparsers):
        subparsers.add_parser("list-overrides", help="List all overrides")
        subparsers.add_parser("list-toolchains", help="List installed toolchains")

    def _add_remove_commands(self, subparsers):
        parser = subparsers.add_parser(
            "remove-override",
            help="Remove the override for a directory",
            description="Remove the override for the current directory or --override PATH",
        )
        parser.add_argument(
            "--override",
            type=Path,
            metavar="PATH",
            help="Directory whose override is removed (default: current directory)",
        )

        parser = subparsers.add_parser(
            "remove-toolchain", help="Uninstall a toolchain"
        )
        parser.add_argument("toolchain", help="Toolchain name")

    def _add_data_commands(self, subparsers):
        subparsers.add_parser(
            "upgrade-data", help="Upgrade the on-disk metadata to the current version"
        )
        parser = subparsers.add_parser(
            "delete-data", help="Delete all multirust data for this user"
        )
        parser.add_argument(
            "--no-prompt",
            "-y",
            action="store_true",
            help="Do not ask for confirmation",
        )

    def _add_which_command(self, subparsers):
        parser = subparsers.add_parser(
            "which", help="Show the path of a binary in the active toolchain"
        )
        parser.add_argument("binary", help="Binary name (e.g. rustc)")

    def _add_doc_command(self, subparsers):
        parser = subparsers.add_parser(
            "doc", help="Open the documentation of the active toolchain"
        )
        parser.add_argument(
            "--all",
            action="store_true",
            help="Open the documentation index instead of the standard library",
        )

    def _add_ctl_command(self, subparsers):
        parser = subparsers.add_parser(
            "ctl", help="Query multirust state (for scripts)"
        )
        ctl_subparsers = parser.add_subparsers(
            dest="ctl_command", metavar="QUERY", required=True
        )
        ctl_subparsers.add_parser("home", help="Print the multirust home directory")
        ctl_subparsers.add_parser(
            "override-toolchain",
            help="Print the toolchain for the current directory",
        )
        ctl_subparsers.add_parser(
            "default-toolchain", help="Print the default toolchain"
        )
        sysroot = ctl_subparsers.add_parser(
            "toolchain-sysroot", help="Print the prefix of a toolchain"
        )
        sysroot.add_argument("toolchain", help="Toolchain name")

    def _add_run_command(self, subparsers):
        parser = subparsers.add_parser(
            "run",
            help="Run a binary from the active toolchain",
            description=f"{self.prog} run <binary> [args...]",
        )
        parser.add_argument("binary", help="Binary to run")
        parser.add_argument(
            "args", nargs=argparse.REMAINDER, help="Arguments passed to the binary"
        )

    def parse_args(self, args: Optional[List[str]] = None):
        """
        Parse command-line arguments.

        Args:
            args: Arguments to parse (uses sys.argv if None)

        Returns:
            Parsed arguments namespace
        """
        return self.parser.parse_args(args)

    def create_cfg(self, verbose: bool) -> Cfg:
        notifier = Notifier(LoggingNotifyHandler(verbose=verbose))
        return Cfg.from_env(notifier, environ=self.environ)

    def run(self, args: Optional[List[str]] = None, cfg: Optional[Cfg] = None) -> int:
        """
        Run CLI with given arguments.

        Args:
            args: Arguments to parse (uses sys.argv if None)
            cfg: Configuration root (built from the environment if None)

        Returns:
            Exit code (0 for success, non-zero for error)

        Raises:
            MultirustError: Any command failure, for the dispatcher to report
        """
        parsed_args = self.parse_args(args)

        # Configure logging
        configure_logging(parsed_args.verbose)

        # Check if command specified
        if not parsed_args.command:
            self.parser.print_help()
            return 1

        if cfg is None:
            cfg = self.create_cfg(parsed_args.verbose)

        if parsed_args.command not in METADATA_BYPASS_COMMANDS:
            cfg.check_metadata_version()

        try:
            return self._dispatch_command(parsed_args, cfg)
        except KeyboardInterrupt:
            logger.info("Operation cancelled by user")
            return 130  # Standard exit code for SIGINT

    def _dispatch_command(self, args, cfg: Cfg) -> int:
        """
        Dispatch to appropriate command handler.

        Args:
            args: Parsed arguments with command field
            cfg: Configuration root

        Returns:
            Exit code from command handler
        """
        target = COMMAND_MAP.get(args.command)
        if not target:
            logger.error(f"Unknown command: {args.command}")
            return 1

        module_name, function_name = target
        module = importlib.import_module(module_name)
        handler = getattr(module, function_name)

        logger.debug(f"Dispatching '{args.command}' to {module_name}.{function_name}")
        return handler(args, cfg)


__all__ = ["CLI", "COMMAND_MAP", "METADATA_BYPASS_COMMANDS", "configure_logging"]
