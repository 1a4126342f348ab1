"""CLI argument parsing and main entry point."""

from __future__ import annotations

import argparse
import sys
from importlib.metadata import version as get_version
from pathlib import Path
from typing import TextIO

from rich.console import Console
from rich.prompt import Confirm
from rich.table import Table as RichTable

from .config import SplitConfig, load_config
from .splitter.reaper import ConfirmCallback
from .splitter.service import SplitResult, SplitService
from .splitter.source import open_dump
from .utils.exceptions import DumpSliceError
from .utils.logging_config import get_logger, setup_logging

logger = get_logger(__name__)

TERMINAL = "/dev/tty"


def confirm_deletion(
    directory: Path, console: Console | None = None, stream: TextIO | None = None
) -> bool:
    """
    Ask whether stale files in the output directory may be deleted.

    End of input counts as a decline.

    Args:
        directory: Output directory holding the stale files
        console: Console the question is printed on
        stream: Where the answer is read from (default: stdin)
    """
    console = console or Console(stderr=True)
    try:
        return Confirm.ask(
            f"Stale files in {directory} will be deleted, ok to continue?",
            console=console,
            default=False,
            stream=stream,
        )
    except EOFError:
        return False


def build_confirm(reading_stdin: bool, console: Console) -> ConfirmCallback:
    """
    Create the confirmation callback for this invocation.

    When the dump itself arrives on a piped stdin the answer is read from
    the controlling terminal. Without one the run is declined with a hint
    to use --force.
    """

    def confirm(directory: Path) -> bool:
        if not reading_stdin or sys.stdin.isatty():
            return confirm_deletion(directory, console)
        try:
            with open(TERMINAL, encoding="utf-8") as terminal:
                return confirm_deletion(directory, console, terminal)
        except OSError:
            logger.debug(f"No terminal available at {TERMINAL}")
        console.print(
            f"[yellow]Cannot confirm deletion in {directory} while reading "
            "the dump from stdin; use --force[/yellow]"
        )
        return False

    return confirm


def print_summary(result: SplitResult, console: Console) -> None:
    """Print manifest entries and per-run counters."""
    for target in result.manifest_entries:
        console.print(f"{result.directory.name}/{target.filename}", markup=False)

    table = RichTable(title="Split summary")
    table.add_column("Item", style="cyan")
    table.add_column("Count", justify="right")
    table.add_row("Tables", str(len(result.tables)))
    table.add_row("Files referenced", str(len(result.manifest_entries)))
    table.add_row("Stale files deleted", str(len(result.deleted_files)))
    table.add_row("Lines read", f"{result.stats.lines_read:,}")
    table.add_row("Lines dropped", f"{result.stats.lines_dropped:,}")
    console.print(table)


def apply_args(config: SplitConfig, args: argparse.Namespace) -> SplitConfig:
    """Override configuration values with command line arguments."""
    if args.output:
        config.output = Path(args.output)
    if args.database:
        config.database = args.database
    if args.base_dir:
        config.base_dir = Path(args.base_dir)
    if args.table:
        config.table_filter = args.table
    if args.preamble is not None:
        config.preamble = args.preamble
    if args.chunk_size is not None:
        config.chunk_size = args.chunk_size
    if args.force:
        config.force = True
    if args.structure_only:
        config.structure_only = True
    if args.verbose:
        config.verbose = True
    if args.log_level:
        config.log_level = args.log_level

    # Re-run validation on the overridden values
    return SplitConfig(**vars(config))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Split a mysqldump file into separate files by table name",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Each table is split into:
  $table.sql                   Table creation
  $table.data.sql              Table data (further $table.NNNNNNNNNN.data.sql chunks)
  $table.aux.N.sql             Triggers associated with the table

Examples:
  # Split a dump, asking before stale files are deleted
  %(prog)s -d shop dump.sql

  # Read from stdin, refresh structure only, keep existing data files
  mysqldump -d shop | %(prog)s -d shop -s -f

  # Refresh one table's files
  %(prog)s -d shop -t orders -f dump.sql
        """,
    )

    parser.add_argument(
        "input",
        nargs="?",
        help="mysqldump file; read from stdin if not given (.gz is decompressed)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Verbose output",
    )
    parser.add_argument(
        "-o",
        "--output",
        help="Main file where tables will be sourced (default: database.sql)",
    )
    parser.add_argument(
        "-d",
        "--database",
        help="Database name, the output directory is <name>_tables (default: database_name)",
    )
    parser.add_argument(
        "--base-dir",
        help="Directory in which <name>_tables is created (default: current directory)",
    )
    parser.add_argument(
        "-f",
        "--force",
        action="store_true",
        help="Delete stale files without asking for confirmation",
    )
    parser.add_argument(
        "-s",
        "--structure-only",
        action="store_true",
        help="Dump the table structure only, leave *.data.sql intact",
    )
    parser.add_argument(
        "-t",
        "--table",
        help="Only consider files of the given table for deletion",
    )
    parser.add_argument(
        "-c",
        "--preamble",
        help="Insert text at the top of the main file",
    )
    parser.add_argument(
        "--chunk-size",
        type=int,
        help="INSERT statements per data file (default: 10000)",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Log level (default: WARNING, INFO with --verbose)",
    )

    try:
        pkg_version = get_version("dumpslice")
    except Exception:
        # Fallback for development or if package not installed
        pkg_version = "development"

    parser.add_argument(
        "--version",
        action="version",
        version=f"dumpslice {pkg_version}",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """
    Main entry point for dumpslice CLI.

    Returns:
        Exit code (0 for success or declined confirmation, non-zero for error)
    """
    args = build_parser().parse_args(argv)

    # Setup logging
    cli_level = args.log_level or ("INFO" if args.verbose else None)
    setup_logging(cli_level or "WARNING")
    console = Console(stderr=True)

    try:
        config = apply_args(load_config(), args)
        if cli_level is None and config.log_level.upper() != "WARNING":
            setup_logging(config.log_level)
        service = SplitService(
            config, confirm=build_confirm(args.input in (None, "-"), console)
        )

        with open_dump(args.input) as lines:
            result = service.split(lines)

        if result.aborted:
            console.print("Aborting ...")
            return 0

        if config.verbose:
            print_summary(result, console)
            console.print(
                f"File '{result.manifest_path}' and directory "
                f"'{result.directory}' updated.",
                markup=False,
            )
        return 0

    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130

    except DumpSliceError as e:
        logger.error(f"Application error: {e}")
        sys.stderr.write(f"Error: {e}\n")
        return 1

    except Exception as e:
        logger.exception("Unexpected error")
        sys.stderr.write(f"Unexpected error: {e}\n")
        return 1


if __name__ == "__main__":
    sys.exit(main())
