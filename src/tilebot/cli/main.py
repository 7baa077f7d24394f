"""Main CLI entry point for tilebot."""

import sys
import argparse
import logging
from typing import List, Optional

from . import commands
from .utils import setup_logging


def create_parser() -> argparse.ArgumentParser:
    """Create the main argument parser."""
    parser = argparse.ArgumentParser(
        prog='tilebot',
        description='tilebot - read a grid puzzle off the screen and play its solution back',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  tilebot extract                                  # Read the board once
  tilebot extract --image board.png --json         # Read a saved screenshot
  tilebot run --solver-cmd "node solve.js"         # Solve and click, refreshing forever
  tilebot run --solution moves.json --dry-run      # Log clicks instead of sending them
  tilebot --set playback.auto_refresh=false run    # Stop after one solution
        """
    )

    # Global options
    parser.add_argument(
        '--config-dir',
        type=str,
        help='Configuration directory (default: conf/ at the project root)'
    )

    parser.add_argument(
        '--set',
        dest='overrides',
        action='append',
        default=[],
        metavar='KEY=VALUE',
        help='Configuration override, may be repeated (e.g., board.width=12)'
    )

    parser.add_argument(
        '--verbose', '-v',
        action='count',
        default=0,
        help='Increase verbosity (use -v or -vv)'
    )

    parser.add_argument(
        '--quiet', '-q',
        action='store_true',
        help='Suppress all output except results'
    )

    subparsers = parser.add_subparsers(
        dest='command',
        help='Available commands',
        metavar='COMMAND'
    )

    # Extract command
    extract_parser = subparsers.add_parser(
        'extract',
        help='Extract the board grid once',
        description='Capture the board, print the grid and cache it'
    )
    extract_parser.add_argument(
        '--image',
        type=str,
        help='Read the board from an image file instead of the screen'
    )
    extract_parser.add_argument(
        '--no-persist',
        action='store_true',
        help='Do not overwrite the cached snapshot'
    )
    extract_parser.add_argument(
        '--json',
        action='store_true',
        help='Print the grid as solver JSON'
    )
    extract_parser.add_argument(
        '--output', '-o',
        type=str,
        help='Also write the grid JSON to this file'
    )

    # Run command
    run_parser = subparsers.add_parser(
        'run',
        help='Solve the board and play the solution back',
        description='Extract, solve and click through the solution'
    )
    source = run_parser.add_mutually_exclusive_group()
    source.add_argument(
        '--solution',
        type=str,
        help='JSON file with a fixed solution ([[x, y], ...])'
    )
    source.add_argument(
        '--solver-cmd',
        type=str,
        help='External solver command (grid JSON on stdin, solution JSON on stdout)'
    )
    run_parser.add_argument(
        '--image',
        type=str,
        help='Read the board from an image file instead of the screen'
    )
    run_parser.add_argument(
        '--no-auto-refresh',
        action='store_true',
        help='Stop once the solution is exhausted'
    )
    run_parser.add_argument(
        '--dry-run',
        action='store_true',
        help='Log clicks instead of sending them'
    )

    # Snapshot command
    snapshot_parser = subparsers.add_parser(
        'snapshot',
        help='Inspect the cached board snapshot'
    )
    snapshot_subparsers = snapshot_parser.add_subparsers(
        dest='snapshot_action',
        help='Snapshot actions'
    )
    show_parser = snapshot_subparsers.add_parser('show', help='Print the cached grid')
    show_parser.add_argument('--json', action='store_true', help='Print as solver JSON')
    snapshot_subparsers.add_parser('clear', help='Delete the cached grid')

    # Config command
    config_parser = subparsers.add_parser(
        'config',
        help='Configuration management'
    )
    config_subparsers = config_parser.add_subparsers(
        dest='config_action',
        help='Configuration actions'
    )
    config_subparsers.add_parser('show', help='Show current configuration')
    config_subparsers.add_parser('validate', help='Validate configuration')

    return parser


_COMMANDS = {
    'extract': commands.extract_command,
    'run': commands.run_command,
    'snapshot': commands.snapshot_command,
    'config': commands.config_command,
}


def _log_level(parsed_args: argparse.Namespace) -> int:
    if parsed_args.quiet:
        return logging.ERROR
    return {0: logging.WARNING, 1: logging.INFO}.get(parsed_args.verbose, logging.DEBUG)


def main_cli(args: Optional[List[str]] = None) -> int:
    """Parse ``args`` (default ``sys.argv``) and run the chosen command.

    Returns the process exit code: 0 on success, 1 on failure, 130 when
    interrupted.
    """
    parser = create_parser()
    parsed_args = parser.parse_args(args)

    setup_logging(_log_level(parsed_args))
    logger = logging.getLogger(__name__)

    if parsed_args.command is None:
        parser.print_help()
        return 1
    if parsed_args.command == 'snapshot' and not parsed_args.snapshot_action:
        parsed_args.snapshot_action = 'show'

    try:
        return _COMMANDS[parsed_args.command](parsed_args)
    except KeyboardInterrupt:
        logger.info("Stopped by Ctrl-C")
        return 130
    except Exception as e:
        logger.error(f"{parsed_args.command} failed: {e}")
        return 1


def main() -> None:
    sys.exit(main_cli())


if __name__ == '__main__':
    main()
