"""Command-line interface for tilebot.

This module provides CLI commands for extracting the board and playing
solutions back.
"""

from .main import main_cli
from .commands import extract_command, run_command, snapshot_command, config_command
from .utils import setup_logging, format_grid

__all__ = [
    'main_cli',
    'extract_command',
    'run_command',
    'snapshot_command',
    'config_command',
    'setup_logging',
    'format_grid'
]
