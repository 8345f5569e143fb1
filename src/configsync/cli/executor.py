#!/usr/bin/env python3
"""
configsync Command Executor Module

Sets up logging and dispatches the selected command.
"""

from argparse import Namespace

from ..__version__ import get_version_banner
from ..logger import setup_logging
from . import sync_commands


def execute_command(args: Namespace) -> int:
    """
    Execute the appropriate command based on parsed arguments

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    if args.version:
        print(get_version_banner())
        return 0

    log_level = 'DEBUG' if args.debug else args.log_level
    setup_logging(console=True, log_file=args.log_file, log_level=log_level)

    if args.run:
        return 0 if sync_commands.run(args) else 1

    elif args.push:
        return 0 if sync_commands.push_once(args) else 1

    elif args.pull:
        return 0 if sync_commands.pull_once(args) else 1

    elif args.show:
        return 0 if sync_commands.show_config(args) else 1

    elif args.stats:
        return 0 if sync_commands.show_stats(args) else 1

    print("No command specified")
    return 1
