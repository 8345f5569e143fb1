#!/usr/bin/env python3
"""
configsync - Main Module

Entry point for the configsync command. Command implementations live
in the cli/ subdirectory:

    - cli/parser.py: Argument parsing setup
    - cli/validation.py: Input validation
    - cli/sync_commands.py: Run, push, pull, show and stats commands
    - cli/executor.py: Command orchestration
"""

import sys
import argparse
from typing import List, Optional

from .cli import create_argument_parser, execute_command


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point

    Args:
        argv: Arguments to parse instead of sys.argv[1:]

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    try:
        parser = create_argument_parser()

        try:
            args = parser.parse_args(argv)
        except argparse.ArgumentTypeError as e:
            print(f"Argument validation error: {e}")
            return 1

        return execute_command(args)

    except KeyboardInterrupt:
        print("\nOperation cancelled by user")
        return 1
    except Exception as e:
        print(f"Unexpected error: {e}")
        import traceback
        traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
