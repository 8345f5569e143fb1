#!/usr/bin/env python3
"""
configsync CLI Module

Provides command-line interface functionality organized by concern:
- parser: Argument parsing setup
- validation: Input validation
- sync_commands: Run, push, pull, show and stats commands
- executor: Command dispatch
"""

__all__ = [
    'create_argument_parser',
    'execute_command',
    'InputValidator',
]

from .parser import create_argument_parser
from .validation import InputValidator
from .executor import execute_command
