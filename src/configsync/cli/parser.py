#!/usr/bin/env python3
"""
configsync Argument Parser Module

Sets up command-line argument parsing with validation.
"""

import argparse

from ..core.constants import DEFAULT_LISTEN_HOST
from .validation import InputValidator

DEFAULT_CONFIG_FILE = "config.ini"


def create_argument_parser() -> argparse.ArgumentParser:
    """
    Create and configure the argument parser with all configsync commands

    Returns:
        Configured ArgumentParser instance
    """
    parser = argparse.ArgumentParser(
        prog="configsync",
        description="configsync - Peer-to-peer configuration synchronization",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run the sync service with the interactive console
  configsync --run --config config.ini

  # Run without console, pushing every 30 seconds
  configsync --run --no-console --auto-push 30

  # Push once to a specific peer
  configsync --push --peer-host 192.168.4.10 --peer-port 12347

  # Fetch the peer's configuration into a new file
  configsync --pull --output peer.ini
        """
    )

    # Validation type converters
    def validated_host(value):
        result = InputValidator.validate_host(value)
        if result is None:
            raise argparse.ArgumentTypeError(f"Invalid host: {value}")
        return result

    def validated_port(value):
        result = InputValidator.validate_port(value)
        if result is None:
            raise argparse.ArgumentTypeError(f"Invalid port: {value}")
        return result

    def validated_listen_port(value):
        result = InputValidator.validate_port(value, allow_zero=True)
        if result is None:
            raise argparse.ArgumentTypeError(f"Invalid port: {value}")
        return result

    def validated_seconds(value):
        result = InputValidator.validate_positive_float(value)
        if result is None:
            raise argparse.ArgumentTypeError(f"Invalid number of seconds: {value}")
        return result

    def validated_workers(value):
        result = InputValidator.validate_workers(value)
        if result is None:
            raise argparse.ArgumentTypeError(f"Invalid worker count: {value} (1-64)")
        return result

    # Command group
    group = parser.add_mutually_exclusive_group(required=True)

    group.add_argument('--run', action='store_true',
                      help='Run the sync service (listener, startup push, console)')
    group.add_argument('--push', action='store_true',
                      help='Push the configuration file to the peer once and exit')
    group.add_argument('--pull', action='store_true',
                      help="Request the peer's configuration once and exit")
    group.add_argument('--show', action='store_true',
                      help='Show the configuration file contents')
    group.add_argument('--stats', action='store_true',
                      help='Show configuration statistics')
    group.add_argument('--version', action='store_true',
                      help='Show version information')

    # Configuration file
    parser.add_argument('--config', '-c', type=str, default=DEFAULT_CONFIG_FILE,
                       help=f'Configuration file (default: {DEFAULT_CONFIG_FILE})')

    # Peer and listener addresses
    parser.add_argument('--peer-host', type=validated_host,
                       help='Peer host (default: [CONFIG_SYNC] PEER_HOST from the file)')
    parser.add_argument('--peer-port', type=validated_port,
                       help='Peer port (default: [CONFIG_SYNC] PEER_PORT from the file)')
    parser.add_argument('--listen-host', type=validated_host, default=DEFAULT_LISTEN_HOST,
                       help=f'Address to listen on (default: {DEFAULT_LISTEN_HOST})')
    parser.add_argument('--listen-port', type=validated_listen_port,
                       help='Port to listen on (default: [CONFIG_SYNC] LISTEN_PORT from the file)')

    # Service behaviour
    parser.add_argument('--no-initial-push', action='store_true',
                       help='Do not push the configuration at startup')
    parser.add_argument('--auto-push', type=validated_seconds, metavar='SECONDS',
                       help='Push the configuration every SECONDS seconds')
    parser.add_argument('--no-console', action='store_true',
                       help='Do not read commands from stdin (run until signalled)')
    parser.add_argument('--workers', type=validated_workers,
                       help='Inbound connections handled concurrently (default: 4)')
    parser.add_argument('--connect-timeout', type=validated_seconds, metavar='SECONDS',
                       help='Outbound connect timeout (default: 5)')

    # Output
    parser.add_argument('--output', '-o', type=str, metavar='FILE',
                       help='With --pull: save the received configuration to FILE')
    parser.add_argument('--json', action='store_true',
                       help='Print results as JSON')

    # Logging
    parser.add_argument('--log-file', type=str,
                       help='Log file path (default: no log file)')
    parser.add_argument('--log-level', type=str,
                       choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
                       default='INFO',
                       help='Set logging level (default: INFO)')
    parser.add_argument('--debug', action='store_true',
                       help='Enable debug mode with verbose logging')

    return parser
