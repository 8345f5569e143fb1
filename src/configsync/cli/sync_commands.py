#!/usr/bin/env python3
"""
configsync CLI - Sync Command Handlers

Handles the sync CLI commands:
- Running the service
- One-shot push and pull
- Showing the configuration file and its statistics

Author: configsync Team
Version: 1.0.0
"""

import os
import json
import logging
from argparse import Namespace
from typing import Optional

from ..config import SyncConfig
from ..core.exceptions import ConfigurationError
from ..loader import load_ini
from ..persistence import save_config
from ..service import run_service
from ..shutdown import CancellationToken, install_signal_handlers, restore_signal_handlers
from ..store import ConfigStore
from ..summary import format_changes, format_config, format_stats
from ..sync.client import SyncClient, SyncResult

logger = logging.getLogger("configsync")


def build_sync_config(args: Namespace) -> SyncConfig:
    """
    Build runtime settings from parsed arguments

    Raises:
        ConfigValidationError: If a combination of values is invalid
    """
    settings = {
        'peer_host': args.peer_host,
        'peer_port': args.peer_port,
        'listen_host': args.listen_host,
        'listen_port': args.listen_port,
        'initial_push': not args.no_initial_push,
        'auto_push_interval': args.auto_push or 0.0,
    }
    if args.workers is not None:
        settings['connection_workers'] = args.workers
    if args.connect_timeout is not None:
        settings['connect_timeout'] = args.connect_timeout
    return SyncConfig.from_dict(settings)


def _load_store(path: str) -> Optional[ConfigStore]:
    try:
        return load_ini(path)
    except ConfigurationError as e:
        print(f"Error: {e}")
        return None


def _print_result(result: SyncResult, as_json: bool) -> None:
    if as_json:
        print(json.dumps(result.to_dict(), indent=2))
    else:
        print(str(result))


def run(args: Namespace) -> bool:
    """Run the sync service until quit or signalled."""
    try:
        config = build_sync_config(args)
    except ConfigurationError as e:
        print(f"Error: {e}")
        return False

    return run_service(args.config, config, console=not args.no_console) == 0


def push_once(args: Namespace) -> bool:
    """Push the configuration file to the peer once."""
    store = _load_store(args.config)
    if store is None:
        return False

    try:
        config = build_sync_config(args)
    except ConfigurationError as e:
        print(f"Error: {e}")
        return False

    token = CancellationToken()
    previous = install_signal_handlers(token)
    try:
        client = SyncClient(
            store,
            token,
            connect_timeout=config.connect_timeout,
            send_timeout=config.send_timeout,
            poll_interval=config.poll_interval
        )
        host, port = config.resolve_peer(store)
        result = client.push_current_config(host, port)
    finally:
        restore_signal_handlers(previous)

    _print_result(result, args.json)
    return result.success


def pull_once(args: Namespace) -> bool:
    """
    Request the peer's configuration once

    The reply is merged into the configuration file's contents (or into
    an empty configuration if the file does not exist). With --output the
    merged result is saved to that file.
    """
    if os.path.isfile(args.config):
        store = _load_store(args.config)
        if store is None:
            return False
    else:
        print(f"Configuration file {args.config} not found, starting empty")
        store = ConfigStore()

    try:
        config = build_sync_config(args)
    except ConfigurationError as e:
        print(f"Error: {e}")
        return False

    token = CancellationToken()
    previous = install_signal_handlers(token)
    try:
        client = SyncClient(
            store,
            token,
            connect_timeout=config.connect_timeout,
            send_timeout=config.send_timeout,
            read_timeout=config.read_timeout,
            poll_interval=config.poll_interval
        )
        host, port = config.resolve_peer(store)
        result = client.request_config(host, port)
    finally:
        restore_signal_handlers(previous)

    _print_result(result, args.json)
    if not result.success:
        return False

    if not args.json:
        print(format_changes(result.changes))

    if args.output:
        if not save_config(store, args.output):
            print(f"Failed to save configuration to {args.output}")
            return False
        print(f"Configuration saved to {args.output}")

    return True


def show_config(args: Namespace) -> bool:
    """Show the configuration file contents."""
    store = _load_store(args.config)
    if store is None:
        return False

    if args.json:
        print(json.dumps(store.to_dict(), indent=2, sort_keys=True))
    else:
        print(format_config(store))
    return True


def show_stats(args: Namespace) -> bool:
    """Show configuration statistics."""
    store = _load_store(args.config)
    if store is None:
        return False

    if args.json:
        counts = store.stats()
        print(json.dumps({
            'sections': len(counts),
            'keys': sum(counts.values()),
            'per_section': counts,
        }, indent=2, sort_keys=True))
    else:
        print(format_stats(store))
    return True
