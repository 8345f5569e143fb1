#!/usr/bin/env python3
"""
configsync Service

Wires the store, the outbound client, the inbound server and the
console together and owns their lifecycle.

Startup order: load the file, start the listener, install signal
handlers, push once after a short delay, then hand the main thread to
the console (or wait for a signal). Shutdown order: cancel the token,
join the listener, drain in-flight connections, stop the auto-push
timer.

Author: configsync Team
Version: 1.0.0
"""

import logging
import threading
from typing import Any, Dict, Optional, TextIO

from .config import SyncConfig
from .console import CommandConsole
from .core.exceptions import ConfigurationError, ListenerError
from .loader import load_ini, reload_store
from .persistence import save_config
from .shutdown import CancellationToken, install_signal_handlers, restore_signal_handlers
from .store import ConfigStore
from .summary import format_stats
from .sync.client import SyncClient, SyncResult
from .sync.server import SyncServer

logger = logging.getLogger("configsync")


class SyncService:
    """
    One end of the sync link.

    Attributes:
        store: Shared configuration store
        config: Runtime settings
        token: Process-wide cancellation token
        config_path: INI file used by save() and reload()
        client: Outbound client
        server: Inbound server, once started
    """

    def __init__(
        self,
        store: ConfigStore,
        config: Optional[SyncConfig] = None,
        token: Optional[CancellationToken] = None,
        config_path: Optional[str] = None
    ):
        self.store = store
        self.config = config or SyncConfig()
        self.token = token or CancellationToken()
        self.config_path = config_path

        self.client = SyncClient(
            store,
            self.token,
            connect_timeout=self.config.connect_timeout,
            send_timeout=self.config.send_timeout,
            read_timeout=self.config.read_timeout,
            poll_interval=self.config.poll_interval,
            max_message_size=self.config.max_message_size
        )
        self.server: Optional[SyncServer] = None
        self._auto_push_thread: Optional[threading.Thread] = None

    def start(self) -> None:
        """
        Start the inbound server and the auto-push timer.

        Raises:
            ConfigValidationError: If the listen port is invalid
            ListenerError: If the listen port cannot be bound
        """
        listen_port = self.config.resolve_listen_port(self.store)

        self.server = SyncServer(
            self.store,
            self.token,
            host=self.config.listen_host,
            port=listen_port,
            poll_interval=self.config.poll_interval,
            read_timeout=self.config.read_timeout,
            send_timeout=self.config.send_timeout,
            max_workers=self.config.connection_workers,
            max_message_size=self.config.max_message_size
        )
        self.server.start()

        if self.config.auto_push_interval > 0:
            self._auto_push_thread = threading.Thread(
                target=self._auto_push_loop,
                daemon=True,
                name="AutoPush"
            )
            self._auto_push_thread.start()
            logger.info(f"Auto-push every {self.config.auto_push_interval}s")

    def initial_push(self) -> Optional[SyncResult]:
        """Push once after the configured delay, unless disabled or cancelled."""
        if not self.config.initial_push:
            return None
        if self.token.wait(self.config.initial_push_delay):
            return None
        return self.push()

    def push(self) -> SyncResult:
        """Push the current configuration to the peer."""
        host, port = self.config.resolve_peer(self.store)
        return self.client.push_current_config(host, port)

    def pull(self) -> SyncResult:
        """Request the peer's configuration and apply it."""
        host, port = self.config.resolve_peer(self.store)
        return self.client.request_config(host, port)

    def reload(self) -> bool:
        """Reload the store from the configuration file."""
        if not self.config_path:
            logger.warning("No configuration file to reload from")
            return False
        return reload_store(self.store, self.config_path)

    def save(self) -> bool:
        """Save the store to the configuration file."""
        if not self.config_path:
            logger.warning("No configuration file to save to")
            return False
        return save_config(self.store, self.config_path)

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until shutdown is requested or the timeout elapses."""
        return self.token.wait(timeout)

    def stop(self, timeout: Optional[float] = None) -> bool:
        """
        Shut down and wait for background work.

        Returns:
            True if the listener thread exited in time
        """
        self.token.cancel("service stopping")

        stopped = True
        if self.server is not None:
            stopped = self.server.stop(timeout)

        if self._auto_push_thread is not None:
            self._auto_push_thread.join(timeout)
            self._auto_push_thread = None

        logger.info("Sync service stopped")
        return stopped

    def get_status(self) -> Dict[str, Any]:
        """Get current service status."""
        host, port = self.config.resolve_peer(self.store)
        server_status = self.server.get_status() if self.server else {}
        return {
            'peer': f"{host}:{port}",
            'listen': server_status.get('address'),
            'keys': len(self.store),
            'sections': len(self.store.sections()),
            'cancelled': self.token.cancelled,
            'client': self.client.get_stats(),
            'server': server_status,
        }

    def _auto_push_loop(self) -> None:
        while not self.token.wait(self.config.auto_push_interval):
            self.push()


def run_service(
    config_path: str,
    config: Optional[SyncConfig] = None,
    console: bool = True,
    stdin: Optional[TextIO] = None,
    stdout: Optional[TextIO] = None,
    install_signals: bool = True
) -> int:
    """
    Run the sync service until quit or a shutdown signal.

    Args:
        config_path: INI file to load, save and reload
        config: Runtime settings
        console: Read commands from stdin
        stdin: Console input stream
        stdout: Console output stream
        install_signals: Bind SIGINT/SIGTERM to the shutdown token

    Returns:
        Exit code (0 for success, 1 for startup failure)
    """
    config = config or SyncConfig()
    token = CancellationToken()

    logger.info(f"Starting configsync with {config_path}")

    try:
        store = load_ini(config_path)
    except ConfigurationError as e:
        logger.error(f"Cannot start: {e}")
        return 1

    logger.info(format_stats(store))

    service = SyncService(store, config, token, config_path)
    try:
        service.start()
    except (ConfigurationError, ListenerError) as e:
        logger.error(f"Cannot start: {e}")
        token.cancel("startup failed")
        return 1

    previous = install_signal_handlers(token) if install_signals else {}

    try:
        service.initial_push()

        if console:
            CommandConsole(
                service,
                stdin=stdin,
                stdout=stdout,
                poll_interval=config.poll_interval
            ).run()
        else:
            logger.info("Running without console, waiting for shutdown signal")
            while not service.wait(config.poll_interval):
                pass

    finally:
        logger.info("Shutting down...")
        service.stop(timeout=config.poll_interval * 2 + 1.0)
        restore_signal_handlers(previous)

    return 0
