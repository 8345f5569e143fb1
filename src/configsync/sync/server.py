#!/usr/bin/env python3
"""
configsync Inbound Sync Server

Listens for peer connections and runs a ConnectionHandler for each.

The listening socket uses a bounded accept timeout, so the listener
thread observes the cancellation token at least once per poll interval
even when no peer connects. Accepted connections are handed to a small
worker pool; each handler's future reports its ConnectionResult back
to the server, which keeps running statistics.

On cancellation the accept loop exits and the listening socket is
closed. In-flight connections are not aborted: they finish or time out
under their own read timeout while stop() drains the pool.

Author: configsync Team
Version: 1.0.0
"""

import logging
import socket
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from ..core.constants import (
    ACCEPT_POLL_INTERVAL,
    CONNECTION_READ_TIMEOUT,
    CONNECTION_WORKERS,
    DEFAULT_LISTEN_HOST,
    DEFAULT_LISTEN_PORT,
    LISTEN_BACKLOG,
    MAX_MESSAGE_SIZE,
    SEND_TIMEOUT,
)
from ..core.exceptions import ListenerError
from ..shutdown import CancellationToken
from ..store import ConfigStore
from .handler import ConnectionHandler, ConnectionOutcome

logger = logging.getLogger("configsync")


@dataclass
class ServerStats:
    """Statistics for inbound sync connections."""
    connections: int = 0
    pushes_applied: int = 0
    pull_requests: int = 0
    rejected: int = 0
    errors: int = 0
    entries_changed: int = 0
    last_peer: Optional[str] = None
    last_sync_time: Optional[float] = None
    last_error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'connections': self.connections,
            'pushes_applied': self.pushes_applied,
            'pull_requests': self.pull_requests,
            'rejected': self.rejected,
            'errors': self.errors,
            'entries_changed': self.entries_changed,
            'last_peer': self.last_peer,
            'last_sync_time': self.last_sync_time,
            'last_error': self.last_error,
        }


class SyncServer:
    """
    Inbound side of the sync link.

    Attributes:
        store: Shared configuration store
        token: Process-wide cancellation token
        stats: Running connection statistics
    """

    def __init__(
        self,
        store: ConfigStore,
        token: CancellationToken,
        host: str = DEFAULT_LISTEN_HOST,
        port: int = DEFAULT_LISTEN_PORT,
        poll_interval: float = ACCEPT_POLL_INTERVAL,
        read_timeout: float = CONNECTION_READ_TIMEOUT,
        send_timeout: float = SEND_TIMEOUT,
        max_workers: int = CONNECTION_WORKERS,
        max_message_size: int = MAX_MESSAGE_SIZE
    ):
        """
        Initialize the server.

        Args:
            store: Shared configuration store
            token: Cancellation token observed by the accept loop and handlers
            host: Address to bind
            port: Port to bind (0 picks an ephemeral port)
            poll_interval: Accept timeout; bounds shutdown latency
            read_timeout: Idle read timeout for accepted connections
            send_timeout: Timeout without progress when replying to pulls
            max_workers: Connections handled concurrently
            max_message_size: Largest accepted body
        """
        self.store = store
        self.token = token
        self.host = host
        self.port = port
        self.poll_interval = poll_interval
        self.read_timeout = read_timeout
        self.send_timeout = send_timeout
        self.max_workers = max_workers
        self.max_message_size = max_message_size

        self.stats = ServerStats()
        self._stats_lock = threading.Lock()

        self.listen_socket: Optional[socket.socket] = None
        self.listen_thread: Optional[threading.Thread] = None
        self._executor: Optional[ThreadPoolExecutor] = None
        self._address: Optional[Tuple[str, int]] = None

    @property
    def address(self) -> Optional[Tuple[str, int]]:
        """Actual bound (host, port), once started."""
        return self._address

    @property
    def running(self) -> bool:
        """Check if the listener thread is alive."""
        return self.listen_thread is not None and self.listen_thread.is_alive()

    def start(self) -> None:
        """
        Bind the listening socket and start the listener thread.

        Raises:
            ListenerError: If the socket cannot be created, bound, or listened on
        """
        try:
            sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        except OSError as e:
            raise ListenerError(self.host, self.port, str(e)) from e

        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind((self.host, self.port))
            sock.listen(LISTEN_BACKLOG)
            sock.settimeout(self.poll_interval)
        except OSError as e:
            sock.close()
            raise ListenerError(self.host, self.port, str(e)) from e

        self.listen_socket = sock
        self._address = sock.getsockname()[:2]
        self._executor = ThreadPoolExecutor(
            max_workers=self.max_workers,
            thread_name_prefix="SyncConnection"
        )

        self.listen_thread = threading.Thread(
            target=self._listen_loop,
            daemon=True,
            name="SyncListener"
        )
        self.listen_thread.start()

        logger.info(f"Sync listener started on {self._address[0]}:{self._address[1]}")

    def stop(self, timeout: Optional[float] = None) -> bool:
        """
        Stop the server and wait for the listener to exit.

        Cancels the shared token, joins the listener thread, then drains
        connections that were already accepted.

        Args:
            timeout: Maximum seconds to wait for the listener thread

        Returns:
            True if the listener thread has exited
        """
        logger.info("Stopping sync listener...")
        self.token.cancel("sync server stopping")

        stopped = self.join(timeout)

        executor = self._executor
        if executor is not None:
            executor.shutdown(wait=True)
            # Kept while the listener may still submit; a late submit() raises RuntimeError
            if stopped:
                self._executor = None

        if stopped:
            logger.info("Sync listener stopped")
        else:
            logger.warning("Sync listener did not stop within the timeout")
        return stopped

    def join(self, timeout: Optional[float] = None) -> bool:
        """Wait for the listener thread to exit."""
        if self.listen_thread is not None:
            self.listen_thread.join(timeout)
        return not self.running

    def get_status(self) -> Dict[str, Any]:
        """Get current server status."""
        with self._stats_lock:
            stats = self.stats.to_dict()
        return {
            'running': self.running,
            'address': f"{self._address[0]}:{self._address[1]}" if self._address else None,
            'max_workers': self.max_workers,
            'stats': stats,
        }

    def _listen_loop(self) -> None:
        """Accept connections until the token is cancelled."""
        try:
            while not self.token.cancelled:
                try:
                    conn, addr = self.listen_socket.accept()
                except socket.timeout:
                    continue
                except OSError as e:
                    if self.token.cancelled:
                        break
                    logger.error(f"Sync listener accept error: {e}")
                    self.token.wait(self.poll_interval)
                    continue

                logger.info(f"Peer connected from {addr[0]}:{addr[1]}")
                self._dispatch(conn, addr)
        finally:
            self._close_listen_socket()

    def _dispatch(self, conn: socket.socket, addr) -> None:
        handler = ConnectionHandler(
            conn,
            addr,
            self.store,
            self.token,
            read_timeout=self.read_timeout,
            send_timeout=self.send_timeout,
            poll_interval=self.poll_interval,
            max_message_size=self.max_message_size
        )
        executor = self._executor
        if executor is None:
            logger.warning(f"Dropping connection from {handler.peer}: server stopped")
            conn.close()
            return
        try:
            future = executor.submit(handler.handle)
        except RuntimeError as e:
            logger.warning(f"Dropping connection from {handler.peer}: {e}")
            conn.close()
            return
        future.add_done_callback(self._connection_finished)

    def _connection_finished(self, future: Future) -> None:
        try:
            result = future.result()
        except Exception as e:
            logger.error(f"Connection handler crashed: {e}", exc_info=True)
            with self._stats_lock:
                self.stats.errors += 1
                self.stats.last_error = str(e)
            return

        with self._stats_lock:
            self.stats.connections += 1
            self.stats.last_peer = result.peer
            if result.outcome is ConnectionOutcome.PUSH_APPLIED:
                self.stats.pushes_applied += 1
                self.stats.entries_changed += len(result.changes)
                self.stats.last_sync_time = time.time()
            elif result.outcome is ConnectionOutcome.PULL_REPLIED:
                self.stats.pull_requests += 1
                self.stats.last_sync_time = time.time()
            elif result.outcome is ConnectionOutcome.REJECTED:
                self.stats.rejected += 1
                self.stats.last_error = result.error
            elif result.outcome is ConnectionOutcome.FAILED:
                self.stats.errors += 1
                self.stats.last_error = result.error

        logger.debug(f"Connection from {result.peer} finished: {result.outcome}")

    def _close_listen_socket(self) -> None:
        if self.listen_socket is not None:
            try:
                self.listen_socket.close()
            except OSError as e:
                logger.debug(f"Error closing listening socket: {e}")
            self.listen_socket = None
