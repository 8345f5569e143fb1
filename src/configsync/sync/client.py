#!/usr/bin/env python3
"""
configsync Outbound Sync Client

Opens a short-lived connection to the peer for every operation:

- push: send the full local configuration as one frame
- pull: send an empty frame and apply the configuration sent back

Name lookup runs on a helper thread and the connect is non-blocking;
both are polled in slices no longer than the poll interval, so a
pending cancellation aborts them promptly. Results are
always returned as a SyncResult; callers never see an exception.

Author: configsync Team
Version: 1.0.0
"""

import errno
import logging
import os
import select
import socket
import threading
import time
from concurrent.futures import Future, TimeoutError as FutureTimeout
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from ..config import parse_port
from ..core.constants import (
    ACCEPT_POLL_INTERVAL,
    CONNECT_TIMEOUT,
    CONNECTION_READ_TIMEOUT,
    MAX_HEADER_LENGTH,
    MAX_MESSAGE_SIZE,
    SEND_TIMEOUT,
)
from ..core.exceptions import (
    ConfigSyncError,
    ConfigValidationError,
    ConnectivityError,
    MessageTooLargeError,
    OperationCancelled,
    TransferError,
)
from ..shutdown import CancellationToken
from ..store import ConfigChange, ConfigStore
from .codec import PULL_REQUEST, encode, parse_header
from .handler import apply_body
from .transport import FrameReader, send_all

logger = logging.getLogger("configsync")

_CONNECT_IN_PROGRESS = {
    0,
    errno.EINPROGRESS,
    errno.EWOULDBLOCK,
    errno.EALREADY,
    errno.EINTR,
}


class SyncAction(Enum):
    """Outbound operation type."""
    PUSH = "push"
    PULL = "pull"

    def __str__(self) -> str:
        return self.value


@dataclass
class SyncResult:
    """Outcome of one outbound push or pull."""
    action: SyncAction
    host: str
    port: Any
    success: bool = False
    bytes_sent: int = 0
    bytes_received: int = 0
    changes: List[ConfigChange] = field(default_factory=list)
    error: Optional[str] = None
    error_kind: Optional[str] = None
    duration: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'action': self.action.value,
            'peer': f"{self.host}:{self.port}",
            'success': self.success,
            'bytes_sent': self.bytes_sent,
            'bytes_received': self.bytes_received,
            'changes': len(self.changes),
            'error': self.error,
            'error_kind': self.error_kind,
            'duration': round(self.duration, 3),
        }

    def __str__(self) -> str:
        if self.success:
            if self.action is SyncAction.PULL:
                return (
                    f"pull from {self.host}:{self.port} ok: "
                    f"{self.bytes_received} bytes, {len(self.changes)} change(s)"
                )
            return f"push to {self.host}:{self.port} ok: {self.bytes_sent} bytes"
        return f"{self.action.value} to {self.host}:{self.port} failed ({self.error_kind}): {self.error}"


@dataclass
class ClientStats:
    """Statistics for outbound sync operations."""
    pushes_sent: int = 0
    pulls_completed: int = 0
    failures: int = 0
    bytes_sent: int = 0
    last_sync_time: Optional[float] = None
    last_error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'pushes_sent': self.pushes_sent,
            'pulls_completed': self.pulls_completed,
            'failures': self.failures,
            'bytes_sent': self.bytes_sent,
            'last_sync_time': self.last_sync_time,
            'last_error': self.last_error,
        }


class SyncClient:
    """
    Outbound side of the sync link.

    Thread-safe: the console, the auto-push timer and the startup push
    may all call into the same client.
    """

    def __init__(
        self,
        store: ConfigStore,
        token: CancellationToken,
        connect_timeout: float = CONNECT_TIMEOUT,
        send_timeout: float = SEND_TIMEOUT,
        read_timeout: float = CONNECTION_READ_TIMEOUT,
        poll_interval: float = ACCEPT_POLL_INTERVAL,
        max_message_size: int = MAX_MESSAGE_SIZE
    ):
        """
        Initialize the client.

        Args:
            store: Store to encode on push and update on pull
            token: Cancellation token checked by every wait
            connect_timeout: Total seconds allowed for connecting
            send_timeout: Seconds allowed without send progress
            read_timeout: Seconds allowed without receiving reply data
            poll_interval: Upper bound on each connect/read wait
            max_message_size: Largest reply body accepted on pull
        """
        self.store = store
        self.token = token
        self.connect_timeout = connect_timeout
        self.send_timeout = send_timeout
        self.read_timeout = read_timeout
        self.poll_interval = poll_interval
        self.max_message_size = max_message_size

        self.stats = ClientStats()
        self._stats_lock = threading.Lock()

    def push_current_config(self, host: str, port: Any) -> SyncResult:
        """
        Send the full local configuration to the peer.

        Args:
            host: Peer hostname or address
            port: Peer port (int or numeric string)

        Returns:
            SyncResult describing the outcome
        """
        return self._run(SyncAction.PUSH, host, port, self._push)

    def request_config(self, host: str, port: Any) -> SyncResult:
        """
        Ask the peer for its configuration and apply the reply.

        Nothing is applied unless the whole reply frame was received.

        Args:
            host: Peer hostname or address
            port: Peer port (int or numeric string)

        Returns:
            SyncResult carrying the applied changes
        """
        return self._run(SyncAction.PULL, host, port, self._pull)

    def get_stats(self) -> Dict[str, Any]:
        with self._stats_lock:
            return self.stats.to_dict()

    def _run(self, action: SyncAction, host: str, port: Any, operation) -> SyncResult:
        started = time.monotonic()
        result = SyncResult(action=action, host=str(host), port=port)

        try:
            operation(result)
            result.success = True

        except OperationCancelled as e:
            result.error = str(e)
            result.error_kind = e.kind
            logger.info(f"Config {action.value} to {host}:{port} cancelled")

        except ConfigSyncError as e:
            result.error = str(e)
            result.error_kind = e.kind
            logger.warning(f"Config {action.value} to {host}:{port} failed: {e}")

        except Exception as e:
            result.error = str(e)
            result.error_kind = ConfigSyncError.kind
            logger.error(f"Unexpected error during config {action.value}: {e}", exc_info=True)

        finally:
            result.duration = time.monotonic() - started

        self._record(result)
        return result

    def _record(self, result: SyncResult) -> None:
        with self._stats_lock:
            if result.success:
                if result.action is SyncAction.PUSH:
                    self.stats.pushes_sent += 1
                else:
                    self.stats.pulls_completed += 1
                self.stats.bytes_sent += result.bytes_sent
                self.stats.last_sync_time = time.time()
            elif result.error_kind != OperationCancelled.kind:
                self.stats.failures += 1
                self.stats.last_error = result.error

    def _push(self, result: SyncResult) -> None:
        sock = self._connect(result)
        try:
            frame = encode(self.store)
            result.bytes_sent = send_all(
                sock, frame, self.token, timeout=self.send_timeout
            )
        finally:
            sock.close()

        logger.info(
            f"Configuration pushed to {result.host}:{result.port} "
            f"({result.bytes_sent} bytes)"
        )

    def _pull(self, result: SyncResult) -> None:
        sock = self._connect(result)
        try:
            result.bytes_sent = send_all(
                sock, PULL_REQUEST, self.token, timeout=self.send_timeout
            )
            logger.debug(f"Config request sent to {result.host}:{result.port}")

            reader = FrameReader(
                sock,
                self.token,
                idle_timeout=self.read_timeout,
                poll_interval=self.poll_interval
            )
            header = reader.read_line(MAX_HEADER_LENGTH)
            if header is None:
                raise TransferError("receive", "peer closed without replying")

            length = parse_header(header)
            if length > self.max_message_size:
                raise MessageTooLargeError(length, self.max_message_size)

            body = reader.read_exact(length, cancellable=True)
            result.bytes_received = reader.bytes_received
        finally:
            sock.close()

        origin = f"{result.host}:{result.port}"
        logger.info(f"Received configuration from {origin} ({length} bytes)")
        result.changes = apply_body(self.store, body, origin)

    def _connect(self, result: SyncResult) -> socket.socket:
        """
        Validate the peer address and open a connected non-blocking socket.

        Raises:
            ConfigValidationError: Invalid port, empty or unresolvable host
            ConnectivityError: Refused, unreachable or timed out
            OperationCancelled: Token set while connecting
        """
        port = parse_port(result.port, "peer_port")
        result.port = port
        host = result.host.strip()
        if not host:
            raise ConfigValidationError("peer_host", result.host, "must not be empty")

        infos = self._resolve(host, port)
        self.token.raise_if_cancelled("Connect")

        family, sock_type, proto, _, sockaddr = infos[0]
        sock = socket.socket(family, sock_type, proto)
        try:
            sock.setblocking(False)
            self._wait_connected(sock, sockaddr, host, port)
        except OSError as e:
            sock.close()
            raise ConnectivityError(host, port, str(e)) from e
        except Exception:
            sock.close()
            raise

        logger.debug(f"Connected to peer {host}:{port}")
        return sock

    def _resolve(self, host: str, port: int) -> list:
        """
        Look up the peer address without blocking past the connect timeout.

        getaddrinfo() cannot be interrupted, so it runs on a daemon thread
        that is abandoned on cancellation or timeout.

        Raises:
            ConfigValidationError: If the host cannot be resolved
            ConnectivityError: If the lookup outlasts the connect timeout
            OperationCancelled: Token set while resolving
        """
        future: Future = Future()

        def lookup():
            try:
                future.set_result(
                    socket.getaddrinfo(host, port, socket.AF_UNSPEC, socket.SOCK_STREAM)
                )
            except Exception as e:
                future.set_exception(e)

        threading.Thread(target=lookup, daemon=True, name="SyncResolve").start()

        deadline = time.monotonic() + self.connect_timeout
        while True:
            if self.token.cancelled:
                raise OperationCancelled("Name lookup cancelled", details=self.token.reason)

            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise ConnectivityError(
                    host, port, f"name lookup timed out after {self.connect_timeout:.1f}s"
                )

            try:
                return future.result(timeout=min(remaining, self.poll_interval))
            except FutureTimeout:
                continue
            except socket.gaierror as e:
                raise ConfigValidationError("peer_host", host, f"cannot resolve: {e}") from e

    def _wait_connected(self, sock: socket.socket, sockaddr, host: str, port: int) -> None:
        err = sock.connect_ex(sockaddr)
        if err not in _CONNECT_IN_PROGRESS:
            raise ConnectivityError(host, port, os.strerror(err))
        if err == 0:
            return

        deadline = time.monotonic() + self.connect_timeout
        while True:
            if self.token.cancelled:
                raise OperationCancelled("Connect cancelled", details=self.token.reason)

            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise ConnectivityError(
                    host, port, f"timed out after {self.connect_timeout:.1f}s"
                )

            _, writable, failed = select.select(
                [], [sock], [sock], min(remaining, self.poll_interval)
            )
            if writable or failed:
                break

        err = sock.getsockopt(socket.SOL_SOCKET, socket.SO_ERROR)
        if err != 0:
            raise ConnectivityError(host, port, os.strerror(err))
