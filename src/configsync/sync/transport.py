#!/usr/bin/env python3
"""
configsync Socket Transport Helpers

Partial-I/O handling shared by the outbound client and the inbound
connection handler:

- send_all(): loops over partial writes, retrying would-block
  conditions with a short backoff until the whole buffer is sent
- FrameReader: buffered reads of one header line and of an exact
  number of body bytes, tolerating arbitrary fragmentation

Every wait is bounded by a poll interval so the cancellation token is
observed promptly, and by an idle timeout so a silent peer cannot hold
a connection forever.

Author: configsync Team
Version: 1.0.0
"""

import logging
import socket
import time
from typing import Optional

from ..core.constants import (
    ACCEPT_POLL_INTERVAL,
    CONNECTION_READ_TIMEOUT,
    HEADER_TERMINATOR,
    RECV_BUFFER_SIZE,
    SEND_RETRY_DELAY,
    SEND_TIMEOUT,
)
from ..core.exceptions import HeaderTooLongError, OperationCancelled, TransferError
from ..shutdown import CancellationToken

logger = logging.getLogger("configsync")


def send_all(
    sock: socket.socket,
    data: bytes,
    token: CancellationToken,
    timeout: float = SEND_TIMEOUT,
    retry_delay: float = SEND_RETRY_DELAY
) -> int:
    """
    Send every byte of data, advancing an offset over partial writes.

    Args:
        sock: Connected socket (blocking, timed, or non-blocking)
        data: Bytes to send
        token: Cancellation token checked before every attempt
        timeout: Seconds allowed without any progress
        retry_delay: Backoff after a would-block condition

    Returns:
        Number of bytes sent (always len(data))

    Raises:
        OperationCancelled: If the token is set before completion
        TransferError: On a write error, a closed peer, or no progress
    """
    view = memoryview(data)
    total = 0
    last_progress = time.monotonic()

    while total < len(data):
        if token.cancelled:
            raise OperationCancelled(
                "Send cancelled",
                details=f"{total}/{len(data)} bytes sent"
            )

        try:
            sent = sock.send(view[total:])
        except (BlockingIOError, InterruptedError, socket.timeout):
            if time.monotonic() - last_progress >= timeout:
                raise TransferError(
                    "send",
                    f"no progress for {timeout:.1f}s ({total}/{len(data)} bytes sent)"
                )
            token.wait(retry_delay)
            continue
        except OSError as e:
            raise TransferError("send", str(e)) from e

        if sent == 0:
            raise TransferError("send", "connection closed by peer")

        total += sent
        last_progress = time.monotonic()

    return total


class FrameReader:
    """
    Buffered reader for one framed message on a connected socket.

    Bytes received beyond the header line stay buffered and are returned
    by read_exact(), so the header may arrive in the same segment as the
    body or split across many 1-byte fragments.
    """

    def __init__(
        self,
        sock: socket.socket,
        token: CancellationToken,
        idle_timeout: float = CONNECTION_READ_TIMEOUT,
        poll_interval: float = ACCEPT_POLL_INTERVAL,
        chunk_size: int = RECV_BUFFER_SIZE
    ):
        """
        Initialize the reader.

        Args:
            sock: Connected socket; its timeout is set to poll_interval
            token: Cancellation token
            idle_timeout: Seconds allowed between received chunks
            poll_interval: Upper bound on each blocking recv()
            chunk_size: Maximum bytes requested per recv()
        """
        self.sock = sock
        self.token = token
        self.idle_timeout = idle_timeout
        self.poll_interval = poll_interval
        self.chunk_size = chunk_size
        self.bytes_received = 0
        self._buffer = bytearray()

        self.sock.settimeout(poll_interval)

    def _fill(self, max_bytes: int, cancellable: bool) -> int:
        """
        Receive one chunk into the buffer.

        Returns:
            Number of bytes received, 0 on orderly EOF
        """
        deadline = time.monotonic() + self.idle_timeout

        while True:
            if cancellable and self.token.cancelled:
                raise OperationCancelled("Receive cancelled", details=self.token.reason)

            try:
                chunk = self.sock.recv(max_bytes)
            except socket.timeout:
                if time.monotonic() >= deadline:
                    raise TransferError(
                        "receive",
                        f"no data for {self.idle_timeout:.1f}s"
                    )
                continue
            except InterruptedError:
                continue
            except OSError as e:
                raise TransferError("receive", str(e)) from e

            if chunk:
                self._buffer.extend(chunk)
                self.bytes_received += len(chunk)
            return len(chunk)

    def read_line(self, max_length: int, cancellable: bool = True) -> Optional[bytes]:
        """
        Read one line, without its terminator.

        Args:
            max_length: Maximum characters allowed before the terminator
            cancellable: Abort with OperationCancelled when the token is set

        Returns:
            The line, or None if the peer closed before sending anything

        Raises:
            HeaderTooLongError: If max_length is exceeded before a terminator
            TransferError: On read errors, idle timeout, or EOF mid-line
        """
        while True:
            end = self._buffer.find(HEADER_TERMINATOR)
            if end >= 0:
                if end > max_length:
                    raise HeaderTooLongError(max_length)
                line = bytes(self._buffer[:end])
                del self._buffer[:end + len(HEADER_TERMINATOR)]
                return line

            if len(self._buffer) > max_length:
                raise HeaderTooLongError(max_length)

            if self._fill(self.chunk_size, cancellable) == 0:
                if not self._buffer:
                    return None
                raise TransferError(
                    "receive",
                    f"connection closed after {len(self._buffer)} header bytes"
                )

    def read_exact(self, length: int, cancellable: bool = False) -> bytes:
        """
        Read exactly length bytes, across as many fragments as needed.

        Args:
            length: Number of bytes to return
            cancellable: Abort with OperationCancelled when the token is set

        Raises:
            TransferError: On read errors, idle timeout, or early EOF
        """
        while len(self._buffer) < length:
            wanted = min(self.chunk_size, length - len(self._buffer))
            if self._fill(wanted, cancellable) == 0:
                raise TransferError(
                    "receive",
                    f"connection closed after {len(self._buffer)} of {length} bytes"
                )

        data = bytes(self._buffer[:length])
        del self._buffer[:length]
        return data
