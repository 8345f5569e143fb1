#!/usr/bin/env python3
"""
configsync Connection Handler

Per-connection protocol state machine run for every accepted peer
connection:

    READ_HEADER -> READ_BODY -> DISPATCH -> CLOSED     (push)
    READ_HEADER -> REPLY -> CLOSED                     (pull request)
    READ_HEADER -> REJECT -> CLOSED                    (protocol violation)

Any state may also go straight to CLOSED on transfer errors or
cancellation. The connection socket is closed on every exit path, and
updates are applied only after the entire body has been received.

Author: configsync Team
Version: 1.0.0
"""

import logging
import socket
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Set

from ..core.constants import (
    ACCEPT_POLL_INTERVAL,
    CONNECTION_READ_TIMEOUT,
    MAX_HEADER_LENGTH,
    MAX_MESSAGE_SIZE,
    SEND_TIMEOUT,
)
from ..core.exceptions import (
    ConfigSyncError,
    MessageTooLargeError,
    OperationCancelled,
    ProtocolError,
)
from ..shutdown import CancellationToken
from ..store import ConfigChange, ConfigStore
from .codec import decode, encode, parse_header
from .transport import FrameReader, send_all

logger = logging.getLogger("configsync")


class HandlerState(Enum):
    """
    Connection handler states.

    State Descriptions:
        READ_HEADER: Reading the length header line
        READ_BODY: Reading exactly the declared number of body bytes
        REPLY: Answering a pull request with the current configuration
        DISPATCH: Decoding the body and applying it to the store
        REJECT: Protocol violation detected, closing without reply
        CLOSED: Connection socket closed
    """
    READ_HEADER = "read_header"
    READ_BODY = "read_body"
    REPLY = "reply"
    DISPATCH = "dispatch"
    REJECT = "reject"
    CLOSED = "closed"

    def __str__(self) -> str:
        return self.value

    @property
    def is_terminal(self) -> bool:
        """Check if no further transitions are possible."""
        return self is HandlerState.CLOSED


# Valid state transitions
VALID_TRANSITIONS: Dict[HandlerState, Set[HandlerState]] = {
    HandlerState.READ_HEADER: {
        HandlerState.READ_BODY,
        HandlerState.REPLY,
        HandlerState.REJECT,
        HandlerState.CLOSED
    },
    HandlerState.READ_BODY: {
        HandlerState.DISPATCH,
        HandlerState.CLOSED
    },
    HandlerState.REPLY: {HandlerState.CLOSED},
    HandlerState.DISPATCH: {HandlerState.CLOSED},
    HandlerState.REJECT: {HandlerState.CLOSED},
    HandlerState.CLOSED: set(),
}


class ConnectionOutcome(Enum):
    """How a handled connection ended."""
    PUSH_APPLIED = "push_applied"
    PULL_REPLIED = "pull_replied"
    REJECTED = "rejected"
    FAILED = "failed"
    CANCELLED = "cancelled"
    EMPTY = "empty"

    def __str__(self) -> str:
        return self.value


@dataclass
class ConnectionResult:
    """Result of handling one peer connection."""
    peer: str
    outcome: Optional[ConnectionOutcome] = None
    bytes_received: int = 0
    bytes_sent: int = 0
    changes: List[ConfigChange] = field(default_factory=list)
    error: Optional[str] = None
    states: List[HandlerState] = field(default_factory=list)
    duration: float = 0.0


def apply_body(store: ConfigStore, body: bytes, origin: str) -> List[ConfigChange]:
    """
    Decode a frame body and apply it to the store, logging every change.

    Args:
        store: Store to update
        body: Received body bytes
        origin: Peer description used in log messages

    Returns:
        Entries whose value changed
    """
    changes = store.apply_changes(decode(body))

    for change in changes:
        if change.created:
            logger.info(
                f"Config updated: [{change.section}] {change.key} = "
                f"{change.new_value} (new key)"
            )
        else:
            logger.info(
                f"Config updated: [{change.section}] {change.key} = "
                f"{change.new_value} (was: {change.old_value})"
            )

    if changes:
        logger.info(f"Applied {len(changes)} changed setting(s) from {origin}")
    else:
        logger.info(f"Configuration from {origin}: no changes")

    return changes


class ConnectionHandler:
    """
    Runs the protocol state machine for one accepted connection.

    handle() never raises: every failure is logged and reported in the
    returned ConnectionResult.
    """

    def __init__(
        self,
        conn: socket.socket,
        addr,
        store: ConfigStore,
        token: CancellationToken,
        read_timeout: float = CONNECTION_READ_TIMEOUT,
        send_timeout: float = SEND_TIMEOUT,
        poll_interval: float = ACCEPT_POLL_INTERVAL,
        max_message_size: int = MAX_MESSAGE_SIZE
    ):
        self.conn = conn
        self.peer = _format_peer(addr)
        self.store = store
        self.token = token
        self.read_timeout = read_timeout
        self.send_timeout = send_timeout
        self.poll_interval = poll_interval
        self.max_message_size = max_message_size

        self.state = HandlerState.READ_HEADER
        self.result = ConnectionResult(peer=self.peer, states=[self.state])

    def _transition(self, new_state: HandlerState) -> None:
        if new_state not in VALID_TRANSITIONS[self.state]:
            raise RuntimeError(
                f"Invalid handler transition: {self.state.value} -> {new_state.value}"
            )
        logger.debug(f"Connection {self.peer}: {self.state.value} -> {new_state.value}")
        self.state = new_state
        self.result.states.append(new_state)

    def handle(self) -> ConnectionResult:
        """Process the connection through to CLOSED."""
        started = time.monotonic()
        reader = None
        try:
            reader = FrameReader(
                self.conn,
                self.token,
                idle_timeout=self.read_timeout,
                poll_interval=self.poll_interval
            )
            self._process(reader)

        except ProtocolError as e:
            self._transition(HandlerState.REJECT)
            self.result.outcome = ConnectionOutcome.REJECTED
            self.result.error = str(e)
            logger.warning(f"Rejected connection from {self.peer}: {e}")

        except OperationCancelled as e:
            self.result.outcome = ConnectionOutcome.CANCELLED
            self.result.error = str(e)
            logger.info(f"Connection from {self.peer} closed during shutdown")

        except ConfigSyncError as e:
            self.result.outcome = ConnectionOutcome.FAILED
            self.result.error = str(e)
            logger.error(f"Error handling connection from {self.peer}: {e}")

        except Exception as e:
            self.result.outcome = ConnectionOutcome.FAILED
            self.result.error = str(e)
            logger.error(f"Unexpected error handling connection from {self.peer}: {e}",
                         exc_info=True)

        finally:
            if reader is not None:
                self.result.bytes_received = reader.bytes_received
            self._close()
            self.result.duration = time.monotonic() - started

        return self.result

    def _process(self, reader: FrameReader) -> None:
        header = reader.read_line(MAX_HEADER_LENGTH)
        if header is None:
            logger.debug(f"Connection from {self.peer} closed without a header")
            self.result.outcome = ConnectionOutcome.EMPTY
            return

        length = parse_header(header)

        if length == 0:
            self._reply_with_config()
            return

        if length > self.max_message_size:
            raise MessageTooLargeError(length, self.max_message_size)

        logger.debug(f"Frame header from {self.peer}: {length} bytes")
        self._transition(HandlerState.READ_BODY)
        body = reader.read_exact(length)

        logger.info(f"Received configuration from {self.peer} ({length} bytes)")
        self._transition(HandlerState.DISPATCH)
        self.result.changes = apply_body(self.store, body, self.peer)
        self.result.outcome = ConnectionOutcome.PUSH_APPLIED

    def _reply_with_config(self) -> None:
        logger.info(f"Config request from {self.peer}, replying with current configuration")
        self._transition(HandlerState.REPLY)
        frame = encode(self.store)
        self.result.bytes_sent = send_all(
            self.conn, frame, self.token, timeout=self.send_timeout
        )
        self.result.outcome = ConnectionOutcome.PULL_REPLIED
        logger.info(f"Sent configuration to {self.peer} ({self.result.bytes_sent} bytes)")

    def _close(self) -> None:
        try:
            self.conn.close()
        except OSError as e:
            logger.debug(f"Error closing connection from {self.peer}: {e}")
        if not self.state.is_terminal:
            self._transition(HandlerState.CLOSED)


def _format_peer(addr) -> str:
    if isinstance(addr, tuple) and len(addr) >= 2:
        return f"{addr[0]}:{addr[1]}"
    return str(addr) if addr else "unknown"
