#!/usr/bin/env python3
"""
configsync Runtime Configuration

Settings that control how the sync link runs: peer and listen
addresses, timeouts, the worker pool size and the push schedule.

Peer and listen addresses may be overridden explicitly. Otherwise they
are read from the [CONFIG_SYNC] section of the shared store every time
they are needed, so an address received from the peer takes effect on
the next push.

Author: configsync Team
Version: 1.0.0
"""

import logging
from dataclasses import asdict, dataclass
from typing import Any, Dict, Iterable, Optional, Tuple

from .core.constants import (
    ACCEPT_POLL_INTERVAL,
    CONNECT_TIMEOUT,
    CONNECTION_READ_TIMEOUT,
    CONNECTION_WORKERS,
    DEFAULT_LISTEN_HOST,
    DEFAULT_LISTEN_PORT,
    DEFAULT_PEER_HOST,
    DEFAULT_PEER_PORT,
    INITIAL_PUSH_DELAY,
    LISTEN_PORT_KEYS,
    MAX_MESSAGE_SIZE,
    PEER_HOST_KEYS,
    PEER_PORT_KEYS,
    SEND_TIMEOUT,
    SYNC_SECTION,
)
from .core.exceptions import ConfigValidationError
from .store import ConfigStore

logger = logging.getLogger("configsync")


def parse_port(value: Any, field: str = "port", allow_zero: bool = False) -> int:
    """
    Validate a TCP port given as an int or a numeric string.

    Args:
        value: Port value
        field: Name used in the error message
        allow_zero: Accept 0 (bind to an ephemeral port)

    Returns:
        Port number

    Raises:
        ConfigValidationError: If the value is not a valid port
    """
    if isinstance(value, bool):
        raise ConfigValidationError(field, value, "not a port number")

    if isinstance(value, str):
        text = value.strip()
        if not (text.isascii() and text.isdigit()):
            raise ConfigValidationError(field, value, "not a port number")
        port = int(text)
    elif isinstance(value, int):
        port = value
    else:
        raise ConfigValidationError(field, value, "not a port number")

    low = 0 if allow_zero else 1
    if not (low <= port <= 65535):
        raise ConfigValidationError(field, value, f"must be {low}-65535")
    return port


def _first_value(store: ConfigStore, keys: Iterable[str]) -> Optional[str]:
    for key in keys:
        value = store.get(SYNC_SECTION, key)
        if value is not None and value.strip():
            return value.strip()
    return None


@dataclass
class SyncConfig:
    """
    Sync link configuration.

    Attributes:
        peer_host: Peer address override (None reads it from the store)
        peer_port: Peer port override (None reads it from the store)
        listen_host: Address the inbound server binds
        listen_port: Listen port override (None reads it from the store)
        connect_timeout: Seconds allowed for an outbound connect
        send_timeout: Seconds allowed without send progress
        read_timeout: Seconds allowed without receiving data
        poll_interval: Upper bound on every blocking wait
        connection_workers: Inbound connections handled concurrently
        initial_push: Push the local configuration once at startup
        initial_push_delay: Seconds to wait before the startup push
        auto_push_interval: Seconds between automatic pushes (0 disables)
        max_message_size: Largest accepted frame body in bytes
    """
    peer_host: Optional[str] = None
    peer_port: Optional[int] = None
    listen_host: str = DEFAULT_LISTEN_HOST
    listen_port: Optional[int] = None
    connect_timeout: float = CONNECT_TIMEOUT
    send_timeout: float = SEND_TIMEOUT
    read_timeout: float = CONNECTION_READ_TIMEOUT
    poll_interval: float = ACCEPT_POLL_INTERVAL
    connection_workers: int = CONNECTION_WORKERS
    initial_push: bool = True
    initial_push_delay: float = INITIAL_PUSH_DELAY
    auto_push_interval: float = 0.0
    max_message_size: int = MAX_MESSAGE_SIZE

    def __post_init__(self):
        """Validate configuration after initialization."""
        self._validate()

    def _validate(self):
        """Validate configuration values."""
        if self.peer_host is not None and not str(self.peer_host).strip():
            raise ConfigValidationError("peer_host", self.peer_host, "must not be empty")
        if self.peer_port is not None:
            self.peer_port = parse_port(self.peer_port, "peer_port")
        if self.listen_port is not None:
            self.listen_port = parse_port(self.listen_port, "listen_port", allow_zero=True)

        for name in ('connect_timeout', 'send_timeout', 'read_timeout', 'poll_interval'):
            if getattr(self, name) <= 0:
                raise ConfigValidationError(name, getattr(self, name), "must be positive")

        if self.connection_workers < 1:
            raise ConfigValidationError(
                "connection_workers", self.connection_workers, "must be at least 1"
            )
        if self.initial_push_delay < 0:
            raise ConfigValidationError(
                "initial_push_delay", self.initial_push_delay, "must not be negative"
            )
        if self.auto_push_interval < 0:
            raise ConfigValidationError(
                "auto_push_interval", self.auto_push_interval, "must not be negative"
            )
        if self.max_message_size < 1:
            raise ConfigValidationError(
                "max_message_size", self.max_message_size, "must be positive"
            )

        if self.poll_interval > self.read_timeout:
            logger.warning(
                f"poll_interval ({self.poll_interval}s) is longer than "
                f"read_timeout ({self.read_timeout}s)"
            )

    def resolve_peer(self, store: ConfigStore) -> Tuple[str, Any]:
        """
        Get the peer address to push to.

        Overrides win; otherwise the current [CONFIG_SYNC] values are
        used, then the built-in defaults. The port is returned as found
        so that the client reports an invalid stored port itself.
        """
        host = self.peer_host or _first_value(store, PEER_HOST_KEYS) or DEFAULT_PEER_HOST
        if self.peer_port is not None:
            port = self.peer_port
        else:
            port = _first_value(store, PEER_PORT_KEYS) or DEFAULT_PEER_PORT
        return host, port

    def resolve_listen_port(self, store: ConfigStore) -> int:
        """
        Get the port to listen on.

        Raises:
            ConfigValidationError: If the stored port is invalid
        """
        if self.listen_port is not None:
            return self.listen_port
        value = _first_value(store, LISTEN_PORT_KEYS)
        if value is None:
            return DEFAULT_LISTEN_PORT
        return parse_port(value, "listen_port", allow_zero=True)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SyncConfig':
        """Create from dictionary, ignoring unknown keys."""
        known_fields = {f.name for f in cls.__dataclass_fields__.values()}
        filtered = {k: v for k, v in data.items() if k in known_fields}
        return cls(**filtered)

    def __str__(self) -> str:
        peer = f"{self.peer_host or '<store>'}:{self.peer_port or '<store>'}"
        return (
            f"SyncConfig(peer={peer}, listen={self.listen_host}:"
            f"{self.listen_port if self.listen_port is not None else '<store>'}, "
            f"workers={self.connection_workers})"
        )
