#!/usr/bin/env python3
"""
configsync Sync Module

Wire framing and both directions of the peer link:

- codec: frame encode/decode
- transport: partial send/receive helpers
- client: outbound push and pull
- handler: per-connection state machine
- server: inbound listener and worker pool
"""

from .codec import (
    PULL_REQUEST,
    decode,
    decode_frame,
    encode,
    encode_frame,
    parse_header,
)
from .client import SyncAction, SyncClient, SyncResult
from .handler import (
    ConnectionHandler,
    ConnectionOutcome,
    ConnectionResult,
    HandlerState,
    apply_body,
)
from .server import ServerStats, SyncServer

__all__ = [
    'PULL_REQUEST',
    'decode',
    'decode_frame',
    'encode',
    'encode_frame',
    'parse_header',
    'SyncAction',
    'SyncClient',
    'SyncResult',
    'ConnectionHandler',
    'ConnectionOutcome',
    'ConnectionResult',
    'HandlerState',
    'apply_body',
    'ServerStats',
    'SyncServer',
]
