#!/usr/bin/env python3
"""
configsync - Peer-to-peer configuration synchronization

Keeps an INI-style configuration in step between two processes over a
private TCP link. Either side may push its full configuration or ask
the other side for its current one.
"""

from .__version__ import __version__
from .config import SyncConfig
from .shutdown import CancellationToken
from .store import ConfigChange, ConfigEntry, ConfigStore

__all__ = [
    '__version__',
    'CancellationToken',
    'ConfigChange',
    'ConfigEntry',
    'ConfigStore',
    'SyncConfig',
]
