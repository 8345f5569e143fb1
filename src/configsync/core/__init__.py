#!/usr/bin/env python3
"""
configsync Core Package

Shared constants and the exception hierarchy used by every other
configsync module.
"""

from .exceptions import (
    ConfigSyncError,
    ConfigurationError,
    ConfigFileNotFoundError,
    ConfigParseError,
    ConfigValidationError,
    ConnectivityError,
    ListenerError,
    ProtocolError,
    InvalidHeaderError,
    HeaderTooLongError,
    MessageTooLargeError,
    FrameLengthMismatchError,
    TransferError,
    OperationCancelled,
)

__all__ = [
    'ConfigSyncError',
    'ConfigurationError',
    'ConfigFileNotFoundError',
    'ConfigParseError',
    'ConfigValidationError',
    'ConnectivityError',
    'ListenerError',
    'ProtocolError',
    'InvalidHeaderError',
    'HeaderTooLongError',
    'MessageTooLargeError',
    'FrameLengthMismatchError',
    'TransferError',
    'OperationCancelled',
]
