#!/usr/bin/env python3
"""
configsync Core Exceptions

Custom exception hierarchy for configsync.
Each category carries a short ``kind`` string so that results reported
to callers (push/pull results, connection results) can say what went
wrong without exposing exception classes.

Author: configsync Team
Version: 1.0.0
"""

from typing import Optional, Any


class ConfigSyncError(Exception):
    """
    Base exception for all configsync errors.

    All custom exceptions in configsync inherit from this class,
    allowing for catch-all error handling at connection and push
    boundaries.
    """

    kind = "error"

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def __str__(self) -> str:
        if self.details:
            return f"{self.message}: {self.details}"
        return self.message


# =============================================================================
# CONFIGURATION EXCEPTIONS
# =============================================================================

class ConfigurationError(ConfigSyncError):
    """
    Exception for configuration-related errors.

    Raised when configuration files are missing or invalid, or when an
    address or port cannot be used. Fails fast: no connection is attempted.
    """

    kind = "configuration"


class ConfigFileNotFoundError(ConfigurationError):
    """Raised when a required configuration file is not found."""

    def __init__(self, file_path: str):
        super().__init__(
            "Configuration file not found",
            details=file_path
        )
        self.file_path = file_path


class ConfigParseError(ConfigurationError):
    """Raised when a configuration file cannot be parsed."""

    def __init__(self, file_path: str, parse_error: str):
        super().__init__(
            "Failed to parse configuration file",
            details=f"{file_path}: {parse_error}"
        )
        self.file_path = file_path
        self.parse_error = parse_error


class ConfigValidationError(ConfigurationError):
    """Raised when configuration values are invalid."""

    def __init__(self, field: str, value: Any, reason: str):
        super().__init__(
            f"Invalid configuration value for '{field}'",
            details=f"value={value!r}, reason={reason}"
        )
        self.field = field
        self.value = value
        self.reason = reason


# =============================================================================
# CONNECTIVITY EXCEPTIONS
# =============================================================================

class ConnectivityError(ConfigSyncError):
    """
    Exception for connection establishment errors.

    Raised when the peer refuses, is unreachable, or does not answer
    within the connect timeout. Never fatal: callers may retry later.
    """

    kind = "connectivity"

    def __init__(self, host: str, port: int, error: str):
        super().__init__(
            f"Cannot connect to peer {host}:{port}",
            details=error
        )
        self.host = host
        self.port = port
        self.error = error


class ListenerError(ConnectivityError):
    """Raised when the listening socket cannot be created or bound."""

    def __init__(self, host: str, port: int, error: str):
        super().__init__(host, port, error)
        self.message = f"Cannot listen on {host}:{port}"


# =============================================================================
# PROTOCOL EXCEPTIONS
# =============================================================================

class ProtocolError(ConfigSyncError):
    """
    Exception for wire protocol violations.

    The offending connection is rejected and closed without a reply.
    Other connections and the listener are not affected.
    """

    kind = "protocol"


class InvalidHeaderError(ProtocolError):
    """Raised when a frame header is not an unsigned decimal length."""

    def __init__(self, header: str):
        super().__init__(
            "Invalid frame header",
            details=repr(header)
        )
        self.header = header


class HeaderTooLongError(ProtocolError):
    """Raised when no header terminator is seen within the allowed length."""

    def __init__(self, limit: int):
        super().__init__(
            "Frame header too long",
            details=f"more than {limit} characters before terminator"
        )
        self.limit = limit


class MessageTooLargeError(ProtocolError):
    """Raised when a frame declares a body larger than allowed."""

    def __init__(self, length: int, limit: int):
        super().__init__(
            "Frame body too large",
            details=f"{length} bytes declared, limit is {limit}"
        )
        self.length = length
        self.limit = limit


class FrameLengthMismatchError(ProtocolError):
    """Raised when a complete frame's body does not match its header."""

    def __init__(self, declared: int, actual: int):
        super().__init__(
            "Frame length mismatch",
            details=f"header declares {declared} bytes, body has {actual}"
        )
        self.declared = declared
        self.actual = actual


# =============================================================================
# TRANSFER EXCEPTIONS
# =============================================================================

class TransferError(ConfigSyncError):
    """
    Exception for mid-transfer read/write failures.

    Raised when a connection fails or goes idle after it was established.
    Updates from a failed transfer are never applied.
    """

    kind = "transfer"

    def __init__(self, operation: str, error: str):
        super().__init__(
            f"Socket {operation} failed",
            details=error
        )
        self.operation = operation
        self.error = error


class OperationCancelled(ConfigSyncError):
    """Raised when a blocking operation observes the cancellation token."""

    kind = "cancelled"
