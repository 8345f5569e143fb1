#!/usr/bin/env python3
"""
configsync Core Constants

Centralized constants for the sync wire protocol, network timeouts,
and default peer addressing.

All protocol limits and timing values should be defined here so the
client, server, and connection handler agree on them.

Author: configsync Team
Version: 1.0.0
"""

# =============================================================================
# WIRE PROTOCOL CONSTANTS
# =============================================================================

# Text encoding of frame headers and bodies
FRAME_ENCODING = "utf-8"

# Header line terminator: <decimal length>\n<body>
HEADER_TERMINATOR = b"\n"

# Maximum characters accepted before the header terminator
MAX_HEADER_LENGTH = 20

# Maximum accepted body size (1 MiB)
MAX_MESSAGE_SIZE = 1024 * 1024

# Body line layout: [SECTION]KEY=VALUE
SECTION_OPEN = "["
SECTION_CLOSE = "]"
KEY_VALUE_SEPARATOR = "="

# Characters trimmed from the end of a decoded value
VALUE_TRAILING_WHITESPACE = " \t\r\n"


# =============================================================================
# NETWORK CONSTANTS
# =============================================================================

# Default peer (remote application) address
DEFAULT_PEER_HOST = "192.168.4.10"
DEFAULT_PEER_PORT = 12347

# Default local listening address
DEFAULT_LISTEN_HOST = "0.0.0.0"
DEFAULT_LISTEN_PORT = 12348

# Pending connection queue for the listening socket
LISTEN_BACKLOG = 5

# Bytes requested per recv() call
RECV_BUFFER_SIZE = 4096

# Worker threads handling accepted connections
CONNECTION_WORKERS = 4


# =============================================================================
# TIMING CONSTANTS (seconds)
# =============================================================================

# Total time allowed for an outbound connection attempt
CONNECT_TIMEOUT = 5.0

# Time allowed without send progress before a write is abandoned
SEND_TIMEOUT = 5.0

# Idle time allowed between reads on an accepted connection
CONNECTION_READ_TIMEOUT = 10.0

# Upper bound on any single blocking wait, so shutdown is observed promptly
ACCEPT_POLL_INTERVAL = 1.0

# Backoff between send retries when the socket would block
SEND_RETRY_DELAY = 0.01

# Delay between listener start and the first outbound push
INITIAL_PUSH_DELAY = 1.0


# =============================================================================
# CONFIGURATION KEYS
# =============================================================================

# Section holding the sync link settings inside the shared configuration
SYNC_SECTION = "CONFIG_SYNC"

# Preferred key names, each followed by accepted legacy aliases
PEER_HOST_KEYS = ("PEER_HOST", "WPF_HOST")
PEER_PORT_KEYS = ("PEER_PORT", "WPF_RECV_PORT")
LISTEN_PORT_KEYS = ("LISTEN_PORT", "CPP_RECV_PORT")

# Suffix appended to a configuration file when backing it up before saving
BACKUP_SUFFIX = ".backup"


# =============================================================================
# LOGGING CONSTANTS
# =============================================================================

LOGGER_NAME = "configsync"
LOG_FORMAT = "[%(asctime)s] [%(levelname)s] %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_MAX_SIZE = 10 * 1024 * 1024
LOG_BACKUP_COUNT = 5
