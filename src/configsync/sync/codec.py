#!/usr/bin/env python3
"""
configsync Frame Codec

Encodes the configuration store into a length-prefixed text frame and
decodes a received body back into individual entries.

Frame layout:
    <decimal body length>\\n<body>

Body layout, one entry per line:
    [SECTION]KEY=VALUE\\n

A frame with an empty body is a pull request: the receiver answers
with its own configuration on the same connection.

Decoding is lenient: lines that do not start with '[' or that lack the
closing ']' or the '=' separator are skipped, so one corrupted line does
not invalidate an otherwise valid push.

Author: configsync Team
Version: 1.0.0
"""

import logging
from typing import Iterable, List, Optional, Tuple

from ..core.constants import (
    FRAME_ENCODING,
    HEADER_TERMINATOR,
    KEY_VALUE_SEPARATOR,
    SECTION_CLOSE,
    SECTION_OPEN,
    VALUE_TRAILING_WHITESPACE,
)
from ..core.exceptions import FrameLengthMismatchError, InvalidHeaderError
from ..store import ConfigEntry, ConfigStore

logger = logging.getLogger("configsync")

_LINE_BREAKS = ("\n", "\r")


def encode_frame(body: bytes) -> bytes:
    """Prefix a body with its decimal length header."""
    header = str(len(body)).encode("ascii")
    return header + HEADER_TERMINATOR + body


# Zero-length frame: ask the peer for its current configuration
PULL_REQUEST = encode_frame(b"")


def _is_encodable(entry: ConfigEntry) -> bool:
    """Check that an entry survives a round trip through the line format."""
    if SECTION_CLOSE in entry.section:
        return False
    if KEY_VALUE_SEPARATOR in entry.key:
        return False
    return not any(
        brk in field
        for field in (entry.section, entry.key, entry.value)
        for brk in _LINE_BREAKS
    )


def encode_body(entries: Iterable[ConfigEntry]) -> bytes:
    """
    Encode entries as [SECTION]KEY=VALUE lines.

    Entries that cannot be represented in the line format (section with
    ']', key with '=', or any line break) are skipped with a warning.

    Args:
        entries: Entries in the order they should appear

    Returns:
        UTF-8 encoded body
    """
    lines = []
    for entry in entries:
        if not _is_encodable(entry):
            logger.warning(f"Skipping entry that cannot be encoded: {entry!r}")
            continue
        lines.append(
            f"{SECTION_OPEN}{entry.section}{SECTION_CLOSE}"
            f"{entry.key}{KEY_VALUE_SEPARATOR}{entry.value}\n"
        )
    return "".join(lines).encode(FRAME_ENCODING)


def encode(store: ConfigStore) -> bytes:
    """
    Encode the current store contents as a complete frame.

    Entries are sorted by section, then key.
    """
    return encode_frame(encode_body(store.snapshot()))


def parse_header(line: bytes) -> int:
    """
    Parse a header line (terminator already removed) as a body length.

    Surrounding spaces, tabs and carriage returns are ignored.

    Raises:
        InvalidHeaderError: If the header is not an unsigned decimal number
    """
    text = line.decode("ascii", errors="replace").strip(" \t\r")
    if not text or not all("0" <= ch <= "9" for ch in text):
        raise InvalidHeaderError(text)
    return int(text)


def decode_line(line: str) -> Optional[ConfigEntry]:
    """
    Decode one body line.

    Returns:
        ConfigEntry, or None if the line is not a well-formed entry
    """
    if not line.startswith(SECTION_OPEN):
        return None

    section_end = line.find(SECTION_CLOSE)
    if section_end < 0:
        return None

    equals_pos = line.find(KEY_VALUE_SEPARATOR, section_end)
    if equals_pos < 0:
        return None

    section = line[1:section_end]
    key = line[section_end + 1:equals_pos]
    value = line[equals_pos + 1:].rstrip(VALUE_TRAILING_WHITESPACE)
    return ConfigEntry(section, key, value)


def decode(body: bytes) -> List[ConfigEntry]:
    """
    Decode a frame body into entries, skipping malformed lines.

    Args:
        body: Raw body bytes (without the length header)

    Returns:
        Entries in the order they appeared
    """
    text = body.decode(FRAME_ENCODING, errors="replace")
    entries = []
    skipped = 0
    for line in text.split("\n"):
        entry = decode_line(line)
        if entry is None:
            if line.strip():
                skipped += 1
            continue
        entries.append(entry)

    if skipped:
        logger.debug(f"Skipped {skipped} malformed line(s) while decoding")
    return entries


def split_frame(frame: bytes) -> Tuple[int, bytes]:
    """
    Split a complete frame into (declared length, body).

    Raises:
        InvalidHeaderError: If the header is missing or not numeric
        FrameLengthMismatchError: If the body length differs from the header
    """
    header, sep, body = frame.partition(HEADER_TERMINATOR)
    if not sep:
        raise InvalidHeaderError(header.decode("ascii", errors="replace"))
    length = parse_header(header)
    if len(body) != length:
        raise FrameLengthMismatchError(length, len(body))
    return length, body


def decode_frame(frame: bytes) -> List[ConfigEntry]:
    """Decode a complete frame (header and body) into entries."""
    _, body = split_frame(frame)
    return decode(body)
