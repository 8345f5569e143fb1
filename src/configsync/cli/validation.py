#!/usr/bin/env python3
"""
configsync Input Validation Module

Validates command-line values before they reach the service. Every
validator returns the normalized value, or None if the input is invalid.
"""

import re
import unicodedata
from functools import lru_cache
from typing import Optional


class InputValidator:
    """Input validation for command-line arguments"""

    # RFC 1123 hostname label, or a dotted IPv4 address
    _HOST_PATTERN = re.compile(
        r'^(?=.{1,253}$)[A-Za-z0-9]([A-Za-z0-9-]{0,61}[A-Za-z0-9])?'
        r'(\.[A-Za-z0-9]([A-Za-z0-9-]{0,61}[A-Za-z0-9])?)*$'
    )

    @classmethod
    @lru_cache(maxsize=256)
    def sanitize_string(cls, input_str: str, max_length: int = 255) -> Optional[str]:
        """
        Strip control characters and surrounding whitespace

        Args:
            input_str: String to sanitize
            max_length: Maximum allowed length

        Returns:
            Sanitized string or None if invalid
        """
        if not isinstance(input_str, str) or not input_str.strip():
            return None

        sanitized = ''.join(
            char for char in input_str
            if unicodedata.category(char)[0] != 'C'
        )

        if len(sanitized) > max_length:
            print(f"Input too long: {len(sanitized)} > {max_length}")
            return None

        return sanitized.strip()

    @classmethod
    def validate_port(cls, port_value, allow_zero: bool = False) -> Optional[int]:
        """
        Port validation

        Args:
            port_value: Port number (string or int)
            allow_zero: Accept 0 (ephemeral port)

        Returns:
            Valid port number or None
        """
        try:
            if isinstance(port_value, bool):
                return None
            if isinstance(port_value, str):
                sanitized = cls.sanitize_string(port_value, max_length=10)
                if not sanitized or not (sanitized.isascii() and sanitized.isdigit()):
                    print(f"Invalid port value: {port_value}")
                    return None
                port = int(sanitized)
            else:
                port = int(port_value)

            low = 0 if allow_zero else 1
            if not (low <= port <= 65535):
                print(f"Port out of range: {port}")
                return None

            return port
        except (ValueError, TypeError):
            print(f"Invalid port value: {port_value}")
            return None

    @classmethod
    @lru_cache(maxsize=256)
    def validate_host(cls, host: str) -> Optional[str]:
        """
        Hostname or IPv4 address validation (syntax only, no lookup)

        Returns:
            Valid host string or None
        """
        sanitized = cls.sanitize_string(host, max_length=253)
        if not sanitized:
            return None
        if not cls._HOST_PATTERN.match(sanitized):
            print(f"Invalid host: {host}")
            return None
        return sanitized

    @classmethod
    def validate_positive_float(cls, value) -> Optional[float]:
        """
        Validate a strictly positive number of seconds

        Returns:
            Float value or None
        """
        try:
            number = float(value)
        except (ValueError, TypeError):
            return None
        if number != number or number <= 0:
            return None
        return number

    @classmethod
    def validate_workers(cls, value) -> Optional[int]:
        """
        Validate a worker count (1-64)

        Returns:
            Worker count or None
        """
        try:
            workers = int(value)
        except (ValueError, TypeError):
            return None
        if not (1 <= workers <= 64):
            return None
        return workers
