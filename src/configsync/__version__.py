#!/usr/bin/env python3
"""
configsync Version Information

Single source of truth for the package version.

Usage:
    from configsync.__version__ import __version__

    print(f"configsync v{__version__}")
"""

__version__ = '1.0.0'

__description__ = 'Peer-to-peer INI configuration synchronization over TCP'


def get_version_banner() -> str:
    """
    Get formatted version banner for display.

    Returns:
        str: Multi-line version banner
    """
    return (
        f"configsync v{__version__}\n"
        f"{__description__}"
    )
