#!/usr/bin/env python3
"""
configsync Configuration Persistence

Writes the store back to its INI file. The previous file is copied to
<path>.backup first, and the new content is written to a temporary file
that replaces the original in one step.
"""

import logging
import os
import shutil
import tempfile
import time

from .core.constants import BACKUP_SUFFIX
from .store import ConfigStore

logger = logging.getLogger("configsync")


def render_ini(store: ConfigStore) -> str:
    """Render the store as INI text, sections and keys sorted."""
    lines = [
        "# configsync configuration file",
        "# Written automatically by configsync",
        f"# Saved: {time.strftime('%Y-%m-%d %H:%M:%S')}",
        "",
    ]
    current = None
    for entry in store.snapshot():
        if entry.section != current:
            if current is not None:
                lines.append("")
            lines.append(f"[{entry.section}]")
            current = entry.section
        lines.append(f"{entry.key}={entry.value}")
    lines.append("")
    return "\n".join(lines)


def save_config(store: ConfigStore, path: str, backup: bool = True) -> bool:
    """
    Save the store to an INI file.

    Args:
        store: Store to save
        path: Destination file
        backup: Copy an existing file to <path>.backup first

    Returns:
        True if the file was written
    """
    content = render_ini(store)
    directory = os.path.dirname(os.path.abspath(path))

    try:
        if backup and os.path.isfile(path):
            backup_path = path + BACKUP_SUFFIX
            shutil.copy2(path, backup_path)
            logger.info(f"Backup created: {backup_path}")

        fd, temp_path = tempfile.mkstemp(
            prefix=".configsync-", suffix=".tmp", dir=directory
        )
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                f.write(content)
            os.replace(temp_path, path)
        except BaseException:
            if os.path.exists(temp_path):
                os.unlink(temp_path)
            raise

    except OSError as e:
        logger.error(f"Failed to save configuration to {path}: {e}")
        return False

    logger.info(f"Configuration saved to {path} ({len(store)} key(s))")
    return True
