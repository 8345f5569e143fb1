#!/usr/bin/env python3
"""
configsync Summaries

Human-readable views of the store for the console and the CLI.
"""

from typing import Any, Dict, List, Optional

from .store import ConfigStore


def format_config(store: ConfigStore) -> str:
    """Format every section and key, sorted."""
    lines = ["", "=== Current Configuration ===", ""]

    current = None
    for entry in store.snapshot():
        if entry.section != current:
            if current is not None:
                lines.append("")
            lines.append(f"[{entry.section}]")
            current = entry.section
        lines.append(f"  {entry.key} = {entry.value}")

    if current is None:
        lines.append("(empty)")

    lines.extend(["", "=============================", ""])
    return "\n".join(lines)


def format_stats(store: ConfigStore) -> str:
    """Format the key count of each section and the total."""
    counts = store.stats()
    lines = ["", "=== Configuration Statistics ===", ""]
    lines.append(f"  Sections:        {len(counts)}")
    for section in sorted(counts):
        lines.append(f"    [{section}]: {counts[section]} key(s)")
    lines.append(f"  Total Keys:      {sum(counts.values())}")
    lines.extend(["", "================================", ""])
    return "\n".join(lines)


def format_status(status: Dict[str, Any]) -> str:
    """Format a SyncService status dictionary."""
    lines = ["", "=== Sync Status ===", ""]

    peer: Optional[str] = status.get('peer')
    lines.append(f"  Peer:            {peer or 'N/A'}")
    lines.append(f"  Listening:       {status.get('listen') or 'not running'}")
    lines.append(f"  Keys:            {status.get('keys', 0)}")

    client = status.get('client', {})
    lines.append("")
    lines.append("Outbound:")
    lines.append(f"  Pushes Sent:     {client.get('pushes_sent', 0)}")
    lines.append(f"  Pulls:           {client.get('pulls_completed', 0)}")
    lines.append(f"  Failures:        {client.get('failures', 0)}")
    lines.append(f"  Last Error:      {client.get('last_error') or 'none'}")

    server = status.get('server', {}).get('stats', {})
    lines.append("")
    lines.append("Inbound:")
    lines.append(f"  Connections:     {server.get('connections', 0)}")
    lines.append(f"  Pushes Applied:  {server.get('pushes_applied', 0)}")
    lines.append(f"  Pull Requests:   {server.get('pull_requests', 0)}")
    lines.append(f"  Rejected:        {server.get('rejected', 0)}")
    lines.append(f"  Errors:          {server.get('errors', 0)}")
    lines.append(f"  Keys Changed:    {server.get('entries_changed', 0)}")
    lines.append(f"  Last Peer:       {server.get('last_peer') or 'none'}")
    lines.append("")
    return "\n".join(lines)


def format_changes(changes: List[Any]) -> str:
    """One line per ConfigChange."""
    if not changes:
        return "No changes"
    return "\n".join(
        f"  [{c.section}] {c.key} = {c.new_value}"
        + (" (new key)" if c.created else f" (was: {c.old_value})")
        for c in changes
    )
