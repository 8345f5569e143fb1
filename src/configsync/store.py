#!/usr/bin/env python3
"""
configsync Configuration Store

Thread-safe mapping of section name -> (key -> value), the single source
of truth read and written by the outbound client, the inbound server,
and the interactive console.

All access goes through the synchronized methods below; callers never
touch the underlying dictionaries.

Author: configsync Team
Version: 1.0.0
"""

import threading
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional

ConfigMapping = Dict[str, Dict[str, str]]


@dataclass(frozen=True, order=True)
class ConfigEntry:
    """
    A single (section, key, value) triple.

    Produced while iterating the store for encoding and while decoding
    a received frame. Never stored as such.
    """
    section: str
    key: str
    value: str

    def __str__(self) -> str:
        return f"[{self.section}]{self.key}={self.value}"


@dataclass(frozen=True)
class ConfigChange:
    """
    Record of an applied entry whose value differed from the stored one.

    Attributes:
        section: Section name
        key: Key name
        old_value: Previous value, or None if the key did not exist
        new_value: Value now stored
    """
    section: str
    key: str
    old_value: Optional[str]
    new_value: str

    @property
    def created(self) -> bool:
        """True if the key did not exist before the change."""
        return self.old_value is None


class ConfigStore:
    """
    Thread-safe shared configuration.

    A single re-entrant lock guards every operation, so bulk reads
    (snapshot) and bulk writes (apply) are atomic with respect to each
    other and to single-key access.
    """

    def __init__(self, initial: Optional[Mapping[str, Mapping[str, str]]] = None):
        self._lock = threading.RLock()
        self._data: ConfigMapping = {}
        if initial:
            self.replace(initial)

    def get(self, section: str, key: str, default: Optional[str] = None) -> Optional[str]:
        """Get a value, or default if the section or key is absent."""
        with self._lock:
            return self._data.get(section, {}).get(key, default)

    def set(self, section: str, key: str, value: str) -> None:
        """Set a value, creating the section and key if needed."""
        with self._lock:
            self._data.setdefault(section, {})[key] = str(value)

    def snapshot(self) -> List[ConfigEntry]:
        """
        Get a consistent point-in-time copy of every entry.

        Returns:
            Entries sorted by section, then key
        """
        with self._lock:
            entries = [
                ConfigEntry(section, key, value)
                for section, values in self._data.items()
                for key, value in values.items()
            ]
        entries.sort()
        return entries

    def apply_changes(self, entries: Iterable[ConfigEntry]) -> List[ConfigChange]:
        """
        Apply entries in order and report the ones that changed a value.

        An entry whose value equals the stored value is skipped. A key
        that did not exist counts as changed even if the new value is
        empty.

        Args:
            entries: Entries to apply

        Returns:
            One ConfigChange per entry that modified the store
        """
        changes = []
        with self._lock:
            for entry in entries:
                section = self._data.setdefault(entry.section, {})
                old_value = section.get(entry.key)
                if old_value == entry.value:
                    continue
                section[entry.key] = entry.value
                changes.append(
                    ConfigChange(entry.section, entry.key, old_value, entry.value)
                )
        return changes

    def apply(self, entries: Iterable[ConfigEntry]) -> int:
        """
        Apply entries and count the ones whose value actually changed.

        Args:
            entries: Entries to apply

        Returns:
            Number of changed entries
        """
        return len(self.apply_changes(entries))

    def replace(self, mapping: Mapping[str, Mapping[str, str]]) -> None:
        """Replace the whole configuration, e.g. after a reload from disk."""
        data = {
            str(section): {str(key): str(value) for key, value in values.items()}
            for section, values in mapping.items()
        }
        with self._lock:
            self._data = data

    def to_dict(self) -> ConfigMapping:
        """Get a deep copy of the configuration as nested dictionaries."""
        with self._lock:
            return {section: dict(values) for section, values in self._data.items()}

    def get_section(self, section: str) -> Dict[str, str]:
        """Get a copy of one section (empty if absent)."""
        with self._lock:
            return dict(self._data.get(section, {}))

    def sections(self) -> List[str]:
        """Get the sorted section names."""
        with self._lock:
            return sorted(self._data)

    def stats(self) -> Dict[str, int]:
        """Get the number of keys in each section."""
        with self._lock:
            return {section: len(values) for section, values in self._data.items()}

    def __len__(self) -> int:
        with self._lock:
            return sum(len(values) for values in self._data.values())

    def __repr__(self) -> str:
        return f"ConfigStore(sections={len(self.sections())}, keys={len(self)})"
