#!/usr/bin/env python3
"""
configsync INI Loader

Reads the local configuration file into a ConfigStore.

Key case is preserved, values are taken literally (no interpolation)
and ';' starts a comment, also after a value on the same line.
"""

import configparser
import logging
import os
from typing import Dict

from .core.exceptions import ConfigFileNotFoundError, ConfigParseError
from .store import ConfigMapping, ConfigStore

logger = logging.getLogger("configsync")


def _new_parser() -> configparser.ConfigParser:
    parser = configparser.ConfigParser(
        interpolation=None,
        inline_comment_prefixes=(';',),
        strict=False,
        # [DEFAULT] is an ordinary section in these files
        default_section="\x00DEFAULT",
    )
    parser.optionxform = str
    return parser


def read_ini(path: str) -> ConfigMapping:
    """
    Parse an INI file into nested dictionaries.

    Args:
        path: Configuration file path

    Returns:
        Mapping of section -> (key -> value)

    Raises:
        ConfigFileNotFoundError: If the file does not exist
        ConfigParseError: If the file cannot be read or parsed
    """
    if not os.path.isfile(path):
        raise ConfigFileNotFoundError(path)

    parser = _new_parser()
    try:
        with open(path, 'r', encoding='utf-8') as f:
            parser.read_file(f, source=path)
    except configparser.Error as e:
        raise ConfigParseError(path, str(e)) from e
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigParseError(path, str(e)) from e

    data: Dict[str, Dict[str, str]] = {}
    for section in parser.sections():
        data[section] = {
            key: (value if value is not None else "")
            for key, value in parser.items(section, raw=True)
        }
    return data


def load_ini(path: str) -> ConfigStore:
    """
    Load a configuration file into a new store.

    Raises:
        ConfigFileNotFoundError: If the file does not exist
        ConfigParseError: If the file cannot be parsed
    """
    store = ConfigStore(read_ini(path))
    logger.info(
        f"Configuration loaded from {path}: "
        f"{len(store.sections())} section(s), {len(store)} key(s)"
    )
    return store


def reload_store(store: ConfigStore, path: str) -> bool:
    """
    Replace the store contents with the file contents.

    The store is left untouched if the file cannot be read.

    Returns:
        True if the store was reloaded
    """
    try:
        data = read_ini(path)
    except (ConfigFileNotFoundError, ConfigParseError) as e:
        logger.error(f"Failed to reload configuration: {e}")
        return False

    store.replace(data)
    logger.info(f"Configuration reloaded from {path}: {len(store)} key(s)")
    return True
