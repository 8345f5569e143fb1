#!/usr/bin/env python3
"""
configsync Loader and Persistence Tests

Tests for reading INI files into the store and writing them back with
a backup.
"""

import os
import shutil
import tempfile
import unittest

from configsync.core.exceptions import ConfigFileNotFoundError, ConfigParseError
from configsync.loader import load_ini, reload_store
from configsync.persistence import render_ini, save_config
from configsync.store import ConfigStore

SAMPLE_INI = """\
# Navigator configuration
[NETWORK]
PORT=9000
Host = 10.0.0.1   ; inline comment
Format=%d%%

[DEFAULT]
Mode=auto

[CONFIG_SYNC]
PEER_HOST=192.168.4.10
"""


class LoaderTests(unittest.TestCase):

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.path = os.path.join(self.temp_dir, "config.ini")

    def tearDown(self):
        shutil.rmtree(self.temp_dir)

    def write(self, text):
        with open(self.path, 'w', encoding='utf-8') as f:
            f.write(text)

    def test_load_sample(self):
        self.write(SAMPLE_INI)
        store = load_ini(self.path)
        self.assertEqual(store.get("NETWORK", "PORT"), "9000")
        self.assertEqual(store.get("NETWORK", "Host"), "10.0.0.1")
        self.assertIsNone(store.get("NETWORK", "host"))
        self.assertEqual(store.get("NETWORK", "Format"), "%d%%")
        self.assertEqual(store.get("DEFAULT", "Mode"), "auto")
        self.assertIsNone(store.get("NETWORK", "Mode"))
        self.assertEqual(len(store), 5)

    def test_missing_file(self):
        with self.assertRaises(ConfigFileNotFoundError):
            load_ini(self.path)

    def test_parse_error(self):
        self.write("PORT=9000\n")
        with self.assertRaises(ConfigParseError) as ctx:
            load_ini(self.path)
        self.assertEqual(ctx.exception.kind, "configuration")

    def test_reload_replaces_contents(self):
        self.write("[A]\nx=1\n")
        store = load_ini(self.path)
        store.set("B", "y", "2")
        self.write("[A]\nx=3\n")
        self.assertTrue(reload_store(store, self.path))
        self.assertEqual(store.to_dict(), {"A": {"x": "3"}})

    def test_failed_reload_keeps_store(self):
        store = ConfigStore({"A": {"x": "1"}})
        self.assertFalse(reload_store(store, self.path))
        self.assertEqual(store.to_dict(), {"A": {"x": "1"}})


class PersistenceTests(unittest.TestCase):

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.path = os.path.join(self.temp_dir, "config.ini")
        self.store = ConfigStore({
            "NETWORK": {"PORT": "9000", "HOST": "10.0.0.1"},
            "UI": {"TITLE": "Navigator 温度"},
        })

    def tearDown(self):
        shutil.rmtree(self.temp_dir)

    def test_render_sorted(self):
        text = render_ini(self.store)
        self.assertTrue(text.startswith("#"))
        self.assertIn("[NETWORK]\nHOST=10.0.0.1\nPORT=9000\n\n[UI]\n", text)

    def test_save_and_load_round_trip(self):
        self.assertTrue(save_config(self.store, self.path))
        self.assertEqual(load_ini(self.path).to_dict(), self.store.to_dict())
        leftovers = [name for name in os.listdir(self.temp_dir) if name.endswith(".tmp")]
        self.assertEqual(leftovers, [])

    def test_backup_of_previous_file(self):
        with open(self.path, 'w', encoding='utf-8') as f:
            f.write("[OLD]\nkey=value\n")

        self.assertTrue(save_config(self.store, self.path))

        with open(self.path + ".backup", encoding='utf-8') as f:
            self.assertEqual(f.read(), "[OLD]\nkey=value\n")
        self.assertEqual(load_ini(self.path).get("NETWORK", "PORT"), "9000")

    def test_no_backup_for_new_file(self):
        self.assertTrue(save_config(self.store, self.path))
        self.assertFalse(os.path.exists(self.path + ".backup"))

    def test_save_failure_returns_false(self):
        path = os.path.join(self.temp_dir, "missing", "config.ini")
        self.assertFalse(save_config(self.store, path))


if __name__ == '__main__':
    unittest.main()
