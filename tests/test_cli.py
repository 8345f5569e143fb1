#!/usr/bin/env python3
"""
configsync Command Line Tests

Tests for argument parsing, input validation and the one-shot commands.
"""

import contextlib
import io
import json
import os
import shutil
import tempfile
import unittest

from configsync.cli import InputValidator, create_argument_parser
from configsync.loader import load_ini
from configsync.logger import setup_logging
from configsync.main import main
from configsync.shutdown import CancellationToken
from configsync.store import ConfigStore
from configsync.sync.server import SyncServer

from sync_helpers import CapturePeer, free_port


class InputValidatorTests(unittest.TestCase):

    def test_validate_port(self):
        self.assertEqual(InputValidator.validate_port("12347"), 12347)
        self.assertEqual(InputValidator.validate_port(80), 80)
        self.assertIsNone(InputValidator.validate_port("0"))
        self.assertEqual(InputValidator.validate_port("0", allow_zero=True), 0)
        for value in ("70000", "abc", "", "-1", True, "²"):
            with self.subTest(value=value):
                self.assertIsNone(InputValidator.validate_port(value))

    def test_validate_host(self):
        self.assertEqual(InputValidator.validate_host("192.168.4.10"), "192.168.4.10")
        self.assertEqual(InputValidator.validate_host("peer-1.local"), "peer-1.local")
        for value in ("", "bad host", "-leading", "a;b"):
            with self.subTest(value=value):
                self.assertIsNone(InputValidator.validate_host(value))

    def test_validate_numbers(self):
        self.assertEqual(InputValidator.validate_positive_float("2.5"), 2.5)
        self.assertIsNone(InputValidator.validate_positive_float("0"))
        self.assertIsNone(InputValidator.validate_positive_float("nan"))
        self.assertEqual(InputValidator.validate_workers("8"), 8)
        self.assertIsNone(InputValidator.validate_workers("0"))


class ArgumentParserTests(unittest.TestCase):

    def setUp(self):
        self.parser = create_argument_parser()

    def parse_error(self, argv):
        with contextlib.redirect_stderr(io.StringIO()), contextlib.redirect_stdout(io.StringIO()):
            with self.assertRaises(SystemExit):
                self.parser.parse_args(argv)

    def test_defaults(self):
        args = self.parser.parse_args(["--run"])
        self.assertEqual(args.config, "config.ini")
        self.assertIsNone(args.peer_host)
        self.assertIsNone(args.peer_port)
        self.assertEqual(args.listen_host, "0.0.0.0")
        self.assertEqual(args.log_level, "INFO")
        self.assertFalse(args.no_console)

    def test_command_required(self):
        self.parse_error([])

    def test_commands_exclusive(self):
        self.parse_error(["--run", "--push"])

    def test_invalid_ports_rejected(self):
        self.parse_error(["--push", "--peer-port", "0"])
        self.parse_error(["--push", "--peer-port", "abc"])
        self.parse_error(["--run", "--listen-port", "65536"])

    def test_listen_port_zero_accepted(self):
        self.assertEqual(self.parser.parse_args(["--run", "--listen-port", "0"]).listen_port, 0)

    def test_service_options(self):
        args = self.parser.parse_args([
            "--run", "--no-initial-push", "--auto-push", "30", "--no-console",
            "--workers", "2", "--connect-timeout", "1.5"
        ])
        self.assertTrue(args.no_initial_push)
        self.assertEqual(args.auto_push, 30.0)
        self.assertEqual(args.workers, 2)
        self.assertEqual(args.connect_timeout, 1.5)


class MainTests(unittest.TestCase):
    """main() end to end"""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.path = os.path.join(self.temp_dir, "config.ini")
        with open(self.path, 'w', encoding='utf-8') as f:
            f.write("[NETWORK]\nPORT=9000\n\n[UI]\nTITLE=Nav\n")

    def tearDown(self):
        setup_logging(console=False)
        shutil.rmtree(self.temp_dir)

    def run_main(self, argv):
        stdout = io.StringIO()
        with contextlib.redirect_stdout(stdout), contextlib.redirect_stderr(io.StringIO()):
            code = main(argv + ["--log-level", "CRITICAL"])
        return code, stdout.getvalue()

    def test_version(self):
        code, output = self.run_main(["--version"])
        self.assertEqual(code, 0)
        self.assertIn("configsync v", output)

    def test_show(self):
        code, output = self.run_main(["--show", "--config", self.path])
        self.assertEqual(code, 0)
        self.assertIn("PORT = 9000", output)

    def test_show_json(self):
        code, output = self.run_main(["--show", "--json", "--config", self.path])
        self.assertEqual(code, 0)
        self.assertEqual(json.loads(output), {"NETWORK": {"PORT": "9000"}, "UI": {"TITLE": "Nav"}})

    def test_stats(self):
        code, output = self.run_main(["--stats", "--config", self.path])
        self.assertEqual(code, 0)
        self.assertIn("Sections:        2", output)

    def test_missing_config(self):
        code, _ = self.run_main(["--show", "--config", os.path.join(self.temp_dir, "none.ini")])
        self.assertEqual(code, 1)

    def test_push(self):
        peer = CapturePeer()
        peer.start()
        code, output = self.run_main([
            "--push", "--config", self.path,
            "--peer-host", "127.0.0.1", "--peer-port", str(peer.port)
        ])
        peer.join(5)
        self.assertEqual(code, 0)
        self.assertIn("ok", output)
        self.assertEqual(peer.received, [b"33\n[NETWORK]PORT=9000\n[UI]TITLE=Nav\n"])

    def test_push_refused(self):
        code, output = self.run_main([
            "--push", "--json", "--config", self.path,
            "--peer-host", "127.0.0.1", "--peer-port", str(free_port()),
            "--connect-timeout", "1"
        ])
        self.assertEqual(code, 1)
        self.assertEqual(json.loads(output)['error_kind'], "connectivity")

    def test_pull_to_output(self):
        remote = ConfigStore({"REMOTE": {"KEY": "value"}})
        server = SyncServer(remote, CancellationToken(), host="127.0.0.1", port=0,
                            poll_interval=0.2)
        server.start()
        output_path = os.path.join(self.temp_dir, "pulled.ini")
        try:
            code, _ = self.run_main([
                "--pull", "--config", self.path, "--output", output_path,
                "--peer-host", "127.0.0.1", "--peer-port", str(server.address[1])
            ])
        finally:
            server.stop(timeout=3.0)

        self.assertEqual(code, 0)
        pulled = load_ini(output_path)
        self.assertEqual(pulled.get("REMOTE", "KEY"), "value")
        self.assertEqual(pulled.get("NETWORK", "PORT"), "9000")
        self.assertEqual(load_ini(self.path).get("REMOTE", "KEY"), None)


if __name__ == '__main__':
    unittest.main()
