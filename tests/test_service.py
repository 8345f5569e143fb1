#!/usr/bin/env python3
"""
configsync Service and Console Tests

Two services synchronizing over loopback, the auto-push timer, the
interactive console commands, and run_service() startup handling.
"""

import io
import os
import shutil
import socket
import tempfile
import threading
import unittest

from configsync.config import SyncConfig
from configsync.console import CommandConsole
from configsync.loader import load_ini
from configsync.service import SyncService, run_service
from configsync.shutdown import CancellationToken
from configsync.store import ConfigStore

from sync_helpers import CapturePeer, free_port, wait_for


def fast_config(**kwargs):
    settings = dict(
        peer_host="127.0.0.1",
        listen_host="127.0.0.1",
        listen_port=0,
        poll_interval=0.2,
        read_timeout=2.0,
        connect_timeout=1.0,
        initial_push=False,
    )
    settings.update(kwargs)
    return SyncConfig(**settings)


class TwoPeerTests(unittest.TestCase):
    """Two services connected over loopback"""

    def setUp(self):
        self.a = SyncService(ConfigStore({"NETWORK": {"PORT": "9000"}}), fast_config())
        self.b = SyncService(ConfigStore({"UI": {"TITLE": "Nav"}}), fast_config())
        self.a.start()
        self.b.start()
        self.a.config.peer_port = self.b.server.address[1]
        self.b.config.peer_port = self.a.server.address[1]

    def tearDown(self):
        self.a.stop(timeout=3.0)
        self.b.stop(timeout=3.0)

    def test_push(self):
        result = self.a.push()
        self.assertTrue(result.success, result.error)
        self.assertTrue(wait_for(lambda: self.b.store.get("NETWORK", "PORT") == "9000"))
        self.assertEqual(self.b.store.get("UI", "TITLE"), "Nav")

    def test_pull(self):
        result = self.a.pull()
        self.assertTrue(result.success, result.error)
        self.assertEqual(self.a.store.get("UI", "TITLE"), "Nav")
        self.assertEqual(len(result.changes), 1)

    def test_status(self):
        self.a.push()
        wait_for(lambda: self.b.get_status()['server']['stats']['pushes_applied'] == 1)
        status = self.a.get_status()
        self.assertEqual(status['peer'], f"127.0.0.1:{self.b.server.address[1]}")
        self.assertEqual(status['client']['pushes_sent'], 1)
        self.assertTrue(status['server']['running'])

    def test_stop(self):
        self.assertTrue(self.a.stop(timeout=3.0))
        self.assertFalse(self.a.server.running)
        self.assertTrue(self.a.token.cancelled)


class AutoPushTests(unittest.TestCase):

    def test_auto_push_repeats(self):
        peer = CapturePeer(accept_count=2, timeout=5.0)
        peer.start()
        service = SyncService(
            ConfigStore({"A": {"k": "v"}}),
            fast_config(peer_port=peer.port, auto_push_interval=0.2)
        )
        service.start()
        try:
            self.assertTrue(wait_for(lambda: len(peer.received) >= 2))
        finally:
            service.stop(timeout=3.0)
            peer.stop()
        self.assertEqual(peer.received[0], b"7\n[A]k=v\n")

    def test_initial_push(self):
        peer = CapturePeer()
        peer.start()
        service = SyncService(
            ConfigStore({"A": {"k": "v"}}),
            fast_config(peer_port=peer.port, initial_push=True, initial_push_delay=0.05)
        )
        result = service.initial_push()
        peer.join(5)
        self.assertTrue(result.success, result.error)
        self.assertEqual(len(peer.received), 1)

    def test_initial_push_disabled_or_cancelled(self):
        service = SyncService(ConfigStore(), fast_config(peer_port=free_port()))
        self.assertIsNone(service.initial_push())

        service = SyncService(ConfigStore(), fast_config(peer_port=free_port(), initial_push=True))
        service.token.cancel("test")
        self.assertIsNone(service.initial_push())


class ConsoleTests(unittest.TestCase):
    """CommandConsole with in-memory streams"""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.path = os.path.join(self.temp_dir, "config.ini")
        with open(self.path, 'w', encoding='utf-8') as f:
            f.write("[NETWORK]\nPORT=9000\n")
        self.service = SyncService(
            load_ini(self.path),
            fast_config(peer_port=free_port(), connect_timeout=0.5),
            CancellationToken(),
            self.path
        )

    def tearDown(self):
        shutil.rmtree(self.temp_dir)

    def run_console(self, text):
        stdout = io.StringIO()
        CommandConsole(self.service, stdin=io.StringIO(text), stdout=stdout).run()
        return stdout.getvalue()

    def test_show_and_stats(self):
        output = self.run_console("s\nt\n")
        self.assertIn("[NETWORK]", output)
        self.assertIn("PORT = 9000", output)
        self.assertIn("Total Keys:      1", output)

    def test_unknown_command_shows_help(self):
        output = self.run_console("x\n")
        self.assertIn("Unknown command: 'x'", output)
        self.assertEqual(output.count("Commands:"), 2)

    def test_quit_stops_reading(self):
        output = self.run_console("q\ns\n")
        self.assertIn("Shutting down", output)
        self.assertNotIn("[NETWORK]", output)

    def test_end_of_input_stops(self):
        self.assertIn("Commands:", self.run_console(""))

    def test_enter_pushes(self):
        output = self.run_console("\n")
        self.assertIn("Sending current configuration", output)
        self.assertIn("failed (connectivity)", output)

    def test_save(self):
        self.service.store.set("NETWORK", "PORT", "9100")
        output = self.run_console("w\n")
        self.assertIn("Configuration saved", output)
        self.assertEqual(load_ini(self.path).get("NETWORK", "PORT"), "9100")
        self.assertTrue(os.path.exists(self.path + ".backup"))

    def test_reload_then_push(self):
        peer = CapturePeer()
        peer.start()
        self.service.config.peer_port = peer.port
        with open(self.path, 'w', encoding='utf-8') as f:
            f.write("[NETWORK]\nPORT=9200\n")

        output = self.run_console("r\n")
        peer.join(5)

        self.assertEqual(self.service.store.get("NETWORK", "PORT"), "9200")
        self.assertIn("push to", output)
        self.assertEqual(peer.received, [b"19\n[NETWORK]PORT=9200\n"])

    def test_status_command(self):
        output = self.run_console("i\n")
        self.assertIn("=== Sync Status ===", output)
        self.assertIn(f"Peer:            127.0.0.1:{self.service.config.peer_port}", output)
        self.assertIn("Listening:       not running", output)
        self.assertIn("Pushes Sent:     0", output)

    def run_on_pipe(self, data, close_writer=False):
        read_fd, write_fd = os.pipe()
        stdin = os.fdopen(read_fd, 'r')
        self.addCleanup(stdin.close)
        os.write(write_fd, data)
        if close_writer:
            os.close(write_fd)
        else:
            self.addCleanup(os.close, write_fd)

        stdout = io.StringIO()
        console = CommandConsole(self.service, stdin=stdin, stdout=stdout, poll_interval=0.1)
        thread = threading.Thread(target=console.run, daemon=True)
        thread.start()
        thread.join(2.0)
        self.assertFalse(thread.is_alive(), "console did not finish its queued input")
        return stdout.getvalue()

    @unittest.skipIf(os.name == 'nt', "requires select() on pipes")
    def test_lines_arriving_together_on_pipe(self):
        output = self.run_on_pipe(b"s\nq\n")
        self.assertIn("PORT = 9000", output)
        self.assertIn("Shutting down", output)

    @unittest.skipIf(os.name == 'nt', "requires select() on pipes")
    def test_pipe_last_line_without_newline(self):
        output = self.run_on_pipe(b"t\ns", close_writer=True)
        self.assertIn("Total Keys:      1", output)
        self.assertIn("PORT = 9000", output)

    def test_cancelled_token_ends_loop(self):
        self.service.token.cancel("test")
        output = self.run_console("s\n")
        self.assertNotIn("[NETWORK]", output)


class RunServiceTests(unittest.TestCase):
    """run_service() startup and shutdown"""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.path = os.path.join(self.temp_dir, "config.ini")
        with open(self.path, 'w', encoding='utf-8') as f:
            f.write("[NETWORK]\nPORT=9000\n")

    def tearDown(self):
        shutil.rmtree(self.temp_dir)

    def test_missing_config_file(self):
        missing = os.path.join(self.temp_dir, "missing.ini")
        self.assertEqual(run_service(missing, fast_config(), install_signals=False), 1)

    def test_bind_failure(self):
        blocker = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        blocker.bind(("127.0.0.1", 0))
        blocker.listen(1)
        try:
            config = fast_config(listen_port=blocker.getsockname()[1])
            self.assertEqual(run_service(self.path, config, install_signals=False), 1)
        finally:
            blocker.close()

    def test_invalid_listen_port_in_file(self):
        with open(self.path, 'a', encoding='utf-8') as f:
            f.write("[CONFIG_SYNC]\nLISTEN_PORT=abc\n")
        config = SyncConfig(listen_host="127.0.0.1", initial_push=False)
        self.assertEqual(run_service(self.path, config, install_signals=False), 1)

    def test_console_quit(self):
        stdout = io.StringIO()
        code = run_service(
            self.path,
            fast_config(),
            console=True,
            stdin=io.StringIO("s\nq\n"),
            stdout=stdout,
            install_signals=False
        )
        self.assertEqual(code, 0)
        self.assertIn("PORT = 9000", stdout.getvalue())


if __name__ == '__main__':
    unittest.main()
