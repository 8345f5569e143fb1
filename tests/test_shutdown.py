#!/usr/bin/env python3
"""
configsync Shutdown Tests

Tests for the cancellation token and the signal adapter.
"""

import os
import signal
import threading
import time
import unittest

from configsync.core.exceptions import OperationCancelled
from configsync.shutdown import (
    CancellationToken,
    install_signal_handlers,
    restore_signal_handlers,
)


class CancellationTokenTests(unittest.TestCase):

    def test_first_cancel_wins(self):
        token = CancellationToken()
        self.assertFalse(token.cancelled)
        self.assertTrue(token.cancel("first"))
        self.assertFalse(token.cancel("second"))
        self.assertTrue(token.cancelled)
        self.assertEqual(token.reason, "first")

    def test_wait_times_out(self):
        token = CancellationToken()
        started = time.monotonic()
        self.assertFalse(token.wait(0.1))
        self.assertGreaterEqual(time.monotonic() - started, 0.09)

    def test_wait_wakes_on_cancel_from_other_thread(self):
        token = CancellationToken()
        threading.Timer(0.05, token.cancel).start()
        started = time.monotonic()
        self.assertTrue(token.wait(5.0))
        self.assertLess(time.monotonic() - started, 2.0)

    def test_raise_if_cancelled(self):
        token = CancellationToken()
        token.raise_if_cancelled("Push")
        token.cancel("signal 15")
        with self.assertRaises(OperationCancelled) as ctx:
            token.raise_if_cancelled("Push")
        self.assertEqual(ctx.exception.kind, "cancelled")
        self.assertIn("signal 15", str(ctx.exception))

    def test_concurrent_cancel_sets_once(self):
        token = CancellationToken()
        results = []
        threads = [
            threading.Thread(target=lambda: results.append(token.cancel("race")))
            for _ in range(8)
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(2)
        self.assertEqual(results.count(True), 1)


@unittest.skipUnless(hasattr(signal, "SIGUSR1"), "requires SIGUSR1")
class SignalAdapterTests(unittest.TestCase):

    def test_signal_cancels_token(self):
        token = CancellationToken()
        previous = install_signal_handlers(token, signals=(signal.SIGUSR1,))
        try:
            os.kill(os.getpid(), signal.SIGUSR1)
            self.assertTrue(token.wait(2.0))
            self.assertEqual(token.reason, f"signal {int(signal.SIGUSR1)}")
        finally:
            restore_signal_handlers(previous)
        self.assertIs(signal.getsignal(signal.SIGUSR1), previous[signal.SIGUSR1])

    def test_not_installed_off_main_thread(self):
        token = CancellationToken()
        results = []
        thread = threading.Thread(
            target=lambda: results.append(install_signal_handlers(token, (signal.SIGUSR1,)))
        )
        thread.start()
        thread.join(2)
        self.assertEqual(results, [{}])


if __name__ == '__main__':
    unittest.main()
