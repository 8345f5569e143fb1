#!/usr/bin/env python3
"""
configsync Interactive Console

Single-key commands read from stdin while the service runs:

    Enter   push the current configuration to the peer
    p       pull the peer's configuration
    s       show the current configuration
    t       show configuration statistics
    w       save the configuration to its file
    r       reload the configuration file, then push
    i       show sync status and counters
    h, ?    show this help
    q       quit

Where the platform allows it, stdin is polled with select() so that a
shutdown request ends the loop without waiting for another line.
"""

import io
import logging
import os
import select
import sys
from typing import Optional, TextIO

from .core.constants import ACCEPT_POLL_INTERVAL, RECV_BUFFER_SIZE
from .summary import format_changes, format_config, format_stats, format_status

logger = logging.getLogger("configsync")

HELP_TEXT = """
Commands:
  Enter: push the current configuration to the peer
  p: pull the configuration from the peer
  s: show the current configuration
  t: show configuration statistics
  w: save the current configuration to file
  r: reload the configuration file and push it
  i: show sync status
  h: show this help
  q: quit
"""

# Returned by _read_line() when the poll interval passed without input
_NO_INPUT = object()


class CommandConsole:
    """Reads commands and runs them against a SyncService."""

    def __init__(
        self,
        service,
        stdin: Optional[TextIO] = None,
        stdout: Optional[TextIO] = None,
        poll_interval: float = ACCEPT_POLL_INTERVAL
    ):
        self.service = service
        self.stdin = stdin if stdin is not None else sys.stdin
        self.stdout = stdout if stdout is not None else sys.stdout
        self.poll_interval = poll_interval
        self._fd = self._input_fd()
        self._encoding = getattr(self.stdin, 'encoding', None) or "utf-8"
        self._pending = bytearray()
        self._eof = False

        self._commands = {
            '': self.do_push,
            'p': self.do_pull,
            's': self.do_show,
            't': self.do_stats,
            'w': self.do_save,
            'r': self.do_reload,
            'i': self.do_status,
            'h': self.do_help,
            '?': self.do_help,
        }

    def _input_fd(self) -> Optional[int]:
        """File descriptor to poll, or None to fall back to readline()."""
        if os.name == 'nt':
            return None
        try:
            return self.stdin.fileno()
        except (AttributeError, ValueError, io.UnsupportedOperation):
            return None

    def _write(self, text: str) -> None:
        print(text, file=self.stdout)
        self.stdout.flush()

    def _read_line(self):
        if self._fd is None:
            line = self.stdin.readline()
            return line if line else None

        # select() only sees the descriptor, so lines are buffered here
        # and never in the stdin wrapper
        while True:
            end = self._pending.find(b"\n")
            if end >= 0:
                raw = bytes(self._pending[:end + 1])
                del self._pending[:end + 1]
                return raw.decode(self._encoding, errors="replace")

            if self._eof:
                if not self._pending:
                    return None
                raw = bytes(self._pending)
                self._pending.clear()
                return raw.decode(self._encoding, errors="replace")

            try:
                readable, _, _ = select.select([self._fd], [], [], self.poll_interval)
                if not readable:
                    return _NO_INPUT
                chunk = os.read(self._fd, RECV_BUFFER_SIZE)
            except InterruptedError:
                continue
            except (OSError, ValueError) as e:
                logger.debug(f"Console input error: {e}")
                return None

            if chunk:
                self._pending.extend(chunk)
            else:
                self._eof = True

    def run(self) -> None:
        """Run until 'q', end of input, or cancellation."""
        self._write(HELP_TEXT)
        token = self.service.token

        while not token.cancelled:
            line = self._read_line()
            if line is None:
                logger.debug("Console input closed")
                break
            if line is _NO_INPUT:
                continue
            if token.cancelled:
                break
            if not self.handle(line):
                break

    def handle(self, line: str) -> bool:
        """
        Run one command.

        Returns:
            False if the console should stop
        """
        command = line.strip().lower()
        if command == 'q':
            self._write("Shutting down...")
            return False

        action = self._commands.get(command)
        if action is None:
            self._write(f"Unknown command: {command!r}")
            action = self.do_help
        action()
        return True

    def do_push(self) -> None:
        self._write("Sending current configuration to peer...")
        self._write(str(self.service.push()))

    def do_pull(self) -> None:
        self._write("Requesting configuration from peer...")
        result = self.service.pull()
        self._write(str(result))
        if result.success:
            self._write(format_changes(result.changes))

    def do_show(self) -> None:
        self._write(format_config(self.service.store))

    def do_stats(self) -> None:
        self._write(format_stats(self.service.store))

    def do_save(self) -> None:
        if self.service.save():
            self._write(f"Configuration saved to {self.service.config_path}")
        else:
            self._write("Failed to save configuration")

    def do_reload(self) -> None:
        self._write("Reloading configuration file...")
        if not self.service.reload():
            self._write("Failed to reload configuration")
            return
        self._write(format_stats(self.service.store))
        self.do_push()

    def do_status(self) -> None:
        self._write(format_status(self.service.get_status()))

    def do_help(self) -> None:
        self._write(HELP_TEXT)
