#!/usr/bin/env python3
"""
configsync Shutdown Coordination

A single cancellation token is created at startup and passed to every
long-running operation: the listener loop, connection handlers, outbound
connects and sends, the auto-push timer, and the console. Setting it
requests cooperative shutdown; each blocking wait observes it within
one poll interval.

OS signals are bound to the token by a thin adapter so that the core
never installs handlers itself.
"""

import logging
import signal
import threading
from typing import Dict, Iterable, Optional

from .core.exceptions import OperationCancelled

logger = logging.getLogger("configsync")

DEFAULT_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class CancellationToken:
    """
    Write-once, read-many cancellation flag.

    cancel() may be called any number of times from any thread; only the
    first call records a reason. The token is never reset.
    """

    def __init__(self):
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._reason: Optional[str] = None

    @property
    def cancelled(self) -> bool:
        """True once cancellation has been requested."""
        return self._event.is_set()

    @property
    def reason(self) -> Optional[str]:
        """Reason given by the first cancel() call."""
        return self._reason

    def cancel(self, reason: str = "shutdown requested") -> bool:
        """
        Request cancellation.

        Args:
            reason: Human-readable cause, kept from the first call only

        Returns:
            True if this call set the token, False if it was already set
        """
        with self._lock:
            if self._event.is_set():
                return False
            self._reason = reason
            self._event.set()
        logger.debug(f"Cancellation requested: {reason}")
        return True

    def wait(self, timeout: Optional[float] = None) -> bool:
        """
        Block until cancelled or the timeout elapses.

        Returns:
            True if the token is cancelled
        """
        return self._event.wait(timeout)

    def raise_if_cancelled(self, operation: str) -> None:
        """Raise OperationCancelled if the token is set."""
        if self._event.is_set():
            raise OperationCancelled(f"{operation} cancelled", details=self._reason)

    def __repr__(self) -> str:
        return f"CancellationToken(cancelled={self.cancelled})"


def install_signal_handlers(
    token: CancellationToken,
    signals: Iterable[int] = DEFAULT_SIGNALS
) -> Dict[int, object]:
    """
    Bind OS signals to the cancellation token.

    Signal handlers can only be installed from the main thread; from any
    other thread this is a no-op.

    Args:
        token: Token to cancel when a signal arrives
        signals: Signal numbers to bind

    Returns:
        Previous handlers, for restore_signal_handlers()
    """
    if threading.current_thread() is not threading.main_thread():
        logger.debug("Not on main thread, signal handlers not installed")
        return {}

    def handle_signal(signum, frame):
        logger.info(f"Received signal {signum}, shutting down...")
        token.cancel(f"signal {signum}")

    previous = {}
    for signum in signals:
        previous[signum] = signal.signal(signum, handle_signal)
    return previous


def restore_signal_handlers(previous: Dict[int, object]) -> None:
    """Restore handlers returned by install_signal_handlers()."""
    for signum, handler in previous.items():
        if handler is not None:
            signal.signal(signum, handler)
