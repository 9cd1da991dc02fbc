"""Cooperative cancellation fired by an interrupt (Ctrl+C)."""

import logging
import signal
import threading
from contextlib import contextmanager
from typing import Callable

logger = logging.getLogger(__name__)


class CancellationToken:
    """One-shot cancellation flag that can notify listeners when it fires."""

    def __init__(self):
        self._event = threading.Event()
        # Reentrant: cancel() runs from the SIGINT handler on the main thread.
        self._lock = threading.RLock()
        self._callbacks: list[Callable[[], None]] = []

    def cancel(self):
        with self._lock:
            if self._event.is_set():
                return
            self._event.set()
            callbacks = list(self._callbacks)
            self._callbacks.clear()
        for callback in callbacks:
            callback()

    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def on_cancel(self, callback: Callable[[], None]):
        """Run ``callback`` once the token is cancelled (immediately if it already is)."""
        with self._lock:
            if not self._event.is_set():
                self._callbacks.append(callback)
                return
        callback()


@contextmanager
def cancel_on_interrupt(token: CancellationToken):
    """Route SIGINT to ``token`` for the duration of the block."""

    def handler(_signum, _frame):
        logger.debug("Interrupt received, cancelling")
        token.cancel()

    previous = signal.signal(signal.SIGINT, handler)
    try:
        yield token
    finally:
        signal.signal(signal.SIGINT, previous)
