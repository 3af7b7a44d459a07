"""
Cancellation token — operator interrupts as a flag, not a handler.

Signal handlers only set the token.  The orchestrator and lifecycle
manager check it between commands and raise ``InstallationCancelled``;
rollback then runs once, from the top-level driver.
"""

from __future__ import annotations

import logging
import signal
import threading
from contextlib import contextmanager
from typing import Iterator

from homestack.core.errors import InstallationCancelled

logger = logging.getLogger(__name__)


class CancellationToken:
    def __init__(self) -> None:
        self._event = threading.Event()
        self.reason = ""

    def cancel(self, reason: str = "Installation interrupted by operator") -> None:
        if not self._event.is_set():
            self.reason = reason
            self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise InstallationCancelled(self.reason)


@contextmanager
def cancel_on_signals(
    token: CancellationToken,
    signals: tuple[signal.Signals, ...] = (signal.SIGINT, signal.SIGTERM),
) -> Iterator[CancellationToken]:
    """Route the given signals to ``token`` for the duration of the block.

    The command running when the signal arrives finishes (or is
    interrupted by the same signal); the next cancellation check raises.
    """
    previous = {}

    def _handler(signum: int, frame: object) -> None:
        name = signal.Signals(signum).name
        logger.warning("\n⚠️  %s received, stopping after the current step...", name)
        token.cancel(f"Installation interrupted by {name}")

    try:
        for sig in signals:
            previous[sig] = signal.signal(sig, _handler)
    except ValueError:
        # signal.signal only works from the main thread
        logger.debug("Not in main thread, signal handlers not installed")

    try:
        yield token
    finally:
        for sig, handler in previous.items():
            signal.signal(sig, handler)
