"""IntervalTimer — a cancellable periodic callback on a daemon thread."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable

_logger = logging.getLogger(__name__)


class IntervalTimer:
    """Calls ``callback(timer)`` every *interval_s* seconds until cancelled.

    The first call happens one interval after :meth:`start`.  Cancelling
    wakes the thread immediately; a callback that is already running is
    allowed to finish.  Exceptions raised by the callback are logged and the
    timer keeps going.

    Parameters
    ----------
    interval_s:
        Period in seconds (must be > 0).
    callback:
        Called with this timer as its only argument, so the owner can
        recognise callbacks from a timer it has since replaced.
    """

    def __init__(
        self,
        interval_s: float,
        callback: Callable[[IntervalTimer], None],
        name: str = "ReplayTimer",
    ) -> None:
        if interval_s <= 0:
            raise ValueError(f"interval_s must be > 0, got {interval_s}")
        self.interval_s = interval_s
        self._callback = callback
        self._name = name
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start the background thread."""
        if self._thread is not None:
            raise RuntimeError("timer already started")
        self._thread = threading.Thread(target=self._run, daemon=True, name=self._name)
        self._thread.start()

    def cancel(self) -> None:
        """Stop firing.  Does not wait for the thread; see :meth:`join`."""
        self._stop_event.set()

    def join(self, timeout: float = 2.0) -> None:
        """Wait for the thread to exit (no-op when called from the timer's own thread)."""
        thread = self._thread
        if thread is None or thread is threading.current_thread():
            return
        thread.join(timeout=timeout)

    @property
    def active(self) -> bool:
        return (
            self._thread is not None
            and self._thread.is_alive()
            and not self._stop_event.is_set()
        )

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _run(self) -> None:
        while not self._stop_event.wait(self.interval_s):
            try:
                self._callback(self)
            except Exception:
                _logger.exception("Timer callback failed")
