"""Recurring background task with explicit start/stop."""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)


class ScheduledTask:
    """Run ``action`` every ``interval`` seconds on a daemon thread.

    The first run happens one interval after ``start()``. ``stop()`` wakes the
    thread immediately and joins it, so no timer survives cancellation.
    Exceptions raised by ``action`` are logged and the schedule continues.
    """

    def __init__(self, name: str, interval: float, action: Callable[[], None]) -> None:
        if interval <= 0:
            raise ValueError(f"interval must be > 0, got {interval}")
        self._name = name
        self._interval = interval
        self._action = action
        self._stop: threading.Event | None = None
        self._thread: threading.Thread | None = None
        self._lock = threading.Lock()

    @property
    def name(self) -> str:
        return self._name

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def running(self) -> bool:
        thread = self._thread
        return thread is not None and thread.is_alive()

    def start(self) -> None:
        with self._lock:
            if self.running:
                return
            # Per-run event: a thread that outlived stop() keeps its own, already set.
            self._stop = threading.Event()
            self._thread = threading.Thread(
                target=self._run, args=(self._stop,), name=f"scheduled-{self._name}", daemon=True
            )
            self._thread.start()
        logger.debug("Started %s every %.0fs", self._name, self._interval)

    def stop(self, timeout: float | None = 5.0) -> None:
        with self._lock:
            thread, stop = self._thread, self._stop
            if stop is not None:
                stop.set()
            self._thread = None
            self._stop = None
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
            if thread.is_alive():
                logger.warning("%s still running after join timeout; it exits after its current run", self._name)
            else:
                logger.debug("Stopped %s", self._name)

    def _run(self, stop: threading.Event) -> None:
        while not stop.wait(self._interval):
            try:
                self._action()
            except Exception:
                logger.exception("Scheduled task %s failed", self._name)
