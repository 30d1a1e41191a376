"""Fixed-interval scheduler for background jobs.

Owns one daemon thread with an explicit start/stop lifecycle.  Tests
call ``run_once()`` directly instead of waiting on the timer.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)


class ExpirationScheduler:

    def __init__(
        self,
        job: Callable[[], Any],
        interval_seconds: float,
        name: str = "reservation-expiry",
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self._job = job
        self._interval = interval_seconds
        self._name = name
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            raise RuntimeError(f"Scheduler {self._name} is already running")
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, name=self._name, daemon=True)
        self._thread.start()
        logger.info("Scheduler %s started (every %.0fs)", self._name, self._interval)

    def stop(self, timeout: float | None = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
        logger.info("Scheduler %s stopped", self._name)

    def run_once(self) -> Any:
        """Run the job now; a failing tick is logged, never raised."""
        try:
            return self._job()
        except Exception:
            logger.exception("Scheduled job %s failed", self._name)
            return None

    def _loop(self) -> None:
        while not self._stop.wait(self._interval):
            self.run_once()
