from __future__ import annotations

import logging
import threading
from typing import Callable

from storefront.reconciliation.delivery_sweep import SweepResult, run_delivery_sweep

logger = logging.getLogger(__name__)


class DeliverySweepScheduler:
    """Runs the delivery sweep on a fixed interval in a daemon thread."""

    def __init__(
        self,
        interval_seconds: float,
        run_immediately: bool = True,
        sweep: Callable[[], SweepResult] = run_delivery_sweep,
    ):
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self.interval_seconds = interval_seconds
        self.run_immediately = run_immediately
        self.sweep = sweep
        self.runs = 0
        self._stop = threading.Event()
        self._lock = threading.Lock()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        with self._lock:
            if self.running:
                return
            self._stop.clear()
            self._thread = threading.Thread(target=self._loop, name="delivery-sweep", daemon=True)
            self._thread.start()
        logger.info("delivery sweep scheduler started: interval=%ss", self.interval_seconds)

    def stop(self, timeout: float | None = 5.0) -> None:
        with self._lock:
            thread = self._thread
            self._stop.set()
            self._thread = None
        if thread is not None:
            thread.join(timeout=timeout)
            logger.info("delivery sweep scheduler stopped")

    def tick(self) -> SweepResult | None:
        try:
            return self.sweep()
        except Exception:
            # A failed tick (e.g. database unreachable) must not end the loop.
            logger.exception("delivery sweep tick failed")
            return None
        finally:
            self.runs += 1

    def _loop(self) -> None:
        if self.run_immediately:
            self.tick()
        while not self._stop.wait(self.interval_seconds):
            self.tick()
