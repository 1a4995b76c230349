"""
Cancellable periodic scheduling for the detection loop.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Callable, Optional


@dataclass(frozen=True)
class PacingConfig:
    """
    Attributes:
        target_interval_ms: Desired period between tick starts.
        min_delay_ms: Sleep floor so a slow tick still yields to the host.
    """
    target_interval_ms: float = 200.0
    min_delay_ms: float = 10.0


def next_delay_ms(elapsed_ms: float, pacing: PacingConfig) -> float:
    """Delay before the next tick: max(target - elapsed, floor)."""
    return max(pacing.target_interval_ms - elapsed_ms, pacing.min_delay_ms)


class PeriodicScheduler:
    """
    Runs a tick function on a background thread until cancelled.

    The tick returns its own elapsed time in milliseconds; the scheduler
    sleeps for next_delay_ms() on an Event so cancel() interrupts the wait
    immediately.
    """

    def __init__(
        self,
        tick: Callable[[], float],
        pacing: PacingConfig = PacingConfig(),
        name: str = "detection-loop",
    ):
        self._tick = tick
        self.pacing = pacing
        self.name = name
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def cancelled(self) -> bool:
        return self._stop_event.is_set()

    def start(self) -> None:
        if self.is_running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name=self.name, daemon=True)
        self._thread.start()

    def _run(self) -> None:
        logging.info(
            f"Scheduler {self.name} started (target interval {self.pacing.target_interval_ms:.0f}ms)"
        )
        while not self._stop_event.is_set():
            elapsed_ms = self._tick()
            if self._stop_event.wait(next_delay_ms(elapsed_ms, self.pacing) / 1000.0):
                break
        logging.info(f"Scheduler {self.name} stopped")

    def cancel(self, timeout: float = 5.0) -> None:
        """Stop scheduling and wait for an in-flight tick to finish."""
        self._stop_event.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=timeout)
            if thread.is_alive():
                logging.warning(f"Scheduler {self.name} did not stop within {timeout}s")
        self._thread = None
