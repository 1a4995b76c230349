"""
Publish/subscribe channels for state shared with observers.

Each channel holds one immutable value that is replaced wholesale, so a
reader always sees a complete snapshot.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Generic, List, Tuple, TypeVar

from models.detection import Detection
from models.telemetry import HazardStatsSnapshot, PerformanceSnapshot, RecentDetections

T = TypeVar("T")


class SnapshotChannel(Generic[T]):
    """
    Latest-value channel.

    publish() swaps the value under a lock, then notifies subscribers with
    that same value outside the lock.
    """

    def __init__(self, initial: T, name: str = "channel"):
        self.name = name
        self._initial = initial
        self._value = initial
        self._version = 0
        self._lock = threading.Lock()
        self._subscribers: List[Callable[[T], None]] = []

    def get(self) -> T:
        with self._lock:
            return self._value

    @property
    def version(self) -> int:
        """Number of publishes since creation."""
        with self._lock:
            return self._version

    def publish(self, value: T) -> None:
        with self._lock:
            self._value = value
            self._version += 1
            subscribers = list(self._subscribers)
        for callback in subscribers:
            try:
                callback(value)
            except Exception as e:
                logging.warning(f"Subscriber error on {self.name}: {e}")

    def subscribe(self, callback: Callable[[T], None]) -> Callable[[], None]:
        """
        Register callback for future publishes.

        Returns:
            A function that removes the subscription.
        """
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def reset(self) -> None:
        """Publish the initial value again."""
        self.publish(self._initial)


class TelemetryBus:
    """
    All channels the detection loop publishes to.

    confidence_threshold is the one channel written by operators; the loop
    reads it at the top of every decode.
    """

    def __init__(self, confidence_threshold: float = 0.25):
        self.performance: SnapshotChannel[PerformanceSnapshot] = SnapshotChannel(
            PerformanceSnapshot(), "performance"
        )
        self.hazards: SnapshotChannel[HazardStatsSnapshot] = SnapshotChannel(
            HazardStatsSnapshot(), "hazards"
        )
        self.recent: SnapshotChannel[RecentDetections] = SnapshotChannel((), "recent")
        self.detections: SnapshotChannel[Tuple[Detection, ...]] = SnapshotChannel((), "detections")
        self.confidence_threshold: SnapshotChannel[float] = SnapshotChannel(
            float(confidence_threshold), "confidence_threshold"
        )
        self.running: SnapshotChannel[bool] = SnapshotChannel(False, "running")

    def set_confidence_threshold(self, value: float) -> None:
        if not 0.0 <= value <= 1.0:
            raise ValueError(f"confidence threshold must be within [0, 1], got {value}")
        self.confidence_threshold.publish(float(value))

    def reset_session(self) -> None:
        """Clear session telemetry. The operator's threshold is kept."""
        self.performance.reset()
        self.hazards.reset()
        self.recent.reset()
        self.detections.reset()
