"""
Session telemetry aggregation.

One DetectionAggregator lives for exactly one detection session. It owns
the rolling counters and hands out frozen snapshots built in full before
they are returned.
"""

from __future__ import annotations

import time
from collections import deque
from dataclasses import dataclass
from typing import Deque, Dict, Optional, Sequence, Tuple

from models.detection import Detection, HazardCategory
from models.telemetry import (
    HazardStatsSnapshot,
    PerformanceSnapshot,
    RECENT_DETECTIONS_CAPACITY,
    RecentDetections,
)

PROCESSING_WINDOW = 10
# Sessions shorter than this report fps = 0.
MIN_FPS_WINDOW_MS = 1.0


@dataclass
class AggregatorConfig:
    processing_window: int = PROCESSING_WINDOW
    recent_capacity: int = RECENT_DETECTIONS_CAPACITY


class DetectionAggregator:
    """
    Rolling FPS, latency, confidence and per-category hazard counters.

    Example:
        agg = DetectionAggregator(session_start=time.monotonic())
        perf, hazards = agg.update(detections, frame_start, time.monotonic())

    All timestamps are seconds from the same clock (time.monotonic by default).
    """

    def __init__(
        self,
        session_start: Optional[float] = None,
        config: Optional[AggregatorConfig] = None,
    ):
        self.config = config = config or AggregatorConfig()
        self._processing_ms: Deque[float] = deque(maxlen=config.processing_window)
        self._recent: Deque[Detection] = deque(maxlen=config.recent_capacity)
        self.reset(session_start)

    def reset(self, session_start: Optional[float] = None) -> None:
        """Start a new session: zero all counters."""
        self._session_start = time.monotonic() if session_start is None else session_start
        self._frame_count = 0
        self._total_detections = 0
        self._confidence_sum = 0.0
        self._processing_ms.clear()
        self._recent.clear()
        self._hazard_counts: Dict[HazardCategory, int] = {
            c: 0 for c in HazardCategory.counted()
        }
        self._performance = PerformanceSnapshot()
        self._hazards = HazardStatsSnapshot()

    @property
    def session_start(self) -> float:
        return self._session_start

    @property
    def performance(self) -> PerformanceSnapshot:
        return self._performance

    @property
    def hazards(self) -> HazardStatsSnapshot:
        return self._hazards

    def recent(self) -> RecentDetections:
        """Most-recent-first detections, at most recent_capacity items."""
        return tuple(self._recent)

    def update(
        self,
        detections: Sequence[Detection],
        frame_start_time: float,
        now: float,
    ) -> Tuple[PerformanceSnapshot, HazardStatsSnapshot]:
        """
        Fold one processed frame into the session statistics.

        Args:
            detections: Final detections for the frame.
            frame_start_time: When processing of the frame began.
            now: Current time.

        Returns:
            New (performance, hazards) snapshots.
        """
        self._frame_count += 1
        self._total_detections += len(detections)
        self._processing_ms.append(max(0.0, (now - frame_start_time) * 1000.0))

        for det in detections:
            self._confidence_sum += det.confidence
            if det.category in self._hazard_counts:
                self._hazard_counts[det.category] += 1
        # Highest-scoring detection of the batch ends up first.
        for det in reversed(detections):
            self._recent.appendleft(det)

        session_ms = max(0.0, (now - self._session_start) * 1000.0)
        fps = (self._frame_count * 1000.0 / session_ms) if session_ms > MIN_FPS_WINDOW_MS else 0.0
        avg_conf = (
            self._confidence_sum / self._total_detections if self._total_detections > 0 else 0.0
        )
        avg_processing = (
            sum(self._processing_ms) / len(self._processing_ms) if self._processing_ms else 0.0
        )

        self._performance = PerformanceSnapshot(
            fps=fps,
            processing_time_ms=avg_processing,
            total_detections=self._total_detections,
            avg_confidence=avg_conf,
            session_duration_ms=session_ms,
            frame_count=self._frame_count,
        )
        self._hazards = HazardStatsSnapshot.from_counts(self._hazard_counts)
        return self._performance, self._hazards
