"""
Telemetry snapshot models published by the detection loop.

Snapshots are frozen and replaced wholesale on every update.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Tuple

from .detection import Detection, HazardCategory

RECENT_DETECTIONS_CAPACITY = 10


@dataclass(frozen=True)
class PerformanceSnapshot:
    """
    Rolling performance statistics for the current session.

    Attributes:
        fps: Frames processed per second since session start.
        processing_time_ms: Mean per-frame latency over the rolling window.
        total_detections: Cumulative detection count.
        avg_confidence: Mean score over all detections this session.
        session_duration_ms: Milliseconds since session start.
        frame_count: Frames processed this session.
    """
    fps: float = 0.0
    processing_time_ms: float = 0.0
    total_detections: int = 0
    avg_confidence: float = 0.0
    session_duration_ms: float = 0.0
    frame_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "fps": self.fps,
            "processing_time_ms": self.processing_time_ms,
            "total_detections": self.total_detections,
            "avg_confidence": self.avg_confidence,
            "session_duration_ms": self.session_duration_ms,
            "frame_count": self.frame_count,
        }


@dataclass(frozen=True)
class HazardStatsSnapshot:
    """Per-category cumulative hazard counters."""
    counts: Tuple[Tuple[HazardCategory, int], ...] = field(
        default_factory=lambda: tuple((c, 0) for c in HazardCategory.counted())
    )

    @classmethod
    def from_counts(cls, counts: Mapping[HazardCategory, int]) -> "HazardStatsSnapshot":
        return cls(counts=tuple((c, int(counts.get(c, 0))) for c in HazardCategory.counted()))

    def get(self, category: HazardCategory) -> int:
        for c, n in self.counts:
            if c is category:
                return n
        return 0

    @property
    def pedestrians(self) -> int:
        return self.get(HazardCategory.PEDESTRIAN)

    @property
    def potholes(self) -> int:
        return self.get(HazardCategory.POTHOLE)

    @property
    def humps(self) -> int:
        return self.get(HazardCategory.HUMP)

    @property
    def animals(self) -> int:
        return self.get(HazardCategory.ANIMAL)

    @property
    def road_works(self) -> int:
        return self.get(HazardCategory.ROAD_WORK)

    @property
    def total(self) -> int:
        return sum(n for _, n in self.counts)

    def to_dict(self) -> Dict[str, int]:
        return {c.value: n for c, n in self.counts}


# Most-recent-first, at most RECENT_DETECTIONS_CAPACITY items.
RecentDetections = Tuple[Detection, ...]
