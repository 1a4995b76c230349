from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field


class PerformanceResponse(BaseModel):
    fps: float
    processing_time_ms: float
    total_detections: int
    avg_confidence: float
    session_duration_ms: float
    frame_count: int


class HazardStatsResponse(BaseModel):
    """Session totals per hazard category."""
    pedestrians: int = 0
    potholes: int = 0
    humps: int = 0
    animals: int = 0
    road_works: int = 0
    total: int = 0


class DetectionResponse(BaseModel):
    label: str
    confidence: float
    class_id: Optional[int] = None
    category: str
    bbox: List[float] = Field(..., description="[x1, y1, x2, y2] in display pixels")


class TelemetryResponse(BaseModel):
    """
    Everything an observer needs in one poll.
    Each section is a complete snapshot; sections may come from adjacent frames.
    """
    running: bool
    confidence_threshold: float
    performance: PerformanceResponse
    hazards: HazardStatsResponse
    recent_detections: List[DetectionResponse]


class DetectionsResponse(BaseModel):
    count: int
    detections: List[DetectionResponse]


class ConfidenceControl(BaseModel):
    value: float = Field(..., ge=0.0, le=1.0, description="Minimum detection confidence")

