"""
Typed models for the hazard monitor.

Frames, detections, raw inference outputs, telemetry snapshots and
configuration live here so every pipeline stage shares one vocabulary.
"""

from .frame import RawFrame
from .detection import (
    BoundingBox,
    Detection,
    HazardCategory,
    LabelTable,
    UNKNOWN_LABEL,
    category_from_name,
)
from .output import DenseGridOutput, FilteredOutput, RawOutput
from .telemetry import (
    HazardStatsSnapshot,
    PerformanceSnapshot,
    RECENT_DETECTIONS_CAPACITY,
    RecentDetections,
)
from .config import (
    AlertConfig,
    Config,
    DecoderTuning,
    ModelConfig,
    PipelineSettings,
    SourceConfig,
    WebConfig,
)

__all__ = [
    # Frame
    "RawFrame",
    # Detection
    "BoundingBox",
    "Detection",
    "HazardCategory",
    "LabelTable",
    "UNKNOWN_LABEL",
    "category_from_name",
    # Inference output
    "DenseGridOutput",
    "FilteredOutput",
    "RawOutput",
    # Telemetry
    "HazardStatsSnapshot",
    "PerformanceSnapshot",
    "RECENT_DETECTIONS_CAPACITY",
    "RecentDetections",
    # Config
    "AlertConfig",
    "Config",
    "DecoderTuning",
    "ModelConfig",
    "PipelineSettings",
    "SourceConfig",
    "WebConfig",
]
