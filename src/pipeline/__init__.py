"""
Pipeline module for the hazard monitor.

The pipeline orchestrates the full processing flow:
- Frame acquisition from a FrameSource
- Preprocessing, inference and output decoding
- Overlap suppression and coordinate mapping
- Telemetry, alert decisions and publishing to observers
"""

from .channels import SnapshotChannel, TelemetryBus
from .scheduler import PacingConfig, PeriodicScheduler, next_delay_ms
from .engine import (
    DetectionLoop,
    LoopState,
    LoopStats,
    create_alert_policy,
    create_loop_from_config,
)

__all__ = [
    "SnapshotChannel",
    "TelemetryBus",
    "PacingConfig",
    "PeriodicScheduler",
    "next_delay_ms",
    "DetectionLoop",
    "LoopState",
    "LoopStats",
    "create_alert_policy",
    "create_loop_from_config",
]
