"""
Spoken hazard alerts: policy (when/what) and sinks (delivery).
"""

from .policy import (
    AlertMessage,
    AlertPolicy,
    AlertState,
    DebounceStrategy,
    MULTIPLE_HAZARDS_MESSAGE,
    phrase_for,
)
from .sinks import AlertSink, LoggingAlertSink, RecordingAlertSink

__all__ = [
    "AlertMessage",
    "AlertPolicy",
    "AlertState",
    "DebounceStrategy",
    "MULTIPLE_HAZARDS_MESSAGE",
    "phrase_for",
    "AlertSink",
    "LoggingAlertSink",
    "RecordingAlertSink",
]
