"""
Alert sink interface and reference implementations.

Speech synthesis and platform queueing belong to the sink; the pipeline
only decides when and what to request.
"""

from __future__ import annotations

import logging
from typing import List, Protocol


class AlertSink(Protocol):
    def speak(self, message: str) -> None:
        ...


class LoggingAlertSink:
    """Writes announcements to the log instead of a speaker."""

    def speak(self, message: str) -> None:
        logging.info(f"Announced: {message}")


class RecordingAlertSink:
    """Keeps every requested announcement in memory."""

    def __init__(self) -> None:
        self.messages: List[str] = []

    def speak(self, message: str) -> None:
        self.messages.append(message)
