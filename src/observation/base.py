"""
FrameSource interface for pluggable screen/frame capture.

Capture itself is platform-specific and lives outside the pipeline; this
defines the narrow contract the detection loop polls:
- open() acquires the capture session (may fail)
- acquire_latest_frame() never blocks waiting for a frame
- close() releases everything and is idempotent
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from models.frame import RawFrame


@dataclass
class FrameSourceConfig:
    """
    Base configuration for frame sources.

    Attributes:
        source_id: Unique identifier for this source (e.g., "screen").
        resolution: Capture resolution as (width, height). None = source default.
        metadata: Additional source-specific configuration.
    """
    source_id: str = "default"
    resolution: Optional[tuple[int, int]] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


class FrameSource(ABC):
    """
    Abstract base class for frame sources.

    Lifecycle:
        1. Create instance with config
        2. Call open() to start the capture session
        3. Call acquire_latest_frame() once per tick
        4. Call close() to release resources

    Can also be used as a context manager:
        with VideoFrameSource(config) as source:
            frame = source.acquire_latest_frame()
    """

    def __init__(self, config: FrameSourceConfig):
        self._config = config
        self._is_open = False
        self._frame_index = 0

    @property
    def source_id(self) -> str:
        """Unique identifier for this source."""
        return self._config.source_id

    @property
    def is_open(self) -> bool:
        """Whether the source is currently open."""
        return self._is_open

    @property
    def frame_index(self) -> int:
        """Number of frames delivered since open."""
        return self._frame_index

    @abstractmethod
    def open(self) -> None:
        """
        Start the capture session.

        Raises:
            RuntimeError: If the capture session cannot be started.
        """
        pass

    @abstractmethod
    def acquire_latest_frame(self) -> Optional[RawFrame]:
        """
        Return the newest available frame, or None if none is ready.

        Must not block waiting for a frame.
        """
        pass

    @abstractmethod
    def close(self) -> None:
        """
        Release the capture session.

        Safe to call multiple times and before open().
        """
        pass

    def __enter__(self) -> "FrameSource":
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
