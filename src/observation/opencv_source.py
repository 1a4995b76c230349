"""
OpenCV-based frame source.

Stands in for screen capture during development by replaying:
- screen recordings / video files (device_id as file path)
- USB capture devices (device_id as int)

Frames are converted to RGBA RawFrames with the same layout a screen
capture surface delivers. Capture devices are drained by a reader thread
so that polling for a frame never waits on the camera.
"""

from __future__ import annotations

import logging
import os
import threading
import time
from dataclasses import dataclass
from queue import Empty, Full, Queue
from typing import Any, Dict, Optional, Union

import cv2
import numpy as np

from models.frame import RawFrame
from .base import FrameSource, FrameSourceConfig


@dataclass
class VideoFrameSourceConfig(FrameSourceConfig):
    """
    Configuration for OpenCV-based frame sources.

    Attributes:
        device_id: Capture index (int) or video file path (str).
        loop: Restart a video file when it ends.
        row_padding: Extra bytes appended to every row, to mimic padded
            capture surfaces.
    """
    device_id: Union[int, str] = 0
    loop: bool = False
    row_padding: int = 0

    @classmethod
    def from_source_config(cls, source_cfg: Dict[str, Any], source_id: str = "screen") -> "VideoFrameSourceConfig":
        """
        Adapter: Create VideoFrameSourceConfig from the source config dict.

        Args:
            source_cfg: Source configuration dict (from config.yaml).
            source_id: Identifier for this source.
        """
        resolution = source_cfg.get("resolution")
        if resolution:
            resolution = tuple(resolution)

        return cls(
            source_id=source_cfg.get("source_id", source_id),
            resolution=resolution,
            device_id=source_cfg.get("device_id", 0),
            loop=source_cfg.get("loop", False),
            row_padding=source_cfg.get("row_padding", 0),
        )


class VideoFrameSource(FrameSource):
    """
    Wraps cv2.VideoCapture and delivers one RawFrame per poll.

    End of a non-looping file yields None from then on, which the loop
    treats as "no frame available". For capture devices a reader thread
    keeps only the newest frame; acquire_latest_frame() returns None when
    nothing new has arrived since the last poll.
    """

    def __init__(self, config: VideoFrameSourceConfig):
        super().__init__(config)
        self._video_config = config
        self._cap: Optional[cv2.VideoCapture] = None
        self._latest: Queue = Queue(maxsize=1)
        self._reader: Optional[threading.Thread] = None
        self._reader_stop = threading.Event()

    @property
    def device_id(self) -> Union[int, str]:
        return self._video_config.device_id

    @property
    def is_file(self) -> bool:
        return isinstance(self.device_id, str) and os.path.exists(self.device_id)

    def open(self) -> None:
        """Open the capture device or file."""
        if self._is_open:
            return

        if isinstance(self.device_id, str) and not self.is_file:
            raise RuntimeError(f"Video file not found: {self.device_id}")

        self._cap = cv2.VideoCapture(self.device_id)
        if not self._cap.isOpened():
            self._cap.release()
            self._cap = None
            raise RuntimeError(f"Failed to open capture device {self.device_id}")

        if isinstance(self.device_id, int) and self._video_config.resolution:
            w, h = self._video_config.resolution
            self._cap.set(cv2.CAP_PROP_FRAME_WIDTH, w)
            self._cap.set(cv2.CAP_PROP_FRAME_HEIGHT, h)

        self._is_open = True
        self._frame_index = 0
        if not self.is_file:
            self._start_reader()
        logging.info(f"VideoFrameSource opened: source_id={self.source_id}, device={self.device_id}")

    def _start_reader(self) -> None:
        self._reader_stop.clear()
        self._latest = Queue(maxsize=1)
        self._reader = threading.Thread(target=self._read_frames, name="video-frame-reader", daemon=True)
        self._reader.start()

    def _read_frames(self) -> None:
        cap = self._cap
        while cap is not None and not self._reader_stop.is_set():
            try:
                ret, frame = cap.read()
            except Exception as e:
                logging.warning(f"Capture read failed on device {self.device_id}: {e}")
                break
            if not ret or frame is None:
                if self._reader_stop.wait(0.01):
                    break
                continue

            # Keep only the newest frame.
            try:
                self._latest.get_nowait()
            except Empty:
                pass
            try:
                self._latest.put_nowait(frame)
            except Full:
                pass

    def _read_file_frame(self) -> Optional[np.ndarray]:
        ret, frame = self._cap.read()
        if (not ret or frame is None) and self._video_config.loop:
            self._cap.set(cv2.CAP_PROP_POS_FRAMES, 0)
            ret, frame = self._cap.read()
        if not ret or frame is None:
            return None
        return frame

    def acquire_latest_frame(self) -> Optional[RawFrame]:
        """Return the newest frame as RGBA, or None if none is ready."""
        if not self._is_open or self._cap is None:
            return None

        if self._reader is not None:
            try:
                frame = self._latest.get_nowait()
            except Empty:
                return None
        else:
            frame = self._read_file_frame()
            if frame is None:
                return None

        rgba = cv2.cvtColor(frame, cv2.COLOR_BGR2RGBA)
        self._frame_index += 1
        return RawFrame.from_rgba(
            rgba,
            timestamp=time.time(),
            frame_index=self._frame_index,
            source=self.source_id,
            row_padding=self._video_config.row_padding,
        )

    def close(self) -> None:
        """Release the capture. Safe to call multiple times."""
        self._reader_stop.set()
        reader, self._reader = self._reader, None
        if reader is not None and reader is not threading.current_thread():
            reader.join(timeout=1.0)
            if reader.is_alive():
                logging.warning(f"Frame reader for device {self.device_id} did not stop within 1.0s")
        if self._cap is not None:
            self._cap.release()
            self._cap = None
        if self._is_open:
            logging.info(f"VideoFrameSource closed: source_id={self.source_id}")
        self._is_open = False


class StaticFrameSource(FrameSource):
    """
    Serves a fixed list of frames, then reports no frame available.

    Useful for replaying captured frames and for tests.
    """

    def __init__(self, config: FrameSourceConfig, frames: Optional[list] = None):
        super().__init__(config)
        self._frames = list(frames or [])
        self._pos = 0
        self.open_count = 0
        self.close_count = 0

    def open(self) -> None:
        self._is_open = True
        self._pos = 0
        self._frame_index = 0
        self.open_count += 1

    def acquire_latest_frame(self) -> Optional[RawFrame]:
        if not self._is_open or self._pos >= len(self._frames):
            return None
        item = self._frames[self._pos]
        self._pos += 1
        if item is None:
            return None
        self._frame_index += 1
        if isinstance(item, np.ndarray):
            return RawFrame.from_rgba(item, timestamp=time.time(), frame_index=self._frame_index, source=self.source_id)
        return item

    def close(self) -> None:
        if self._is_open:
            self.close_count += 1
        self._is_open = False


def create_source_from_config(source_cfg: Dict[str, Any], source_id: str = "screen") -> FrameSource:
    """
    Factory function to create a FrameSource from the source config dict.

    Args:
        source_cfg: Source configuration dict (from config.yaml).
        source_id: Identifier for the source.

    Raises:
        ValueError: If the backend is unknown.
    """
    backend = source_cfg.get("backend", "opencv")
    if backend == "opencv":
        return VideoFrameSource(VideoFrameSourceConfig.from_source_config(source_cfg, source_id))
    raise ValueError(f"Unknown source backend: {backend}")
