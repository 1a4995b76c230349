"""
Overlay sink interface and an OpenCV debug window.

The sink receives detections already mapped to display coordinates.
"""

from __future__ import annotations

import logging
import threading
from typing import List, Optional, Protocol, Sequence, Tuple

import cv2
import numpy as np

from models.detection import Detection


class OverlaySink(Protocol):
    def update(self, detections: Sequence[Detection]) -> None:
        ...

    def release(self) -> None:
        ...


class OverlaySmoother:
    """
    Reduces box flicker between frames.

    A non-empty update replaces the shown set immediately. An empty update
    only clears it every hold_frames-th frame, so a hazard that drops out for
    a frame or two stays on screen.
    """

    def __init__(self, hold_frames: int = 3):
        self.hold_frames = max(1, hold_frames)
        self._frame_count = 0
        self._shown: List[Detection] = []

    @property
    def shown(self) -> List[Detection]:
        return list(self._shown)

    def update(self, detections: Sequence[Detection]) -> List[Detection]:
        self._frame_count += 1
        if detections or self._frame_count % self.hold_frames == 0:
            self._shown = list(detections)
        return list(self._shown)


class OpenCVOverlaySink:
    """
    Draws detections into a cv2 window for local debugging.

    Example:
        sink = OpenCVOverlaySink(canvas_size=(640, 360))
        sink.update(detections)
        sink.release()
    """

    COLOR_BOX = (0, 0, 255)  # Red (BGR)
    COLOR_LABEL_BG = (0, 0, 0)
    COLOR_TEXT = (255, 255, 255)

    def __init__(
        self,
        canvas_size: Tuple[int, int] = (640, 640),
        window_name: str = "Hazard Overlay",
        hold_frames: int = 3,
        show: bool = True,
    ):
        self.canvas_size = canvas_size
        self.window_name = window_name
        self.show = show
        self._smoother = OverlaySmoother(hold_frames)
        self._lock = threading.Lock()
        self._released = False
        self.last_canvas: Optional[np.ndarray] = None

    def update(self, detections: Sequence[Detection]) -> None:
        with self._lock:
            if self._released:
                return
            canvas = self.render(self._smoother.update(detections))
            self.last_canvas = canvas
            if self.show:
                cv2.imshow(self.window_name, canvas)
                cv2.waitKey(1)

    def render(self, detections: Sequence[Detection]) -> np.ndarray:
        """Draw boxes and "label (score)" tags on a blank canvas."""
        w, h = self.canvas_size
        canvas = np.zeros((h, w, 3), dtype=np.uint8)
        font = cv2.FONT_HERSHEY_SIMPLEX
        for det in detections:
            x1, y1, x2, y2 = det.bbox.as_int_tuple()
            cv2.rectangle(canvas, (x1, y1), (x2, y2), self.COLOR_BOX, 2)

            label = f"{det.label} ({det.confidence:.2f})"
            (tw, th), _ = cv2.getTextSize(label, font, 0.5, 1)
            cv2.rectangle(canvas, (x1, y1 - th - 6), (x1 + tw + 4, y1), self.COLOR_LABEL_BG, -1)
            cv2.putText(canvas, label, (x1 + 2, y1 - 4), font, 0.5, self.COLOR_TEXT, 1)
        return canvas

    def release(self) -> None:
        """Close the window. Safe to call multiple times."""
        with self._lock:
            if self._released:
                return
            self._released = True
        if self.show:
            try:
                cv2.destroyWindow(self.window_name)
            except cv2.error as e:
                logging.debug(f"Overlay window already closed: {e}")
