"""
RawFrame model for captured screen frames.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

BYTES_PER_PIXEL = 4


@dataclass
class RawFrame:
    """
    A captured frame as delivered by the frame source.

    Attributes:
        width: Frame width in pixels.
        height: Frame height in pixels.
        buffer: Row-major RGBA bytes (uint8). Rows may be padded.
        row_stride: Bytes per row including padding. 0 = width * 4.
        timestamp: Unix timestamp when frame was captured.
        frame_index: Sequential frame number since the source was opened.
        source: Identifier for the capture source.
    """
    width: int
    height: int
    buffer: np.ndarray
    row_stride: int = 0
    timestamp: float = 0.0
    frame_index: int = 0
    source: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.row_stride:
            self.row_stride = self.width * BYTES_PER_PIXEL

    @classmethod
    def from_rgba(
        cls,
        pixels: np.ndarray,
        timestamp: float = 0.0,
        frame_index: int = 0,
        source: Optional[str] = None,
        row_padding: int = 0,
    ) -> "RawFrame":
        """
        Create a RawFrame from an (H, W, 4) uint8 array.

        row_padding adds that many zero bytes to the end of every row,
        mimicking capture surfaces with aligned strides.
        """
        h, w = pixels.shape[:2]
        rows = np.ascontiguousarray(pixels, dtype=np.uint8).reshape(h, w * BYTES_PER_PIXEL)
        if row_padding:
            rows = np.hstack([rows, np.zeros((h, row_padding), dtype=np.uint8)])
        return cls(
            width=w,
            height=h,
            buffer=rows.reshape(-1),
            row_stride=w * BYTES_PER_PIXEL + row_padding,
            timestamp=timestamp,
            frame_index=frame_index,
            source=source,
        )

    @property
    def size(self) -> Tuple[int, int]:
        """Return (width, height)."""
        return (self.width, self.height)

    @property
    def row_padding(self) -> int:
        """Padding bytes at the end of each row."""
        return self.row_stride - self.width * BYTES_PER_PIXEL
