"""
Frame preprocessing: captured RGBA frame -> normalized model input tensor.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence, Tuple

import cv2
import numpy as np

from models.config import IMAGENET_MEAN, IMAGENET_STD, NORMALIZATIONS, NORMALIZE_STANDARD, NORMALIZE_UNIT
from models.frame import BYTES_PER_PIXEL, RawFrame
from ops.errors import FrameError


@dataclass(frozen=True)
class PreprocessConfig:
    """
    Attributes:
        normalization: "unit" scales to [0, 1]; "standard" also applies mean/std.
        mean: Per-channel mean (RGB) for "standard".
        std: Per-channel std (RGB) for "standard".
    """
    normalization: str = NORMALIZE_UNIT
    mean: Tuple[float, float, float] = IMAGENET_MEAN
    std: Tuple[float, float, float] = IMAGENET_STD


class FramePreprocessor:
    """
    Converts RawFrames to (H, W, 3) float32 tensors.

    Row padding is stripped before resampling, the alpha channel is dropped
    and the image is resized with bilinear interpolation.
    """

    def __init__(self, config: PreprocessConfig = PreprocessConfig()):
        if config.normalization not in NORMALIZATIONS:
            raise ValueError(
                f"normalization must be one of {NORMALIZATIONS}, got {config.normalization!r}"
            )
        self.config = config
        self._mean = np.asarray(config.mean, dtype=np.float32)
        self._std = np.asarray(config.std, dtype=np.float32)

    def prepare(self, frame: RawFrame, target_size: Sequence[int]) -> np.ndarray:
        """
        Build the model input for one frame.

        Args:
            frame: Captured frame.
            target_size: (width, height) of the model input.

        Raises:
            FrameError: If the frame is empty or its buffer is too short.
        """
        rgb = self.unpack(frame)
        target_w, target_h = int(target_size[0]), int(target_size[1])
        if target_w <= 0 or target_h <= 0:
            raise FrameError(f"Invalid target size {target_w}x{target_h}")

        if (frame.width, frame.height) != (target_w, target_h):
            rgb = cv2.resize(rgb, (target_w, target_h), interpolation=cv2.INTER_LINEAR)

        tensor = rgb.astype(np.float32) / 255.0
        if self.config.normalization == NORMALIZE_STANDARD:
            tensor = (tensor - self._mean) / self._std
        return tensor

    def unpack(self, frame: RawFrame) -> np.ndarray:
        """Return the frame as a contiguous (H, W, 3) uint8 RGB array."""
        if frame.width <= 0 or frame.height <= 0:
            raise FrameError(f"Empty frame ({frame.width}x{frame.height})")

        row_bytes = frame.width * BYTES_PER_PIXEL
        stride = frame.row_stride or row_bytes
        if stride < row_bytes:
            raise FrameError(f"Row stride {stride} smaller than row size {row_bytes}")

        buf = np.asarray(frame.buffer, dtype=np.uint8).reshape(-1)
        # The last row may omit its trailing padding.
        needed = stride * (frame.height - 1) + row_bytes
        if buf.size < needed:
            raise FrameError(f"Frame buffer has {buf.size} bytes, expected at least {needed}")

        if buf.size < stride * frame.height:
            buf = np.concatenate([buf, np.zeros(stride * frame.height - buf.size, dtype=np.uint8)])
        rows = buf[: stride * frame.height].reshape(frame.height, stride)
        pixels = rows[:, :row_bytes].reshape(frame.height, frame.width, BYTES_PER_PIXEL)
        return np.ascontiguousarray(pixels[:, :, :3])
