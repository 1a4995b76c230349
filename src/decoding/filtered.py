"""
Decoder for pre-filtered (boxes, labels, scores) model outputs.
"""

from __future__ import annotations

from typing import List

import numpy as np

from models.detection import BoundingBox, Detection, LabelTable
from models.output import FilteredOutput, RawOutput
from ops.errors import DecodeError
from .base import OutputDecoder


class FilteredDecoder(OutputDecoder):
    """
    Decodes the triple-tensor layout.

    Boxes are (xMin, yMin, xMax, yMax) in a native_size square space and are
    scaled linearly to the target size. Entries whose label id is not in the
    label table are dropped since this layout only emits trained ids.
    """

    def __init__(self, labels: LabelTable, native_size: float):
        super().__init__(labels)
        if native_size <= 0:
            raise ValueError("native_size must be positive")
        self.native_size = float(native_size)

    def decode(
        self,
        output: RawOutput,
        confidence_threshold: float,
        target_w: float,
        target_h: float,
    ) -> List[Detection]:
        if not isinstance(output, FilteredOutput):
            raise DecodeError(f"Expected FilteredOutput, got {type(output).__name__}")

        scores = np.asarray(output.scores, dtype=np.float32).reshape(-1)
        labels = np.asarray(output.labels).reshape(-1)
        boxes = np.asarray(output.boxes, dtype=np.float32).reshape(-1)
        n = scores.shape[0]
        if labels.shape[0] != n:
            raise DecodeError(f"Got {labels.shape[0]} labels for {n} scores")
        if boxes.shape[0] != 4 * n:
            raise DecodeError(f"Got {boxes.shape[0]} box values for {n} entries")

        boxes = boxes.reshape(n, 4)
        sx = target_w / self.native_size
        sy = target_h / self.native_size

        out: List[Detection] = []
        for i in range(n):
            score = float(scores[i])
            class_id = int(labels[i])
            if score < confidence_threshold or class_id not in self.labels:
                continue
            x_min, y_min, x_max, y_max = boxes[i]
            bbox = BoundingBox(
                x1=float(x_min) * sx,
                y1=float(y_min) * sy,
                x2=float(x_max) * sx,
                y2=float(y_max) * sy,
            ).clamp(target_w, target_h)
            if bbox.is_degenerate:
                continue
            label, category = self.labels.lookup(class_id)
            out.append(
                Detection(
                    bbox=bbox,
                    label=label,
                    confidence=score,
                    class_id=class_id,
                    category=category,
                )
            )
        return out
