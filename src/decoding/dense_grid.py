"""
Decoder for dense anchor-grid model outputs (YOLO-style heads).

Grid rows: cx, cy, w, h, [objectness], class0..classK. One column per anchor.
Box values are fractions of the model input.
"""

from __future__ import annotations

from typing import List, Optional

import numpy as np

from models.config import DecoderTuning
from models.detection import BoundingBox, Detection, LabelTable
from models.output import DenseGridOutput, RawOutput
from ops.errors import DecodeError
from .base import OutputDecoder


def sigmoid(x: np.ndarray) -> np.ndarray:
    """Logistic function, stable for large magnitudes."""
    return np.exp(-np.logaddexp(0.0, -x))


class DenseGridDecoder(OutputDecoder):
    """
    Decodes dense anchor grids.

    Per anchor: objectness pre-gate, arg-max class, combined confidence
    (objectness x class probability), box conversion and clamping, then a
    minimum-size filter in target pixels.
    """

    def __init__(self, labels: LabelTable, tuning: Optional[DecoderTuning] = None):
        super().__init__(labels)
        self.tuning = tuning or DecoderTuning()

    @property
    def first_class_row(self) -> int:
        return 5 if self.tuning.has_objectness else 4

    def decode(
        self,
        output: RawOutput,
        confidence_threshold: float,
        target_w: float,
        target_h: float,
    ) -> List[Detection]:
        if not isinstance(output, DenseGridOutput):
            raise DecodeError(f"Expected DenseGridOutput, got {type(output).__name__}")

        grid = np.asarray(output.channels, dtype=np.float32)
        if grid.ndim != 2:
            raise DecodeError(f"Expected a 2-D (channels, anchors) grid, got shape {grid.shape}")
        num_classes = grid.shape[0] - self.first_class_row
        if num_classes < 1:
            raise DecodeError(
                f"Grid has {grid.shape[0]} channels; need at least {self.first_class_row + 1}"
            )
        if grid.shape[1] == 0:
            return []

        class_scores = grid[self.first_class_row:]
        if self.tuning.has_objectness:
            objectness = grid[4]
            if self.tuning.apply_sigmoid:
                objectness = sigmoid(objectness)
            candidates = np.nonzero(objectness >= self.tuning.objectness_gate)[0]
            objectness = objectness[candidates]
        else:
            candidates = np.arange(grid.shape[1])
            objectness = np.ones(grid.shape[1], dtype=np.float32)
        if candidates.size == 0:
            return []

        probs = class_scores[:, candidates]
        if self.tuning.apply_sigmoid:
            probs = sigmoid(probs)
        # argmax keeps the lowest index on ties.
        best_class = np.argmax(probs, axis=0)
        best_prob = probs[best_class, np.arange(candidates.size)]
        confidence = objectness * best_prob

        passed = confidence >= confidence_threshold
        candidates = candidates[passed]
        best_class = best_class[passed]
        confidence = confidence[passed]
        if candidates.size == 0:
            return []

        cx, cy, bw, bh = (grid[row, candidates] for row in range(4))
        left = np.clip((cx - bw / 2) * target_w, 0, target_w)
        top = np.clip((cy - bh / 2) * target_h, 0, target_h)
        right = np.clip((cx + bw / 2) * target_w, 0, target_w)
        bottom = np.clip((cy + bh / 2) * target_h, 0, target_h)

        min_size = self.tuning.min_box_size
        sized = ((right - left) >= min_size) & ((bottom - top) >= min_size)
        sized &= (right > left) & (bottom > top)

        out: List[Detection] = []
        for i in np.nonzero(sized)[0]:
            class_id = int(best_class[i])
            label, category = self.labels.lookup(class_id)
            out.append(
                Detection(
                    bbox=BoundingBox(
                        x1=float(left[i]),
                        y1=float(top[i]),
                        x2=float(right[i]),
                        y2=float(bottom[i]),
                    ),
                    label=label,
                    confidence=float(confidence[i]),
                    class_id=class_id,
                    category=category,
                )
            )
        return out
