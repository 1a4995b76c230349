"""
Raw inference output layouts.

Deployed models emit one of two incompatible conventions:

- FilteredOutput: three tensors (boxes, labels, scores) already
  confidence-filtered by the model. Boxes are xMin, yMin, xMax, yMax in the
  model's native square input space.
- DenseGridOutput: a (C, B) channel-major grid, one column per anchor.
  Rows are cx, cy, w, h, [objectness], class0..classK with box values
  normalized to [0, 1].
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

import numpy as np


@dataclass(frozen=True)
class FilteredOutput:
    boxes: np.ndarray
    labels: np.ndarray
    scores: np.ndarray

    @classmethod
    def from_arrays(cls, boxes, labels, scores) -> "FilteredOutput":
        """Flatten whatever the runtime returned (e.g. (1, N, 4)) into 1-D arrays."""
        return cls(
            boxes=np.asarray(boxes, dtype=np.float32).reshape(-1),
            labels=np.asarray(labels).reshape(-1).astype(np.int64),
            scores=np.asarray(scores, dtype=np.float32).reshape(-1),
        )

    @property
    def count(self) -> int:
        return int(self.scores.shape[0])


@dataclass(frozen=True)
class DenseGridOutput:
    channels: np.ndarray

    @classmethod
    def from_array(cls, array) -> "DenseGridOutput":
        """Accept (C, B) or batched (1, C, B) arrays."""
        arr = np.asarray(array, dtype=np.float32)
        if arr.ndim == 3 and arr.shape[0] == 1:
            arr = arr[0]
        return cls(channels=arr)

    @property
    def num_channels(self) -> int:
        return int(self.channels.shape[0]) if self.channels.ndim == 2 else 0

    @property
    def num_anchors(self) -> int:
        return int(self.channels.shape[1]) if self.channels.ndim == 2 else 0


RawOutput = Union[FilteredOutput, DenseGridOutput]
