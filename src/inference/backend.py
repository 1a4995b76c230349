"""
Inference runtime interface.

The network is an opaque black box: it takes one (H, W, 3) float tensor and
returns a RawOutput in the layout its model configuration declares.
Runtimes raise on failure; the detection loop treats that as zero
detections for the tick.
"""

from __future__ import annotations

from typing import Callable, Protocol

import numpy as np

from models.output import RawOutput


class InferenceRuntime(Protocol):
    def infer(self, tensor: np.ndarray) -> RawOutput:
        ...


class CallableRuntime:
    """Adapts a plain function (tensor -> RawOutput) to InferenceRuntime."""

    def __init__(self, fn: Callable[[np.ndarray], RawOutput]):
        self._fn = fn

    def infer(self, tensor: np.ndarray) -> RawOutput:
        return self._fn(tensor)
