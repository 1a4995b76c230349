"""
ONNX Runtime inference backend.

Uses onnxruntime if installed. Exported detection models come in either the
filtered (boxes, labels, scores) or dense-grid layout; which one is taken
from the model configuration.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np

from models.config import LAYOUT_FILTERED, ModelConfig
from models.output import DenseGridOutput, FilteredOutput, RawOutput
from ops.errors import InferenceError
from .backend import InferenceRuntime


@dataclass(frozen=True)
class OnnxConfig:
    model_path: str
    layout: str
    channels_first: bool = True
    num_threads: int = 4
    output_names: Optional[Sequence[str]] = None

    @classmethod
    def from_model_config(cls, model: ModelConfig, channels_first: bool = True) -> "OnnxConfig":
        return cls(model_path=model.file, layout=model.layout, channels_first=channels_first)


class OnnxRuntimeBackend(InferenceRuntime):
    def __init__(self, cfg: OnnxConfig):
        self.cfg = cfg
        try:
            import onnxruntime as ort  # type: ignore
        except Exception as e:  # pragma: no cover
            raise ImportError(
                "onnxruntime is not installed. Install with `pip install onnxruntime`."
            ) from e

        options = ort.SessionOptions()
        options.intra_op_num_threads = cfg.num_threads
        self._session = ort.InferenceSession(
            cfg.model_path, sess_options=options, providers=["CPUExecutionProvider"]
        )
        self._input_name = self._session.get_inputs()[0].name

    def infer(self, tensor: np.ndarray) -> RawOutput:
        batch = tensor.transpose(2, 0, 1) if self.cfg.channels_first else tensor
        batch = np.ascontiguousarray(batch[np.newaxis, ...], dtype=np.float32)
        try:
            outputs = self._session.run(
                list(self.cfg.output_names) if self.cfg.output_names else None,
                {self._input_name: batch},
            )
        except Exception as e:
            raise InferenceError(f"ONNX inference failed: {e}") from e
        return wrap_outputs(outputs, self.cfg.layout)


def wrap_outputs(outputs: Sequence[np.ndarray], layout: str) -> RawOutput:
    """
    Wrap runtime output arrays in the RawOutput variant for layout.

    Raises:
        InferenceError: If the runtime returned the wrong number of outputs.
    """
    if layout == LAYOUT_FILTERED:
        if len(outputs) < 3:
            raise InferenceError(f"Filtered layout needs 3 outputs, got {len(outputs)}")
        boxes, labels, scores = outputs[:3]
        return FilteredOutput.from_arrays(boxes, labels, scores)
    if not outputs:
        raise InferenceError("Runtime returned no outputs")
    return DenseGridOutput.from_array(outputs[0])
