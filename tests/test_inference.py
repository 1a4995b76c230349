"""
Tests for inference runtimes and model asset resolution.
"""

import sys
from unittest.mock import MagicMock, patch

import numpy as np
import pytest

from inference.assets import ModelAssetResolver
from inference.backend import CallableRuntime
from inference.onnx_backend import OnnxConfig, OnnxRuntimeBackend, wrap_outputs
from models.output import DenseGridOutput, FilteredOutput
from ops.errors import InferenceError


REGISTRY = {
    "focusnet": {
        "file": "FocusNet.onnx",
        "input_size": 320,
        "layout": "dense_grid",
        "labels": ["animals", "humps", "pedestrian", "pothole", "roadworks"],
        "decoder": {"has_objectness": False, "apply_sigmoid": False},
    },
    "ssd": {
        "file": "/opt/models/ssd.onnx",
        "input_size": 300,
        "layout": "filtered",
        "native_size": 300,
        "normalization": "standard",
        "labels": ["animal", "pothole"],
    },
}


class TestModelAssetResolver:
    def test_names(self):
        assert ModelAssetResolver(REGISTRY).names() == ["focusnet", "ssd"]

    def test_resolve_dense_grid(self):
        model = ModelAssetResolver(REGISTRY, base_dir="assets").resolve("focusnet")
        assert model.name == "focusnet"
        assert model.file == "assets/FocusNet.onnx"
        assert model.input_shape == (320, 320)
        assert model.decoder.has_objectness is False
        assert model.labels.lookup(2)[0] == "pedestrian"

    def test_absolute_path_kept(self):
        model = ModelAssetResolver(REGISTRY, base_dir="assets").resolve("ssd")
        assert model.file == "/opt/models/ssd.onnx"
        assert model.box_space == 300

    def test_unknown_model(self):
        with pytest.raises(KeyError):
            ModelAssetResolver(REGISTRY).resolve("yolov9")

    @pytest.mark.parametrize(
        "entry",
        [
            {"layout": "segmentation", "labels": ["a"]},
            {"layout": "filtered", "labels": []},
            {"layout": "filtered", "labels": ["a"], "input_size": 0},
            {"layout": "filtered", "labels": ["a"], "normalization": "zscore"},
        ],
    )
    def test_invalid_entries(self, entry):
        with pytest.raises(ValueError):
            ModelAssetResolver({"bad": entry}).resolve("bad")


class TestWrapOutputs:
    def test_dense_grid(self):
        out = wrap_outputs([np.zeros((1, 9, 2100), dtype=np.float32)], "dense_grid")
        assert isinstance(out, DenseGridOutput)
        assert out.num_anchors == 2100

    def test_filtered(self):
        out = wrap_outputs(
            [np.zeros((1, 2, 4)), np.array([[1, 2]]), np.array([[0.9, 0.1]])],
            "filtered",
        )
        assert isinstance(out, FilteredOutput)
        assert out.count == 2

    def test_filtered_needs_three_outputs(self):
        with pytest.raises(InferenceError):
            wrap_outputs([np.zeros(4), np.zeros(1)], "filtered")

    def test_no_outputs(self):
        with pytest.raises(InferenceError):
            wrap_outputs([], "dense_grid")


class TestOnnxRuntimeBackend:
    def _fake_ort(self, run_result=None, run_error=None):
        ort = MagicMock()
        session = ort.InferenceSession.return_value
        session.get_inputs.return_value = [MagicMock(name="input")]
        session.get_inputs.return_value[0].name = "images"
        if run_error is not None:
            session.run.side_effect = run_error
        else:
            session.run.return_value = run_result
        return ort, session

    def test_infer_feeds_nchw_batch(self):
        ort, session = self._fake_ort(run_result=[np.zeros((1, 9, 4), dtype=np.float32)])
        with patch.dict(sys.modules, {"onnxruntime": ort}):
            backend = OnnxRuntimeBackend(OnnxConfig(model_path="m.onnx", layout="dense_grid"))
            out = backend.infer(np.zeros((320, 320, 3), dtype=np.float32))

        feed = session.run.call_args[0][1]
        assert feed["images"].shape == (1, 3, 320, 320)
        assert feed["images"].dtype == np.float32
        assert isinstance(out, DenseGridOutput)

    def test_channels_last(self):
        ort, session = self._fake_ort(run_result=[np.zeros((1, 9, 4), dtype=np.float32)])
        with patch.dict(sys.modules, {"onnxruntime": ort}):
            backend = OnnxRuntimeBackend(
                OnnxConfig(model_path="m.onnx", layout="dense_grid", channels_first=False)
            )
            backend.infer(np.zeros((320, 320, 3), dtype=np.float32))
        assert session.run.call_args[0][1]["images"].shape == (1, 320, 320, 3)

    def test_run_failure_raises_inference_error(self):
        ort, _ = self._fake_ort(run_error=RuntimeError("bad tensor"))
        with patch.dict(sys.modules, {"onnxruntime": ort}):
            backend = OnnxRuntimeBackend(OnnxConfig(model_path="m.onnx", layout="dense_grid"))
            with pytest.raises(InferenceError):
                backend.infer(np.zeros((8, 8, 3), dtype=np.float32))

    def test_from_model_config(self, filtered_model):
        cfg = OnnxConfig.from_model_config(filtered_model)
        assert cfg.model_path == "ssd.onnx"
        assert cfg.layout == "filtered"


class TestCallableRuntime:
    def test_delegates(self):
        output = DenseGridOutput(np.zeros((9, 1), dtype=np.float32))
        runtime = CallableRuntime(lambda tensor: output)
        assert runtime.infer(np.zeros((4, 4, 3))) is output
