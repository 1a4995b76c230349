"""
Pytest configuration and shared fixtures.
"""

import os
import sys

import numpy as np
import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from models.config import ModelConfig  # noqa: E402
from models.detection import Detection, LabelTable  # noqa: E402

HAZARD_LABELS = ["animals", "humps", "pedestrian", "pothole", "roadworks"]


@pytest.fixture
def hazard_labels():
    """Label table of the five-class hazard model."""
    return LabelTable.from_config(HAZARD_LABELS)


@pytest.fixture
def dense_grid_model():
    """Dense-grid model config: 640px input, no objectness row, probabilities."""
    return ModelConfig.from_dict(
        {
            "file": "hazard.onnx",
            "input_size": 640,
            "layout": "dense_grid",
            "labels": HAZARD_LABELS,
            "decoder": {"has_objectness": False, "apply_sigmoid": False},
        },
        name="hazard",
    )


@pytest.fixture
def filtered_model():
    """Filtered-layout model config with boxes in 300px space."""
    return ModelConfig.from_dict(
        {
            "file": "ssd.onnx",
            "input_size": 300,
            "layout": "filtered",
            "native_size": 300,
            "labels": HAZARD_LABELS,
        },
        name="ssd",
    )


@pytest.fixture
def make_detection():
    """Factory for detections in pixel space."""

    def _make(x1, y1, x2, y2, label="pothole", confidence=0.9, class_id=None):
        return Detection.from_xyxy(x1, y1, x2, y2, label=label, confidence=confidence, class_id=class_id)

    return _make


@pytest.fixture
def rgba_frame():
    """A 64x48 mid-grey opaque RGBA image."""
    pixels = np.full((48, 64, 4), 128, dtype=np.uint8)
    pixels[:, :, 3] = 255
    return pixels


@pytest.fixture
def temp_config_dir(tmp_path):
    """Create a temporary config directory with default.yaml."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()

    default_yaml = config_dir / "default.yaml"
    default_yaml.write_text("""
source:
  backend: "opencv"
  device_id: 0

model: "hazard"

models:
  hazard:
    file: "hazard.onnx"
    input_size: 320
    layout: "dense_grid"
    labels: ["animals", "humps", "pedestrian", "pothole", "roadworks"]
    decoder:
      has_objectness: false
      apply_sigmoid: false

pipeline:
  target_interval_ms: 200
  confidence_threshold: 0.25
  iou_threshold: 0.45

alerts:
  enabled: true
  strategy: "hazard_set"
  debounce_ms: 3000

log_path: "logs/test.log"
log_level: "INFO"
""")

    return config_dir


@pytest.fixture
def valid_config():
    """Return a valid configuration dictionary."""
    return {
        "source": {
            "backend": "opencv",
            "device_id": 0,
        },
        "model": "hazard",
        "models": {
            "hazard": {
                "file": "hazard.onnx",
                "input_size": 320,
                "layout": "dense_grid",
                "labels": list(HAZARD_LABELS),
            },
        },
        "pipeline": {
            "target_interval_ms": 200,
            "min_delay_ms": 10,
            "confidence_threshold": 0.25,
            "iou_threshold": 0.45,
        },
        "alerts": {
            "enabled": True,
            "strategy": "hazard_set",
            "debounce_ms": 3000,
        },
        "web": {"enabled": False, "port": 5000},
        "log_path": "logs/test.log",
        "log_level": "INFO",
    }
