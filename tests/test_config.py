"""
Smoke tests for configuration loading and validation.
"""

import argparse
import os

import pytest
import yaml

from main import _apply_cli_overrides, load_config, validate_config


class TestValidateConfig:
    """Tests for validate_config function."""

    def test_valid_config_passes(self, valid_config):
        """A complete valid config passes validation."""
        is_valid, error = validate_config(valid_config)

        assert is_valid is True
        assert error is None

    @pytest.mark.parametrize("section", ["source", "model", "models", "pipeline", "alerts", "log_path", "log_level"])
    def test_missing_section(self, valid_config, section):
        """Each required section is checked."""
        del valid_config[section]

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert section in error

    def test_negative_device_id(self, valid_config):
        valid_config["source"]["device_id"] = -1

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "device_id" in error

    def test_video_path_device_id_valid(self, valid_config):
        valid_config["source"]["device_id"] = "recordings/drive.mp4"

        is_valid, _ = validate_config(valid_config)

        assert is_valid is True

    def test_invalid_source_backend(self, valid_config):
        valid_config["source"]["backend"] = "mediaprojection"

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "source.backend" in error

    def test_selected_model_must_exist(self, valid_config):
        valid_config["model"] = "missing"

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "missing" in error

    def test_invalid_model_layout(self, valid_config):
        valid_config["models"]["hazard"]["layout"] = "segmentation"

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "layout" in error

    def test_model_requires_labels(self, valid_config):
        valid_config["models"]["hazard"]["labels"] = []

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "labels" in error

    @pytest.mark.parametrize("key", ["confidence_threshold", "iou_threshold"])
    @pytest.mark.parametrize("value", [-0.1, 1.5, "high"])
    def test_thresholds_bounded(self, valid_config, key, value):
        valid_config["pipeline"][key] = value

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert key in error

    def test_invalid_display_size(self, valid_config):
        valid_config["pipeline"]["display_size"] = [1280]

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "display_size" in error

    def test_invalid_alert_strategy(self, valid_config):
        valid_config["alerts"]["strategy"] = "loudest"

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "alerts.strategy" in error

    def test_top_detection_strategy_valid(self, valid_config):
        valid_config["alerts"]["strategy"] = "top_detection"

        is_valid, _ = validate_config(valid_config)

        assert is_valid is True

    def test_invalid_web_port(self, valid_config):
        valid_config["web"]["port"] = 70000

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "web.port" in error

    def test_invalid_log_level(self, valid_config):
        valid_config["log_level"] = "VERBOSE"

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "log_level" in error


class TestLoadConfig:
    """Tests for load_config function."""

    def test_loads_default_yaml(self, temp_config_dir):
        """Loads default.yaml when config.yaml doesn't exist."""
        config_path = str(temp_config_dir / "config.yaml")

        config = load_config(config_path)

        assert config["model"] == "hazard"
        assert config["models"]["hazard"]["layout"] == "dense_grid"
        assert config["pipeline"]["confidence_threshold"] == 0.25

    def test_default_config_is_valid(self, temp_config_dir):
        config = load_config(str(temp_config_dir / "config.yaml"))

        is_valid, error = validate_config(config)

        assert is_valid is True, error

    def test_local_overrides_merge(self, temp_config_dir):
        """config.yaml values override default.yaml."""
        config_yaml = temp_config_dir / "config.yaml"
        config_yaml.write_text("""
pipeline:
  confidence_threshold: 0.5
""")

        config = load_config(str(config_yaml))

        assert config["pipeline"]["confidence_threshold"] == 0.5
        assert config["pipeline"]["iou_threshold"] == 0.45

    def test_explicit_config_applied_last(self, temp_config_dir):
        (temp_config_dir / "config.yaml").write_text("alerts:\n  debounce_ms: 1000\n")
        explicit = temp_config_dir / "bench.yaml"
        explicit.write_text("alerts:\n  debounce_ms: 500\n")

        config = load_config(str(explicit))

        assert config["alerts"]["debounce_ms"] == 500
        assert config["alerts"]["strategy"] == "hazard_set"

    def test_checked_in_default_is_valid(self):
        default_path = os.path.join(os.path.dirname(__file__), "..", "config", "default.yaml")
        with open(default_path) as f:
            config = yaml.safe_load(f)

        is_valid, error = validate_config(config)

        assert is_valid is True, error


class TestCliOverrides:
    def _args(self, **overrides):
        defaults = dict(source=None, model=None, web=False, port=None, no_voice=False)
        defaults.update(overrides)
        return argparse.Namespace(**defaults)

    def test_source_index_and_path(self, valid_config):
        config = _apply_cli_overrides(valid_config, self._args(source="2"))
        assert config["source"]["device_id"] == 2

        config = _apply_cli_overrides(valid_config, self._args(source="clip.mp4"))
        assert config["source"]["device_id"] == "clip.mp4"

    def test_web_and_voice_flags(self, valid_config):
        config = _apply_cli_overrides(valid_config, self._args(web=True, port=8080, no_voice=True))
        assert config["web"] == {"enabled": True, "port": 8080}
        assert config["alerts"]["enabled"] is False

    def test_model_selection(self, valid_config):
        config = _apply_cli_overrides(valid_config, self._args(model="ssd_baseline"))
        assert config["model"] == "ssd_baseline"
