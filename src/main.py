"""
Road hazard monitor.

Reads frames from a camera or recording, runs the hazard detection model,
announces hazards and publishes live telemetry.

Usage:
    python src/main.py --config config/config.yaml --display --web

Arguments:
    --config: Path to configuration file
    --source: Override source.device_id (camera index or video path)
    --model: Model name from the `models:` registry
    --display: Show the detection overlay window
    --web: Serve the telemetry API
    --port: Telemetry API port
    --no-voice: Disable hazard announcements
"""

import os
import sys
import argparse
import logging
import threading
import time
import yaml
import uvicorn
from typing import Dict, Any, Tuple, Optional

from alerts.sinks import LoggingAlertSink
from display.overlay import OpenCVOverlaySink
from inference.assets import ModelAssetResolver
from inference.onnx_backend import OnnxConfig, OnnxRuntimeBackend
from models.config import LAYOUTS, NORMALIZATIONS
from observation import create_source_from_config
from ops.errors import SessionStartError
from ops.logging import setup_logging
from pipeline.channels import TelemetryBus
from pipeline.engine import create_loop_from_config
from web.app import create_app


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge override into base and return base."""
    for k, v in (override or {}).items():
        if isinstance(v, dict) and isinstance(base.get(k), dict):
            _deep_merge(base[k], v)
        else:
            base[k] = v
    return base


def load_config(config_path: str) -> Dict[str, Any]:
    """
    Load configuration with layering:
    - `config/default.yaml` (checked in)
    - `config/config.yaml` (local overrides)
    - plus any explicitly provided `--config` path (treated as overrides)
    """
    try:
        base_path = os.path.join(os.path.dirname(config_path), "default.yaml")
        base_cfg: Dict[str, Any] = {}
        if os.path.exists(base_path):
            with open(base_path, "r") as f:
                base_cfg = yaml.safe_load(f) or {}

        local_overrides_path = os.path.join(os.path.dirname(config_path), "config.yaml")
        local_cfg: Dict[str, Any] = {}
        if os.path.exists(local_overrides_path):
            with open(local_overrides_path, "r") as f:
                local_cfg = yaml.safe_load(f) or {}

        merged = _deep_merge(base_cfg, local_cfg)

        if os.path.exists(config_path) and os.path.abspath(config_path) not in (
            os.path.abspath(local_overrides_path),
            os.path.abspath(base_path),
        ):
            with open(config_path, "r") as f:
                explicit_cfg = yaml.safe_load(f) or {}
            merged = _deep_merge(merged, explicit_cfg)

        return merged
    except Exception as e:
        logging.error(f"Failed to load configuration: {e}")
        sys.exit(1)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_config(config: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """
    Validate configuration file structure and values.

    Args:
        config: Configuration dictionary

    Returns:
        Tuple of (is_valid, error_message)
    """
    required_sections = ['source', 'model', 'models', 'pipeline', 'alerts', 'log_path', 'log_level']
    for section in required_sections:
        if section not in config:
            return False, f"Missing required configuration section: {section}"

    # Source
    source = config.get('source') or {}
    if source.get('backend', 'opencv') != 'opencv':
        return False, "source.backend must be: opencv"
    device_id = source.get('device_id', 0)
    if not isinstance(device_id, (int, str)) or isinstance(device_id, bool):
        return False, "source.device_id must be an integer (index) or string (path/URL)"
    if isinstance(device_id, int) and device_id < 0:
        return False, "source.device_id integer must be non-negative"

    # Model selection
    models = config.get('models') or {}
    if not isinstance(models, dict) or not models:
        return False, "models must be a non-empty mapping of model name -> settings"
    if config['model'] not in models:
        return False, f"model '{config['model']}' is not defined under models"
    for name, entry in models.items():
        entry = entry or {}
        if entry.get('layout') not in LAYOUTS:
            return False, f"models.{name}.layout must be one of: {', '.join(LAYOUTS)}"
        if entry.get('normalization', 'unit') not in NORMALIZATIONS:
            return False, f"models.{name}.normalization must be one of: {', '.join(NORMALIZATIONS)}"
        input_size = entry.get('input_size', 320)
        if not isinstance(input_size, int) or input_size <= 0:
            return False, f"models.{name}.input_size must be a positive integer"
        if not entry.get('labels'):
            return False, f"models.{name}.labels must be a non-empty list"

    # Pipeline
    pipeline = config.get('pipeline') or {}
    for key in ('target_interval_ms', 'min_delay_ms'):
        if key in pipeline and (not _is_number(pipeline[key]) or pipeline[key] < 0):
            return False, f"pipeline.{key} must be a non-negative number"
    for key in ('confidence_threshold', 'iou_threshold'):
        if key in pipeline:
            value = pipeline[key]
            if not _is_number(value) or not (0 <= value <= 1):
                return False, f"pipeline.{key} must be between 0 and 1"
    display_size = pipeline.get('display_size')
    if display_size is not None:
        if not isinstance(display_size, list) or len(display_size) != 2:
            return False, "pipeline.display_size must be a list of [width, height]"
        if not all(isinstance(x, int) and x > 0 for x in display_size):
            return False, "pipeline.display_size values must be positive integers"

    # Alerts
    alerts = config.get('alerts') or {}
    if alerts.get('strategy', 'hazard_set') not in ('hazard_set', 'top_detection'):
        return False, "alerts.strategy must be one of: hazard_set, top_detection"
    if 'debounce_ms' in alerts and (not _is_number(alerts['debounce_ms']) or alerts['debounce_ms'] < 0):
        return False, "alerts.debounce_ms must be a non-negative number"

    # Web
    web = config.get('web') or {}
    if 'port' in web:
        port = web['port']
        if not isinstance(port, int) or not (0 < port < 65536):
            return False, "web.port must be an integer between 1 and 65535"

    # Log settings
    valid_log_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
    if config['log_level'] not in valid_log_levels:
        return False, f"log_level must be one of: {', '.join(valid_log_levels)}"

    return True, None


def _apply_cli_overrides(config: Dict[str, Any], args: argparse.Namespace) -> Dict[str, Any]:
    if args.source is not None:
        source = args.source
        config.setdefault('source', {})['device_id'] = int(source) if source.isdigit() else source
    if args.model is not None:
        config['model'] = args.model
    web = config.setdefault('web', {}) or {}
    if args.web:
        web['enabled'] = True
    if args.port is not None:
        web['port'] = args.port
    config['web'] = web
    if args.no_voice:
        config.setdefault('alerts', {})['enabled'] = False
    return config


def _start_web_server(bus: TelemetryBus, host: str, port: int) -> threading.Thread:
    def run_web_app():
        uvicorn.run(
            create_app(bus),
            host=host,
            port=port,
            log_level="info",
        )

    web_thread = threading.Thread(target=run_web_app, daemon=True)
    web_thread.start()
    logging.info(f"Telemetry API started on {host}:{port}")
    return web_thread


def main():
    """Main application function."""
    parser = argparse.ArgumentParser(description='Road Hazard Monitor')
    parser.add_argument('--config', type=str, default='config/config.yaml',
                        help='Path to configuration file')
    parser.add_argument('--source', type=str, default=None,
                        help='Camera index or video path (overrides source.device_id)')
    parser.add_argument('--model', type=str, default=None,
                        help='Model name from the models registry')
    parser.add_argument('--display', action='store_true',
                        help='Enable overlay display')
    parser.add_argument('--web', action='store_true',
                        help='Serve the telemetry API')
    parser.add_argument('--port', type=int, default=None,
                        help='Telemetry API port')
    parser.add_argument('--no-voice', action='store_true',
                        help='Disable hazard announcements')
    args = parser.parse_args()

    config = _apply_cli_overrides(load_config(args.config), args)

    is_valid, error_msg = validate_config(config)
    if not is_valid:
        logging.error(f"Configuration validation failed: {error_msg}")
        sys.exit(1)

    setup_logging(config['log_path'], config['log_level'])
    logging.info("Starting Road Hazard Monitor")

    models_dir = config.get('models_dir')
    resolver = ModelAssetResolver(config['models'], base_dir=models_dir)
    try:
        model = resolver.resolve(config['model'])
    except (KeyError, ValueError) as e:
        logging.error(f"Model configuration error: {e}")
        sys.exit(1)

    try:
        runtime = OnnxRuntimeBackend(OnnxConfig.from_model_config(model))
    except Exception as e:
        logging.error(f"Failed to load model {model.name} from {model.file}: {e}")
        sys.exit(1)

    source = create_source_from_config(config['source'], config['source'].get('source_id', 'screen'))

    overlay = None
    if args.display:
        display_size = (config['pipeline'] or {}).get('display_size') or [model.input_size, model.input_size]
        overlay = OpenCVOverlaySink(canvas_size=tuple(display_size))

    loop = create_loop_from_config(
        config=config,
        source=source,
        runtime=runtime,
        model=model,
        overlay=overlay,
        alert_sink=LoggingAlertSink(),
    )

    web_cfg = config.get('web') or {}
    if web_cfg.get('enabled'):
        _start_web_server(loop.bus, web_cfg.get('host', '127.0.0.1'), int(web_cfg.get('port', 5000)))

    try:
        loop.start()
    except SessionStartError as e:
        logging.error(f"Could not start detection: {e}")
        sys.exit(1)

    try:
        while loop.is_running:
            time.sleep(0.5)
    except KeyboardInterrupt:
        logging.info("Interrupted by user")
    finally:
        loop.stop()
        logging.info("Road Hazard Monitor stopped")


if __name__ == "__main__":
    main()
