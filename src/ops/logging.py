"""
Logging setup for the hazard monitor.
"""

from __future__ import annotations

import logging
import os

DEFAULT_LOG_PATH = "logs/hazard_monitor.log"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Per-request access lines from the telemetry API drown out pipeline status.
QUIET_LOGGERS = ("uvicorn.access",)


def setup_logging(log_path: str = DEFAULT_LOG_PATH, log_level: str = "INFO") -> None:
    log_dir = os.path.dirname(log_path)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)

    logging.basicConfig(
        level=getattr(logging, log_level),
        format=LOG_FORMAT,
        handlers=[
            logging.FileHandler(log_path),
            logging.StreamHandler(),
        ],
        force=True,
    )
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(logging.WARNING, logging.getLogger().level))
