"""
Frame source layer.

Abstracts where frames come from (screen capture, recordings, capture
devices) from the detection loop. Each source implements FrameSource and
returns RawFrame objects.
"""

from .base import FrameSource, FrameSourceConfig
from .opencv_source import (
    StaticFrameSource,
    VideoFrameSource,
    VideoFrameSourceConfig,
    create_source_from_config,
)

__all__ = [
    "FrameSource",
    "FrameSourceConfig",
    "StaticFrameSource",
    "VideoFrameSource",
    "VideoFrameSourceConfig",
    "create_source_from_config",
]
