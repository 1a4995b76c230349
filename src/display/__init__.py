"""
Overlay output for display-space detections.
"""

from .overlay import OpenCVOverlaySink, OverlaySink, OverlaySmoother

__all__ = [
    "OpenCVOverlaySink",
    "OverlaySink",
    "OverlaySmoother",
]
