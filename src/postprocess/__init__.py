"""
Post-decode stages: overlap suppression and coordinate mapping.
"""

from .nms import NonMaxSuppressor, iou, suppress
from .coords import scale, scale_detections

__all__ = [
    "NonMaxSuppressor",
    "iou",
    "suppress",
    "scale",
    "scale_detections",
]
