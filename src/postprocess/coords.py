"""
Coordinate mapping between model input space and display space.

Scaling is independent per axis; the pipeline never letterboxes.
"""

from __future__ import annotations

from typing import List, Sequence, Tuple

from models.detection import BoundingBox, Detection

Size = Tuple[float, float]


def scale(box: BoundingBox, from_size: Size, to_size: Size) -> BoundingBox:
    """Map box from a from_size (w, h) space into a to_size (w, h) space."""
    sx = to_size[0] / from_size[0]
    sy = to_size[1] / from_size[1]
    return BoundingBox(
        x1=box.x1 * sx,
        y1=box.y1 * sy,
        x2=box.x2 * sx,
        y2=box.y2 * sy,
    )


def scale_detections(
    detections: Sequence[Detection],
    from_size: Size,
    to_size: Size,
) -> List[Detection]:
    """Apply scale() to every detection's box."""
    if tuple(from_size) == tuple(to_size):
        return list(detections)
    return [d.with_bbox(scale(d.bbox, from_size, to_size)) for d in detections]
