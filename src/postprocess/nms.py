"""
Greedy non-max suppression over axis-aligned boxes.
"""

from __future__ import annotations

from typing import List, Sequence

from models.detection import BoundingBox, Detection

IOU_EPSILON = 1e-6


def iou(a: BoundingBox, b: BoundingBox) -> float:
    """Intersection-over-union of two boxes; 0.0 when they do not overlap."""
    inter_w = min(a.x2, b.x2) - max(a.x1, b.x1)
    inter_h = min(a.y2, b.y2) - max(a.y1, b.y1)
    if inter_w <= 0 or inter_h <= 0:
        return 0.0
    inter = inter_w * inter_h
    return inter / (a.area + b.area - inter + IOU_EPSILON)


def suppress(
    detections: Sequence[Detection],
    iou_threshold: float,
    class_aware: bool = False,
) -> List[Detection]:
    """
    Keep the highest-scoring detection of every overlapping cluster.

    Detections are visited by descending confidence (ties keep input order).
    Each kept detection removes every remaining one whose IoU with it
    exceeds iou_threshold. With class_aware, only same-label pairs compete.

    Returns:
        Kept detections ordered by descending confidence.
    """
    # sorted() is stable, so equal scores stay in input order.
    remaining = sorted(detections, key=lambda d: d.confidence, reverse=True)
    kept: List[Detection] = []
    while remaining:
        best = remaining.pop(0)
        kept.append(best)
        remaining = [
            d for d in remaining
            if (class_aware and d.label != best.label) or iou(best.bbox, d.bbox) <= iou_threshold
        ]
    return kept


class NonMaxSuppressor:
    """Configured wrapper around suppress() for use as a pipeline stage."""

    def __init__(self, iou_threshold: float = 0.45, class_aware: bool = False):
        self.iou_threshold = iou_threshold
        self.class_aware = class_aware

    def suppress(self, detections: Sequence[Detection]) -> List[Detection]:
        return suppress(detections, self.iou_threshold, class_aware=self.class_aware)
