"""
Output decoder interface.

A decoder turns one RawOutput into candidate detections expressed in model
input space, already scaled to the caller's target size.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List

from models.detection import Detection, LabelTable
from models.output import RawOutput


class OutputDecoder(ABC):
    """
    Abstract base class for output decoders.

    Each implementation handles exactly one output layout. Lengths (N boxes
    or B anchors) are read from the arrays on every call.
    """

    def __init__(self, labels: LabelTable):
        self.labels = labels

    @abstractmethod
    def decode(
        self,
        output: RawOutput,
        confidence_threshold: float,
        target_w: float,
        target_h: float,
    ) -> List[Detection]:
        """
        Decode raw tensors into detections.

        Raises:
            DecodeError: If the output does not match this layout.
        """
        pass

