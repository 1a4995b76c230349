"""
Spoken alert policy.

Decides whether the current detections warrant an announcement and what
to say. Two debounce strategies are supported:

- HAZARD_SET (default): announce when the set of hazard categories in view
  changes, at most once per debounce window.
- TOP_DETECTION: consider only the first (highest-priority) detection and
  repeat its label no more than once per debounce window.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet, Optional, Sequence

from models.detection import Detection, HazardCategory, UNKNOWN_LABEL

MULTIPLE_HAZARDS_MESSAGE = "Multiple hazards detected"

CATEGORY_PHRASES = {
    HazardCategory.PEDESTRIAN: "Pedestrian ahead",
    HazardCategory.POTHOLE: "Pothole ahead",
    HazardCategory.HUMP: "Speed hump ahead",
    HazardCategory.ANIMAL: "Animal on road",
    HazardCategory.ROAD_WORK: "Road work ahead",
}


class DebounceStrategy(str, Enum):
    HAZARD_SET = "hazard_set"
    TOP_DETECTION = "top_detection"


@dataclass(frozen=True)
class AlertMessage:
    text: str
    categories: FrozenSet[HazardCategory]


@dataclass
class AlertState:
    """What was announced last and when (seconds)."""
    categories: FrozenSet[HazardCategory] = frozenset()
    label: Optional[str] = None
    announced_at: Optional[float] = None


def phrase_for(detection: Detection) -> str:
    phrase = CATEGORY_PHRASES.get(detection.category)
    if phrase is not None:
        return phrase
    return f"{detection.label or UNKNOWN_LABEL} detected"


class AlertPolicy:
    """
    Rate-limited hazard announcements.

    Args:
        debounce_ms: Minimum time between two announcements.
        strategy: DebounceStrategy (or its string value).
        enabled: When False, evaluate() never emits.
    """

    def __init__(
        self,
        debounce_ms: float = 3000.0,
        strategy: DebounceStrategy = DebounceStrategy.HAZARD_SET,
        enabled: bool = True,
    ):
        self.debounce_ms = debounce_ms
        self.strategy = DebounceStrategy(strategy)
        self.enabled = enabled
        self._state = AlertState()
        self._lock = threading.Lock()

    @property
    def state(self) -> AlertState:
        with self._lock:
            return AlertState(
                categories=self._state.categories,
                label=self._state.label,
                announced_at=self._state.announced_at,
            )

    def reset(self) -> None:
        with self._lock:
            self._state = AlertState()

    def evaluate(self, detections: Sequence[Detection], now: float) -> Optional[AlertMessage]:
        """
        Decide whether to announce for this frame.

        Args:
            detections: Final detections, highest priority first.
            now: Current time in seconds.

        Returns:
            The message to speak, or None.
        """
        if not self.enabled or not detections:
            return None
        with self._lock:
            if self.strategy is DebounceStrategy.TOP_DETECTION:
                return self._evaluate_top(detections[0], now)
            return self._evaluate_set(detections, now)

    def _within_window(self, now: float) -> bool:
        last = self._state.announced_at
        return last is not None and (now - last) * 1000.0 < self.debounce_ms

    def _evaluate_set(self, detections: Sequence[Detection], now: float) -> Optional[AlertMessage]:
        if self._within_window(now):
            return None
        categories = frozenset(d.category for d in detections)
        if self._state.announced_at is not None and categories == self._state.categories:
            return None

        if len(categories) > 1:
            text = MULTIPLE_HAZARDS_MESSAGE
        else:
            text = phrase_for(detections[0])
        self._state = AlertState(categories=categories, label=None, announced_at=now)
        return AlertMessage(text=text, categories=categories)

    def _evaluate_top(self, top: Detection, now: float) -> Optional[AlertMessage]:
        if top.label == self._state.label and self._within_window(now):
            return None
        categories = frozenset([top.category])
        self._state = AlertState(categories=categories, label=top.label, announced_at=now)
        return AlertMessage(text=phrase_for(top), categories=categories)
