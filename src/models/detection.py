"""
Detection models for hazard detection results.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

UNKNOWN_LABEL = "unknown"


class HazardCategory(str, Enum):
    """Closed set of road hazard categories."""
    PEDESTRIAN = "pedestrian"
    POTHOLE = "pothole"
    HUMP = "hump"
    ANIMAL = "animal"
    ROAD_WORK = "road_work"
    UNKNOWN = "unknown"

    @classmethod
    def counted(cls) -> Tuple["HazardCategory", ...]:
        """Categories that have a counter (everything except UNKNOWN)."""
        return tuple(c for c in cls if c is not cls.UNKNOWN)


# Label spellings seen across model exports. Used when a model's label table
# does not say which category a label belongs to.
DEFAULT_CATEGORY_ALIASES: Dict[str, HazardCategory] = {
    "pedestrian": HazardCategory.PEDESTRIAN,
    "pedestrians": HazardCategory.PEDESTRIAN,
    "person": HazardCategory.PEDESTRIAN,
    "pothole": HazardCategory.POTHOLE,
    "potholes": HazardCategory.POTHOLE,
    "hump": HazardCategory.HUMP,
    "humps": HazardCategory.HUMP,
    "speed_hump": HazardCategory.HUMP,
    "animal": HazardCategory.ANIMAL,
    "animals": HazardCategory.ANIMAL,
    "roadwork": HazardCategory.ROAD_WORK,
    "roadworks": HazardCategory.ROAD_WORK,
    "road_work": HazardCategory.ROAD_WORK,
    "road_works": HazardCategory.ROAD_WORK,
}


def category_from_name(name: Union[str, HazardCategory, None]) -> HazardCategory:
    """Map a config value or label to a HazardCategory (UNKNOWN if unmapped)."""
    if isinstance(name, HazardCategory):
        return name
    if not name:
        return HazardCategory.UNKNOWN
    key = str(name).strip().lower().replace(" ", "_").replace("-", "_")
    try:
        return HazardCategory(key)
    except ValueError:
        return DEFAULT_CATEGORY_ALIASES.get(key, HazardCategory.UNKNOWN)


@dataclass(frozen=True)
class BoundingBox:
    """
    A bounding box in pixel coordinates.

    Attributes:
        x1: Left edge x coordinate.
        y1: Top edge y coordinate.
        x2: Right edge x coordinate.
        y2: Bottom edge y coordinate.
    """
    x1: float
    y1: float
    x2: float
    y2: float

    @property
    def width(self) -> float:
        return self.x2 - self.x1

    @property
    def height(self) -> float:
        return self.y2 - self.y1

    @property
    def center(self) -> Tuple[float, float]:
        return ((self.x1 + self.x2) / 2, (self.y1 + self.y2) / 2)

    @property
    def area(self) -> float:
        return max(0.0, self.width) * max(0.0, self.height)

    @property
    def is_degenerate(self) -> bool:
        return self.x2 <= self.x1 or self.y2 <= self.y1

    def clamp(self, width: float, height: float) -> "BoundingBox":
        """Clamp all edges to [0, width] x [0, height]."""
        return BoundingBox(
            x1=min(max(self.x1, 0.0), width),
            y1=min(max(self.y1, 0.0), height),
            x2=min(max(self.x2, 0.0), width),
            y2=min(max(self.y2, 0.0), height),
        )

    def as_tuple(self) -> Tuple[float, float, float, float]:
        """Return as (x1, y1, x2, y2) tuple."""
        return (self.x1, self.y1, self.x2, self.y2)

    def as_int_tuple(self) -> Tuple[int, int, int, int]:
        """Return as integer (x1, y1, x2, y2) tuple."""
        return (int(self.x1), int(self.y1), int(self.x2), int(self.y2))

    @classmethod
    def from_tuple(cls, t: Sequence[float]) -> "BoundingBox":
        """Create from (x1, y1, x2, y2) tuple."""
        return cls(x1=float(t[0]), y1=float(t[1]), x2=float(t[2]), y2=float(t[3]))

    @classmethod
    def from_center(cls, cx: float, cy: float, w: float, h: float) -> "BoundingBox":
        """Create from center/size format."""
        return cls(x1=cx - w / 2, y1=cy - h / 2, x2=cx + w / 2, y2=cy + h / 2)


@dataclass(frozen=True)
class Detection:
    """
    A single hazard detection.

    Attributes:
        bbox: Bounding box in the coordinate space of the producing stage.
        label: Label from the model's label table ("unknown" if unmapped).
        confidence: Detection confidence score (0-1).
        class_id: Raw class index from the model, if any.
        category: HazardCategory the label maps to.
    """
    bbox: BoundingBox
    label: str = UNKNOWN_LABEL
    confidence: float = 1.0
    class_id: Optional[int] = None
    category: HazardCategory = HazardCategory.UNKNOWN

    @property
    def x1(self) -> float:
        return self.bbox.x1

    @property
    def y1(self) -> float:
        return self.bbox.y1

    @property
    def x2(self) -> float:
        return self.bbox.x2

    @property
    def y2(self) -> float:
        return self.bbox.y2

    def with_bbox(self, bbox: BoundingBox) -> "Detection":
        return replace(self, bbox=bbox)

    @classmethod
    def from_xyxy(
        cls,
        x1: float,
        y1: float,
        x2: float,
        y2: float,
        label: str = UNKNOWN_LABEL,
        confidence: float = 1.0,
        class_id: Optional[int] = None,
        category: Optional[HazardCategory] = None,
    ) -> "Detection":
        """Create Detection from x1, y1, x2, y2 coordinates."""
        return cls(
            bbox=BoundingBox(x1=x1, y1=y1, x2=x2, y2=y2),
            label=label,
            confidence=confidence,
            class_id=class_id,
            category=category if category is not None else category_from_name(label),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "box": {"left": self.x1, "top": self.y1, "right": self.x2, "bottom": self.y2},
            "label": self.label,
            "score": self.confidence,
            "class_id": self.class_id,
            "category": self.category.value,
        }


@dataclass(frozen=True)
class LabelTable:
    """
    Class index -> (label, HazardCategory) table for one model.

    Example:
        table = LabelTable.from_config(
            ["animals", "humps", "pedestrian", "pothole", "roadworks"],
            {"humps": "pothole"},
        )
        table.lookup(2)  # ("pedestrian", HazardCategory.PEDESTRIAN)
    """
    labels: Tuple[str, ...]
    categories: Tuple[HazardCategory, ...] = field(default=())

    def __post_init__(self) -> None:
        if not self.categories:
            object.__setattr__(
                self, "categories", tuple(category_from_name(l) for l in self.labels)
            )
        if len(self.categories) != len(self.labels):
            raise ValueError("labels and categories must have the same length")

    def __len__(self) -> int:
        return len(self.labels)

    def __contains__(self, class_id: object) -> bool:
        return isinstance(class_id, int) and 0 <= class_id < len(self.labels)

    def lookup(self, class_id: int) -> Tuple[str, HazardCategory]:
        """Return (label, category); out-of-range ids map to ("unknown", UNKNOWN)."""
        if class_id in self:
            return self.labels[class_id], self.categories[class_id]
        return UNKNOWN_LABEL, HazardCategory.UNKNOWN

    def category_for(self, label: str) -> HazardCategory:
        for name, category in zip(self.labels, self.categories):
            if name == label:
                return category
        return category_from_name(label)

    @classmethod
    def from_config(
        cls,
        labels: Iterable[Union[str, Mapping[str, Any]]],
        category_map: Optional[Mapping[str, str]] = None,
    ) -> "LabelTable":
        """
        Build from a config list.

        Entries are either plain label strings or {"name": ..., "category": ...}
        mappings. category_map overrides the category of named labels.
        """
        names: List[str] = []
        categories: List[HazardCategory] = []
        overrides = dict(category_map or {})
        for entry in labels:
            if isinstance(entry, Mapping):
                name = str(entry["name"])
                category = category_from_name(entry.get("category", name))
            else:
                name = str(entry)
                category = category_from_name(name)
            if name in overrides:
                category = category_from_name(overrides[name])
            names.append(name)
            categories.append(category)
        return cls(labels=tuple(names), categories=tuple(categories))
