"""
Typed configuration models matching the YAML config structure.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple, Union

from .detection import LabelTable

LAYOUT_FILTERED = "filtered"
LAYOUT_DENSE_GRID = "dense_grid"
LAYOUTS = (LAYOUT_FILTERED, LAYOUT_DENSE_GRID)

NORMALIZE_UNIT = "unit"
NORMALIZE_STANDARD = "standard"
NORMALIZATIONS = (NORMALIZE_UNIT, NORMALIZE_STANDARD)

IMAGENET_MEAN = (0.485, 0.456, 0.406)
IMAGENET_STD = (0.229, 0.224, 0.225)


@dataclass
class SourceConfig:
    """Frame source configuration."""
    backend: str = "opencv"
    device_id: Union[int, str] = 0
    loop: bool = False
    source_id: str = "screen"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "SourceConfig":
        return cls(
            backend=d.get("backend", "opencv"),
            device_id=d.get("device_id", 0),
            loop=d.get("loop", False),
            source_id=d.get("source_id", "screen"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "backend": self.backend,
            "device_id": self.device_id,
            "loop": self.loop,
            "source_id": self.source_id,
        }


@dataclass
class DecoderTuning:
    """
    Dense-grid decoder tunables.

    Attributes:
        objectness_gate: Anchors with objectness below this are skipped early.
        min_box_size: Boxes narrower or shorter than this (target px) are noise.
        apply_sigmoid: Whether grid values are logits needing a sigmoid.
        has_objectness: Whether row 4 is objectness (else classes start at row 4).
    """
    objectness_gate: float = 0.03
    min_box_size: float = 10.0
    apply_sigmoid: bool = True
    has_objectness: bool = True

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "DecoderTuning":
        return cls(
            objectness_gate=d.get("objectness_gate", 0.03),
            min_box_size=d.get("min_box_size", 10.0),
            apply_sigmoid=d.get("apply_sigmoid", True),
            has_objectness=d.get("has_objectness", True),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "objectness_gate": self.objectness_gate,
            "min_box_size": self.min_box_size,
            "apply_sigmoid": self.apply_sigmoid,
            "has_objectness": self.has_objectness,
        }


@dataclass
class ModelConfig:
    """
    Configuration of one deployable detection model.

    Attributes:
        name: Registry key.
        file: Path to the model file.
        input_size: Square input side the model expects (pixels).
        layout: Output layout tag ("filtered" or "dense_grid").
        native_size: Coordinate space of filtered-layout boxes.
        labels: Class index -> label/category table.
        normalization: "unit" or "standard".
        mean: Per-channel mean for "standard" normalization.
        std: Per-channel std for "standard" normalization.
        decoder: Dense-grid tunables.
    """
    name: str = "default"
    file: str = ""
    input_size: int = 320
    layout: str = LAYOUT_DENSE_GRID
    native_size: Optional[int] = None
    labels: LabelTable = field(default_factory=lambda: LabelTable(labels=()))
    normalization: str = NORMALIZE_UNIT
    mean: Tuple[float, float, float] = IMAGENET_MEAN
    std: Tuple[float, float, float] = IMAGENET_STD
    decoder: DecoderTuning = field(default_factory=DecoderTuning)

    @property
    def input_shape(self) -> Tuple[int, int]:
        """Return (width, height) of the model input."""
        return (self.input_size, self.input_size)

    @property
    def box_space(self) -> int:
        """Side length of the space filtered boxes are expressed in."""
        return self.native_size or self.input_size

    @classmethod
    def from_dict(cls, d: Dict[str, Any], name: Optional[str] = None) -> "ModelConfig":
        decoder_dict = d.get("decoder") or {}
        return cls(
            name=name or d.get("name", "default"),
            file=d.get("file", ""),
            input_size=int(d.get("input_size", 320)),
            layout=d.get("layout", LAYOUT_DENSE_GRID),
            native_size=d.get("native_size"),
            labels=LabelTable.from_config(d.get("labels", []), d.get("categories")),
            normalization=d.get("normalization", NORMALIZE_UNIT),
            mean=tuple(d.get("mean", IMAGENET_MEAN)),
            std=tuple(d.get("std", IMAGENET_STD)),
            decoder=DecoderTuning.from_dict(decoder_dict),
        )

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "name": self.name,
            "file": self.file,
            "input_size": self.input_size,
            "layout": self.layout,
            "labels": [
                {"name": label, "category": category.value}
                for label, category in zip(self.labels.labels, self.labels.categories)
            ],
            "normalization": self.normalization,
            "decoder": self.decoder.to_dict(),
        }
        if self.native_size is not None:
            d["native_size"] = self.native_size
        if self.normalization == NORMALIZE_STANDARD:
            d["mean"] = list(self.mean)
            d["std"] = list(self.std)
        return d


@dataclass
class PipelineSettings:
    """
    Detection loop settings.

    Attributes:
        target_interval_ms: Desired tick period.
        min_delay_ms: Minimum sleep between ticks.
        confidence_threshold: Initial value of the live threshold control.
        iou_threshold: NMS overlap threshold.
        class_aware_nms: Only suppress boxes sharing a label.
        display_size: (width, height) overlay space. None = frame size.
        stats_log_interval: Seconds between status log messages.
    """
    target_interval_ms: float = 200.0
    min_delay_ms: float = 10.0
    confidence_threshold: float = 0.25
    iou_threshold: float = 0.45
    class_aware_nms: bool = False
    display_size: Optional[Tuple[int, int]] = None
    stats_log_interval: float = 60.0

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "PipelineSettings":
        display_size = d.get("display_size")
        return cls(
            target_interval_ms=d.get("target_interval_ms", 200.0),
            min_delay_ms=d.get("min_delay_ms", 10.0),
            confidence_threshold=d.get("confidence_threshold", 0.25),
            iou_threshold=d.get("iou_threshold", 0.45),
            class_aware_nms=d.get("class_aware_nms", False),
            display_size=tuple(display_size) if display_size else None,
            stats_log_interval=d.get("stats_log_interval", 60.0),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "target_interval_ms": self.target_interval_ms,
            "min_delay_ms": self.min_delay_ms,
            "confidence_threshold": self.confidence_threshold,
            "iou_threshold": self.iou_threshold,
            "class_aware_nms": self.class_aware_nms,
            "display_size": list(self.display_size) if self.display_size else None,
            "stats_log_interval": self.stats_log_interval,
        }


@dataclass
class AlertConfig:
    """Voice alert configuration."""
    enabled: bool = True
    strategy: str = "hazard_set"
    debounce_ms: float = 3000.0

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "AlertConfig":
        return cls(
            enabled=d.get("enabled", True),
            strategy=d.get("strategy", "hazard_set"),
            debounce_ms=d.get("debounce_ms", 3000.0),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "enabled": self.enabled,
            "strategy": self.strategy,
            "debounce_ms": self.debounce_ms,
        }


@dataclass
class WebConfig:
    """Telemetry API configuration."""
    enabled: bool = False
    host: str = "127.0.0.1"
    port: int = 5000

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "WebConfig":
        return cls(
            enabled=d.get("enabled", False),
            host=d.get("host", "127.0.0.1"),
            port=d.get("port", 5000),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"enabled": self.enabled, "host": self.host, "port": self.port}


@dataclass
class Config:
    """
    Complete application configuration.

    This is a typed representation of the YAML config structure.
    """
    source: SourceConfig = field(default_factory=SourceConfig)
    model: str = "default"
    models: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    pipeline: PipelineSettings = field(default_factory=PipelineSettings)
    alerts: AlertConfig = field(default_factory=AlertConfig)
    web: WebConfig = field(default_factory=WebConfig)
    log_path: str = "logs/hazard_monitor.log"
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Config":
        """Adapter: Create Config from raw dictionary (e.g., from load_config)."""
        return cls(
            source=SourceConfig.from_dict(d.get("source", {}) or {}),
            model=d.get("model", "default"),
            models=dict(d.get("models", {}) or {}),
            pipeline=PipelineSettings.from_dict(d.get("pipeline", {}) or {}),
            alerts=AlertConfig.from_dict(d.get("alerts", {}) or {}),
            web=WebConfig.from_dict(d.get("web", {}) or {}),
            log_path=d.get("log_path", "logs/hazard_monitor.log"),
            log_level=d.get("log_level", "INFO"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert back to dictionary."""
        return {
            "source": self.source.to_dict(),
            "model": self.model,
            "models": self.models,
            "pipeline": self.pipeline.to_dict(),
            "alerts": self.alerts.to_dict(),
            "web": self.web.to_dict(),
            "log_path": self.log_path,
            "log_level": self.log_level,
        }
