from __future__ import annotations

import logging
from typing import Iterable, List

from fastapi import APIRouter, Request

from models.detection import Detection
from models.telemetry import HazardStatsSnapshot, PerformanceSnapshot
from pipeline.channels import TelemetryBus
from ..api_models import (
    ConfidenceControl,
    DetectionResponse,
    DetectionsResponse,
    HazardStatsResponse,
    PerformanceResponse,
    TelemetryResponse,
)

router = APIRouter()


def _bus(request: Request) -> TelemetryBus:
    return request.app.state.bus


def _performance(snapshot: PerformanceSnapshot) -> PerformanceResponse:
    return PerformanceResponse(**snapshot.to_dict())


def _hazards(snapshot: HazardStatsSnapshot) -> HazardStatsResponse:
    return HazardStatsResponse(
        pedestrians=snapshot.pedestrians,
        potholes=snapshot.potholes,
        humps=snapshot.humps,
        animals=snapshot.animals,
        road_works=snapshot.road_works,
        total=snapshot.total,
    )


def _detections(detections: Iterable[Detection]) -> List[DetectionResponse]:
    return [
        DetectionResponse(
            label=d.label,
            confidence=d.confidence,
            class_id=d.class_id,
            category=d.category.value,
            bbox=list(d.bbox.as_tuple()),
        )
        for d in detections
    ]


@router.get("/telemetry", response_model=TelemetryResponse)
def telemetry(request: Request):
    """
    Current session telemetry.
    Fields:
    - running: whether a detection session is active
    - confidence_threshold: live decode threshold
    - performance: fps, average processing latency, totals
    - hazards: per-category counts since session start
    - recent_detections: last detections, most recent first
    """
    bus = _bus(request)
    return TelemetryResponse(
        running=bus.running.get(),
        confidence_threshold=bus.confidence_threshold.get(),
        performance=_performance(bus.performance.get()),
        hazards=_hazards(bus.hazards.get()),
        recent_detections=_detections(bus.recent.get()),
    )


@router.get("/telemetry/performance", response_model=PerformanceResponse)
def telemetry_performance(request: Request):
    return _performance(_bus(request).performance.get())


@router.get("/telemetry/hazards", response_model=HazardStatsResponse)
def telemetry_hazards(request: Request):
    return _hazards(_bus(request).hazards.get())


@router.get("/detections", response_model=DetectionsResponse)
def detections(request: Request):
    """Final detections of the latest processed frame."""
    items = _detections(_bus(request).detections.get())
    return DetectionsResponse(count=len(items), detections=items)


@router.get("/controls/confidence", response_model=ConfidenceControl)
def get_confidence(request: Request):
    return ConfidenceControl(value=_bus(request).confidence_threshold.get())


@router.put("/controls/confidence", response_model=ConfidenceControl)
def set_confidence(control: ConfidenceControl, request: Request):
    bus = _bus(request)
    bus.set_confidence_threshold(control.value)
    logging.info(f"Confidence threshold set to {control.value:.2f}")
    return ConfidenceControl(value=bus.confidence_threshold.get())
