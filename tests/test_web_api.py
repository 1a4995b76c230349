"""
Tests for the telemetry HTTP API.
"""

import pytest
from fastapi.testclient import TestClient

from models.detection import Detection, HazardCategory
from models.telemetry import HazardStatsSnapshot, PerformanceSnapshot
from pipeline.channels import TelemetryBus
from web.app import create_app


@pytest.fixture
def bus():
    return TelemetryBus(confidence_threshold=0.25)


@pytest.fixture
def client(bus):
    return TestClient(create_app(bus))


class TestTelemetryEndpoints:
    def test_idle_telemetry(self, client):
        resp = client.get("/api/telemetry")
        assert resp.status_code == 200
        body = resp.json()
        assert body["running"] is False
        assert body["confidence_threshold"] == 0.25
        assert body["performance"]["frame_count"] == 0
        assert body["hazards"]["total"] == 0
        assert body["recent_detections"] == []

    def test_published_snapshots(self, client, bus):
        det = Detection.from_xyxy(10, 20, 110, 220, label="pothole", confidence=0.8, class_id=3)
        bus.running.publish(True)
        bus.performance.publish(
            PerformanceSnapshot(
                fps=4.5,
                processing_time_ms=120.0,
                total_detections=3,
                avg_confidence=0.7,
                session_duration_ms=2000.0,
                frame_count=9,
            )
        )
        bus.hazards.publish(
            HazardStatsSnapshot.from_counts({HazardCategory.POTHOLE: 2, HazardCategory.ROAD_WORK: 1})
        )
        bus.recent.publish((det,))

        body = client.get("/api/telemetry").json()

        assert body["running"] is True
        assert body["performance"]["fps"] == 4.5
        assert body["performance"]["frame_count"] == 9
        assert body["hazards"] == {
            "pedestrians": 0,
            "potholes": 2,
            "humps": 0,
            "animals": 0,
            "road_works": 1,
            "total": 3,
        }
        assert body["recent_detections"] == [
            {
                "label": "pothole",
                "confidence": 0.8,
                "class_id": 3,
                "category": "pothole",
                "bbox": [10.0, 20.0, 110.0, 220.0],
            }
        ]

    def test_performance_endpoint(self, client, bus):
        bus.performance.publish(PerformanceSnapshot(fps=2.0, frame_count=4))
        body = client.get("/api/telemetry/performance").json()
        assert body["fps"] == 2.0
        assert body["frame_count"] == 4

    def test_hazards_endpoint(self, client, bus):
        bus.hazards.publish(HazardStatsSnapshot.from_counts({HazardCategory.ANIMAL: 5}))
        body = client.get("/api/telemetry/hazards").json()
        assert body["animals"] == 5
        assert body["total"] == 5

    def test_detections_endpoint(self, client, bus):
        bus.detections.publish(
            (
                Detection.from_xyxy(0, 0, 50, 50, label="humps", confidence=0.6),
                Detection.from_xyxy(60, 0, 90, 50, label="cone", confidence=0.3),
            )
        )
        body = client.get("/api/detections").json()
        assert body["count"] == 2
        assert [d["category"] for d in body["detections"]] == ["hump", "unknown"]
        assert body["detections"][1]["class_id"] is None


class TestConfidenceControl:
    def test_get(self, client):
        assert client.get("/api/controls/confidence").json() == {"value": 0.25}

    def test_put_updates_bus(self, client, bus):
        resp = client.put("/api/controls/confidence", json={"value": 0.6})
        assert resp.status_code == 200
        assert resp.json() == {"value": 0.6}
        assert bus.confidence_threshold.get() == 0.6

    @pytest.mark.parametrize("payload", [{"value": 1.2}, {"value": -0.5}, {"value": "high"}, {}])
    def test_put_rejects_invalid(self, client, bus, payload):
        resp = client.put("/api/controls/confidence", json=payload)
        assert resp.status_code == 422
        assert bus.confidence_threshold.get() == 0.25

    def test_default_bus(self):
        client = TestClient(create_app())
        assert client.get("/api/controls/confidence").json() == {"value": 0.25}
