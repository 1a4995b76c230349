"""
Tests for snapshot channels and the telemetry bus.
"""

import threading
from unittest.mock import MagicMock

import pytest

from models.telemetry import HazardStatsSnapshot, PerformanceSnapshot
from pipeline.channels import SnapshotChannel, TelemetryBus


class TestSnapshotChannel:
    def test_initial_value(self):
        channel = SnapshotChannel(0, "count")
        assert channel.get() == 0
        assert channel.version == 0

    def test_publish_replaces_value(self):
        channel = SnapshotChannel(0)
        channel.publish(5)
        channel.publish(7)
        assert channel.get() == 7
        assert channel.version == 2

    def test_subscribers_receive_published_value(self):
        channel = SnapshotChannel(0)
        callback = MagicMock()
        channel.subscribe(callback)
        channel.publish(3)
        callback.assert_called_once_with(3)

    def test_unsubscribe(self):
        channel = SnapshotChannel(0)
        callback = MagicMock()
        unsubscribe = channel.subscribe(callback)
        unsubscribe()
        unsubscribe()
        channel.publish(1)
        callback.assert_not_called()

    def test_failing_subscriber_does_not_block_others(self):
        channel = SnapshotChannel(0)
        bad = MagicMock(side_effect=RuntimeError("boom"))
        good = MagicMock()
        channel.subscribe(bad)
        channel.subscribe(good)
        channel.publish(9)
        good.assert_called_once_with(9)
        assert channel.get() == 9

    def test_subscriber_may_read_channel(self):
        channel = SnapshotChannel(0)
        seen = []
        channel.subscribe(lambda value: seen.append((value, channel.get())))
        channel.publish(4)
        assert seen == [(4, 4)]

    def test_reset(self):
        channel = SnapshotChannel("idle")
        channel.publish("busy")
        channel.reset()
        assert channel.get() == "idle"

    def test_readers_only_see_complete_snapshots(self):
        channel = SnapshotChannel(PerformanceSnapshot())
        errors = []
        stop = threading.Event()

        def reader():
            while not stop.is_set():
                snap = channel.get()
                if snap.total_detections != snap.frame_count * 2:
                    errors.append(snap)

        threads = [threading.Thread(target=reader) for _ in range(3)]
        for t in threads:
            t.start()
        for i in range(1, 2000):
            channel.publish(PerformanceSnapshot(frame_count=i, total_detections=i * 2))
        stop.set()
        for t in threads:
            t.join()
        assert errors == []


class TestTelemetryBus:
    def test_defaults(self):
        bus = TelemetryBus(confidence_threshold=0.4)
        assert bus.confidence_threshold.get() == 0.4
        assert bus.running.get() is False
        assert bus.recent.get() == ()
        assert bus.detections.get() == ()
        assert bus.hazards.get() == HazardStatsSnapshot()

    @pytest.mark.parametrize("value", [0.0, 0.5, 1.0])
    def test_set_confidence_threshold(self, value):
        bus = TelemetryBus()
        bus.set_confidence_threshold(value)
        assert bus.confidence_threshold.get() == value

    @pytest.mark.parametrize("value", [-0.1, 1.5])
    def test_confidence_threshold_out_of_range(self, value):
        bus = TelemetryBus(confidence_threshold=0.3)
        with pytest.raises(ValueError):
            bus.set_confidence_threshold(value)
        assert bus.confidence_threshold.get() == 0.3

    def test_reset_session_keeps_threshold(self, make_detection):
        bus = TelemetryBus()
        bus.set_confidence_threshold(0.6)
        bus.performance.publish(PerformanceSnapshot(frame_count=3))
        bus.recent.publish((make_detection(0, 0, 5, 5),))
        bus.reset_session()
        assert bus.performance.get().frame_count == 0
        assert bus.recent.get() == ()
        assert bus.confidence_threshold.get() == 0.6
