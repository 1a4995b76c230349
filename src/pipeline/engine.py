"""
Detection loop for the hazard monitor.

This module orchestrates one pipeline pass per tick:
frame -> preprocess -> inference -> decode -> NMS -> coordinate mapping
-> telemetry -> alert policy -> publish.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from alerts.policy import AlertPolicy, DebounceStrategy
from alerts.sinks import AlertSink
from analytics.aggregator import DetectionAggregator
from decoding import create_decoder
from display.overlay import OverlaySink
from inference.backend import InferenceRuntime
from models.config import AlertConfig, ModelConfig, PipelineSettings
from models.detection import Detection
from models.frame import RawFrame
from models.output import RawOutput
from observation.base import FrameSource
from ops.errors import DecodeError, FrameError, SessionStartError
from postprocess.coords import scale_detections
from postprocess.nms import NonMaxSuppressor
from preprocess.frame_preprocessor import FramePreprocessor, PreprocessConfig
from .channels import TelemetryBus
from .scheduler import PacingConfig, PeriodicScheduler


class LoopState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    STOPPING = "stopping"


@dataclass
class LoopStats:
    """
    Tick accounting for the current session.

    A tick is skipped when no usable frame arrived, when inference failed,
    or when the model output was malformed. Failed inference and decode
    ticks still publish an empty detection set, so the telemetry frame
    count advances for them.
    """
    ticks: int = 0
    frames_processed: int = 0
    frames_skipped: int = 0
    inference_failures: int = 0
    decode_failures: int = 0
    tick_errors: int = 0
    alerts_emitted: int = 0
    last_stats_log_time: float = field(default_factory=time.monotonic)


class DetectionLoop:
    """
    Runs the detection pipeline against a FrameSource.

    Lifecycle is IDLE -> RUNNING -> STOPPING -> IDLE. start() opens the
    source and resets all session state; stop() cancels the scheduler and
    releases the source and overlay exactly once per session. A start()
    issued while a stop is in progress waits for it to finish.

    Example:
        loop = DetectionLoop(source, runtime, model, bus, settings,
                             overlay=overlay, alert_sink=LoggingAlertSink())
        loop.start()
        ...
        loop.stop()
    """

    def __init__(
        self,
        source: FrameSource,
        runtime: InferenceRuntime,
        model: ModelConfig,
        bus: TelemetryBus,
        settings: Optional[PipelineSettings] = None,
        overlay: Optional[OverlaySink] = None,
        alert_sink: Optional[AlertSink] = None,
        alert_policy: Optional[AlertPolicy] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.source = source
        self.runtime = runtime
        self.model = model
        self.bus = bus
        self.overlay = overlay
        self.alert_sink = alert_sink
        self.alert_policy = alert_policy or AlertPolicy()
        self._clock = clock

        self.preprocessor = FramePreprocessor(
            PreprocessConfig(normalization=model.normalization, mean=model.mean, std=model.std)
        )
        self.decoder = create_decoder(model)
        self._apply_settings(settings or PipelineSettings())

        self.aggregator = DetectionAggregator(session_start=clock())
        self.stats = LoopStats()
        self._state = LoopState.IDLE
        self._lifecycle = threading.Condition()
        self._release_lock = threading.Lock()
        self._session_id = 0
        self._open_session: Optional[int] = None
        self._scheduler: Optional[PeriodicScheduler] = None
        self._callbacks: List[Callable[[RawFrame, List[Detection]], None]] = []

    def _apply_settings(self, settings: PipelineSettings) -> None:
        self.settings = settings
        self.nms = NonMaxSuppressor(settings.iou_threshold, class_aware=settings.class_aware_nms)
        self.pacing = PacingConfig(
            target_interval_ms=settings.target_interval_ms,
            min_delay_ms=settings.min_delay_ms,
        )

    @property
    def state(self) -> LoopState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state is LoopState.RUNNING

    def add_callback(self, callback: Callable[[RawFrame, List[Detection]], None]) -> None:
        """
        Add a callback to be called after each processed frame.

        Args:
            callback: Function taking (frame, detections) as arguments.
        """
        self._callbacks.append(callback)

    def start(
        self,
        settings: Optional[PipelineSettings] = None,
        run_in_background: bool = True,
    ) -> bool:
        """
        Begin a session.

        Args:
            settings: Optional replacement pipeline settings.
            run_in_background: Spawn the paced worker thread. When False the
                caller drives ticks with run_once().

        Returns:
            False if a session is already running.

        Raises:
            SessionStartError: If the frame source cannot be opened.
        """
        with self._lifecycle:
            while self._state is LoopState.STOPPING:
                self._lifecycle.wait()
            if self._state is LoopState.RUNNING:
                logging.warning("Detection loop already running; start ignored")
                return False

            if settings is not None:
                self._apply_settings(settings)

            try:
                self.source.open()
            except Exception as e:
                logging.error(f"Failed to start capture session: {e}")
                try:
                    self.source.close()
                except Exception as close_error:
                    logging.warning(f"Error closing source: {close_error}")
                raise SessionStartError(f"Capture source rejected session start: {e}") from e

            self._session_id += 1
            with self._release_lock:
                self._open_session = self._session_id
            self.aggregator = DetectionAggregator(session_start=self._clock())
            self.alert_policy.reset()
            self.stats = LoopStats(last_stats_log_time=self._clock())
            self.bus.reset_session()
            self._state = LoopState.RUNNING
            self.bus.running.publish(True)

            if run_in_background:
                self._scheduler = PeriodicScheduler(self._tick, self.pacing)
                self._scheduler.start()

        logging.info(
            f"Detection loop started: source={self.source.source_id}, model={self.model.name}, "
            f"layout={self.model.layout}"
        )
        return True

    def stop(self) -> None:
        """
        End the session. Safe to call from IDLE and from any thread.

        Waits for an in-flight tick, then releases the source and overlay.
        A concurrent stop() waits for the first one to finish.
        """
        with self._lifecycle:
            while self._state is LoopState.STOPPING:
                self._lifecycle.wait()
            if self._state is not LoopState.RUNNING:
                return
            self._state = LoopState.STOPPING
            scheduler, self._scheduler = self._scheduler, None
            session = self._session_id

        # Still STOPPING here, so a waiting start() cannot interleave.
        try:
            if scheduler is not None:
                scheduler.cancel()
            self._release_resources(session)
            self.bus.running.publish(False)
            logging.info(
                f"Detection loop stopped: frames={self.stats.frames_processed}, "
                f"skipped={self.stats.frames_skipped}, "
                f"detections={self.aggregator.performance.total_detections}"
            )
        finally:
            with self._lifecycle:
                self._state = LoopState.IDLE
                self._lifecycle.notify_all()

    def _release_resources(self, session: int) -> None:
        with self._release_lock:
            if self._open_session != session:
                return
            self._open_session = None

        try:
            self.source.close()
        except Exception as e:
            logging.warning(f"Error closing source: {e}")
        if self.overlay is not None:
            try:
                self.overlay.release()
            except Exception as e:
                logging.warning(f"Error releasing overlay: {e}")

    def _tick(self) -> float:
        """One scheduled tick. Returns elapsed milliseconds."""
        started = self._clock()
        try:
            self.run_once(frame_start=started)
        except Exception:
            self.stats.tick_errors += 1
            logging.exception("Unexpected error in detection tick")
        self._log_periodic_stats()
        return (self._clock() - started) * 1000.0

    def run_once(self, frame_start: Optional[float] = None) -> Optional[List[Detection]]:
        """
        Process at most one frame.

        Returns:
            Published detections, or None if the tick was skipped (no frame
            or unusable frame).
        """
        frame_start = self._clock() if frame_start is None else frame_start
        self.stats.ticks += 1

        try:
            frame = self.source.acquire_latest_frame()
        except Exception as e:
            logging.warning(f"Frame acquisition failed: {e}")
            frame = None
        if frame is None:
            self.stats.frames_skipped += 1
            return None

        try:
            tensor = self.preprocessor.prepare(frame, self.model.input_shape)
        except FrameError as e:
            logging.warning(f"Skipping frame {frame.frame_index}: {e}")
            self.stats.frames_skipped += 1
            return None

        raw = self._infer(tensor)
        candidates = self._decode(raw) if raw is not None else None
        degraded = candidates is None
        detections = self.nms.suppress(candidates or [])

        target_size = self.settings.display_size or frame.size
        mapped = scale_detections(detections, self.model.input_shape, target_size)

        now = self._clock()
        performance, hazards = self.aggregator.update(mapped, frame_start, now)
        message = self.alert_policy.evaluate(mapped, now)

        self.bus.performance.publish(performance)
        self.bus.hazards.publish(hazards)
        self.bus.recent.publish(self.aggregator.recent())
        self.bus.detections.publish(tuple(mapped))

        if self.overlay is not None:
            try:
                self.overlay.update(mapped)
            except Exception as e:
                logging.warning(f"Overlay update failed: {e}")

        if message is not None:
            self.stats.alerts_emitted += 1
            if self.alert_sink is not None:
                try:
                    self.alert_sink.speak(message.text)
                except Exception as e:
                    logging.warning(f"Alert sink failed: {e}")

        for callback in self._callbacks:
            try:
                callback(frame, mapped)
            except Exception as e:
                logging.warning(f"Callback error: {e}")

        if degraded:
            self.stats.frames_skipped += 1
        else:
            self.stats.frames_processed += 1
        return mapped

    def _infer(self, tensor) -> Optional[RawOutput]:
        try:
            return self.runtime.infer(tensor)
        except Exception as e:
            self.stats.inference_failures += 1
            logging.warning(f"Inference failed, treating frame as empty: {e}")
            return None

    def _decode(self, raw: RawOutput) -> Optional[List[Detection]]:
        threshold = self.bus.confidence_threshold.get()
        input_w, input_h = self.model.input_shape
        try:
            candidates = self.decoder.decode(raw, threshold, input_w, input_h)
        except DecodeError as e:
            self.stats.decode_failures += 1
            logging.warning(f"Discarding malformed model output: {e}")
            return None
        if candidates:
            logging.debug(f"Raw detections before NMS: {len(candidates)}")
        return candidates

    def _log_periodic_stats(self) -> None:
        now = self._clock()
        if now - self.stats.last_stats_log_time < self.settings.stats_log_interval:
            return
        perf = self.aggregator.performance
        logging.info(
            f"Pipeline stats: frames={self.stats.frames_processed}, "
            f"skipped={self.stats.frames_skipped}, fps={perf.fps:.1f}, "
            f"latency={perf.processing_time_ms:.1f}ms, detections={perf.total_detections}, "
            f"inference_failures={self.stats.inference_failures}, "
            f"decode_failures={self.stats.decode_failures}"
        )
        self.stats.last_stats_log_time = now


def create_alert_policy(alerts_cfg: Dict[str, Any]) -> AlertPolicy:
    """Build an AlertPolicy from the `alerts` config section."""
    cfg = AlertConfig.from_dict(alerts_cfg or {})
    return AlertPolicy(
        debounce_ms=cfg.debounce_ms,
        strategy=DebounceStrategy(cfg.strategy),
        enabled=cfg.enabled,
    )


def create_loop_from_config(
    config: Dict[str, Any],
    source: FrameSource,
    runtime: InferenceRuntime,
    model: ModelConfig,
    bus: Optional[TelemetryBus] = None,
    overlay: Optional[OverlaySink] = None,
    alert_sink: Optional[AlertSink] = None,
) -> DetectionLoop:
    """
    Factory function to create a DetectionLoop from the app config dict.

    Args:
        config: Full application config dict.
        source: Frame source for the session.
        runtime: Inference runtime for the model.
        model: Resolved model configuration.
        bus: Telemetry channels; created from config when omitted.
        overlay: Optional overlay sink.
        alert_sink: Optional alert sink.
    """
    settings = PipelineSettings.from_dict(config.get("pipeline", {}) or {})
    if bus is None:
        bus = TelemetryBus(confidence_threshold=settings.confidence_threshold)
    return DetectionLoop(
        source=source,
        runtime=runtime,
        model=model,
        bus=bus,
        settings=settings,
        overlay=overlay,
        alert_sink=alert_sink,
        alert_policy=create_alert_policy(config.get("alerts", {}) or {}),
    )
