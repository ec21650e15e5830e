"""
Pipeline engine for the distraction monitor.

A capture thread reads frames from an ObservationSource into a
LatestFrameSlot; a single worker takes the newest frame and runs it through
detection, temporal confirmation and alert dispatch before taking the next.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from alerts.confirmer import TemporalConfirmer
from alerts.dispatcher import AlertDispatcher
from alerts.sinks import create_alert_sink
from detection.detector import Detector
from models.config import Config
from models.detection import BoundingBox, DetectionResult
from models.frame import FrameData
from observation.base import ObservationSource
from observation.opencv_source import OpenCVSource, OpenCVSourceConfig
from .frame_slot import LatestFrameSlot


@dataclass
class PipelineConfig:
    """
    Configuration for the pipeline engine.

    Attributes:
        max_consecutive_failures: Max frame read failures before stopping.
        stats_log_interval: Seconds between status log messages.
        read_retry_delay: Seconds to wait after a failed read.
        max_frames: Stop after processing this many frames (None = unbounded).
        poll_timeout: Seconds the worker waits for a frame before re-checking state.
    """
    max_consecutive_failures: int = 10
    stats_log_interval: float = 60.0
    read_retry_delay: float = 0.5
    max_frames: Optional[int] = None
    poll_timeout: float = 0.5


@dataclass
class PipelineStats:
    """Runtime statistics for the pipeline."""
    frame_count: int = 0
    detection_frames: int = 0
    confirmed_frames: int = 0
    alerts_started: int = 0
    dropped_frames: int = 0
    last_inference_ms: Optional[float] = None
    last_frame_age_ms: Optional[float] = None
    start_time: float = field(default_factory=time.time)
    last_stats_log_time: float = field(default_factory=time.time)
    consecutive_failures: int = 0


@dataclass
class FrameOutcome:
    """
    What happened to one frame.

    Attributes:
        frame_index: Index of the processed frame.
        result: Suppressed detections, or None when nothing was detected.
        confirmed: Boxes confirmed by the debounce counter on this frame.
        alert: Alert id started on this frame, if any.
    """
    frame_index: int
    result: Optional[DetectionResult] = None
    confirmed: List[BoundingBox] = field(default_factory=list)
    alert: Optional[str] = None


class PipelineEngine:
    """
    Main processing engine. Each engine runs once; stop() is final.

    Frames are processed strictly one at a time. The capture side never
    queues: if the worker is busy, a newer frame replaces the pending one.

    Example:
        engine = PipelineEngine(source, detector, confirmer, dispatcher, PipelineConfig())
        engine.run()
    """

    def __init__(
        self,
        source: ObservationSource,
        detector: Detector,
        confirmer: TemporalConfirmer,
        dispatcher: AlertDispatcher,
        config: Optional[PipelineConfig] = None,
    ):
        self.source = source
        self.detector = detector
        self.confirmer = confirmer
        self.dispatcher = dispatcher
        self.config = config or PipelineConfig()
        self.stats = PipelineStats()
        self._slot = LatestFrameSlot()
        self._running = False
        self._stop_requested = False
        self._error: Optional[str] = None
        self._capture_thread: Optional[threading.Thread] = None
        self._callbacks: List[Callable[[FrameData, FrameOutcome], None]] = []

    def add_callback(self, callback: Callable[[FrameData, FrameOutcome], None]) -> None:
        """
        Add a callback to be called after each frame is processed.

        Args:
            callback: Function taking (frame_data, outcome) as arguments.
        """
        self._callbacks.append(callback)

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def error(self) -> Optional[str]:
        """Why the last run ended abnormally, or None."""
        return self._error

    def run(self) -> None:
        """
        Run the main processing loop.

        Opens the observation source, processes frames until stopped or
        exhausted, then closes resources. Returns at once if stop() was
        already called.
        """
        if self._stop_requested:
            logging.info("Pipeline stop requested before start; not running")
            self._cleanup()
            return

        self._running = True
        self._error = None
        self.stats = PipelineStats()

        try:
            self.source.open()
            logging.info(f"Pipeline started: source={self.source.source_id}")

            self._capture_thread = threading.Thread(
                target=self._capture_loop, name="frame-capture", daemon=True
            )
            self._capture_thread.start()

            while self._running:
                frame_data = self._slot.get(timeout=self.config.poll_timeout)
                if frame_data is None:
                    if self._slot.closed:
                        break
                    continue

                self.process_frame(frame_data)

                if self.config.max_frames is not None and self.stats.frame_count >= self.config.max_frames:
                    logging.info(f"Reached max_frames={self.config.max_frames}, stopping")
                    break

                self._handle_periodic_tasks()

        except KeyboardInterrupt:
            logging.info("Pipeline interrupted by user")
        except Exception as e:
            logging.exception(f"Pipeline error: {e}")
            self._error = str(e)
        finally:
            self._cleanup()

    def stop(self) -> None:
        """Stop accepting frames; the in-flight frame is allowed to finish."""
        self._stop_requested = True
        self._running = False
        self._slot.close()

    def process_frame(self, frame_data: FrameData) -> FrameOutcome:
        """
        Run one frame through detect -> confirm -> dispatch.

        Returns the frame's outcome; callbacks receive the same object.
        """
        self.stats.frame_count += 1
        self.stats.last_frame_age_ms = frame_data.age_ms()
        outcome = FrameOutcome(frame_index=frame_data.frame_index)

        outcome.result = self.detector.detect(frame_data)
        if outcome.result is not None:
            self.stats.detection_frames += 1
            self.stats.last_inference_ms = outcome.result.inference_time_ms
            logging.debug(
                f"frame={frame_data.frame_index} detections={outcome.result.class_names} "
                f"inference={outcome.result.inference_time_ms:.1f}ms"
            )

        boxes = outcome.result.boxes if outcome.result is not None else None
        outcome.confirmed = self.confirmer.observe(boxes)

        if outcome.confirmed:
            self.stats.confirmed_frames += 1
            outcome.alert = self.dispatcher.dispatch(outcome.confirmed)
            if outcome.alert is not None:
                self.stats.alerts_started += 1

        for callback in self._callbacks:
            try:
                callback(frame_data, outcome)
            except Exception as e:
                logging.warning(f"Callback error: {e}")

        return outcome

    def _capture_loop(self) -> None:
        """Read frames into the slot until stopped, exhausted or failing."""
        try:
            while self._running:
                frame_data = self.source.read()

                if frame_data is None:
                    if self.source.exhausted:
                        logging.info("Observation source exhausted")
                        break
                    self.stats.consecutive_failures += 1
                    if self.stats.consecutive_failures >= self.config.max_consecutive_failures:
                        logging.error(
                            f"Too many consecutive failures ({self.stats.consecutive_failures}), stopping"
                        )
                        self._error = f"{self.stats.consecutive_failures} consecutive frame read failures"
                        break
                    logging.warning(
                        f"Frame read failed ({self.stats.consecutive_failures}/"
                        f"{self.config.max_consecutive_failures})"
                    )
                    time.sleep(self.config.read_retry_delay)
                    continue

                self.stats.consecutive_failures = 0
                if self._slot.put(frame_data):
                    self.stats.dropped_frames += 1
        except Exception as e:
            logging.exception(f"Capture error: {e}")
            self._error = str(e)
        finally:
            self._slot.close()

    def _handle_periodic_tasks(self) -> None:
        """Log statistics periodically."""
        now = time.time()
        if now - self.stats.last_stats_log_time >= self.config.stats_log_interval:
            elapsed = max(now - self.stats.start_time, 1e-9)
            logging.info(
                f"Pipeline stats: frames={self.stats.frame_count}, "
                f"fps={self.stats.frame_count / elapsed:.1f}, "
                f"with_detections={self.stats.detection_frames}, "
                f"confirmed={self.stats.confirmed_frames}, "
                f"alerts={self.stats.alerts_started}, "
                f"dropped={self.stats.dropped_frames}, "
                f"frame_age={self.stats.last_frame_age_ms or 0.0:.0f}ms"
            )
            self.stats.last_stats_log_time = now

    def _cleanup(self) -> None:
        """Clean up resources."""
        self.stop()

        if self._capture_thread is not None:
            self._capture_thread.join(timeout=5.0)
            if self._capture_thread.is_alive():
                logging.warning("Capture thread did not stop within 5s")
            self._capture_thread = None

        try:
            self.source.close()
        except Exception as e:
            logging.warning(f"Error closing source: {e}")

        self.detector.close()

        try:
            self.dispatcher.sink.close()
        except Exception as e:
            logging.warning(f"Error closing alert sink: {e}")

        logging.info(
            f"Pipeline stopped: frames={self.stats.frame_count}, alerts={self.stats.alerts_started}"
        )


def create_engine_from_config(
    config: Config,
    detector: Detector,
    source: Optional[ObservationSource] = None,
    max_frames: Optional[int] = None,
) -> PipelineEngine:
    """
    Factory function to create a PipelineEngine from the typed config.

    Args:
        config: Application config.
        detector: Detector that has already been set up.
        source: Frame source; defaults to an OpenCV camera from config.camera.
        max_frames: Optional frame limit.
    """
    if source is None:
        source = OpenCVSource(OpenCVSourceConfig.from_camera_config(config.camera.to_dict(), source_id="cabin-camera"))

    confirmer = TemporalConfirmer(
        detection_threshold=config.confirmation.detection_threshold,
        time_window_ms=config.confirmation.time_window_ms,
    )

    alerts_cfg = config.alerts
    sink = create_alert_sink(alerts_cfg.backend, alerts_cfg.player_command, alerts_cfg.sounds_dir)
    dispatcher = AlertDispatcher(sink, alert_map=alerts_cfg.sounds)

    pipeline_config = PipelineConfig(
        stats_log_interval=config.stats_log_interval,
        max_frames=max_frames,
    )
    return PipelineEngine(source, detector, confirmer, dispatcher, pipeline_config)
