"""
Per-frame detection pipeline: preprocess, inference, decode, suppress.
"""

from __future__ import annotations

import logging
import time
from typing import List, Optional, Sequence

import numpy as np

from inference.backend import InferenceEngine, TensorShapes
from inference.preprocess import to_input_tensor
from models.config import Config
from models.detection import BoundingBox, DetectionResult
from models.frame import FrameData
from .decoder import DetectionDecoder
from .errors import DetectionError
from .labels import load_labels
from .nms import non_max_suppression


class Detector:
    """
    Runs one frame at a time through the model and the decision pipeline.

    Lifecycle:
        1. Create with an engine and a label set
        2. Call setup() to read the engine's shapes (once per session)
        3. Call detect() / decode() per frame
        4. Call close() to release the engine

    decode() returns None when no candidate survives the confidence and
    geometry filters, and the non-empty suppressed list otherwise. Consumers
    clear prior visual state on None.
    """

    def __init__(
        self,
        engine: InferenceEngine,
        labels: Sequence[str],
        confidence_threshold: float = 0.3,
        iou_threshold: float = 0.5,
        input_mean: float = 0.0,
        input_std: float = 255.0,
    ):
        self.engine = engine
        self.labels = tuple(labels)
        self.confidence_threshold = confidence_threshold
        self.iou_threshold = iou_threshold
        self.input_mean = input_mean
        self.input_std = input_std

        self.shapes: Optional[TensorShapes] = None
        self._decoder: Optional[DetectionDecoder] = None
        self._closed = False
        self._warned_not_ready = False

    @property
    def is_ready(self) -> bool:
        return self._decoder is not None and not self._closed

    def setup(self) -> bool:
        """
        Query the engine for its input/output shapes and build the decoder.

        Returns:
            True if the pipeline is ready to decode.
        """
        shapes = TensorShapes.from_sequences(self.engine.input_shape, self.engine.output_shape)
        if not shapes.is_complete:
            logging.error(
                f"Engine reported incomplete shapes: input={list(shapes.input_shape)} "
                f"output={list(shapes.output_shape)}"
            )
            return False
        if not self.labels:
            logging.error("No labels loaded; refusing to decode")
            return False

        try:
            self._decoder = DetectionDecoder(
                num_channel=shapes.num_channel,
                num_elements=shapes.num_elements,
                labels=self.labels,
                confidence_threshold=self.confidence_threshold,
            )
        except DetectionError as e:
            logging.error(f"Detector setup failed: {e}")
            return False

        if len(self.labels) > self._decoder.num_classes:
            logging.warning(
                f"{len(self.labels)} labels loaded for a model with "
                f"{self._decoder.num_classes} classes; extra labels are unused"
            )

        self.shapes = shapes
        self._warned_not_ready = False
        logging.info(
            f"Detector ready: input={shapes.input_height}x{shapes.input_width} "
            f"candidates={shapes.num_elements} classes={self._decoder.num_classes}"
        )
        return True

    def decode(self, raw: np.ndarray) -> Optional[List[BoundingBox]]:
        """Decode and suppress one raw output tensor."""
        if not self.is_ready:
            self._warn_not_ready()
            return None

        candidates = self._decoder.decode(raw)
        if not candidates:
            return None
        return non_max_suppression(candidates, self.iou_threshold)

    def detect(self, frame_data: FrameData) -> Optional[DetectionResult]:
        """
        Run the full pipeline on a captured frame.

        Inference or decode failures are logged and the frame yields None.
        """
        if not self.is_ready:
            self._warn_not_ready()
            return None

        start = time.perf_counter()
        try:
            tensor = to_input_tensor(
                frame_data.frame,
                self.shapes.input_shape,
                mean=self.input_mean,
                std=self.input_std,
            )
            raw = self.engine.run(tensor)
            boxes = self.decode(raw)
        except DetectionError as e:
            logging.warning(f"Decode failed on frame {frame_data.frame_index}: {e}")
            return None
        except Exception as e:
            logging.error(f"Inference failed on frame {frame_data.frame_index}: {e}")
            return None
        inference_time_ms = (time.perf_counter() - start) * 1000.0

        if boxes is None:
            return None

        return DetectionResult(
            boxes=boxes,
            inference_time_ms=inference_time_ms,
            frame_index=frame_data.frame_index,
            timestamp=frame_data.timestamp,
        )

    def _warn_not_ready(self) -> None:
        if not self._warned_not_ready:
            logging.warning("Detector not ready; skipping frame")
            self._warned_not_ready = True

    def close(self) -> None:
        """Release the engine handle. Safe to call multiple times."""
        if self._closed:
            return
        self._closed = True
        try:
            self.engine.close()
        except Exception as e:
            logging.warning(f"Error closing inference engine: {e}")
        logging.info("Detector closed")


def create_detector_from_config(config: Config, engine: Optional[InferenceEngine] = None) -> Detector:
    """
    Factory function to create a Detector from the typed config.

    Labels are loaded here; a LabelLoadError propagates so the caller can
    refuse to start instead of decoding with placeholder names.

    Args:
        config: Application config.
        engine: Inference engine; defaults to the TFLite engine for config.model.path.
    """
    labels = load_labels(config.model.labels_path)

    if engine is None:
        from inference.tflite_backend import TFLiteConfig, TFLiteEngine

        engine = TFLiteEngine(
            TFLiteConfig(model_path=config.model.path, num_threads=config.model.num_threads)
        )

    return Detector(
        engine,
        labels,
        confidence_threshold=config.detection.confidence_threshold,
        iou_threshold=config.detection.iou_threshold,
        input_mean=config.model.input_mean,
        input_std=config.model.input_std,
    )
