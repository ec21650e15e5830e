"""
Temporal confirmation of per-frame detections.
"""

from __future__ import annotations

import time
from typing import Callable, List, Optional, Sequence

from models.detection import BoundingBox


def monotonic_ms() -> float:
    return time.monotonic() * 1000.0


class TemporalConfirmer:
    """
    Debounce counter that decides when detections are really happening.

    Every frame with at least one detection either extends the current run
    (if it arrives within time_window_ms of the previous positive frame) or
    starts a new run at 1. Once the run reaches detection_threshold, that
    frame's boxes are confirmed.

    Frames without detections do not touch the state; only the gap measured
    on the next positive frame can reset the run.
    """

    def __init__(
        self,
        detection_threshold: int = 8,
        time_window_ms: float = 2000,
        clock: Optional[Callable[[], float]] = None,
    ):
        if detection_threshold < 1:
            raise ValueError("detection_threshold must be at least 1")
        if time_window_ms < 0:
            raise ValueError("time_window_ms must be non-negative")

        self.detection_threshold = detection_threshold
        self.time_window_ms = time_window_ms
        self._clock = clock or monotonic_ms
        self._counter = 0
        self._last_detection_ms = self._clock()

    @property
    def detection_counter(self) -> int:
        return self._counter

    @property
    def last_detection_ms(self) -> float:
        return self._last_detection_ms

    @property
    def is_confirmed(self) -> bool:
        return self._counter >= self.detection_threshold

    def observe(
        self,
        boxes: Optional[Sequence[BoundingBox]],
        now_ms: Optional[float] = None,
    ) -> List[BoundingBox]:
        """
        Feed one frame's detections.

        Args:
            boxes: Suppressed boxes for the frame, or None/empty for no detections.
            now_ms: Frame time in milliseconds on the confirmer's clock.

        Returns:
            The frame's boxes if confirmed, otherwise an empty list.
        """
        if not boxes:
            return []

        now = self._clock() if now_ms is None else now_ms
        if now - self._last_detection_ms <= self.time_window_ms:
            self._counter += 1
        else:
            self._counter = 1
        self._last_detection_ms = now

        if self._counter >= self.detection_threshold:
            return list(boxes)
        return []

    def reset(self) -> None:
        self._counter = 0
        self._last_detection_ms = self._clock()
