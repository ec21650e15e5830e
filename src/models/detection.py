"""
Detection models for decoded model output.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Tuple


@dataclass(frozen=True)
class BoundingBox:
    """
    One detected object instance for one frame.

    All positional fields are normalized to [0, 1] relative to the model
    input image. The decoder only constructs boxes with
    0 <= x1 <= x2 <= 1 and 0 <= y1 <= y2 <= 1.

    Attributes:
        x1: Left edge.
        y1: Top edge.
        x2: Right edge.
        y2: Bottom edge.
        cx: Center x.
        cy: Center y.
        w: Width as reported by the model.
        h: Height as reported by the model.
        confidence: Best class score for this candidate.
        class_id: Index into the label set.
        class_name: Label resolved from class_id.
    """
    x1: float
    y1: float
    x2: float
    y2: float
    cx: float
    cy: float
    w: float
    h: float
    confidence: float
    class_id: int
    class_name: str

    @property
    def area(self) -> float:
        # Stored width/height, not recomputed from the corners.
        return self.w * self.h

    def as_tuple(self) -> Tuple[float, float, float, float]:
        """Return as (x1, y1, x2, y2) tuple."""
        return (self.x1, self.y1, self.x2, self.y2)

    def to_pixels(self, width: int, height: int) -> Tuple[int, int, int, int]:
        """Scale the corners to pixel coordinates of a width x height image."""
        return (
            int(self.x1 * width),
            int(self.y1 * height),
            int(self.x2 * width),
            int(self.y2 * height),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class DetectionResult:
    """
    Suppressed detections for one frame.

    Attributes:
        boxes: Non-empty list of boxes in descending confidence order.
        inference_time_ms: Time spent in preprocess + inference + decode.
        frame_index: Index of the source frame.
        timestamp: Capture timestamp of the source frame.
    """
    boxes: List[BoundingBox]
    inference_time_ms: float
    frame_index: int = 0
    timestamp: float = 0.0

    @property
    def class_names(self) -> List[str]:
        return [box.class_name for box in self.boxes]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "frame_index": self.frame_index,
            "timestamp": self.timestamp,
            "inference_time_ms": self.inference_time_ms,
            "boxes": [box.to_dict() for box in self.boxes],
        }
