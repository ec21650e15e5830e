"""
Raw detection tensor decoding.

The model emits a flat float buffer logically shaped
[1, num_channel, num_elements]: for candidate c the geometry lives at
offsets c, c+N, c+2N, c+3N (center x, center y, width, height) and the
score of class j at c + N*(4+j), where N = num_elements. Reshaping the flat
buffer row-major to (num_channel, num_elements) gives exactly that layout:
rows[k, c] == flat[c + k*N].
"""

from __future__ import annotations

from typing import List, Sequence

import numpy as np

from models.detection import BoundingBox
from .errors import DecoderNotReadyError, TensorShapeError

GEOMETRY_CHANNELS = 4


class DetectionDecoder:
    """
    Turns one raw output tensor into candidate boxes above a confidence
    threshold.

    Candidates whose corners fall outside [0, 1] are dropped rather than
    clamped. Output is ordered by candidate index and is identical for
    identical input.
    """

    def __init__(
        self,
        num_channel: int,
        num_elements: int,
        labels: Sequence[str],
        confidence_threshold: float = 0.3,
    ):
        if num_channel <= GEOMETRY_CHANNELS or num_elements <= 0:
            raise DecoderNotReadyError(
                f"Invalid output dimensions: num_channel={num_channel}, num_elements={num_elements}"
            )
        num_classes = num_channel - GEOMETRY_CHANNELS
        if len(labels) < num_classes:
            raise DecoderNotReadyError(
                f"Label set has {len(labels)} entries but the model reports {num_classes} classes"
            )

        self.num_channel = num_channel
        self.num_elements = num_elements
        self.labels = tuple(labels)
        self.confidence_threshold = confidence_threshold

    @property
    def num_classes(self) -> int:
        return self.num_channel - GEOMETRY_CHANNELS

    def decode(self, tensor: np.ndarray) -> List[BoundingBox]:
        flat = np.asarray(tensor, dtype=np.float32).reshape(-1)
        expected = self.num_channel * self.num_elements
        if flat.size != expected:
            raise TensorShapeError(
                f"Output buffer has {flat.size} values, expected {expected} "
                f"({self.num_channel}x{self.num_elements})"
            )

        rows = flat.reshape(self.num_channel, self.num_elements)
        scores = rows[GEOMETRY_CHANNELS:]

        # argmax returns the first maximum, matching a strict ">" scan.
        class_ids = np.argmax(np.where(np.isnan(scores), -np.inf, scores), axis=0)
        max_conf = scores[class_ids, np.arange(self.num_elements)]

        cx, cy, w, h = rows[0], rows[1], rows[2], rows[3]
        two = np.float32(2.0)
        x1 = cx - w / two
        y1 = cy - h / two
        x2 = cx + w / two
        y2 = cy + h / two

        keep = max_conf > np.float32(self.confidence_threshold)
        for corner in (x1, y1, x2, y2):
            keep &= (corner >= 0.0) & (corner <= 1.0)
        keep &= (x1 <= x2) & (y1 <= y2)

        boxes: List[BoundingBox] = []
        for c in np.flatnonzero(keep):
            class_id = int(class_ids[c])
            boxes.append(
                BoundingBox(
                    x1=float(x1[c]),
                    y1=float(y1[c]),
                    x2=float(x2[c]),
                    y2=float(y2[c]),
                    cx=float(cx[c]),
                    cy=float(cy[c]),
                    w=float(w[c]),
                    h=float(h[c]),
                    confidence=float(max_conf[c]),
                    class_id=class_id,
                    class_name=self.labels[class_id],
                )
            )
        return boxes
