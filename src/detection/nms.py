"""
Greedy non-max suppression over decoded boxes.

Arithmetic is done in float32 so IoU values match the model's own
precision. Box area is the stored w * h, not recomputed from the corners.
"""

from __future__ import annotations

from typing import List, Sequence, Tuple

import numpy as np

from models.detection import BoundingBox


def _as_arrays(boxes: Sequence[BoundingBox]) -> Tuple[np.ndarray, ...]:
    x1 = np.array([b.x1 for b in boxes], dtype=np.float32)
    y1 = np.array([b.y1 for b in boxes], dtype=np.float32)
    x2 = np.array([b.x2 for b in boxes], dtype=np.float32)
    y2 = np.array([b.y2 for b in boxes], dtype=np.float32)
    w = np.array([b.w for b in boxes], dtype=np.float32)
    h = np.array([b.h for b in boxes], dtype=np.float32)
    return x1, y1, x2, y2, w * h


def _iou_against(arrays: Tuple[np.ndarray, ...], i: int, others: np.ndarray) -> np.ndarray:
    """IoU between box i and each box index in others."""
    x1, y1, x2, y2, area = arrays
    ix1 = np.maximum(x1[i], x1[others])
    iy1 = np.maximum(y1[i], y1[others])
    ix2 = np.minimum(x2[i], x2[others])
    iy2 = np.minimum(y2[i], y2[others])

    zero = np.float32(0.0)
    intersection = np.maximum(zero, ix2 - ix1) * np.maximum(zero, iy2 - iy1)
    with np.errstate(divide="ignore", invalid="ignore"):
        return intersection / (area[i] + area[others] - intersection)


def calculate_iou(box1: BoundingBox, box2: BoundingBox) -> float:
    """
    Intersection over Union of two boxes.

    Returns nan when both boxes have zero area and do not intersect.
    """
    arrays = _as_arrays([box1, box2])
    return float(_iou_against(arrays, 0, np.array([1]))[0])


def non_max_suppression(boxes: Sequence[BoundingBox], iou_threshold: float = 0.5) -> List[BoundingBox]:
    """
    Keep the highest-confidence box of every overlapping cluster.

    Boxes are visited in descending confidence (stable for ties). Each
    selected box removes every remaining box with IoU >= iou_threshold.

    Returns:
        Selected boxes in selection order. Empty input gives empty output.
    """
    if not boxes:
        return []

    arrays = _as_arrays(boxes)
    remaining = np.array(
        sorted(range(len(boxes)), key=lambda i: -boxes[i].confidence),
        dtype=np.intp,
    )
    threshold = np.float32(iou_threshold)

    selected: List[BoundingBox] = []
    while remaining.size:
        best = int(remaining[0])
        selected.append(boxes[best])
        rest = remaining[1:]
        if rest.size == 0:
            break
        ious = _iou_against(arrays, best, rest)
        # nan never suppresses.
        remaining = rest[~(ious >= threshold)]

    return selected
