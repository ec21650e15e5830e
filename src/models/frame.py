"""
FrameData model for cabin camera frames.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Optional, Tuple

import numpy as np


def _now_ms() -> float:
    return time.monotonic() * 1000.0


@dataclass
class FrameData:
    """
    One captured frame plus where and when it came from.

    Attributes:
        frame: Pixel data, HxWx3 uint8 in OpenCV BGR order.
        width: Frame width in pixels.
        height: Frame height in pixels.
        timestamp: Wall-clock capture time (Unix seconds).
        frame_index: 1-based index since the source was opened.
        source: Source identifier.
        captured_ms: Monotonic capture time in milliseconds.
    """
    frame: np.ndarray
    width: int
    height: int
    timestamp: float
    frame_index: int = 0
    source: Optional[str] = None
    captured_ms: float = field(default_factory=_now_ms)

    @classmethod
    def from_numpy(
        cls,
        frame: np.ndarray,
        timestamp: Optional[float] = None,
        frame_index: int = 0,
        source: Optional[str] = None,
    ) -> "FrameData":
        """Wrap a raw image, taking width/height from its shape."""
        h, w = frame.shape[:2]
        return cls(
            frame=frame,
            width=w,
            height=h,
            timestamp=time.time() if timestamp is None else timestamp,
            frame_index=frame_index,
            source=source,
        )

    @property
    def size(self) -> Tuple[int, int]:
        """Return (width, height)."""
        return (self.width, self.height)

    def age_ms(self, now_ms: Optional[float] = None) -> float:
        """Milliseconds since capture on the monotonic clock."""
        return (_now_ms() if now_ms is None else now_ms) - self.captured_ms
