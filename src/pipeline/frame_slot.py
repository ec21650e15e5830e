"""
Single-frame handoff between the capture thread and the processing worker.
"""

from __future__ import annotations

import threading
from typing import Optional

from models.frame import FrameData


class LatestFrameSlot:
    """
    Holds at most one pending frame.

    put() replaces an unconsumed frame instead of queueing behind it, so the
    worker always gets the most recent frame and a slow worker never builds
    up latency.
    """

    def __init__(self) -> None:
        self._cond = threading.Condition()
        self._frame: Optional[FrameData] = None
        self._closed = False
        self.dropped_count = 0

    def put(self, frame: FrameData) -> bool:
        """
        Publish a frame.

        Returns:
            True if an older pending frame was dropped.
        """
        with self._cond:
            if self._closed:
                return False
            dropped = self._frame is not None
            if dropped:
                self.dropped_count += 1
            self._frame = frame
            self._cond.notify()
            return dropped

    def get(self, timeout: Optional[float] = None) -> Optional[FrameData]:
        """
        Take the pending frame, waiting up to timeout seconds.

        Returns None on timeout or once the slot is closed and empty.
        """
        with self._cond:
            if self._frame is None and not self._closed:
                self._cond.wait(timeout)
            frame = self._frame
            self._frame = None
            return frame

    def close(self) -> None:
        """Stop accepting frames and wake any waiting consumer."""
        with self._cond:
            self._closed = True
            self._cond.notify_all()

    @property
    def closed(self) -> bool:
        with self._cond:
            return self._closed
