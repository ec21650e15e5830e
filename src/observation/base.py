"""
Frame source interface.

The pipeline only needs open/read/close and an end-of-stream signal, so a
live cabin camera and a recorded drive replayed from disk are interchangeable.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterator, Optional, Tuple

import numpy as np

from models.frame import FrameData


@dataclass
class ObservationConfig:
    """
    Settings shared by every frame source.

    Attributes:
        source_id: Name stamped on every frame (e.g. "cabin-camera").
        resolution: Requested (width, height); None keeps the device default.
        fps: Requested frame rate; None keeps the device default.
    """
    source_id: str = "default"
    resolution: Optional[Tuple[int, int]] = None
    fps: Optional[int] = None


class ObservationSource(ABC):
    """
    Base class for frame sources.

    read() returns None both for a transient failure and at end of stream;
    the exhausted flag tells the two apart. Subclasses build frames with
    _make_frame() so indices and source ids stay consistent.

    Usable as a context manager and as an iterator once open:
        with OpenCVSource(config) as source:
            for frame_data in source:
                ...
    """

    def __init__(self, config: ObservationConfig):
        self._config = config
        self._is_open = False
        self._frame_index = 0
        self._exhausted = False

    @property
    def source_id(self) -> str:
        return self._config.source_id

    @property
    def is_open(self) -> bool:
        return self._is_open

    @property
    def exhausted(self) -> bool:
        """True once a finite source has no more frames."""
        return self._exhausted

    @property
    def frame_index(self) -> int:
        """Number of frames returned since open()."""
        return self._frame_index

    @abstractmethod
    def open(self) -> None:
        """
        Acquire the device or file.

        Raises:
            RuntimeError: If the source cannot be opened.
        """

    @abstractmethod
    def read(self) -> Optional[FrameData]:
        """Return the next frame, or None if none is available."""

    @abstractmethod
    def close(self) -> None:
        """Release the device or file. Safe to call more than once."""

    def _make_frame(self, image: np.ndarray) -> FrameData:
        self._frame_index += 1
        return FrameData.from_numpy(image, frame_index=self._frame_index, source=self.source_id)

    def __enter__(self) -> "ObservationSource":
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __iter__(self) -> Iterator[FrameData]:
        if not self._is_open:
            raise RuntimeError("Source must be open before iterating")

        frame_data = self.read()
        while frame_data is not None:
            yield frame_data
            frame_data = self.read()
