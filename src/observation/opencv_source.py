"""
OpenCV frame source for USB/CSI cameras and recorded video files.
"""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

import cv2
import numpy as np

from models.frame import FrameData
from .base import ObservationConfig, ObservationSource

_ROTATIONS = {
    90: cv2.ROTATE_90_CLOCKWISE,
    180: cv2.ROTATE_180,
    270: cv2.ROTATE_90_COUNTERCLOCKWISE,
}


@dataclass
class OpenCVSourceConfig(ObservationConfig):
    """
    Attributes:
        device_id: Camera index, or path to a video file.
        buffer_size: Driver-side capture buffer; 1 keeps only the newest frame.
        max_retries: Attempts to open a camera before giving up.
        rotate: Clockwise rotation in degrees (0, 90, 180, 270).
        flip_horizontal: Mirror frames from a front-facing camera.
    """
    device_id: Union[int, str] = 0
    buffer_size: int = 1
    max_retries: int = 3
    rotate: int = 0
    flip_horizontal: bool = False

    @classmethod
    def from_camera_config(cls, camera_cfg: Dict[str, Any], source_id: str = "camera") -> "OpenCVSourceConfig":
        """Adapter: build from the `camera` config section."""
        resolution = camera_cfg.get("resolution")
        return cls(
            source_id=source_id,
            resolution=tuple(resolution) if resolution else None,
            fps=camera_cfg.get("fps"),
            device_id=camera_cfg.get("device_id", 0),
            buffer_size=camera_cfg.get("buffer_size", 1),
            max_retries=camera_cfg.get("max_retries", 3),
            rotate=camera_cfg.get("rotate", 0) or 0,
            flip_horizontal=camera_cfg.get("flip_horizontal", False),
        )


class OpenCVSource(ObservationSource):
    """
    Reads frames through cv2.VideoCapture.

    A camera that fails to open is retried with a capped backoff. A video
    file that runs out of frames marks the source exhausted.
    """

    def __init__(self, config: OpenCVSourceConfig):
        super().__init__(config)
        self._cv_config = config
        self._cap: Optional[cv2.VideoCapture] = None

    @property
    def device_id(self) -> Union[int, str]:
        return self._cv_config.device_id

    @property
    def is_file(self) -> bool:
        return isinstance(self.device_id, str) and os.path.exists(self.device_id)

    def open(self) -> None:
        if self._is_open:
            return

        self._cap = self._connect()
        self._is_open = True
        self._exhausted = False
        self._frame_index = 0
        logging.info(f"OpenCVSource opened: source_id={self.source_id}, device={self.device_id}")

    def _connect(self) -> cv2.VideoCapture:
        attempts = max(1, self._cv_config.max_retries)
        for attempt in range(1, attempts + 1):
            cap = cv2.VideoCapture(self.device_id)
            if cap.isOpened():
                if isinstance(self.device_id, int):
                    self._configure_camera(cap)
                return cap

            cap.release()
            if attempt < attempts:
                wait_time = min(2 ** attempt, 10)
                logging.warning(
                    f"Failed to open device {self.device_id} (attempt {attempt}/{attempts}), "
                    f"retrying in {wait_time}s"
                )
                time.sleep(wait_time)

        raise RuntimeError(f"Failed to open device {self.device_id} after {attempts} attempts")

    def _configure_camera(self, cap: cv2.VideoCapture) -> None:
        cfg = self._cv_config
        if cfg.resolution:
            w, h = cfg.resolution
            cap.set(cv2.CAP_PROP_FRAME_WIDTH, w)
            cap.set(cv2.CAP_PROP_FRAME_HEIGHT, h)
        if cfg.fps:
            cap.set(cv2.CAP_PROP_FPS, cfg.fps)
        cap.set(cv2.CAP_PROP_BUFFERSIZE, cfg.buffer_size)

        logging.info(
            f"Camera settings: {int(cap.get(cv2.CAP_PROP_FRAME_WIDTH))}x"
            f"{int(cap.get(cv2.CAP_PROP_FRAME_HEIGHT))} @ {cap.get(cv2.CAP_PROP_FPS):.0f}fps"
        )

    def read(self) -> Optional[FrameData]:
        if not self._is_open or self._cap is None:
            return None

        ok, image = self._cap.read()
        if not ok or image is None:
            if self.is_file:
                logging.info(f"End of video file: {self.device_id}")
                self._exhausted = True
            return None

        return self._make_frame(self._apply_transforms(image))

    def _apply_transforms(self, image: np.ndarray) -> np.ndarray:
        rotation = _ROTATIONS.get(self._cv_config.rotate)
        if rotation is not None:
            image = cv2.rotate(image, rotation)
        if self._cv_config.flip_horizontal:
            image = cv2.flip(image, 1)
        return image

    def close(self) -> None:
        if self._cap is not None:
            self._cap.release()
            self._cap = None
        if self._is_open:
            logging.info(f"OpenCVSource closed: source_id={self.source_id}")
        self._is_open = False
