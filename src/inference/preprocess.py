"""
Frame to input tensor conversion.
"""

from __future__ import annotations

from typing import Sequence

import cv2
import numpy as np


def to_input_tensor(
    image: np.ndarray,
    input_shape: Sequence[int],
    mean: float = 0.0,
    std: float = 255.0,
    bgr: bool = True,
) -> np.ndarray:
    """
    Convert a camera frame into the engine's input tensor.

    Args:
        image: HxWx3 (or HxWx4) uint8 frame.
        input_shape: Engine input shape [1, height, width, 3].
        mean: Value subtracted from every pixel.
        std: Value every pixel is divided by after subtracting mean.
        bgr: Frame is in OpenCV BGR order and must be swapped to RGB.

    Returns:
        float32 array of shape [1, height, width, 3].
    """
    height, width = int(input_shape[1]), int(input_shape[2])

    if image.ndim == 3 and image.shape[2] == 4:
        code = cv2.COLOR_BGRA2RGB if bgr else cv2.COLOR_RGBA2RGB
        image = cv2.cvtColor(image, code)
    elif bgr:
        image = cv2.cvtColor(image, cv2.COLOR_BGR2RGB)

    # Nearest neighbour, no filtering.
    resized = cv2.resize(image, (width, height), interpolation=cv2.INTER_NEAREST)

    tensor = (resized.astype(np.float32) - np.float32(mean)) / np.float32(std)
    return tensor[np.newaxis, ...]
