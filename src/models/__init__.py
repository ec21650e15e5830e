"""
Typed models for the distraction monitor application.
"""

from .frame import FrameData
from .detection import BoundingBox, DetectionResult
from .config import (
    Config,
    CameraConfig,
    ModelConfig,
    DetectionConfig,
    ConfirmationConfig,
    AlertConfig,
)

__all__ = [
    # Frame
    "FrameData",
    # Detection
    "BoundingBox",
    "DetectionResult",
    # Config
    "Config",
    "CameraConfig",
    "ModelConfig",
    "DetectionConfig",
    "ConfirmationConfig",
    "AlertConfig",
]
