"""
Frame sources: the cabin camera, or a recorded drive replayed from disk.
"""

from .base import ObservationConfig, ObservationSource
from .opencv_source import OpenCVSource, OpenCVSourceConfig

__all__ = [
    "ObservationSource",
    "ObservationConfig",
    "OpenCVSource",
    "OpenCVSourceConfig",
]
