"""
Distraction Monitor - Detection Module

Turns raw model output into suppressed, per-frame detections.
"""

from .decoder import DetectionDecoder
from .detector import Detector, create_detector_from_config
from .errors import DecoderNotReadyError, DetectionError, LabelLoadError, TensorShapeError
from .labels import load_labels
from .nms import calculate_iou, non_max_suppression

__all__ = [
    'DetectionDecoder',
    'Detector',
    'create_detector_from_config',
    'DetectionError',
    'DecoderNotReadyError',
    'LabelLoadError',
    'TensorShapeError',
    'load_labels',
    'calculate_iou',
    'non_max_suppression',
]
