"""
Detection pipeline exceptions.
"""


class DetectionError(Exception):
    """Base class for detection pipeline errors."""


class DecoderNotReadyError(DetectionError):
    """Tensor dimensions or labels are missing, so decoding must not run."""


class TensorShapeError(DetectionError):
    """Raw output buffer does not match the declared output shape."""


class LabelLoadError(DetectionError):
    """The label file could not be read or held no labels."""
