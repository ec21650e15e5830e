"""
Inference engines behind a small capability interface.
"""

from .backend import InferenceEngine, TensorShapes
from .preprocess import to_input_tensor

__all__ = ["InferenceEngine", "TensorShapes", "to_input_tensor"]
