"""
Inference engine interface.

The detector only needs the model's declared input/output shapes and a way
to run one preprocessed tensor. Keeping the engine behind this protocol lets
the decoder, suppressor and confirmer run against synthetic tensors in tests.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, Sequence, Tuple

import numpy as np


@dataclass(frozen=True)
class TensorShapes:
    """
    Shapes reported by an engine at setup.

    input_shape is [1, height, width, 3]; output_shape is
    [1, num_channel, num_elements].
    """
    input_shape: Tuple[int, ...]
    output_shape: Tuple[int, ...]

    @property
    def input_height(self) -> int:
        return int(self.input_shape[1]) if len(self.input_shape) > 2 else 0

    @property
    def input_width(self) -> int:
        return int(self.input_shape[2]) if len(self.input_shape) > 2 else 0

    @property
    def num_channel(self) -> int:
        return int(self.output_shape[1]) if len(self.output_shape) > 2 else 0

    @property
    def num_elements(self) -> int:
        return int(self.output_shape[2]) if len(self.output_shape) > 2 else 0

    @property
    def is_complete(self) -> bool:
        """True when every dimension the detector relies on is non-zero."""
        return all(
            v > 0
            for v in (self.input_height, self.input_width, self.num_channel, self.num_elements)
        )

    @classmethod
    def from_sequences(cls, input_shape: Sequence[int], output_shape: Sequence[int]) -> "TensorShapes":
        return cls(
            input_shape=tuple(int(v) for v in input_shape),
            output_shape=tuple(int(v) for v in output_shape),
        )


class InferenceEngine(Protocol):
    @property
    def input_shape(self) -> Sequence[int]:
        ...

    @property
    def output_shape(self) -> Sequence[int]:
        ...

    def run(self, input_tensor: np.ndarray) -> np.ndarray:
        ...

    def close(self) -> None:
        ...
