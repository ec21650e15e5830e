"""
LiteRT (TensorFlow Lite) inference engine.

Wraps the on-device interpreter so it satisfies InferenceEngine. The runtime
is imported lazily so the rest of the project (and its tests) does not need
it installed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np

from .backend import InferenceEngine


@dataclass(frozen=True)
class TFLiteConfig:
    model_path: str
    num_threads: int = 4


class TFLiteEngine(InferenceEngine):
    def __init__(self, cfg: TFLiteConfig):
        self.cfg = cfg
        try:
            from ai_edge_litert.interpreter import Interpreter  # type: ignore
        except Exception as e:  # pragma: no cover
            raise ImportError(
                "LiteRT is not installed. Install with `pip install ai-edge-litert` "
                "or `pip install distraction-monitor[tflite]`."
            ) from e

        self._interpreter: Optional[object] = Interpreter(
            model_path=cfg.model_path,
            num_threads=cfg.num_threads,
        )
        self._interpreter.allocate_tensors()

        self._input_detail = self._interpreter.get_input_details()[0]
        self._output_detail = self._interpreter.get_output_details()[0]
        logging.info(
            f"TFLite model loaded: {cfg.model_path} "
            f"input={list(self.input_shape)} output={list(self.output_shape)} "
            f"threads={cfg.num_threads}"
        )

    @property
    def input_shape(self) -> Sequence[int]:
        return tuple(int(v) for v in self._input_detail["shape"])

    @property
    def output_shape(self) -> Sequence[int]:
        return tuple(int(v) for v in self._output_detail["shape"])

    def run(self, input_tensor: np.ndarray) -> np.ndarray:
        if self._interpreter is None:
            raise RuntimeError("TFLite interpreter has been closed")

        dtype = self._input_detail["dtype"]
        if np.issubdtype(dtype, np.integer):
            scale, zero_point = self._input_detail["quantization"]
            if scale:
                input_tensor = np.round(input_tensor / scale + zero_point)
            info = np.iinfo(dtype)
            input_tensor = np.clip(input_tensor, info.min, info.max)
        self._interpreter.set_tensor(self._input_detail["index"], input_tensor.astype(dtype, copy=False))
        self._interpreter.invoke()

        output = np.asarray(self._interpreter.get_tensor(self._output_detail["index"]))
        if np.issubdtype(output.dtype, np.integer):
            scale, zero_point = self._output_detail["quantization"]
            if scale:
                output = (output.astype(np.float32) - zero_point) * scale
        return output.astype(np.float32, copy=False).reshape(-1)

    def close(self) -> None:
        if self._interpreter is not None:
            self._interpreter = None
            logging.info(f"TFLite interpreter released: {self.cfg.model_path}")
