"""
Tests for the LiteRT engine adapter, against a stand-in interpreter.
"""

import sys
import types

import numpy as np
import pytest

from inference.tflite_backend import TFLiteConfig, TFLiteEngine


class StubInterpreter:
    def __init__(self, model_path, num_threads, input_dtype=np.float32, output=None, quant=(0.0, 0)):
        self.model_path = model_path
        self.num_threads = num_threads
        self.allocated = False
        self._input_dtype = input_dtype
        self._output = output if output is not None else np.arange(12, dtype=np.float32).reshape(1, 6, 2)
        self._quant = quant
        self.inputs = {}

    def allocate_tensors(self):
        self.allocated = True

    def get_input_details(self):
        return [{"index": 0, "shape": np.array([1, 32, 32, 3]), "dtype": self._input_dtype, "quantization": self._quant}]

    def get_output_details(self):
        return [{"index": 1, "shape": np.array([1, 6, 2]), "dtype": self._output.dtype, "quantization": self._quant}]

    def set_tensor(self, index, value):
        self.inputs[index] = value

    def invoke(self):
        pass

    def get_tensor(self, index):
        return self._output


@pytest.fixture
def litert(monkeypatch):
    """Install a stand-in ai_edge_litert.interpreter module."""
    created = []
    options = {}

    def factory(model_path, num_threads):
        interp = StubInterpreter(model_path, num_threads, **options)
        created.append(interp)
        return interp

    package = types.ModuleType("ai_edge_litert")
    module = types.ModuleType("ai_edge_litert.interpreter")
    module.Interpreter = factory
    package.interpreter = module
    monkeypatch.setitem(sys.modules, "ai_edge_litert", package)
    monkeypatch.setitem(sys.modules, "ai_edge_litert.interpreter", module)
    return created, options


def test_shapes_and_threads(litert):
    created, _ = litert
    engine = TFLiteEngine(TFLiteConfig(model_path="model.tflite"))

    assert engine.input_shape == (1, 32, 32, 3)
    assert engine.output_shape == (1, 6, 2)
    assert created[0].num_threads == 4
    assert created[0].allocated


def test_run_returns_flat_float32(litert):
    engine = TFLiteEngine(TFLiteConfig(model_path="model.tflite", num_threads=2))

    out = engine.run(np.zeros((1, 32, 32, 3), dtype=np.float32))

    assert out.shape == (12,)
    assert out.dtype == np.float32
    assert out[5] == 5.0


def test_quantized_model(litert):
    created, options = litert
    options.update(
        input_dtype=np.uint8,
        output=np.full((1, 6, 2), 10, dtype=np.uint8),
        quant=(0.5, 2),
    )
    engine = TFLiteEngine(TFLiteConfig(model_path="model.tflite"))

    out = engine.run(np.ones((1, 32, 32, 3), dtype=np.float32))

    assert created[0].inputs[0].dtype == np.uint8
    assert created[0].inputs[0][0, 0, 0, 0] == 4
    np.testing.assert_allclose(out, 4.0)


def test_quantized_input_saturates(litert):
    created, options = litert
    options.update(input_dtype=np.int8, output=np.zeros((1, 6, 2), dtype=np.int8), quant=(1 / 128, 0))
    engine = TFLiteEngine(TFLiteConfig(model_path="model.tflite"))

    engine.run(np.array([[-2.0, 0.0, 0.5, 1.0]], dtype=np.float32))

    np.testing.assert_array_equal(created[0].inputs[0], np.array([[-128, 0, 64, 127]], dtype=np.int8))


def test_close_releases_interpreter(litert):
    engine = TFLiteEngine(TFLiteConfig(model_path="model.tflite"))
    engine.close()
    engine.close()

    with pytest.raises(RuntimeError, match="closed"):
        engine.run(np.zeros((1, 32, 32, 3), dtype=np.float32))


def test_missing_runtime(monkeypatch):
    monkeypatch.setitem(sys.modules, "ai_edge_litert", None)
    monkeypatch.setitem(sys.modules, "ai_edge_litert.interpreter", None)

    with pytest.raises(ImportError, match="ai-edge-litert"):
        TFLiteEngine(TFLiteConfig(model_path="model.tflite"))
