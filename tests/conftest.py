"""
Pytest configuration and shared fixtures.
"""

import os
import sys
import time

import numpy as np
import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from models.frame import FrameData  # noqa: E402


LABELS = ("class-a", "class-b")


def build_tensor(candidates, num_classes, num_elements=None):
    """
    Build a flat [1, 4 + num_classes, num_elements] output buffer.

    Each candidate is (cx, cy, w, h, [score per class]). Unused candidate
    slots are left at zero (score 0, never above threshold).
    """
    num_elements = num_elements or len(candidates)
    num_channel = 4 + num_classes
    grid = np.zeros((num_channel, num_elements), dtype=np.float32)
    for c, (cx, cy, w, h, scores) in enumerate(candidates):
        grid[0, c] = cx
        grid[1, c] = cy
        grid[2, c] = w
        grid[3, c] = h
        grid[4:, c] = scores
    return grid.reshape(-1)


class FakeEngine:
    """In-memory engine returning canned output tensors."""

    def __init__(self, outputs=None, input_shape=(1, 32, 32, 3), output_shape=(1, 6, 2)):
        self._outputs = list(outputs or [])
        self._input_shape = tuple(input_shape)
        self._output_shape = tuple(output_shape)
        self.inputs = []
        self.closed = 0
        self.error = None

    @property
    def input_shape(self):
        return self._input_shape

    @property
    def output_shape(self):
        return self._output_shape

    def run(self, input_tensor):
        self.inputs.append(input_tensor)
        if self.error is not None:
            raise self.error
        if len(self._outputs) > 1:
            return self._outputs.pop(0)
        if self._outputs:
            return self._outputs[0]
        return np.zeros(int(np.prod(self._output_shape)), dtype=np.float32)

    def close(self):
        self.closed += 1


class RecordingSink:
    """Alert sink that records plays and completes only when told to."""

    def __init__(self, fail=False):
        self.fail = fail
        self.played = []
        self.pending = []
        self.closed = False

    def play(self, alert_id, on_complete):
        if self.fail:
            raise RuntimeError("audio device unavailable")
        self.played.append(alert_id)
        self.pending.append(on_complete)

    def finish(self):
        self.pending.pop(0)()

    def close(self):
        self.closed = True


class FakeClock:
    """Manually advanced millisecond clock."""

    def __init__(self, start=0.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, ms):
        self.now += ms
        return self.now


def make_frame(index=1, width=64, height=48):
    frame = np.zeros((height, width, 3), dtype=np.uint8)
    return FrameData(
        frame=frame,
        width=width,
        height=height,
        timestamp=time.time(),
        frame_index=index,
        source="test",
    )


@pytest.fixture
def tensor_builder():
    return build_tensor


@pytest.fixture
def example_tensor():
    """Two overlapping class-1 candidates: 0.9 at (0.1..0.3) and 0.5 at (0.12..0.32)."""
    return build_tensor(
        [
            (0.2, 0.2, 0.2, 0.2, [0.1, 0.9]),
            (0.22, 0.22, 0.2, 0.2, [0.2, 0.5]),
        ],
        num_classes=2,
    )


@pytest.fixture
def fake_engine(example_tensor):
    return FakeEngine(outputs=[example_tensor], output_shape=(1, 6, 2))


@pytest.fixture
def recording_sink():
    return RecordingSink()


@pytest.fixture
def fake_clock():
    return FakeClock(start=10_000.0)


@pytest.fixture
def labels_file(tmp_path):
    path = tmp_path / "labels.txt"
    path.write_text("class-a\nclass-b\n")
    return path


@pytest.fixture
def temp_config_dir(tmp_path):
    """Create a temporary config directory with default.yaml."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()

    default_yaml = config_dir / "default.yaml"
    default_yaml.write_text("""
camera:
  device_id: 0
  resolution: [640, 480]
  fps: 30

model:
  path: "assets/model.tflite"
  labels_path: "assets/labels.txt"

detection:
  confidence_threshold: 0.3
  iou_threshold: 0.5

confirmation:
  detection_threshold: 8
  time_window_ms: 2000

alerts:
  backend: "log"
  player_command: ["aplay", "-q"]

log_path: "logs/test.log"
log_level: "INFO"
""")

    return config_dir


@pytest.fixture
def valid_config():
    """Return a valid configuration dictionary."""
    return {
        "camera": {
            "device_id": 0,
            "resolution": [640, 480],
            "fps": 30,
        },
        "model": {
            "path": "assets/model.tflite",
            "labels_path": "assets/labels.txt",
            "num_threads": 4,
        },
        "detection": {
            "confidence_threshold": 0.3,
            "iou_threshold": 0.5,
        },
        "confirmation": {
            "detection_threshold": 8,
            "time_window_ms": 2000,
        },
        "alerts": {
            "backend": "command",
            "player_command": ["aplay", "-q"],
            "sounds_dir": "assets/sounds",
        },
        "log_path": "logs/test.log",
        "log_level": "INFO",
    }
