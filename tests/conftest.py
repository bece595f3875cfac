"""
Pytest configuration and shared fixtures.
"""

import os
import sys
import threading
import time

import numpy as np
import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

import cv2  # noqa: E402

from codec.base import EncodedImage  # noqa: E402
from errors import EndOfStream  # noqa: E402
from models.detection import RawDetectionSet  # noqa: E402
from models.frame import FrameData  # noqa: E402
from observation.base import FrameSource  # noqa: E402


class FakeCodec:
    """Codec that records calls instead of touching pixels."""

    def __init__(self, fail_encode: bool = False):
        self.fail_encode = fail_encode
        self.encoded = []
        self.boxes = []
        self.labels = []

    def encode(self, frame):
        if self.fail_encode:
            raise RuntimeError("encoder exploded")
        image = EncodedImage(b"fake-bmp")
        self.encoded.append(image)
        return image

    def draw_box(self, frame, rect, color=None, thickness=2):
        self.boxes.append(rect)

    def draw_label(self, frame, text, point, color=None, thickness=2):
        self.labels.append((text, point))


class StubBackend:
    """Backend returning a fixed RawDetectionSet; can be told to fail a stage."""

    def __init__(self, result=None, fail_preprocess=None, fail_infer=None):
        self.result = result if result is not None else RawDetectionSet.empty()
        self.fail_preprocess = fail_preprocess
        self.fail_infer = fail_infer
        self.preprocess_calls = 0
        self.infer_calls = 0
        self.closed = False

    def preprocess(self, image_bytes):
        self.preprocess_calls += 1
        if self.fail_preprocess is not None:
            raise self.fail_preprocess
        return np.zeros((1, 1, 1, 3), dtype=np.uint8)

    def infer(self, tensor):
        self.infer_calls += 1
        if self.fail_infer is not None:
            error, self.fail_infer = self.fail_infer, None
            raise error
        return self.result

    def close(self):
        self.closed = True


class PixelKeyedBackend:
    """
    Decodes real BMP bytes and reports one full-frame detection whose class id
    is the value of the first pixel. Lets concurrent tests check that each
    caller gets results for its own input.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self.calls = 0

    def preprocess(self, image_bytes):
        img = cv2.imdecode(np.frombuffer(image_bytes, dtype=np.uint8), cv2.IMREAD_COLOR)
        return np.expand_dims(img, 0)

    def infer(self, tensor):
        with self._lock:
            self.calls += 1
        time.sleep(0.001)
        class_id = int(tensor[0, 0, 0, 0])
        return RawDetectionSet(
            probabilities=[0.9],
            class_ids=[float(class_id)],
            boxes=[[0.0, 0.0, 1.0, 1.0]],
        )

    def close(self):
        pass


class ListSource(FrameSource):
    """
    Source that replays a list of frames.

    None entries are empty reads; EndOfStream is raised once the list is used up.
    """

    def __init__(self, stream, frames=None, fail_open=None):
        super().__init__(stream)
        self._frames = list(frames or [])
        self._pos = 0
        self.fail_open = fail_open
        self.closed = False

    def open(self) -> None:
        if self.fail_open is not None:
            raise self.fail_open
        self._is_open = True
        self._pos = 0
        self._frame_index = 0

    def read(self):
        if self._pos >= len(self._frames):
            raise EndOfStream("no more frames")
        frame = self._frames[self._pos]
        self._pos += 1
        if frame is None:
            return None
        self._frame_index += 1
        return FrameData.from_numpy(frame, frame_index=self._frame_index, stream_id=self.source_id)

    def close(self) -> None:
        self._is_open = False
        self.closed = True


@pytest.fixture
def fake_codec():
    return FakeCodec()


@pytest.fixture
def frame():
    """Small solid BGR test frame."""
    return np.zeros((10, 10, 3), dtype=np.uint8)


@pytest.fixture
def temp_config_dir(tmp_path):
    """Create a temporary config directory with default.yaml."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()

    default_yaml = config_dir / "default.yaml"
    default_yaml.write_text("""
model:
  path: "data/models/test/saved_model"
  tags: ["serve"]

streams:
  - id: "1"
    label: "Camera 1"
    input: 0

worker:
  max_consecutive_failures: 10
  retry_delay: 0.5

display:
  backend: "window"

log_path: "logs/test.log"
log_level: "INFO"
""")

    return config_dir


@pytest.fixture
def valid_config():
    """Return a valid configuration dictionary."""
    return {
        "model": {
            "path": "data/models/test/saved_model",
            "tags": ["serve"],
        },
        "streams": [
            {"id": "1", "label": "Camera 1", "input": 0},
            {"id": "2", "label": "Door", "input": "rtsp://10.0.0.5:554/live", "rtsp_transport": "udp"},
        ],
        "worker": {
            "max_consecutive_failures": 10,
            "retry_delay": 0.5,
            "stats_log_interval": 60,
        },
        "display": {"backend": "none"},
        "web": {"enabled": False, "port": 5000},
        "log_path": "logs/test.log",
        "log_level": "INFO",
    }
