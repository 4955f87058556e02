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

from models.classification import Classification, LinePosition  # noqa: E402
from models.frame import FrameData  # noqa: E402


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class StaticFeed:
    """Frame provider returning a fixed frame (or None)."""

    def __init__(self, frame_data=None):
        self.frame_data = frame_data
        self.calls = 0

    def current_frame(self):
        self.calls += 1
        return self.frame_data


def make_frame(width: int = 320, height: int = 240, index: int = 1) -> FrameData:
    frame = np.zeros((height, width, 3), dtype=np.uint8)
    frame[height // 2:, :, 2] = 200
    return FrameData.from_numpy(frame, timestamp=time.time(), frame_index=index, source="test")


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def frame_data():
    return make_frame()


@pytest.fixture
def feed(frame_data):
    return StaticFeed(frame_data)


@pytest.fixture
def cls():
    """Shorthand builders for classifications."""

    class _Builders:
        absent = staticmethod(Classification.absent)

        @staticmethod
        def approaching(label="hand"):
            return Classification(True, LinePosition.APPROACHING, True, label)

        @staticmethod
        def at_line(moving=False, label="hand"):
            return Classification(True, LinePosition.AT_LINE, moving, label)

        @staticmethod
        def crossing(label="hand"):
            return Classification(True, LinePosition.CROSSING, True, label)

    return _Builders


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

sampling:
  interval_s: 1.5
  resolution: [640, 480]

classifier:
  endpoint: "http://localhost:8080/classify"

detection:
  stop_threshold_s: 3

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
            "resolution": [1280, 720],
            "fps": 30,
        },
        "sampling": {
            "interval_s": 1.5,
            "resolution": [640, 480],
            "jpeg_quality": 50,
        },
        "classifier": {
            "endpoint": "https://vision.example.com/classify",
            "timeout_s": 10,
        },
        "detection": {
            "stop_threshold_s": 3,
        },
        "violation": {
            "settle_delay_s": 3.0,
            "alert_duration_s": 2.0,
        },
        "evidence": {
            "record_video": True,
            "output_dir": "output/evidence",
        },
        "log_path": "logs/test.log",
        "log_level": "INFO",
    }
