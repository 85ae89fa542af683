"""
Pytest configuration and shared fixtures.
"""

import os
import sys

import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from detection.base import CallableAdapter  # noqa: E402
from models.config import Config  # noqa: E402
from models.detection import BoundingBox, Modality, RawDetection  # noqa: E402
from runtime.controller import SessionController  # noqa: E402

BASE_TS = 1_700_000_000_000.0


class FakeClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, start: float = BASE_TS):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


def raw(label, x=0.0, y=0.0, confidence=0.9, width=50.0, height=50.0, **attributes):
    """Build a RawDetection at (x, y)."""
    return RawDetection(
        label=label,
        confidence=confidence,
        bbox=BoundingBox(x=x, y=y, width=width, height=height),
        attributes=attributes,
    )


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def make_controller(fake_clock):
    """
    Factory for controllers with no-op adapters already initialized.

    Batches are fed with controller.ingest(); the default fake clock is used
    unless another clock is passed.
    """

    def _make(modalities=tuple(Modality), config=None, clock=None):
        controller = SessionController(config or Config(), clock=clock or fake_clock)
        for modality in modalities:
            controller.register(modality, CallableAdapter(lambda frame: [], name=f"noop-{modality.value}"))
        controller.initialize_adapters()
        return controller

    return _make


@pytest.fixture
def temp_config_dir(tmp_path):
    """Create a temporary config directory with default.yaml."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()

    default_yaml = config_dir / "default.yaml"
    default_yaml.write_text("""
session:
  history_capacity: 1000
  timeline_limit: 50
  intervals_ms:
    object: 1000
    face: 500
    hand: 100

tracking:
  distance_threshold_px: 100
  matching: "greedy"

interactions:
  distance_threshold_px: 300
  smile_emotion: "happy"
  log_capacity: 1000

log_path: "logs/test.log"
log_level: "INFO"
""")

    return config_dir


@pytest.fixture
def valid_config():
    """Return a valid configuration dictionary."""
    return {
        "session": {
            "history_capacity": 1000,
            "timeline_limit": 50,
            "intervals_ms": {"object": 1000, "face": 500, "hand": 100},
        },
        "tracking": {
            "distance_threshold_px": 100,
            "matching": "greedy",
        },
        "interactions": {
            "distance_threshold_px": 300,
            "smile_emotion": "happy",
            "log_capacity": 1000,
        },
        "web": {"host": "127.0.0.1", "port": 5000},
        "log_path": "logs/test.log",
        "log_level": "INFO",
    }
