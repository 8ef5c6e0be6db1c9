"""Shared pytest configuration and fixtures for the filmcam test suite."""

import datetime
import sys
from pathlib import Path

import numpy as np
import pytest

# Ensure the project root is in the path for imports
PROJECT_ROOT = Path(__file__).parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from filmcam.models import CapturedFrame, Orientation, PixelFormat  # noqa: E402
from tests.fakes import FakeDevice, FakeStore  # noqa: E402

CAPTURE_TIME = datetime.datetime(2024, 5, 17, 9, 30)


def make_gradient(height: int = 100, width: int = 100) -> np.ndarray:
    """Float RGB test card: horizontal red ramp, vertical green ramp, blue checker."""
    ys, xs = np.mgrid[0:height, 0:width].astype(np.float32)
    img = np.empty((height, width, 3), dtype=np.float32)
    img[..., 0] = 0.1 + 0.8 * xs / max(width - 1, 1)
    img[..., 1] = 0.1 + 0.8 * ys / max(height - 1, 1)
    img[..., 2] = np.where(((xs // 10) + (ys // 10)) % 2 == 0, 0.3, 0.6)
    return img


@pytest.fixture
def gradient() -> np.ndarray:
    return make_gradient()


@pytest.fixture
def frame() -> CapturedFrame:
    pixels = (make_gradient() * 255.0 + 0.5).astype(np.uint8)
    return CapturedFrame(
        pixels=pixels,
        pixel_format=PixelFormat.RGB8,
        orientation=Orientation.UP,
        timestamp=CAPTURE_TIME,
    )


@pytest.fixture
def device(frame) -> FakeDevice:
    return FakeDevice(frame)


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()
