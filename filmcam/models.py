"""
Data model for the capture / process / persist pipeline.

Pixel buffers are plain numpy arrays. The canonical processing form is
float32, shape (H, W, 3), RGB, range [0.0, 1.0].
"""

import datetime
from dataclasses import dataclass, field, replace
from enum import Enum, IntEnum
from typing import Optional

import numpy as np


class Orientation(IntEnum):
    """EXIF orientation tag (0x0112)."""
    UP = 1
    UP_MIRRORED = 2
    DOWN = 3
    DOWN_MIRRORED = 4
    LEFT_MIRRORED = 5
    RIGHT = 6
    RIGHT_MIRRORED = 7
    LEFT = 8


class PixelFormat(str, Enum):
    RGB8 = "RGB8"
    BGR8 = "BGR8"
    RGBA8 = "RGBA8"
    GRAY8 = "GRAY8"
    RGB_F32 = "RGB_F32"


class FilmStyle(str, Enum):
    NORMAL = "Normal"
    KODAK = "Kodak"
    FUJI = "Fuji"

    @classmethod
    def parse(cls, value) -> Optional["FilmStyle"]:
        """Return the matching style, or None for unknown identifiers."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        for style in cls:
            if style.value.lower() == value.strip().lower():
                return style
        return None


class PipelineState(str, Enum):
    IDLE = "idle"
    CAPTURING = "capturing"
    PROCESSING = "processing"
    PERSISTING = "persisting"


class CaptureStatus(str, Enum):
    SUCCESS = "success"
    DEVICE_ERROR = "device_error"
    LIBRARY_ACCESS_DENIED = "library_access_denied"
    STORAGE_ERROR = "storage_error"


@dataclass
class CapturedFrame:
    """Raw frame as delivered by the capture device."""
    pixels: np.ndarray
    pixel_format: PixelFormat = PixelFormat.RGB8
    orientation: int = Orientation.UP
    timestamp: datetime.datetime = field(default_factory=datetime.datetime.now)

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1]) if self.pixels.ndim >= 2 else 0

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0]) if self.pixels.ndim >= 2 else 0

    @property
    def is_empty(self) -> bool:
        return self.pixels is None or self.pixels.size == 0

    def with_pixels(self, pixels: np.ndarray, orientation: int = Orientation.UP) -> "CapturedFrame":
        return replace(self, pixels=pixels, orientation=orientation)


@dataclass(frozen=True)
class ExposureOverride:
    """Manual exposure: ISO and shutter duration in seconds."""
    iso: float
    duration: float

    def clamped(
        self,
        iso_range: tuple[float, float],
        duration_range: tuple[float, float],
    ) -> "ExposureOverride":
        iso = min(max(float(self.iso), iso_range[0]), iso_range[1])
        duration = min(max(float(self.duration), duration_range[0]), duration_range[1])
        return ExposureOverride(iso=iso, duration=duration)


@dataclass(frozen=True)
class ProcessingRequest:
    """
    Snapshot of the user's settings at the moment the shutter is pressed.

    Frozen: later UI edits build a new request and never touch one that is
    already in flight.
    """
    style: object = FilmStyle.NORMAL
    light_leak: bool = False
    light_leak_intensity: float = 0.5
    date_stamp: bool = False
    manual_exposure: bool = False
    iso: float = 100.0
    shutter_duration: float = 1.0 / 60.0

    def __post_init__(self):
        if not 0.0 <= float(self.light_leak_intensity) <= 1.0:
            raise ValueError(
                f"Light leak intensity must be within [0, 1], got {self.light_leak_intensity}"
            )
        if self.manual_exposure and (self.iso <= 0 or self.shutter_duration <= 0):
            raise ValueError("Manual exposure needs a positive ISO and shutter duration")

    @property
    def exposure(self) -> Optional[ExposureOverride]:
        if not self.manual_exposure:
            return None
        return ExposureOverride(iso=self.iso, duration=self.shutter_duration)


@dataclass
class ProcessingResult:
    status: CaptureStatus
    pixels: Optional[np.ndarray] = None
    data: Optional[bytes] = None

    @property
    def ok(self) -> bool:
        return self.status is CaptureStatus.SUCCESS
