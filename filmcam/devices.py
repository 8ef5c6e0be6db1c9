"""
Collaborators of the capture controller: capture device and photo store.

The abstract interfaces are what the controller talks to. ImageFileDevice
and DirectoryPhotoStore are file-backed implementations used by the CLI.
"""

import asyncio
import datetime
import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

import numpy as np
from PIL import Image, UnidentifiedImageError

from .models import CapturedFrame, ExposureOverride, Orientation, PixelFormat

logger = logging.getLogger(__name__)

EXIF_ORIENTATION = 0x0112


class DeviceError(Exception):
    """Raised when the capture hardware fails or returns nothing usable."""
    pass


class CaptureDevice(ABC):
    """Single-shot still capture."""

    # Supported manual exposure limits; None defers to the configured limits
    iso_range: Optional[tuple[float, float]] = None
    exposure_duration_range: Optional[tuple[float, float]] = None

    @abstractmethod
    async def capture_once(self, exposure: Optional[ExposureOverride] = None) -> Optional[CapturedFrame]:
        """
        Trigger the shutter once.

        Args:
            exposure: Manual ISO/duration to apply before the shot, already
                clamped to this device's ranges. None keeps auto exposure.

        Returns:
            The captured frame, or None when the device produced no data.

        Raises:
            DeviceError: If the hardware reports an error.
        """
        pass


class PhotoStore(ABC):
    """Persistent photo library."""

    @abstractmethod
    async def request_authorization(self) -> bool:
        """Return True when writing is permitted."""
        pass

    @abstractmethod
    async def write(self, data: bytes) -> None:
        """Persist encoded image bytes. Raises OSError on failure."""
        pass


class ImageFileDevice(CaptureDevice):
    """
    Pretends an image file is the sensor. The EXIF orientation tag is
    reported as-is; the pixels are not rotated.
    """

    def __init__(self, path, iso_range=None, exposure_duration_range=None):
        self.path = Path(path)
        if iso_range is not None:
            self.iso_range = tuple(iso_range)
        if exposure_duration_range is not None:
            self.exposure_duration_range = tuple(exposure_duration_range)
        self.last_exposure: Optional[ExposureOverride] = None

    async def capture_once(self, exposure: Optional[ExposureOverride] = None) -> Optional[CapturedFrame]:
        self.last_exposure = exposure
        if exposure is not None:
            logger.info("Manual exposure: ISO %.0f, 1/%.0f s", exposure.iso, 1.0 / exposure.duration)
        return await asyncio.to_thread(self._read)

    def _read(self) -> CapturedFrame:
        try:
            with Image.open(self.path) as img:
                orientation = img.getexif().get(EXIF_ORIENTATION, Orientation.UP)
                pixels = np.asarray(img.convert("RGB"))
        except (OSError, UnidentifiedImageError) as e:
            raise DeviceError(f"Cannot read {self.path}: {e}") from e

        return CapturedFrame(
            pixels=pixels,
            pixel_format=PixelFormat.RGB8,
            orientation=int(orientation),
            timestamp=datetime.datetime.now(),
        )


class DirectoryPhotoStore(PhotoStore):
    """Writes each photo as a timestamped JPEG into a directory."""

    def __init__(self, directory, prefix: str = "IMG"):
        self.directory = Path(directory)
        self.prefix = prefix
        self.written: list[Path] = []

    async def request_authorization(self) -> bool:
        return await asyncio.to_thread(self._check_writable)

    def _check_writable(self) -> bool:
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.warning("Cannot create %s: %s", self.directory, e)
            return False
        return os.access(self.directory, os.W_OK)

    async def write(self, data: bytes) -> None:
        stamp = datetime.datetime.now().strftime("%Y%m%d_%H%M%S_%f")
        path = self.directory / f"{self.prefix}_{stamp}.jpg"
        await asyncio.to_thread(path.write_bytes, data)
        self.written.append(path)
        logger.info("Saved %s (%d bytes)", path, len(data))
