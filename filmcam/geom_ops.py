"""
Geometric transformations and orientation normalization.

A captured frame carries an EXIF orientation tag describing how the stored
pixels must be rotated/mirrored to appear upright. normalize() bakes that
transform into the pixels.
"""
import logging

import numpy as np

from .models import CapturedFrame, Orientation

logger = logging.getLogger(__name__)


def rot90_ccw(img):
    """Rotate 90° counter-clockwise."""
    return np.rot90(img, k=1, axes=(0, 1)).copy()


def rot90_cw(img):
    """Rotate 90° clockwise."""
    return np.rot90(img, k=3, axes=(0, 1)).copy()


def rot180(img):
    """Rotate 180°."""
    return np.rot90(img, k=2, axes=(0, 1)).copy()


def mirror_h(img):
    """Mirror horizontally (flip left-right)."""
    return np.flip(img, axis=1).copy()


def mirror_v(img):
    """Mirror vertically (flip top-bottom)."""
    return np.flip(img, axis=0).copy()


def transpose(img):
    """Reflect across the main diagonal."""
    return np.swapaxes(img, 0, 1).copy()


def transverse(img):
    """Reflect across the anti-diagonal."""
    return np.swapaxes(img[::-1, ::-1], 0, 1).copy()


# Transform that turns the stored pixels upright, per EXIF tag
_UPRIGHT_OPS = {
    Orientation.UP_MIRRORED: mirror_h,
    Orientation.DOWN: rot180,
    Orientation.DOWN_MIRRORED: mirror_v,
    Orientation.LEFT_MIRRORED: transpose,
    Orientation.RIGHT: rot90_cw,
    Orientation.RIGHT_MIRRORED: transverse,
    Orientation.LEFT: rot90_ccw,
}


def normalize(frame: CapturedFrame) -> np.ndarray:
    """
    Return the frame's pixels rotated/mirrored upright.

    Identity-tagged frames come back as the very same array (no copy).
    Unknown tags and malformed buffers are treated as identity.
    """
    pixels = frame.pixels

    try:
        tag = Orientation(int(frame.orientation))
    except (TypeError, ValueError):
        logger.warning("Unknown orientation tag %r, treating as upright", frame.orientation)
        return pixels

    if tag is Orientation.UP:
        return pixels

    if not isinstance(pixels, np.ndarray) or pixels.ndim < 2 or pixels.size == 0:
        logger.warning("Cannot orient buffer of shape %s, leaving as is",
                       getattr(pixels, "shape", None))
        return pixels

    return _UPRIGHT_OPS[tag](pixels)


def upright(frame: CapturedFrame) -> CapturedFrame:
    """Normalized copy of the frame, tagged as identity."""
    pixels = normalize(frame)
    if pixels is frame.pixels and frame.orientation == Orientation.UP:
        return frame
    return frame.with_pixels(pixels, orientation=Orientation.UP)
