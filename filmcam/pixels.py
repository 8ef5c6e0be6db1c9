"""
Pixel format conversions between device buffers and the float RGB working space.
"""
import numpy as np

from .models import PixelFormat


def to_float_rgb(pixels: np.ndarray, pixel_format=PixelFormat.RGB8) -> np.ndarray:
    """
    Device buffer -> float32 RGB (H, W, 3) in 0..1.

    The pixel format is a hint; the array's own shape and dtype win when
    they disagree with it.
    """
    arr = np.asarray(pixels)

    if arr.ndim == 2:
        arr = arr[..., None]
    if arr.ndim == 3 and arr.shape[2] == 1:
        arr = np.repeat(arr, 3, axis=2)
    elif arr.ndim == 3 and arr.shape[2] == 4:
        arr = arr[..., :3]
    elif arr.ndim != 3 or arr.shape[2] != 3:
        raise ValueError(f"Unsupported pixel buffer shape {arr.shape}")

    if PixelFormat(pixel_format) is PixelFormat.BGR8:
        arr = arr[..., ::-1]

    if np.issubdtype(arr.dtype, np.floating):
        out = arr.astype(np.float32)
    elif arr.dtype == np.uint16:
        out = arr.astype(np.float32) / 65535.0
    else:
        out = arr.astype(np.float32) / 255.0

    return np.clip(out, 0.0, 1.0)


def to_rgb_u8(img: np.ndarray) -> np.ndarray:
    """float 0..1 RGB -> uint8 0..255 (rounded)."""
    img = np.clip(img, 0.0, 1.0)
    return (img * 255.0 + 0.5).astype(np.uint8)
