# filmcam/export.py
import cv2
import numpy as np

from .pixels import to_rgb_u8


class ExportError(Exception):
    """Raised when an image cannot be encoded."""
    pass


def encode_jpeg(img: np.ndarray, quality: int = 95) -> bytes:
    """
    Encode float RGB (0..1) as 8-bit JPEG bytes. Uses OpenCV.
    """
    u8 = to_rgb_u8(img)
    bgr = np.ascontiguousarray(u8[..., ::-1])  # RGB->BGR for OpenCV
    ok, buf = cv2.imencode(".jpg", bgr, [cv2.IMWRITE_JPEG_QUALITY, int(quality)])
    if not ok:
        raise ExportError(f"JPEG encoding failed for image of shape {img.shape}")
    return buf.tobytes()


def decode_image(data: bytes) -> np.ndarray:
    """Encoded image bytes -> RGB uint8."""
    arr = np.frombuffer(data, dtype=np.uint8)
    bgr = cv2.imdecode(arr, cv2.IMREAD_COLOR)
    if bgr is None:
        raise ExportError("Could not decode image data")
    return cv2.cvtColor(bgr, cv2.COLOR_BGR2RGB)
