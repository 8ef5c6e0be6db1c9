"""
Overlay compositing: light leak texture and date stamp.

Takes a styled image -> returns a new image with overlays drawn.
Missing resources never fail a capture; the image passes through.
"""

import datetime
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import cv2
import numpy as np
from PIL import Image, ImageDraw, ImageFont

logger = logging.getLogger(__name__)

DATE_STAMP_FORMAT = "%Y-%m-%d %H:%M"


@dataclass(frozen=True)
class LightLeak:
    texture: Optional[np.ndarray]
    intensity: float = 0.5


@dataclass(frozen=True)
class DateStamp:
    """
    The controller passes the frame's capture time as `when`, so the stamp
    shows the shutter moment rather than the moment of compositing. With
    neither `when` nor `text` set, the current time is used.
    """
    when: Optional[datetime.datetime] = None
    text: Optional[str] = None
    font: str = "DejaVuSans.ttf"
    font_size: int = 40
    inset: int = 20
    stroke_width: int = 2
    fill: tuple = (255, 255, 255)
    stroke_fill: tuple = (0, 0, 0)

    @property
    def content(self) -> str:
        if self.text is not None:
            return self.text
        when = self.when or datetime.datetime.now()
        return when.strftime(DATE_STAMP_FORMAT)


# ============================================================================
# Light leak
# ============================================================================

def load_light_leak(path) -> Optional[np.ndarray]:
    """Load a texture asset as RGB(A) uint8, or None if it cannot be read."""
    path = Path(path)
    tex = cv2.imread(str(path), cv2.IMREAD_UNCHANGED)
    if tex is None:
        logger.warning("Light leak texture not found or unreadable: %s", path)
        return None

    if tex.ndim == 3 and tex.shape[2] == 4:
        return cv2.cvtColor(tex, cv2.COLOR_BGRA2RGBA)
    if tex.ndim == 3:
        return cv2.cvtColor(tex, cv2.COLOR_BGR2RGB)
    return tex


def default_light_leak(width: int = 512, height: int = 512) -> np.ndarray:
    """
    Built-in leak: warm orange glow bleeding in from the upper-left edge,
    fading to transparent. RGBA uint8, deterministic.
    """
    ys, xs = np.mgrid[0:height, 0:width].astype(np.float32)
    xs /= max(width - 1, 1)
    ys /= max(height - 1, 1)

    # Distance from a point just outside the top-left corner
    d = np.sqrt((xs + 0.15) ** 2 + (ys * 0.8 + 0.1) ** 2)
    glow = np.clip(1.0 - d / 1.1, 0.0, 1.0) ** 1.5

    tex = np.empty((height, width, 4), dtype=np.float32)
    tex[..., 0] = 1.0
    tex[..., 1] = 0.35 + 0.45 * glow
    tex[..., 2] = 0.10 + 0.20 * glow
    tex[..., 3] = glow

    return (tex * 255.0 + 0.5).astype(np.uint8)


def _fit_texture(tex: np.ndarray, width: int, height: int) -> np.ndarray:
    """Scale to cover (width, height), then center-crop to exactly that size."""
    th, tw = tex.shape[:2]
    scale = max(width / tw, height / th)
    new_w = max(width, int(round(tw * scale)))
    new_h = max(height, int(round(th * scale)))

    resized = cv2.resize(tex, (new_w, new_h), interpolation=cv2.INTER_LINEAR)
    if resized.ndim == 2:
        resized = resized[..., None]

    x0 = (new_w - width) // 2
    y0 = (new_h - height) // 2
    return resized[y0:y0 + height, x0:x0 + width, :]


def _texture_to_float(tex: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    """-> (rgb, alpha) as float32 0..1"""
    if np.issubdtype(tex.dtype, np.floating):
        t = np.clip(tex.astype(np.float32), 0.0, 1.0)
    else:
        t = tex.astype(np.float32) / float(np.iinfo(tex.dtype).max)

    channels = t.shape[2]
    if channels == 1:
        return np.repeat(t, 3, axis=2), np.ones_like(t)
    if channels == 3:
        return t, np.ones(t.shape[:2] + (1,), dtype=np.float32)
    if channels == 4:
        return t[..., :3], t[..., 3:4]
    raise ValueError(f"Unsupported texture channel count: {channels}")


def apply_light_leak(img: np.ndarray, texture: Optional[np.ndarray], intensity: float) -> np.ndarray:
    """
    Screen-blend the texture over the image.

    intensity 0 leaves the image untouched, 1 is a full-strength screen.
    """
    if texture is None or texture.size == 0:
        logger.warning("Light leak texture unavailable, skipping")
        return img

    intensity = float(np.clip(intensity, 0.0, 1.0))
    if intensity <= 0.0:
        return img

    h, w = img.shape[:2]
    try:
        rgb, alpha = _texture_to_float(_fit_texture(texture, w, h))
    except (cv2.error, ValueError) as e:
        logger.warning("Light leak texture unusable: %s", e)
        return img

    base = np.clip(img.astype(np.float32), 0.0, 1.0)
    screen = 1.0 - (1.0 - base) * (1.0 - rgb)
    out = base + (screen - base) * (alpha * intensity)

    return np.clip(out, 0.0, 1.0).astype(np.float32)


# ============================================================================
# Date stamp
# ============================================================================

def load_font(name: str, size: int):
    try:
        return ImageFont.truetype(name, size)
    except OSError:
        logger.debug("Font %s not available, using Pillow default", name)

    try:
        return ImageFont.load_default(size=size)
    except OSError as e:
        logger.warning("No font available for date stamp: %s", e)
        return None


def apply_date_stamp(img: np.ndarray, stamp: DateStamp) -> np.ndarray:
    """
    Draw the stamp right-aligned at a fixed inset from the lower-right
    corner. White glyphs, dark stroke.
    """
    font = load_font(stamp.font, stamp.font_size)
    if font is None:
        return img

    h, w = img.shape[:2]
    text = stamp.content

    layer = Image.new("RGBA", (w, h), (0, 0, 0, 0))
    draw = ImageDraw.Draw(layer)

    left, top, right, bottom = draw.textbbox(
        (0, 0), text, font=font, stroke_width=stamp.stroke_width
    )
    x = w - stamp.inset - right
    y = h - stamp.inset - bottom

    draw.text(
        (x, y),
        text,
        font=font,
        fill=tuple(stamp.fill) + (255,),
        stroke_width=stamp.stroke_width,
        stroke_fill=tuple(stamp.stroke_fill) + (255,),
    )

    stamp_rgba = np.asarray(layer, dtype=np.float32) / 255.0
    alpha = stamp_rgba[..., 3:4]

    base = np.clip(img.astype(np.float32), 0.0, 1.0)
    out = base * (1.0 - alpha) + stamp_rgba[..., :3] * alpha
    return np.clip(out, 0.0, 1.0).astype(np.float32)


# ============================================================================
# Compositor
# ============================================================================

def composite(
    img: np.ndarray,
    light_leak: Optional[LightLeak] = None,
    date_stamp: Optional[DateStamp] = None,
) -> np.ndarray:
    """
    Light leak first (becomes part of the base), date stamp last so it is
    always legible on top.
    """
    out = img

    if light_leak is not None:
        out = apply_light_leak(out, light_leak.texture, light_leak.intensity)

    if date_stamp is not None:
        out = apply_date_stamp(out, date_stamp)

    return out
