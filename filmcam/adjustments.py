"""
Tone and color operations used by the film styles.

All functions take float32 RGB (H, W, 3) in 0..1 and return a new array;
inputs are never modified. Buffers the operation cannot handle raise
DegradedFilterError.
"""

import math

import cv2
import numpy as np

# Rec.709 / sRGB luminance weights
LUMA_WEIGHTS = np.array([0.2126, 0.7152, 0.0722], dtype=np.float32)

# White point the temperature/tint correction maps the stated neutral onto
TARGET_NEUTRAL_K = 6500.0

# Green gain per unit of tint
TINT_SCALE = 1.0 / 3000.0


class DegradedFilterError(Exception):
    """Raised when a filter stage cannot produce output for a buffer."""
    pass


# ============================================================================
# Helpers
# ============================================================================

def _require_rgb(img: np.ndarray) -> np.ndarray:
    if img is None or img.ndim != 3 or img.shape[2] != 3 or img.size == 0:
        raise DegradedFilterError(
            f"Expected RGB image, got shape {getattr(img, 'shape', None)}"
        )
    return np.clip(img.astype(np.float32), 0.0, 1.0)


def luma(img: np.ndarray) -> np.ndarray:
    return (
        LUMA_WEIGHTS[0] * img[..., 0] +
        LUMA_WEIGHTS[1] * img[..., 1] +
        LUMA_WEIGHTS[2] * img[..., 2]
    )


# ============================================================================
# Color controls (contrast -> saturation -> brightness)
# ============================================================================

def apply_color_controls(
    img: np.ndarray,
    contrast: float = 1.0,
    saturation: float = 1.0,
    brightness: float = 0.0,
) -> np.ndarray:
    """
    Contrast, saturation and brightness as one adjustment.

    contrast:   multiplier around mid-grey, 1.0 = neutral
    saturation: multiplier of the distance to luma, 1.0 = neutral
    brightness: additive offset, 0.0 = neutral

    Neutral parameters are skipped so the identity triple returns the
    input values unchanged.
    """
    img = _require_rgb(img)

    if abs(contrast - 1.0) > 1e-6:
        img = (img - 0.5) * contrast + 0.5

    if abs(saturation - 1.0) > 1e-6:
        Y = luma(img)[..., None]
        img = Y + (img - Y) * saturation

    if abs(brightness) > 1e-6:
        img = img + brightness

    return np.clip(img, 0.0, 1.0).astype(np.float32)


# ============================================================================
# Filmic base passes
# ============================================================================

# Per-channel tone curves as (input, output) control points.
# "process": cross-processed look, lifted blue blacks, warm muted highlights.
PROCESS_CURVES = (
    ((0.0, 0.25, 0.5, 0.75, 1.0), (0.00, 0.22, 0.52, 0.80, 1.00)),
    ((0.0, 0.25, 0.5, 0.75, 1.0), (0.02, 0.24, 0.51, 0.78, 0.98)),
    ((0.0, 0.25, 0.5, 0.75, 1.0), (0.10, 0.28, 0.47, 0.66, 0.84)),
)

# "chrome": punchy S-curve, slightly cooler shadows.
CHROME_CURVES = (
    ((0.0, 0.25, 0.5, 0.75, 1.0), (0.00, 0.20, 0.50, 0.80, 1.00)),
    ((0.0, 0.25, 0.5, 0.75, 1.0), (0.00, 0.21, 0.50, 0.79, 1.00)),
    ((0.0, 0.25, 0.5, 0.75, 1.0), (0.03, 0.23, 0.50, 0.77, 0.97)),
)
CHROME_SATURATION = 1.1


def apply_tone_curves(img: np.ndarray, curves) -> np.ndarray:
    """Apply one piecewise-linear curve per channel."""
    img = _require_rgb(img)

    out = np.empty_like(img)
    for c, (xs, ys) in enumerate(curves):
        out[..., c] = np.interp(img[..., c], xs, ys)

    return np.clip(out, 0.0, 1.0).astype(np.float32)


def apply_process_effect(img: np.ndarray) -> np.ndarray:
    return apply_tone_curves(img, PROCESS_CURVES)


def apply_chrome_effect(img: np.ndarray) -> np.ndarray:
    img = apply_tone_curves(img, CHROME_CURVES)
    return apply_color_controls(img, saturation=CHROME_SATURATION)


# ============================================================================
# Temperature & tint
# ============================================================================

def blackbody_rgb(kelvin: float) -> np.ndarray:
    """
    Approximate sRGB color (0..1) of a blackbody radiator.

    Curve fit after Tanner Helland, valid for roughly 1000 K .. 40000 K.
    """
    t = float(np.clip(kelvin, 1000.0, 40000.0)) / 100.0

    if t <= 66.0:
        r = 255.0
        g = 99.4708025861 * math.log(t) - 161.1195681661
    else:
        r = 329.698727446 * ((t - 60.0) ** -0.1332047592)
        g = 288.1221695283 * ((t - 60.0) ** -0.0755148492)

    if t >= 66.0:
        b = 255.0
    elif t <= 19.0:
        b = 0.0
    else:
        b = 138.5177312231 * math.log(t - 10.0) - 305.0447927307

    rgb = np.clip(np.array([r, g, b], dtype=np.float32), 1.0, 255.0)
    return rgb / 255.0


def temperature_gains(neutral: float, tint: float = 0.0,
                      target: float = TARGET_NEUTRAL_K) -> np.ndarray:
    """
    Per-channel gains mapping the white of `neutral` Kelvin onto `target`.

    A neutral above the target warms the image, below it cools it.
    Positive tint adds green. Gains keep Rec.709 luminance of grey constant.
    """
    gains = blackbody_rgb(target) / blackbody_rgb(neutral)
    gains[1] *= 1.0 + tint * TINT_SCALE

    gains = gains / float(np.dot(LUMA_WEIGHTS, gains))
    return gains.astype(np.float32)


def apply_temperature_tint(img: np.ndarray, neutral: float, tint: float = 0.0) -> np.ndarray:
    img = _require_rgb(img)
    gains = temperature_gains(neutral, tint)
    return np.clip(img * gains[None, None, :], 0.0, 1.0).astype(np.float32)


# ============================================================================
# Detail
# ============================================================================

def sharpen_luminance(img: np.ndarray, sharpness: float = 0.4, radius: float = 1.69) -> np.ndarray:
    """
    Unsharp mask on luma only; the luma change is carried to RGB as a ratio
    so colors do not fringe.
    """
    img = _require_rgb(img)

    h, w, _ = img.shape
    if h < 2 or w < 2:
        raise DegradedFilterError(f"Image too small to sharpen: {w}x{h}")

    sh = float(np.clip(sharpness, 0.0, 2.0))
    if sh <= 1e-3:
        return img

    Y = luma(img)

    k = int(2 * round(2 * radius) + 1)
    k = max(3, k)
    if k % 2 == 0:
        k += 1

    Y_blur = cv2.GaussianBlur(Y, (k, k), radius)
    detail = Y - Y_blur
    Y_sharp = np.clip(Y + sh * detail, 0.0, 1.0)

    eps = 1e-6
    ratio = (Y_sharp + eps) / (Y + eps)
    ratio = np.clip(ratio, 0.0, 3.0)

    return np.clip(img * ratio[..., None], 0.0, 1.0).astype(np.float32)


def apply_highlight_shadow(
    img: np.ndarray,
    highlight_amount: float = 1.0,
    shadow_amount: float = 0.0,
) -> np.ndarray:
    """
    Selective highlight recovery and shadow lift.

    highlight_amount: 1.0 = unchanged, lower values pull highlights down
    shadow_amount:    0.0 = unchanged, positive values lift the shadows
    """
    img = _require_rgb(img)

    # ========== Shadows ==========
    if abs(shadow_amount) > 1e-3:
        shadow_gamma = 1.0 - (shadow_amount * 0.3)

        # Only dark areas (Y < 0.5)
        Y = luma(img)
        weight = np.clip((0.5 - Y) / 0.5, 0.0, 1.0)[..., None]

        lifted = np.power(img, shadow_gamma)
        img = img * (1.0 - weight) + lifted * weight

    # ========== Highlights ==========
    if abs(highlight_amount - 1.0) > 1e-3:
        Y = luma(img)
        weight = np.clip((Y - 0.5) / 0.5, 0.0, 1.0)[..., None]

        factor = 1.0 - (1.0 - highlight_amount) * 0.3
        recovered = np.clip(img * factor, 0.0, 1.0)
        img = img * (1.0 - weight) + recovered * weight

    return np.clip(img, 0.0, 1.0).astype(np.float32)
