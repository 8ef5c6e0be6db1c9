"""
Film style table.

Each style is a fixed, ordered list of filter stages. Stages are pure
functions with constant parameters; the table is module-level and
read-only, so it is shared between requests without locking.

Stage fallback: when a stage raises or returns nothing, the previous
buffer is kept and the remaining stages still run.
"""

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Callable, Mapping, Optional

import numpy as np

from . import adjustments as adj
from .models import FilmStyle

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FilterStage:
    """Named image -> image function with fixed parameters."""
    name: str
    fn: Callable[..., np.ndarray]
    params: Mapping[str, float] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "params", MappingProxyType(dict(self.params)))

    def __call__(self, img: np.ndarray) -> np.ndarray:
        return self.fn(img, **self.params)


def color_controls(contrast: float, saturation: float, brightness: float) -> FilterStage:
    return FilterStage(
        "color_controls",
        adj.apply_color_controls,
        {"contrast": contrast, "saturation": saturation, "brightness": brightness},
    )


FILM_STYLES: dict[FilmStyle, tuple[FilterStage, ...]] = {
    # Clean, balanced, crisp
    FilmStyle.NORMAL: (
        color_controls(1.05, 1.00, 0.00),
        FilterStage("sharpen_luminance", adj.sharpen_luminance, {"sharpness": 0.6}),
        FilterStage(
            "highlight_shadow",
            adj.apply_highlight_shadow,
            {"highlight_amount": 0.8, "shadow_amount": 0.6},
        ),
    ),
    # Warm, vivid reds/yellows, a bit more contrast
    FilmStyle.KODAK: (
        FilterStage("process_effect", adj.apply_process_effect),
        color_controls(1.15, 1.20, 0.05),
        FilterStage("temperature_tint", adj.apply_temperature_tint, {"neutral": 7500.0, "tint": 0.0}),
    ),
    # Cooler, green-leaning, softer contrast
    FilmStyle.FUJI: (
        FilterStage("chrome_effect", adj.apply_chrome_effect),
        color_controls(0.95, 1.05, -0.02),
        FilterStage("temperature_tint", adj.apply_temperature_tint, {"neutral": 5500.0, "tint": 150.0}),
    ),
}

FALLBACK_STAGES: tuple[FilterStage, ...] = (
    color_controls(1.00, 1.00, 0.00),
)


def styles() -> list[str]:
    """Names of the built-in styles, in display order."""
    return [style.value for style in FILM_STYLES]


def stages_for(style) -> tuple[FilterStage, ...]:
    parsed = FilmStyle.parse(style)
    if parsed is None:
        logger.info("Unknown film style %r, using neutral color controls", style)
        return FALLBACK_STAGES
    return FILM_STYLES[parsed]


def run_stages(img: np.ndarray, stages) -> np.ndarray:
    """Run stages in order, keeping the last good buffer on failure."""
    current = img
    for stage in stages:
        out: Optional[np.ndarray]
        try:
            out = stage(current)
        except Exception as e:
            logger.warning("Filter stage %s degraded: %s", stage.name, e)
            continue

        if out is None or out.size == 0:
            logger.warning("Filter stage %s produced no output", stage.name)
            continue

        current = out
    return current


def apply_style(img: np.ndarray, style) -> np.ndarray:
    """
    Apply a film style to a float RGB image.

    Args:
        img: float32 RGB (H, W, 3), 0..1. Not modified.
        style: FilmStyle or style name; unknown names get neutral controls.

    Returns:
        Styled image. Always a new array unless every stage degraded.
    """
    return run_stages(img, stages_for(style))
