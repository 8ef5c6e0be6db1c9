"""
Film-styled still capture.

This package contains:
- Orientation normalization of captured frames
- Film style transforms (Normal, Kodak, Fuji)
- Light leak and date stamp overlays
- The capture -> process -> persist controller
"""

from .controller import CaptureController
from .film_styles import apply_style, styles
from .geom_ops import normalize
from .models import (
    CapturedFrame,
    CaptureStatus,
    FilmStyle,
    Orientation,
    PipelineState,
    PixelFormat,
    ProcessingRequest,
    ProcessingResult,
)
from .overlay import DateStamp, LightLeak, composite

__version__ = "0.1.0"
