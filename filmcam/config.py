"""
Configuration defaults and loader.

Config files are plain `key = value` lines; `#` starts a comment. Values
are typed after the matching default. Unknown keys are kept as parsed.
"""

import logging
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """Raised when configuration validation fails."""
    pass


DEFAULT_CONFIG: Dict[str, Any] = {
    # Date stamp
    'date_stamp_font': 'DejaVuSans.ttf',
    'date_stamp_font_size': 40,
    'date_stamp_inset': 20,
    'date_stamp_stroke_width': 2,
    # Light leak ('' = built-in texture)
    'light_leak_path': '',
    # Output
    'jpeg_quality': 95,
    # Manual exposure limits (used when the device does not report its own)
    'iso_min': 50.0,
    'iso_max': 800.0,
    'shutter_min': 0.001,
    'shutter_max': 0.1,
    # Seconds to wait for the device, 0 = wait forever
    'capture_timeout': 0.0,
    'log_level': 'INFO',
}


def _parse_value(value: str) -> Any:
    value_lower = value.lower()
    if value_lower in ('true', 'false', 'yes', 'no', 'on', 'off'):
        return value_lower in ('true', 'yes', 'on')

    try:
        return int(value)
    except ValueError:
        pass

    try:
        return float(value)
    except ValueError:
        pass

    return value


def _parse_value_with_type(value: str, target_type: type) -> Any:
    if target_type == bool:
        return value.lower() in ('true', 'yes', 'on', '1')

    if target_type in (int, float):
        try:
            return target_type(value)
        except ValueError:
            raise ConfigError(f"Expected {target_type.__name__}, got {value!r}")

    return value


def load_config(config_path: Optional[Path], defaults: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """
    Read a config file on top of the defaults.

    A missing file yields the defaults. Malformed lines are skipped with a
    warning; values of the wrong type raise ConfigError.
    """
    defaults = DEFAULT_CONFIG if defaults is None else defaults
    config = dict(defaults)

    if config_path is None:
        return config

    config_path = Path(config_path)
    if not config_path.exists():
        logger.debug("Config file not found at %s, using defaults", config_path)
        return config

    logger.debug("Loading config from: %s", config_path)

    with open(config_path, 'r') as f:
        for line_num, line in enumerate(f, 1):
            line = line.strip()

            if not line or line.startswith('#'):
                continue

            if '=' not in line:
                logger.warning("Invalid config line %d (missing '='): %s", line_num, line)
                continue

            key, value = line.split('=', 1)
            key = key.strip()
            value = value.split('#', 1)[0].strip()

            if key in defaults:
                config[key] = _parse_value_with_type(value, type(defaults[key]))
            else:
                logger.warning("Unknown config key '%s' (line %d)", key, line_num)
                config[key] = _parse_value(value)

    logger.info("Loaded config from %s (%d values)", config_path, len(config))
    return config


@dataclass(frozen=True)
class FilmCamConfig:
    date_stamp_font: str = DEFAULT_CONFIG['date_stamp_font']
    date_stamp_font_size: int = DEFAULT_CONFIG['date_stamp_font_size']
    date_stamp_inset: int = DEFAULT_CONFIG['date_stamp_inset']
    date_stamp_stroke_width: int = DEFAULT_CONFIG['date_stamp_stroke_width']
    light_leak_path: str = DEFAULT_CONFIG['light_leak_path']
    jpeg_quality: int = DEFAULT_CONFIG['jpeg_quality']
    iso_min: float = DEFAULT_CONFIG['iso_min']
    iso_max: float = DEFAULT_CONFIG['iso_max']
    shutter_min: float = DEFAULT_CONFIG['shutter_min']
    shutter_max: float = DEFAULT_CONFIG['shutter_max']
    capture_timeout: float = DEFAULT_CONFIG['capture_timeout']
    log_level: str = DEFAULT_CONFIG['log_level']

    def __post_init__(self):
        if self.date_stamp_font_size <= 0:
            raise ConfigError("Date stamp font size must be positive")
        if self.date_stamp_inset < 0 or self.date_stamp_stroke_width < 0:
            raise ConfigError("Date stamp inset and stroke width must be non-negative")
        if not 1 <= self.jpeg_quality <= 100:
            raise ConfigError("JPEG quality must be within 1..100")
        if not 0 < self.iso_min <= self.iso_max:
            raise ConfigError("ISO range must be positive and ordered")
        if not 0 < self.shutter_min <= self.shutter_max:
            raise ConfigError("Shutter range must be positive and ordered")
        if self.capture_timeout < 0:
            raise ConfigError("Capture timeout must be non-negative")

    @classmethod
    def from_dict(cls, values: Dict[str, Any]) -> "FilmCamConfig":
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in values.items() if k in known})

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "FilmCamConfig":
        return cls.from_dict(load_config(config_path))

    @property
    def iso_range(self) -> tuple[float, float]:
        return (self.iso_min, self.iso_max)

    @property
    def shutter_range(self) -> tuple[float, float]:
        return (self.shutter_min, self.shutter_max)
