"""Logging setup for filmcam."""

import logging
from typing import Union

DEFAULT_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s | %(message)s"


def configure_logging(level: Union[int, str] = logging.INFO) -> None:
    """Configure the root logger once; later calls only adjust the level."""
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=level, format=DEFAULT_LOG_FORMAT)
    else:
        root.setLevel(level)
