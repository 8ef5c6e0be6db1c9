"""
Command-line driver: run one capture end to end, using an image file as the
sensor and a directory as the photo library.
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .config import ConfigError, FilmCamConfig
from .controller import CaptureController
from .devices import DirectoryPhotoStore, ImageFileDevice
from .film_styles import styles
from .logging_utils import configure_logging
from .models import CaptureStatus, ProcessingRequest

logger = logging.getLogger(__name__)

EXIT_CODES = {
    CaptureStatus.SUCCESS: 0,
    CaptureStatus.DEVICE_ERROR: 2,
    CaptureStatus.LIBRARY_ACCESS_DENIED: 3,
    CaptureStatus.STORAGE_ERROR: 4,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="filmcam",
        description="Apply a film look to a photo and save it to a directory",
    )
    parser.add_argument("input", type=Path, help="Image file used as the captured frame")
    parser.add_argument("output_dir", type=Path, help="Directory the result is written to")
    parser.add_argument("--style", default="Normal",
                        help=f"Film style ({', '.join(styles())})")
    parser.add_argument("--light-leak", type=float, metavar="INTENSITY",
                        help="Enable the light leak at this intensity (0..1)")
    parser.add_argument("--date-stamp", action="store_true", help="Stamp date and time")
    parser.add_argument("--iso", type=float, help="Manual ISO (enables manual exposure)")
    parser.add_argument("--shutter", type=float, metavar="SECONDS",
                        help="Manual shutter duration (enables manual exposure)")
    parser.add_argument("--config", type=Path, help="Config file (key = value)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def build_request(args: argparse.Namespace) -> ProcessingRequest:
    manual = args.iso is not None or args.shutter is not None
    return ProcessingRequest(
        style=args.style,
        light_leak=args.light_leak is not None,
        light_leak_intensity=args.light_leak if args.light_leak is not None else 0.5,
        date_stamp=args.date_stamp,
        manual_exposure=manual,
        iso=args.iso if args.iso is not None else 100.0,
        shutter_duration=args.shutter if args.shutter is not None else 1.0 / 60.0,
    )


async def run(args: argparse.Namespace, config: FilmCamConfig, request: ProcessingRequest) -> CaptureStatus:
    device = ImageFileDevice(args.input)
    store = DirectoryPhotoStore(args.output_dir)
    controller = CaptureController(device, store, config=config)

    result = await controller.capture(request)
    if store.written:
        print(store.written[-1])
    return result.status


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = FilmCamConfig.load(args.config)
        request = build_request(args)
    except (ConfigError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    configure_logging(logging.DEBUG if args.verbose else config.log_level)
    logger.debug("Request: %s", request)

    status = asyncio.run(run(args, config, request))
    return EXIT_CODES[status]


if __name__ == "__main__":
    sys.exit(main())
