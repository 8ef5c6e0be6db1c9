"""
Capture -> process -> persist controller.

    IDLE -> CAPTURING -> PROCESSING -> PERSISTING -> IDLE
      ^         |             |              |
      +---------+-------------+--------------+   (error: back to IDLE)

The controller lives on the asyncio event loop, which is the primary
(UI/result) context. Device and storage calls are awaited; pixel work runs
in a worker thread and its result comes back to the loop, so every state
change, the busy flag and result delivery happen on the loop thread.

At most one request is in flight. A submit while busy is dropped.
"""

import asyncio
import logging
from contextlib import contextmanager
from typing import Callable, Optional

import numpy as np

from .config import FilmCamConfig
from .devices import CaptureDevice, DeviceError, PhotoStore
from .export import ExportError, encode_jpeg
from .film_styles import apply_style
from .geom_ops import normalize
from .models import (
    CapturedFrame,
    CaptureStatus,
    PipelineState,
    ProcessingRequest,
    ProcessingResult,
)
from .overlay import DateStamp, LightLeak, composite, default_light_leak, load_light_leak
from .pixels import to_float_rgb

logger = logging.getLogger(__name__)


class CaptureController:

    def __init__(
        self,
        device: CaptureDevice,
        store: PhotoStore,
        config: Optional[FilmCamConfig] = None,
        light_leak_texture: Optional[np.ndarray] = None,
        on_state_change: Optional[Callable[[PipelineState], None]] = None,
        on_result: Optional[Callable[[ProcessingResult], None]] = None,
    ):
        self.device = device
        self.store = store
        self.config = config or FilmCamConfig()
        self.on_state_change = on_state_change
        self.on_result = on_result

        if light_leak_texture is None:
            if self.config.light_leak_path:
                light_leak_texture = load_light_leak(self.config.light_leak_path)
            else:
                light_leak_texture = default_light_leak()
        self._light_leak_texture = light_leak_texture

        self._state = PipelineState.IDLE
        self._busy = False
        self._task: Optional[asyncio.Task] = None

    @property
    def state(self) -> PipelineState:
        return self._state

    @property
    def is_processing(self) -> bool:
        return self._busy

    # ------------------------------------------------------------------
    # Entry points

    def submit(self, request: ProcessingRequest) -> Optional[asyncio.Task]:
        """
        Start a capture if idle. Must be called on the event loop.

        Returns:
            Task resolving to the ProcessingResult, or None when a capture
            is already in flight (the request is dropped, not queued).
        """
        if self._busy:
            logger.debug("Capture in progress (%s), shutter press ignored", self._state.value)
            return None

        self._busy = True
        task = asyncio.get_running_loop().create_task(self._run(request))
        # A task cancelled before it starts never runs _run's cleanup
        task.add_done_callback(self._on_task_done)
        self._task = task
        return task

    async def capture(self, request: ProcessingRequest) -> Optional[ProcessingResult]:
        task = self.submit(request)
        if task is None:
            return None
        return await task

    async def join(self) -> None:
        """Wait for the in-flight capture, if any."""
        task = self._task
        if task is not None and not task.done():
            try:
                await task
            except asyncio.CancelledError:
                pass

    # ------------------------------------------------------------------
    # State

    def _set_state(self, state: PipelineState) -> None:
        if state is self._state:
            return
        logger.debug("Pipeline %s -> %s", self._state.value, state.value)
        self._state = state
        if self.on_state_change is not None:
            self.on_state_change(state)

    def _release(self) -> None:
        self._set_state(PipelineState.IDLE)
        self._busy = False
        self._task = None

    def _on_task_done(self, task: asyncio.Task) -> None:
        if self._task is task:
            self._release()

    @contextmanager
    def _busy_guard(self):
        try:
            yield
        finally:
            self._release()

    # ------------------------------------------------------------------
    # Pipeline

    async def _run(self, request: ProcessingRequest) -> ProcessingResult:
        with self._busy_guard():
            result = await self._pipeline(request)

        level = logging.INFO if result.ok else logging.WARNING
        logger.log(level, "Capture finished: %s", result.status.value)

        if self.on_result is not None:
            self.on_result(result)
        return result

    async def _pipeline(self, request: ProcessingRequest) -> ProcessingResult:
        self._set_state(PipelineState.CAPTURING)
        frame = await self._capture(request)
        if frame is None:
            return ProcessingResult(CaptureStatus.DEVICE_ERROR)

        self._set_state(PipelineState.PROCESSING)
        try:
            pixels, data = await asyncio.to_thread(self._process, frame, request)
        except (ValueError, ExportError) as e:
            logger.error("Captured data unusable: %s", e)
            return ProcessingResult(CaptureStatus.DEVICE_ERROR)
        del frame

        self._set_state(PipelineState.PERSISTING)
        status = await self._persist(data)
        return ProcessingResult(status, pixels=pixels, data=data)

    async def _capture(self, request: ProcessingRequest) -> Optional[CapturedFrame]:
        exposure = request.exposure
        if exposure is not None:
            exposure = exposure.clamped(*self._exposure_ranges())

        timeout = self.config.capture_timeout
        try:
            if timeout > 0:
                frame = await asyncio.wait_for(self.device.capture_once(exposure), timeout)
            else:
                frame = await self.device.capture_once(exposure)
        except DeviceError as e:
            logger.error("Error capturing photo: %s", e)
            return None
        except asyncio.TimeoutError:
            logger.error("Capture timed out after %.1f s", timeout)
            return None

        if frame is None or frame.is_empty:
            logger.error("Capture device returned no data")
            return None
        logger.debug("Captured %dx%d frame", frame.width, frame.height)
        return frame

    def _exposure_ranges(self) -> tuple[tuple[float, float], tuple[float, float]]:
        """Device-reported limits where available, the configured ones otherwise."""
        iso_range = getattr(self.device, "iso_range", None) or self.config.iso_range
        duration_range = getattr(self.device, "exposure_duration_range", None) or self.config.shutter_range
        return tuple(iso_range), tuple(duration_range)

    def _process(self, frame: CapturedFrame, request: ProcessingRequest) -> tuple[np.ndarray, bytes]:
        """Worker thread: normalize -> style -> overlays -> encode, strictly in order."""
        cfg = self.config

        img = to_float_rgb(normalize(frame), frame.pixel_format)
        img = apply_style(img, request.style)

        light_leak = None
        if request.light_leak:
            light_leak = LightLeak(self._light_leak_texture, request.light_leak_intensity)

        date_stamp = None
        if request.date_stamp:
            date_stamp = DateStamp(
                when=frame.timestamp,
                font=cfg.date_stamp_font,
                font_size=cfg.date_stamp_font_size,
                inset=cfg.date_stamp_inset,
                stroke_width=cfg.date_stamp_stroke_width,
            )

        img = composite(img, light_leak, date_stamp)
        return img, encode_jpeg(img, cfg.jpeg_quality)

    async def _persist(self, data: bytes) -> CaptureStatus:
        if not await self.store.request_authorization():
            logger.warning("Photo library access denied")
            return CaptureStatus.LIBRARY_ACCESS_DENIED

        try:
            await self.store.write(data)
        except OSError as e:
            logger.error("Saving photo failed: %s", e)
            return CaptureStatus.STORAGE_ERROR

        return CaptureStatus.SUCCESS
