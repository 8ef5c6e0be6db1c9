"""In-memory collaborators for controller tests."""

import asyncio
from typing import Optional

from filmcam.devices import CaptureDevice, PhotoStore


class FakeDevice(CaptureDevice):

    def __init__(self, frame=None, error: Optional[Exception] = None,
                 gate: Optional[asyncio.Event] = None):
        self.frame = frame
        self.error = error
        self.gate = gate
        self.calls = 0
        self.exposures = []

    async def capture_once(self, exposure=None):
        self.calls += 1
        self.exposures.append(exposure)
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return self.frame


class FakeStore(PhotoStore):

    def __init__(self, granted: bool = True, fail: bool = False):
        self.granted = granted
        self.fail = fail
        self.auth_requests = 0
        self.writes = []

    async def request_authorization(self) -> bool:
        self.auth_requests += 1
        return self.granted

    async def write(self, data: bytes) -> None:
        if self.fail:
            raise OSError("disk full")
        self.writes.append(data)
