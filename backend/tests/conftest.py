"""Shared fixtures.

Camera access is replaced with an in-memory FakeCaptureBackend so tests never
touch real devices.
"""

import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.services.camera_acquirer import CaptureConfig, DeviceDescriptor
from app.services.scanner_service import ScannerService


class FakeCaptureBackend:
    """Scriptable capture backend.

    ``failures`` maps a CaptureConfig to the exception its bind() raises;
    ``fail_all`` makes every bind() raise. ``emit()`` plays a decoded frame
    through the callback registered by begin_decoding().
    """

    def __init__(
        self,
        devices: list[DeviceDescriptor] | None = None,
        failures: dict[CaptureConfig, Exception] | None = None,
        fail_all: Exception | None = None,
        enumerate_error: Exception | None = None,
        release_error: Exception | None = None,
    ):
        self.devices = devices or []
        self.failures = failures or {}
        self.fail_all = fail_all
        self.enumerate_error = enumerate_error
        self.release_error = release_error
        self.attempts: list[CaptureConfig] = []
        self.release_calls = 0
        self.on_success = None

    async def enumerate_devices(self) -> list[DeviceDescriptor]:
        if self.enumerate_error is not None:
            raise self.enumerate_error
        return list(self.devices)

    async def bind(self, config: CaptureConfig) -> None:
        self.attempts.append(config)
        if self.fail_all is not None:
            raise self.fail_all
        error = self.failures.get(config)
        if error is not None:
            raise error

    async def begin_decoding(self, on_success, on_frame_error) -> None:
        self.on_success = on_success

    async def release(self) -> None:
        self.release_calls += 1
        if self.release_error is not None:
            raise self.release_error

    async def emit(self, text: str) -> None:
        await self.on_success(text)


@pytest.fixture()
def fake_backend():
    return FakeCaptureBackend(devices=[DeviceDescriptor(id="0", label="Back Camera")])


@pytest.fixture()
def scanner(fake_backend):
    return ScannerService(fake_backend)


@pytest.fixture()
def client(scanner):
    """FastAPI test client with the scanner swapped for a fake-backed one."""
    original = app.state.scanner
    app.state.scanner = scanner

    with TestClient(app) as c:
        yield c

    app.state.scanner = original


@pytest.fixture()
def backend_factory():
    return FakeCaptureBackend
