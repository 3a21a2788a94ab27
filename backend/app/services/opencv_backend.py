"""
OpenCV capture backend for AcquisitionSession.

Opens local cameras through cv2.VideoCapture and decodes QR codes from frames
with cv2.QRCodeDetector. Blocking OpenCV calls run in worker threads so the
event loop stays responsive.

OpenCV has no notion of facing direction, so facing-mode configs map to
conventional indices: environment → 0, user → 1.
"""

import asyncio
import logging
import threading

import cv2

from app.services.camera_acquirer import (
    CaptureConfig,
    DeviceBindError,
    DeviceDescriptor,
    DeviceIdConfig,
    FacingMode,
    FacingModeConfig,
    FrameCallback,
    FrameErrorCallback,
)

logger = logging.getLogger(__name__)

RELEASE_TIMEOUT = 2.0  # seconds to wait for the decode loop to notice a stop

_FACING_INDEX = {
    FacingMode.ENVIRONMENT: 0,
    FacingMode.USER: 1,
}


def _probe_index(index: int) -> bool:
    capture = cv2.VideoCapture(index)
    try:
        return capture.isOpened()
    finally:
        capture.release()


def scan_qr_from_frame(detector, frame) -> str | None:
    """Decode the first QR code in a frame, or None if nothing readable."""
    if frame is None:
        return None
    data, _, _ = detector.detectAndDecode(frame)
    return data.strip() if data else None


class OpenCVCaptureBackend:
    def __init__(self, max_index: int = 4, fps: int = 10):
        self._max_index = max_index
        self._interval = 1.0 / fps if fps > 0 else 0.0
        self._capture = None
        self._task: asyncio.Task | None = None
        self._running = False
        # Serializes read() and release() on the capture handle across worker threads
        self._handle_lock = threading.Lock()

    async def enumerate_devices(self) -> list[DeviceDescriptor]:
        devices = []
        for index in range(self._max_index):
            if await asyncio.to_thread(_probe_index, index):
                devices.append(DeviceDescriptor(id=str(index), label=f"Camera {index}"))
        return devices

    async def bind(self, config: CaptureConfig) -> None:
        if isinstance(config, DeviceIdConfig):
            try:
                index = int(config.device_id)
            except ValueError:
                raise DeviceBindError(f"Unknown device id: {config.device_id!r}")
        elif isinstance(config, FacingModeConfig):
            index = _FACING_INDEX[config.facing_mode]
        else:
            raise DeviceBindError(f"Unsupported capture config: {config!r}")

        capture = await asyncio.to_thread(cv2.VideoCapture, index)
        if not capture.isOpened():
            capture.release()
            raise DeviceBindError(f"no camera available at index {index}")
        self._capture = capture

    async def begin_decoding(
        self, on_success: FrameCallback, on_frame_error: FrameErrorCallback
    ) -> None:
        if self._capture is None:
            raise DeviceBindError("Camera is not bound")
        self._running = True
        self._task = asyncio.create_task(
            self._decode_loop(self._capture, on_success, on_frame_error)
        )

    def _read_frame(self, capture):
        with self._handle_lock:
            return capture.read()

    def _release_capture(self, capture) -> None:
        with self._handle_lock:
            capture.release()

    async def _decode_loop(
        self, capture, on_success: FrameCallback, on_frame_error: FrameErrorCallback
    ) -> None:
        detector = cv2.QRCodeDetector()
        while self._running:
            ok, frame = await asyncio.to_thread(self._read_frame, capture)
            if not self._running:
                break
            if not ok:
                on_frame_error("Could not read frame")
            else:
                text = scan_qr_from_frame(detector, frame)
                if text:
                    try:
                        await on_success(text)
                    except Exception:
                        logger.exception("Scan callback failed for %r", text)
                else:
                    on_frame_error("No QR code found")
            await asyncio.sleep(self._interval)

    async def release(self) -> None:
        self._running = False
        task, self._task = self._task, None
        # release() may run inside the decode task itself (from on_success);
        # that task exits on its own once _running is cleared.
        if task is not None and task is not asyncio.current_task():
            done, _ = await asyncio.wait({task}, timeout=RELEASE_TIMEOUT)
            if not done:
                logger.warning("Decode loop still busy after %ss; releasing anyway", RELEASE_TIMEOUT)

        capture, self._capture = self._capture, None
        if capture is not None:
            # Waits for any in-flight read() to finish before releasing
            await asyncio.to_thread(self._release_capture, capture)
            logger.info("Camera released")
