"""
Camera acquisition with ordered configuration fallback.

Device labels and facing hints are unreliable across platforms, so a session
builds a prioritized list of candidate configurations on every start() and
binds the first one that works:

    1. the first device whose label looks rear-facing
    2. the first enumerated device
    3. generic environment-facing
    4. generic user-facing

Candidates are tried strictly one at a time; opening several camera handles
concurrently is unsupported on most platforms.
"""

import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

logger = logging.getLogger(__name__)

_REAR_LABEL_HINTS = ("back", "rear", "environment")


# ── Candidate configurations ──────────────────────────────────────────────


class FacingMode(str, Enum):
    ENVIRONMENT = "environment"
    USER = "user"


@dataclass(frozen=True)
class DeviceDescriptor:
    id: str
    label: str


@dataclass(frozen=True)
class DeviceIdConfig:
    device_id: str


@dataclass(frozen=True)
class FacingModeConfig:
    facing_mode: FacingMode


CaptureConfig = DeviceIdConfig | FacingModeConfig


def build_candidate_configs(devices: Sequence[DeviceDescriptor]) -> list[CaptureConfig]:
    """Build the ordered fallback list for one acquisition attempt."""
    configs: list[CaptureConfig] = []

    rear = next(
        (
            d for d in devices
            if any(hint in (d.label or "").lower() for hint in _REAR_LABEL_HINTS)
        ),
        None,
    )
    if rear is not None:
        configs.append(DeviceIdConfig(rear.id))

    if devices:
        configs.append(DeviceIdConfig(devices[0].id))

    configs.append(FacingModeConfig(FacingMode.ENVIRONMENT))
    configs.append(FacingModeConfig(FacingMode.USER))
    return configs


# ── Errors ────────────────────────────────────────────────────────────────


class DeviceBindError(Exception):
    """A single candidate configuration could not be bound."""


class AcquisitionErrorCategory(str, Enum):
    PERMISSION_DENIED = "permission_denied"
    NO_DEVICE_FOUND = "no_device_found"
    INSECURE_CONTEXT = "insecure_context"
    UNKNOWN = "unknown"


_CATEGORY_MESSAGES = {
    AcquisitionErrorCategory.PERMISSION_DENIED: (
        "Camera permission denied. Please allow camera access and try again."
    ),
    AcquisitionErrorCategory.NO_DEVICE_FOUND: (
        "No camera found. Please ensure a camera is connected."
    ),
    AcquisitionErrorCategory.INSECURE_CONTEXT: (
        "Camera access requires HTTPS. Please use a secure connection."
    ),
}


def classify_acquisition_error(exc: BaseException | None) -> AcquisitionErrorCategory:
    """Bucket an opaque capture error for display, by type name and message."""
    if exc is None:
        return AcquisitionErrorCategory.UNKNOWN

    name = type(exc).__name__
    message = str(exc)

    if name in ("NotAllowedError", "PermissionError") or "permission" in message.lower():
        return AcquisitionErrorCategory.PERMISSION_DENIED
    if name == "NotFoundError" or "no camera" in message.lower():
        return AcquisitionErrorCategory.NO_DEVICE_FOUND
    if "HTTPS" in message or "secure context" in message:
        return AcquisitionErrorCategory.INSECURE_CONTEXT
    return AcquisitionErrorCategory.UNKNOWN


class CameraAcquisitionError(Exception):
    """Every candidate configuration failed."""

    def __init__(self, cause: BaseException):
        super().__init__(str(cause) or type(cause).__name__)
        self.cause = cause
        self.category = classify_acquisition_error(cause)


def describe_acquisition_error(exc: BaseException) -> str:
    """User-facing message for a failed acquisition."""
    cause = exc.cause if isinstance(exc, CameraAcquisitionError) else exc
    category = classify_acquisition_error(cause)

    message = "Failed to start camera. "
    if category in _CATEGORY_MESSAGES:
        return message + _CATEGORY_MESSAGES[category]

    detail = str(cause) or type(cause).__name__
    return message + f"Error: {detail}. Please check camera permissions."


# ── Capture backend contract ──────────────────────────────────────────────

FrameCallback = Callable[[str], Awaitable[None]]
FrameErrorCallback = Callable[[str], None]


class CaptureBackend(Protocol):
    """The opaque capture/decode capability a session drives.

    ``bind`` and ``begin_decoding`` raise on failure; ``on_success`` may be
    awaited many times per second once decoding has begun, and ``release``
    may be called from inside ``on_success``.
    """

    async def enumerate_devices(self) -> list[DeviceDescriptor]: ...

    async def bind(self, config: CaptureConfig) -> None: ...

    async def begin_decoding(
        self, on_success: FrameCallback, on_frame_error: FrameErrorCallback
    ) -> None: ...

    async def release(self) -> None: ...


# ── Session ───────────────────────────────────────────────────────────────


class SessionState(str, Enum):
    IDLE = "idle"
    STARTING = "starting"
    BOUND = "bound"
    DELIVERED = "delivered"


DeliveryCallback = Callable[[str], Awaitable[None]]


class AcquisitionSession:
    """One camera acquisition lifecycle.

        IDLE → STARTING → BOUND → DELIVERED
          ↑        │         │         │
          └────────┴─ stop() ┴─────────┘

    The session exclusively owns the backend binding. Only the first decoded
    text while BOUND reaches ``on_delivery``; decodes in any other state are
    discarded, which is what makes the delivery latch hold.
    """

    def __init__(self, backend: CaptureBackend, on_delivery: DeliveryCallback | None = None):
        self._backend = backend
        self._on_delivery = on_delivery
        self._bound = False
        self.state = SessionState.IDLE
        self.has_delivered = False

    @property
    def is_scanning(self) -> bool:
        return self.state in (SessionState.STARTING, SessionState.BOUND)

    async def start(self) -> CaptureConfig | None:
        """Bind the first working candidate and begin decoding.

        Returns the configuration that succeeded, or None if stop() was
        called before a candidate finished binding. Raises CameraAcquisitionError
        when every candidate fails.
        """
        self.state = SessionState.STARTING
        self.has_delivered = False

        try:
            devices = await self._backend.enumerate_devices()
            logger.info("Available cameras: %s", devices)
        except Exception:
            logger.warning("Could not enumerate cameras", exc_info=True)
            devices = []

        last_error: Exception | None = None
        for config in build_candidate_configs(devices):
            if self.state is not SessionState.STARTING:
                logger.info("Scanner stopped while starting")
                return None

            logger.info("Trying camera config: %s", config)
            self._bound = True
            try:
                await self._backend.bind(config)
                if self.state is not SessionState.STARTING:
                    # stop() ran while bind() was suspended; its release came
                    # before the handle existed
                    logger.info("Scanner stopped while starting")
                    await self._discard_attempt()
                    return None
                await self._backend.begin_decoding(self._on_decoded, self._on_frame_error)
            except Exception as exc:
                logger.info("Camera config failed: %s (%s)", config, exc)
                last_error = exc
                await self._discard_attempt()
                continue

            if self.state is not SessionState.STARTING:
                logger.info("Scanner stopped while starting")
                await self._discard_attempt()
                return None

            self.state = SessionState.BOUND
            logger.info("Camera started successfully with %s", config)
            return config

        if self.state is not SessionState.STARTING:
            logger.info("Scanner stopped while starting")
            return None

        self.state = SessionState.IDLE
        raise CameraAcquisitionError(
            last_error or DeviceBindError("All camera configurations failed")
        )

    async def stop(self) -> None:
        """Release the bound device and return to IDLE. Never raises."""
        await self._release()
        self.state = SessionState.IDLE

    async def _release(self) -> None:
        if not self._bound:
            return
        self._bound = False
        try:
            await self._backend.release()
        except Exception:
            logger.error("Error stopping scanner", exc_info=True)

    async def _discard_attempt(self) -> None:
        """Release whatever the current attempt bound, even after a stop()."""
        self._bound = False
        try:
            await self._backend.release()
        except Exception:
            logger.debug("Ignoring release error after failed attempt", exc_info=True)

    async def _on_decoded(self, text: str) -> None:
        if self.state is not SessionState.BOUND:
            return
        self.state = SessionState.DELIVERED
        self.has_delivered = True
        logger.info("QR code scanned: %s", text)

        await self._release()

        if self._on_delivery is not None:
            await self._on_delivery(text)

    def _on_frame_error(self, message: str) -> None:
        # Frames without a readable code are expected noise
        pass
