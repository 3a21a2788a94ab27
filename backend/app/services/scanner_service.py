"""
Kiosk scanner: one camera session feeding the decoder.

Holds the most recent scan result until it expires (RESULT_TTL_SECONDS) or is
reset, mirroring the kiosk's "Scan More" flow.
"""

import logging
import time
from dataclasses import dataclass

from app.core.config import settings
from app.services.camera_acquirer import AcquisitionSession, CaptureBackend, CaptureConfig
from app.services.qr_decoder import DecodedRecord, FreshnessStatus, InvalidInputError, decode_and_classify

logger = logging.getLogger(__name__)

INVALID_SCAN_MESSAGE = "Invalid QR code data. Please try again."


class ScannerUnavailableError(Exception):
    """No capture backend is configured."""


class ScannerBusyError(Exception):
    """A scan is already in progress."""


@dataclass(frozen=True)
class ScanResult:
    record: DecodedRecord
    status: FreshnessStatus
    scanned_at: float


class ScannerService:
    def __init__(self, backend: CaptureBackend | None, result_ttl: float | None = None):
        self._backend = backend
        self._result_ttl = settings.RESULT_TTL_SECONDS if result_ttl is None else result_ttl
        self._session = AcquisitionSession(backend, on_delivery=self._handle_delivery) if backend else None
        self._result: ScanResult | None = None
        self.last_error: str | None = None

    @property
    def available(self) -> bool:
        return self._session is not None

    @property
    def session(self) -> AcquisitionSession | None:
        return self._session

    async def start(self) -> CaptureConfig | None:
        if self._session is None:
            raise ScannerUnavailableError("No camera backend configured")
        if self._session.is_scanning:
            raise ScannerBusyError("Scanner is already running")

        self._result = None
        self.last_error = None
        return await self._session.start()

    async def stop(self) -> None:
        if self._session is not None:
            await self._session.stop()

    async def reset(self) -> None:
        """Clear the shown result and stop scanning."""
        await self.stop()
        self._result = None
        self.last_error = None

    def latest_result(self) -> ScanResult | None:
        if self._result is None:
            return None
        if time.time() - self._result.scanned_at >= self._result_ttl:
            logger.info("Scan result expired after %ss", self._result_ttl)
            self._result = None
        return self._result

    async def _handle_delivery(self, text: str) -> None:
        try:
            record, status = decode_and_classify(text)
        except InvalidInputError:
            logger.warning("Scanned QR data could not be decoded: %r", text)
            self.last_error = INVALID_SCAN_MESSAGE
            return
        self._result = ScanResult(record=record, status=status, scanned_at=time.time())
        logger.info("Scan decoded: reference=%s status=%s", record.reference_number, status.value)
