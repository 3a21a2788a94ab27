from datetime import date

from pydantic import BaseModel

from app.services.camera_acquirer import AcquisitionErrorCategory, SessionState
from app.services.qr_decoder import FreshnessStatus


# ── Decode ─────────────────────────────────────────────────────────────────


class DecodeRequest(BaseModel):
    qr_data: str


class ManufacturerOut(BaseModel):
    name: str
    address: str
    city: str


class DecodeResult(BaseModel):
    reference_number: str
    best_before_date: date | None = None
    best_before_label: str | None = None
    product_code: str
    raw_input: str
    status: FreshnessStatus
    manufacturer: ManufacturerOut

    class Config:
        from_attributes = True


# ── Scanner ────────────────────────────────────────────────────────────────


class ScannerStartResult(BaseModel):
    started: bool
    config: str | None = None


class ScannerStatusOut(BaseModel):
    available: bool
    state: SessionState | None = None
    is_scanning: bool = False
    has_delivered: bool = False
    has_result: bool = False
    error: str | None = None


class ScanResultOut(DecodeResult):
    scanned_at: float


class AcquisitionErrorOut(BaseModel):
    detail: str
    category: AcquisitionErrorCategory
