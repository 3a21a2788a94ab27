from fastapi import APIRouter, HTTPException, Query

from app.core.config import settings
from app.schemas.schemas import DecodeRequest, DecodeResult, ManufacturerOut
from app.services.qr_decoder import DecodedRecord, FreshnessStatus, InvalidInputError, decode_and_classify

router = APIRouter(prefix="/api/decode", tags=["decode"])

INVALID_ENTRY_MESSAGE = "Invalid QR code data. Please try again."


def manufacturer_info() -> ManufacturerOut:
    return ManufacturerOut(
        name=settings.MANUFACTURER_NAME,
        address=settings.MANUFACTURER_ADDRESS,
        city=settings.MANUFACTURER_CITY,
    )


def build_decode_result(record: DecodedRecord, status: FreshnessStatus) -> DecodeResult:
    return DecodeResult(
        reference_number=record.reference_number,
        best_before_date=record.best_before_date,
        best_before_label=record.best_before_label,
        product_code=record.product_code,
        raw_input=record.raw_input,
        status=status,
        manufacturer=manufacturer_info(),
    )


def _decode_or_422(raw: str) -> DecodeResult:
    try:
        record, status = decode_and_classify(raw)
    except InvalidInputError:
        raise HTTPException(status_code=422, detail=INVALID_ENTRY_MESSAGE)
    return build_decode_result(record, status)


@router.post("", response_model=DecodeResult)
def decode_entry(body: DecodeRequest):
    """
    Manual entry: decode an identifier typed into the reference field.

    Entries outside ENTRY_MIN_LENGTH..ENTRY_MAX_LENGTH are rejected here,
    before decoding; the decoder itself accepts anything 13+ characters long.
    """
    qr_data = body.qr_data.strip()
    if not settings.ENTRY_MIN_LENGTH <= len(qr_data) <= settings.ENTRY_MAX_LENGTH:
        raise HTTPException(status_code=422, detail=INVALID_ENTRY_MESSAGE)
    return _decode_or_422(qr_data)


@router.get("", response_model=DecodeResult)
def decode_query(qr: str = Query(..., min_length=1)):
    """Decode an identifier passed as ?qr=... (e.g. a link embedded in the QR code)."""
    return _decode_or_422(qr)
