from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse

from app.routers.decode import build_decode_result
from app.schemas.schemas import AcquisitionErrorOut, ScannerStartResult, ScannerStatusOut, ScanResultOut
from app.services.camera_acquirer import CameraAcquisitionError, describe_acquisition_error
from app.services.scanner_service import ScannerBusyError, ScannerService, ScannerUnavailableError

router = APIRouter(prefix="/api/scanner", tags=["scanner"])


def get_scanner(request: Request) -> ScannerService:
    return request.app.state.scanner


@router.post(
    "/start",
    response_model=ScannerStartResult,
    responses={503: {"model": AcquisitionErrorOut}},
)
async def start_scanner(scanner: ScannerService = Depends(get_scanner)):
    """Acquire a camera and start waiting for one QR code."""
    try:
        config = await scanner.start()
    except ScannerUnavailableError as exc:
        raise HTTPException(status_code=503, detail=str(exc))
    except ScannerBusyError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    except CameraAcquisitionError as exc:
        return JSONResponse(
            status_code=503,
            content=AcquisitionErrorOut(
                detail=describe_acquisition_error(exc),
                category=exc.category,
            ).model_dump(mode="json"),
        )

    return ScannerStartResult(started=config is not None, config=repr(config) if config else None)


@router.post("/stop", response_model=ScannerStatusOut)
async def stop_scanner(scanner: ScannerService = Depends(get_scanner)):
    await scanner.stop()
    return _status(scanner)


@router.post("/reset", response_model=ScannerStatusOut)
async def reset_scanner(scanner: ScannerService = Depends(get_scanner)):
    """Scan More: drop the shown result and return to idle."""
    await scanner.reset()
    return _status(scanner)


@router.get("/status", response_model=ScannerStatusOut)
def scanner_status(scanner: ScannerService = Depends(get_scanner)):
    return _status(scanner)


@router.get("/result", response_model=ScanResultOut)
def scanner_result(scanner: ScannerService = Depends(get_scanner)):
    result = scanner.latest_result()
    if result is None:
        raise HTTPException(status_code=404, detail="No scan result available")

    decoded = build_decode_result(result.record, result.status)
    return ScanResultOut(**decoded.model_dump(), scanned_at=result.scanned_at)


def _status(scanner: ScannerService) -> ScannerStatusOut:
    session = scanner.session
    if session is None:
        return ScannerStatusOut(available=False)
    return ScannerStatusOut(
        available=True,
        state=session.state,
        is_scanning=session.is_scanning,
        has_delivered=session.has_delivered,
        has_result=scanner.latest_result() is not None,
        error=scanner.last_error,
    )
