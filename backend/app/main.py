import json
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from app.core.config import settings
from app.routers import decode, scanner
from app.services.camera_acquirer import CaptureBackend
from app.services.scanner_service import ScannerService

# ── Structured JSON logging ──────────────────────────────────────────────

logger = logging.getLogger("qrtracker")


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        log = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info and record.exc_info[0]:
            log["exception"] = self.formatException(record.exc_info)
        return json.dumps(log)


def configure_logging() -> None:
    handler = logging.StreamHandler()
    handler.setFormatter(JSONFormatter())
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(settings.LOG_LEVEL.upper())
    # Reduce noise from third-party libs
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


configure_logging()


# ── Middleware ────────────────────────────────────────────────────────────


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses."""

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        return response


# ── Scanner wiring ────────────────────────────────────────────────────────


def build_capture_backend() -> CaptureBackend | None:
    if settings.CAMERA_BACKEND == "none":
        return None
    if settings.CAMERA_BACKEND == "opencv":
        from app.services.opencv_backend import OpenCVCaptureBackend
        return OpenCVCaptureBackend(max_index=settings.CAMERA_MAX_INDEX, fps=settings.SCAN_FPS)
    logger.warning("Unknown CAMERA_BACKEND %r; scanner disabled", settings.CAMERA_BACKEND)
    return None


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    await app.state.scanner.stop()


# ── App setup ─────────────────────────────────────────────────────────────

app = FastAPI(title="QR Freshness Tracker", version="1.0.0", lifespan=lifespan)
app.state.scanner = ScannerService(build_capture_backend())

app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.CORS_ORIGINS.split(",")],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(decode.router)
app.include_router(scanner.router)


@app.get("/api/health")
def health():
    checks: dict = {}

    service: ScannerService = app.state.scanner
    if service.available:
        checks["scanner"] = service.session.state.value
    else:
        checks["scanner"] = "disabled"

    return {"status": "ok", "checks": checks}
