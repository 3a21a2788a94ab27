from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # CORS
    CORS_ORIGINS: str = "http://localhost:5173"

    LOG_LEVEL: str = "INFO"

    # Manual entry length gate (presentation policy, not a decoder rule)
    ENTRY_MIN_LENGTH: int = 21
    ENTRY_MAX_LENGTH: int = 25

    # Camera capture
    CAMERA_BACKEND: str = "opencv"  # "opencv" or "none"
    CAMERA_MAX_INDEX: int = 4  # OpenCV indices probed during enumeration
    SCAN_FPS: int = 10

    # A scanned result is shown for this long before the kiosk resets
    RESULT_TTL_SECONDS: int = 180

    # Manufacturer block shown alongside every result
    MANUFACTURER_NAME: str = "Edesia Nutrition"
    MANUFACTURER_ADDRESS: str = "550 Romano Vineyard Way"
    MANUFACTURER_CITY: str = "North Kingstown, RI 02852"

    # Server
    PORT: int = 8000

    class Config:
        env_file = ".env"


settings = Settings()
