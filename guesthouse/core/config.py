import os
from decimal import Decimal

from dotenv import load_dotenv
from pydantic import BaseModel

# Load variables from .env
load_dotenv()


class Settings(BaseModel):
    app_name: str = "Guesthouse Booking API"
    database_url: str = "sqlite+aiosqlite:///./guesthouse.db"

    # CORS: comma-separated list of allowed origins, "*" for any
    cors_allow_origins: list[str] = ["*"]

    # Booking rules
    tax_rate: Decimal = Decimal("0.18")
    max_nights: int = 30
    max_guests: int = 8
    catalog_limit: int = 25
    booking_id_prefix: str = "GC"

    # Rate limiting settings
    rate_limit_enabled: bool = True  # Killswitch for quick disable
    rate_limit_booking: str = "8/minute"  # Sliding window per client IP

    # Admin API (bearer token, empty = admin routes disabled)
    admin_api_token: str = ""

    # Logging settings
    log_level: str = "INFO"
    log_format: str = "console"  # Options: "console", "json"
    log_slow_request_threshold_ms: int = 500  # Log timing only if duration > threshold


def _split_origins(raw: str) -> list[str]:
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


def load_settings() -> Settings:
    return Settings(
        database_url=os.environ.get(
            "DATABASE_URL", "sqlite+aiosqlite:///./guesthouse.db"
        ),
        cors_allow_origins=_split_origins(os.environ.get("CORS_ALLOW_ORIGINS", "*")),
        tax_rate=Decimal(os.environ.get("TAX_RATE", "0.18")),
        max_nights=int(os.environ.get("MAX_NIGHTS", "30")),
        max_guests=int(os.environ.get("MAX_GUESTS", "8")),
        catalog_limit=int(os.environ.get("CATALOG_LIMIT", "25")),
        booking_id_prefix=os.environ.get("BOOKING_ID_PREFIX", "GC"),
        rate_limit_enabled=os.environ.get("RATE_LIMIT_ENABLED", "true").lower()
        == "true",
        rate_limit_booking=os.environ.get("RATE_LIMIT_BOOKING", "8/minute"),
        admin_api_token=os.environ.get("ADMIN_API_TOKEN", ""),
        log_level=os.environ.get("LOG_LEVEL", "INFO"),
        log_format=os.environ.get("LOG_FORMAT", "console"),
        log_slow_request_threshold_ms=int(
            os.environ.get("LOG_SLOW_REQUEST_THRESHOLD_MS", "500")
        ),
    )


settings = load_settings()
