import json
import re
from typing import Annotated, Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


DEFAULT_WORKING_HOURS: dict[str, dict[str, Any]] = {
    "monday": {"open": "09:00", "close": "18:00", "closed": False},
    "tuesday": {"open": "09:00", "close": "18:00", "closed": False},
    "wednesday": {"open": "09:00", "close": "18:00", "closed": False},
    "thursday": {"open": "09:00", "close": "18:00", "closed": False},
    "friday": {"open": "09:00", "close": "18:00", "closed": False},
    "saturday": {"open": "10:00", "close": "16:00", "closed": False},
    "sunday": {"open": "10:00", "close": "16:00", "closed": True},
}


def _parse_cors_origins(raw: Any) -> list[str]:
    if raw is None:
        return []
    if isinstance(raw, list):
        items = [str(v).strip() for v in raw]
        return [v for v in items if v]

    raw = str(raw).strip()
    if not raw or raw == "[]":
        return []
    if raw == "*":
        return ["*"]

    # JSON is the documented format; plain comma lists are tolerated.
    if raw.startswith("["):
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError:
            parsed = None
        if isinstance(parsed, list):
            items = [str(v).strip() for v in parsed]
            return [v for v in items if v]

    origins: list[str] = []
    for part in (p for p in re.split(r"[,\s]+", raw) if p):
        if part == "*":
            return ["*"]
        if "://" in part:
            origins.append(part)
        else:
            origins.append(f"https://{part}")
    return list(dict.fromkeys(origins))


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All settings can be configured via environment variables or .env file.
    """

    # Debug mode - enables detailed error responses
    debug: bool = False

    # Logging settings
    log_level: str = "INFO"
    log_format: str = "text"  # text | structured | json

    # Public booking admission gate
    booking_rate_limit_max_requests: int = 5
    booking_rate_limit_window_seconds: int = 15 * 60
    rate_limit_idle_seconds: int = 10 * 60  # Entries idle longer than this are swept
    rate_limit_sweep_interval_seconds: int = 10 * 60
    antispam_min_time_ms: int = 3000
    antispam_min_interactions: int = 2

    # Progressive tax on card income (Latvia, 2026)
    tax_threshold: float = 780.0  # Minimum wage
    tax_rate_low: float = 0.10
    tax_rate_high: float = 0.25

    # Storage backend
    storage_backend: str = "sheets"  # sheets | memory

    # Google Sheets settings
    google_sheets_spreadsheet_id: str = ""
    google_service_account_email: str = ""
    google_private_key: str = ""
    google_sheets_range: str = "Sheet1!A2:M"
    google_purchases_sheet: str = "Purchases"

    # HTTP client settings
    httpx_connect_timeout: float = 10.0
    httpx_read_timeout: float = 30.0
    httpx_write_timeout: float = 10.0
    httpx_pool_timeout: float = 5.0

    # Admin access
    admin_password: str = ""
    admin_session_max_age: int = 60 * 60 * 24 * 7  # 7 days
    cron_secret: str = ""

    # Email notifications (Gmail SMTP by default)
    email_user: str = ""
    email_pass: str = ""
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 465
    notification_email: str = ""

    # SMS notifications (Twilio)
    twilio_account_sid: str = ""
    twilio_auth_token: str = ""
    twilio_phone_number: str = ""
    twilio_api_base_url: str = "https://api.twilio.com/2010-04-01"
    sms_language: str = "ru"  # ru | lv
    sms_brand: str = "Colorlab.lv"

    # Schedule
    working_hours: dict[str, dict[str, Any]] = Field(
        default_factory=lambda: {k: dict(v) for k, v in DEFAULT_WORKING_HOURS.items()}
    )
    vacations: list[dict[str, Any]] = Field(default_factory=list)

    # CORS settings
    cors_origins: Annotated[list[str], NoDecode] = ["*"]

    @field_validator("cors_origins", mode="before")
    @classmethod
    def decode_cors_origins(cls, v: Any) -> list[str]:
        return _parse_cors_origins(v)

    @field_validator("google_private_key", mode="before")
    @classmethod
    def unescape_private_key(cls, v: Any) -> str:
        """Private keys pasted into env vars usually carry literal ``\\n``."""
        if v is None:
            return ""
        return str(v).replace("\\n", "\n")

    @field_validator(
        "booking_rate_limit_max_requests",
        "booking_rate_limit_window_seconds",
        "rate_limit_idle_seconds",
        "rate_limit_sweep_interval_seconds",
    )
    @classmethod
    def validate_rate_limit_positive(cls, v: int) -> int:
        """Validate rate limit values are positive."""
        if v < 1:
            raise ValueError("Rate limit values must be at least 1")
        return v

    @field_validator("antispam_min_time_ms", "antispam_min_interactions")
    @classmethod
    def validate_antispam_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("Anti-spam thresholds must not be negative")
        return v

    @field_validator("tax_rate_low", "tax_rate_high")
    @classmethod
    def validate_tax_rate(cls, v: float) -> float:
        """Validate tax rates are fractions."""
        if not 0 <= v <= 1:
            raise ValueError("Tax rates must be between 0 and 1")
        return v

    @field_validator("tax_threshold")
    @classmethod
    def validate_tax_threshold(cls, v: float) -> float:
        if v < 0:
            raise ValueError("tax_threshold must not be negative")
        return v

    @field_validator("storage_backend")
    @classmethod
    def validate_storage_backend(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in ("sheets", "memory"):
            raise ValueError("storage_backend must be 'sheets' or 'memory'")
        return v

    @field_validator("sms_language")
    @classmethod
    def validate_sms_language(cls, v: str) -> str:
        v = v.strip().lower()
        return v if v in ("ru", "lv") else "ru"

    @property
    def notification_recipient(self) -> str:
        return self.notification_email or self.email_user

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


# Global settings instance
settings = Settings()
