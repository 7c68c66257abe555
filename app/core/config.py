from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Resolve .env from backend project root so it loads regardless of cwd
_BACKEND_ROOT = Path(__file__).resolve().parent.parent.parent
_ENV_FILE = _BACKEND_ROOT / ".env"

# Weekday keys use 0=Sunday..6=Saturday. Values are "HH:MM-HH:MM" or "closed".
DEFAULT_BUSINESS_HOURS: dict[str, str] = {
    "0": "08:00-19:00",
    "1": "08:00-19:00",
    "2": "08:00-19:00",
    "3": "08:00-19:00",
    "4": "08:00-19:00",
    "5": "08:00-17:00",
    "6": "closed",
}


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=(str(_ENV_FILE), ".env", "../.env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_url: str = "sqlite+aiosqlite:///./aroof.db"
    auto_create_tables: bool = False

    # JWT (staff dashboard)
    secret_key: str
    access_token_expire_minutes: int = 60
    algorithm: str = "HS256"

    # CORS
    cors_origins: str = "http://localhost:5173"

    # Scheduling policy
    business_hours: dict[str, str] = DEFAULT_BUSINESS_HOURS
    business_timezone: str = "America/Chicago"
    # Slots must land on the hour or half hour
    slot_step_minutes: int = Field(default=30, gt=0, multiple_of=30)
    appointment_duration_minutes: int = 60
    max_appointments_per_day: int = 20
    limited_availability_threshold: int = 15  # display hint only
    booking_horizon_days: int = 30
    special_requests_max_length: int = 1000

    # Review-time estimate (advisory only)
    estimate_unit_rate: float = 4.0

    # Env
    env: str = "development"

    # Email (SMTP). Leave smtp_host empty to disable sending.
    smtp_host: str = ""
    smtp_port: int = 587
    smtp_user: str = ""
    smtp_password: str = ""
    from_email: str = ""
    from_name: str = "Aroof"
    # Internal inbox for new-appointment alerts
    ops_email: str = "appointments@aroof.build"
    email_logo_url: str = ""
    public_site_url: str = "https://aroof.build"
    # Branding and contact in footer
    site_name: str = "Aroof"
    contact_email: str = "info@aroof.build"
    contact_phone: str = "(214) 555-0123"
    contact_address: str = "Dallas, Texas"

    @property
    def cors_origins_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def email_enabled(self) -> bool:
        return bool(self.smtp_host and self.smtp_user and self.smtp_password and self.from_email)


settings = Settings()
