# backend/roombooking/config.py

from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parents[2]  # repository root


class Settings(BaseSettings):
    database_url: str = "sqlite:///./data/roombooking.db"
    redis_url: Optional[str] = None

    # Business rules
    business_utc_offset_hours: int = 8
    default_open_time: str = "08:00"
    default_close_time: str = "22:00"
    max_booking_hours: int = 8
    self_cancel_min_hours: int = 24

    # Storage
    db_statement_timeout_ms: int = 5000

    # Admin panel
    admin_password: Optional[str] = None
    admin_session_max_age: int = 86400
    cron_secret: Optional[str] = None

    # LINE Messaging API
    line_channel_access_token: Optional[str] = None
    line_group_id: Optional[str] = None
    line_timeout_seconds: float = 10.0

    # Reminder loop
    reminder_loop_enabled: bool = False
    reminder_hour: int = 20

    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        extra="ignore",
    )

    @property
    def resolved_database_url(self) -> str:
        url = self.database_url
        if url.startswith("sqlite:///./"):
            # relative sqlite path -> absolute, anchored at the repo root
            relative_path = url.replace("sqlite:///./", "")
            absolute_path = BASE_DIR / relative_path
            return f"sqlite:///{absolute_path}"
        return url

    @property
    def line_configured(self) -> bool:
        return bool(self.line_channel_access_token and self.line_group_id)


settings = Settings()
