from __future__ import annotations

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

MAX_RESET_INTERVAL_SECONDS = 60.0
MAX_REMINDER_INTERVAL_SECONDS = 30.0


class Settings(BaseSettings):
    api_base_url: str = Field("", alias="API_BASE_URL")
    user_id: str = Field("default", alias="HABIT_USER_ID")
    backend_token: str | None = Field(None, alias="BACKEND_SESSION_SECRET")

    reference_timezone: str = Field("Asia/Kolkata", alias="REFERENCE_TIMEZONE")
    local_store_url: str = Field("sqlite:///habit_engine.db", alias="LOCAL_STORE_URL")

    reset_interval_seconds: float = Field(MAX_RESET_INTERVAL_SECONDS, alias="RESET_INTERVAL_SECONDS")
    reminder_interval_seconds: float = Field(MAX_REMINDER_INTERVAL_SECONDS, alias="REMINDER_INTERVAL_SECONDS")
    sync_debounce_seconds: float = Field(0.5, alias="SYNC_DEBOUNCE_SECONDS")
    remote_timeout_seconds: float | None = Field(None, alias="REMOTE_TIMEOUT_SECONDS")

    notifications_enabled: bool = Field(True, alias="NOTIFICATIONS_ENABLED")
    log_level: str = Field("INFO", alias="HABIT_LOG_LEVEL")

    model_config = SettingsConfigDict(env_file=".env", extra="ignore", populate_by_name=True)

    @field_validator("reset_interval_seconds")
    @classmethod
    def _reset_interval_bound(cls, value: float) -> float:
        if value <= 0 or value > MAX_RESET_INTERVAL_SECONDS:
            raise ValueError(f"reset interval must be in (0, {MAX_RESET_INTERVAL_SECONDS}] seconds")
        return value

    @field_validator("reminder_interval_seconds")
    @classmethod
    def _reminder_interval_bound(cls, value: float) -> float:
        if value <= 0 or value > MAX_REMINDER_INTERVAL_SECONDS:
            raise ValueError(f"reminder interval must be in (0, {MAX_REMINDER_INTERVAL_SECONDS}] seconds")
        return value

    @field_validator("sync_debounce_seconds")
    @classmethod
    def _debounce_positive(cls, value: float) -> float:
        if value < 0:
            raise ValueError("debounce must not be negative")
        return value

    @property
    def sync_enabled(self) -> bool:
        return bool(self.api_base_url.strip())


_settings: Settings | None = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
