"""Environment-driven configuration for the helpdesk service.

``AppSettings`` centralises every environment variable the service reads. The
values are loaded once (``get_settings`` is cached) and importing ``settings``
anywhere gives the same object.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """Environment-driven application configuration."""

    model_config = SettingsConfigDict(
        env_file=(".env", ".env.local"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    APP_NAME: str = "Helpdesk"
    APP_ENV: str = "dev"

    BASE_DIR: Path = Field(default_factory=lambda: Path(__file__).resolve().parents[2])
    DATA_DIR: Path = Field(default_factory=lambda: Path(__file__).resolve().parents[2] / "data")

    DB_URL: str | None = Field(
        default=None,
        validation_alias=AliasChoices("DB_URL", "DATABASE_URL"),
    )

    # ---- Sessions
    # The raw token travels in this header (or the cookie below); only its
    # hash is ever stored.
    SESSION_TOKEN_HEADER: str = "HELPDESK-SESSION-TOKEN"
    SESSION_COOKIE_NAME: str = "helpdesk_session"
    SESSION_TTL_DAYS: int = 30
    SESSION_TOKEN_BYTES: int = 16

    BCRYPT_ROUNDS: int = 12

    LOG_LEVEL: str = "INFO"
    METRICS_ENABLED: bool = True

    HOST: str = "0.0.0.0"
    PORT: int = 8089

    @property
    def database_url(self) -> str:
        return self.DB_URL or f"sqlite:///{self.DATA_DIR / 'helpdesk.db'}"

    @property
    def session_max_age(self) -> int:
        return self.SESSION_TTL_DAYS * 24 * 60 * 60

    @field_validator("SESSION_TOKEN_BYTES")
    @classmethod
    def check_token_entropy(cls, value: int) -> int:
        if value < 8:
            raise ValueError("SESSION_TOKEN_BYTES must be at least 8")
        return value

    @field_validator("BCRYPT_ROUNDS")
    @classmethod
    def check_bcrypt_rounds(cls, value: int) -> int:
        if not 4 <= value <= 31:
            raise ValueError("BCRYPT_ROUNDS must be between 4 and 31")
        return value

    @field_validator("LOG_LEVEL")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        return (value or "INFO").strip().upper()


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    settings = AppSettings()
    settings.DATA_DIR.mkdir(parents=True, exist_ok=True)
    return settings


settings = get_settings()
