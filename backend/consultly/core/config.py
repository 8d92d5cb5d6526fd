# backend/consultly/core/config.py
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import (
    CALENDAR_SYNC_WINDOW_DAYS,
    CALENDAR_TOKEN_REFRESH_MARGIN_MINUTES,
    DEFAULT_CURRENCY,
    DEFAULT_SERVICE_TIMEZONE,
    SLOT_INCREMENT_MINUTES,
)


def is_running_tests() -> bool:
    """
    Detect if code is running under pytest.

    PYTEST_CURRENT_TEST is set automatically by pytest during test runs, and is
    not expected to be present in production environments.
    """
    return os.getenv("PYTEST_CURRENT_TEST") is not None


logger = logging.getLogger(__name__)

# Load .env file only if not in CI
if not os.getenv("CI"):
    env_path = Path(__file__).parent.parent.parent / ".env"  # Goes up to backend/.env
    logger.info(f"[CONFIG] Looking for .env at: {env_path}")
    load_dotenv(env_path)


class Settings(BaseSettings):
    environment: str = Field(default="development", description="Deployment environment name")
    is_testing: bool = False  # Set to True when running tests

    secret_key: SecretStr = Field(
        default=SecretStr("dev-only-secret-key-change-me"),
        description="Secret key used to verify bearer tokens",
    )
    algorithm: str = "HS256"

    database_url: str = Field(
        default="sqlite:///./consultly.db",
        description="SQLAlchemy database URL",
    )
    database_echo: bool = Field(default=False, description="Echo SQL statements to the log")

    redis_url: str = Field(default="redis://localhost:6379", description="Celery broker URL")

    # Google Calendar
    google_client_id: str = Field(default="", description="Google OAuth client id")
    google_client_secret: SecretStr = Field(
        default=SecretStr(""), description="Google OAuth client secret"
    )
    google_redirect_uri: str = Field(
        default="http://localhost:8000/api/v1/calendar/callback",
        description="OAuth redirect URI registered with Google",
    )
    google_calendar_scope: str = Field(
        default="https://www.googleapis.com/auth/calendar.readonly",
        description="OAuth scope requested for busy-time sync",
    )
    google_calendar_fake: bool = Field(
        default=False,
        description="Use the in-memory calendar client instead of calling Google",
    )
    calendar_sync_window_days: int = Field(
        default=CALENDAR_SYNC_WINDOW_DAYS, description="Forward-looking busy sync window"
    )
    calendar_token_refresh_margin_minutes: int = Field(
        default=CALENDAR_TOKEN_REFRESH_MARGIN_MINUTES,
        description="Refresh access tokens this many minutes before expiry",
    )

    # Scheduling
    slot_increment_minutes: int = Field(
        default=SLOT_INCREMENT_MINUTES, description="Step between generated slot starts"
    )
    enforce_availability: bool = Field(
        default=True,
        description="Reject bookings whose start is not a generated slot",
    )

    # Stripe
    stripe_secret_key: SecretStr = Field(
        default=SecretStr(""),
        description="Stripe secret key for backend API calls",
    )
    stripe_webhook_secret: SecretStr = Field(
        default=SecretStr(""),
        description="Stripe webhook signing secret",
    )
    default_currency: str = Field(default=DEFAULT_CURRENCY, description="Fallback currency")
    service_timezone: str = Field(
        default=DEFAULT_SERVICE_TIMEZONE,
        description="Timezone all booking dates and times are expressed in",
    )

    model_config = SettingsConfigDict(
        env_file=".env" if not os.getenv("CI") else None,
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("slot_increment_minutes", "calendar_sync_window_days")
    @classmethod
    def _must_be_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("must be a positive integer")
        return v

    @property
    def is_production(self) -> bool:
        return self.environment.strip().lower() in {"prod", "production"}

    def get_database_url(self) -> str:
        """Get the database URL, honouring TEST_DATABASE_URL during tests."""
        test_url: Optional[str] = os.getenv("TEST_DATABASE_URL")
        if (self.is_testing or is_running_tests()) and test_url:
            return test_url
        return self.database_url


settings = Settings()
logger.info(
    "[CONFIG] environment=%s google_calendar_fake=%s",
    settings.environment,
    settings.google_calendar_fake,
)
