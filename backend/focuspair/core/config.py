# backend/focuspair/core/config.py
import logging
import os
from pathlib import Path
from typing import Literal, Optional

from dotenv import load_dotenv
from pydantic import AliasChoices, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


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
    logger.debug(f"[CONFIG] Looking for .env at: {env_path}")
    load_dotenv(env_path)


PROD_SITE_MODES = {"prod", "production", "beta", "live"}


def _environment_from_site_mode() -> str:
    site_mode = (os.getenv("SITE_MODE", "local") or "").strip().lower()
    return "production" if site_mode in PROD_SITE_MODES else "development"


class Settings(BaseSettings):
    # Identity tokens are issued by the external identity service and share this secret
    secret_key: SecretStr = Field(
        default=SecretStr("dev-secret-key-change-me"),
        description="Secret key used to verify bearer tokens",
    )
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 720  # 12 hours

    # Shared secret presented by the trusted scheduler on sweep endpoints
    cron_secret: SecretStr = Field(
        default=SecretStr(""),
        validation_alias=AliasChoices("CRON_SECRET", "cron_secret"),
        description="Bearer secret for internal sweep endpoints (empty disables them)",
    )

    database_url: str = Field(
        default="sqlite:///./focuspair.db",
        validation_alias=AliasChoices("DATABASE_URL", "database_url"),
        description="SQLAlchemy URL of the session store",
    )
    database_echo: bool = False

    redis_url: str = Field(
        default="redis://localhost:6379/0",
        validation_alias=AliasChoices("REDIS_URL", "redis_url"),
    )
    celery_broker_url: Optional[str] = Field(default=None, alias="CELERY_BROKER_URL")
    celery_result_backend: Optional[str] = Field(default=None, alias="CELERY_RESULT_BACKEND")
    celery_task_always_eager: bool = False

    # Environment (derived from SITE_MODE)
    environment: str = Field(default_factory=_environment_from_site_mode)
    is_testing: bool = False  # Set to True when running tests
    log_level: str = "INFO"

    # Email settings
    email_provider: Literal["console", "resend"] = Field(
        default="console",
        alias="EMAIL_PROVIDER",
        description="Email provider name",
    )
    resend_api_key: str | None = Field(
        default=None,
        alias="RESEND_API_KEY",
        description="API key for Resend provider (optional)",
    )
    from_email: str = "FocusPair <sessions@focuspair.app>"
    frontend_url: str = "http://localhost:3000"

    # Monitoring
    sentry_dsn: Optional[str] = Field(default=None, alias="SENTRY_DSN")
    prometheus_enabled: bool = True

    # Sweep cadence
    match_sweep_interval_seconds: int = Field(default=60, ge=5)
    no_show_sweep_interval_seconds: int = Field(default=60, ge=5)
    reminder_sweep_interval_seconds: int = Field(default=300, ge=30)
    orphan_sweep_interval_seconds: int = Field(default=3600, ge=60)
    reminder_lead_minutes: int = Field(default=15, ge=1, le=120)

    model_config = SettingsConfigDict(
        env_file=".env" if not os.getenv("CI") else None,
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        normalized = (value or "INFO").strip().upper()
        if normalized not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            logger.warning("Invalid LOG_LEVEL=%s; defaulting to INFO", value)
            return "INFO"
        return normalized

    @property
    def broker_url(self) -> str:
        """Celery broker, preferring an explicit CELERY_BROKER_URL over REDIS_URL."""
        return self.celery_broker_url or self.redis_url

    @property
    def result_backend(self) -> str:
        return self.celery_result_backend or self.broker_url

    def get_database_url(self) -> str:
        """Return the session store URL, forcing in-memory SQLite under pytest."""
        if self.is_testing or is_running_tests():
            return os.getenv("TEST_DATABASE_URL", "sqlite+pysqlite:///:memory:")
        return self.database_url


settings = Settings()
