# finance_tracker/core/config.py

import os
import logging
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_DATABASE_URL = "sqlite:///./finance_tracker.db"


def _to_int(value: Optional[str], fallback: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return fallback


def _to_bool(value: Optional[str], fallback: bool) -> bool:
    if value is None:
        return fallback
    return value.strip().lower() in ("true", "1")


@dataclass(frozen=True)
class SmtpSettings:
    host: Optional[str] = None
    port: int = 587
    secure: bool = False
    user: Optional[str] = None
    password: Optional[str] = None
    sender: Optional[str] = None

    @property
    def is_configured(self) -> bool:
        return bool(self.host and self.user and self.password and self.sender)


@dataclass(frozen=True)
class Settings:
    """
    Application settings, read once from the environment at startup and passed
    explicitly to the app factory and services.
    """
    environment: str = "development"
    port: int = 3333
    database_url: str = DEFAULT_DATABASE_URL
    jwt_secret: str = "change-this-jwt-secret"
    jwt_expires_days: int = 7
    frontend_url: str = "http://localhost:5173"
    login_token_ttl_minutes: int = 10
    login_token_length: int = 6
    login_token_dev_expose: bool = True
    smtp: SmtpSettings = field(default_factory=SmtpSettings)

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def expose_login_token(self) -> bool:
        # Test-only escape hatch: the raw code goes back in the response body.
        return self.login_token_dev_expose and not self.is_production

    @classmethod
    def from_env(cls, load_env_file: bool = True) -> "Settings":
        if load_env_file:
            load_dotenv()

        database_url = os.getenv("DATABASE_URL") or DEFAULT_DATABASE_URL
        if database_url.startswith("postgres://"):
            database_url = database_url.replace("postgres://", "postgresql://", 1)

        if not os.getenv("DATABASE_URL"):
            logger.warning(f"DATABASE_URL not defined, using SQLite database at {database_url}.")

        smtp = SmtpSettings(
            host=os.getenv("SMTP_HOST") or None,
            port=_to_int(os.getenv("SMTP_PORT"), 587),
            secure=_to_bool(os.getenv("SMTP_SECURE"), False),
            user=os.getenv("SMTP_USER") or None,
            password=os.getenv("SMTP_PASS") or None,
            sender=os.getenv("SMTP_FROM") or None,
        )

        return cls(
            environment=os.getenv("APP_ENV", "development"),
            port=_to_int(os.getenv("PORT"), 3333),
            database_url=database_url,
            jwt_secret=os.getenv("JWT_SECRET", "change-this-jwt-secret"),
            jwt_expires_days=_to_int(os.getenv("JWT_EXPIRES_DAYS"), 7),
            frontend_url=os.getenv("FRONTEND_URL", "http://localhost:5173"),
            login_token_ttl_minutes=_to_int(os.getenv("LOGIN_TOKEN_TTL_MINUTES"), 10),
            login_token_length=_to_int(os.getenv("LOGIN_TOKEN_LENGTH"), 6),
            login_token_dev_expose=_to_bool(os.getenv("LOGIN_TOKEN_DEV_EXPOSE"), True),
            smtp=smtp,
        )
