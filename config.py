"""Environment-driven settings for the appointments API."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    log_level: str = "INFO"
    database_path: str = "appointments.db"

    # Supabase takes over storage when both values are present.
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None

    sendgrid_api_key: Optional[str] = None
    sender_email: Optional[str] = None
    email_sandbox_mode: bool = False

    public_base_url: str = "http://localhost:8080"
    rate_limit_enabled: bool = True
    booking_rate_limit: str = "10/minute"
    port: int = 8080

    @property
    def supabase_enabled(self) -> bool:
        return bool(self.supabase_url and self.supabase_key)

    @property
    def mail_enabled(self) -> bool:
        return bool(self.sendgrid_api_key and self.sender_email)


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in _TRUTHY


def _resolve_port() -> int:
    raw_value = os.getenv("PORT", "8080")
    try:
        port = int(raw_value)
        if not 0 < port < 65536:
            raise ValueError
        return port
    except ValueError:
        logger.warning("Invalid PORT=%s; defaulting to 8080", raw_value)
        return 8080


def load_settings(dotenv_path: str | None = None) -> Settings:
    load_dotenv(dotenv_path=dotenv_path, override=False)

    return Settings(
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        database_path=os.getenv("DATABASE_PATH", "appointments.db"),
        supabase_url=os.getenv("SUPABASE_URL") or None,
        supabase_key=os.getenv("SUPABASE_SERVICE_ROLE_KEY") or None,
        sendgrid_api_key=os.getenv("SENDGRID_API_KEY") or None,
        sender_email=os.getenv("SENDGRID_SENDER_EMAIL") or None,
        email_sandbox_mode=_flag("EMAIL_SANDBOX_MODE", "false"),
        public_base_url=os.getenv("PUBLIC_BASE_URL", "http://localhost:8080").rstrip("/"),
        rate_limit_enabled=_flag("RATE_LIMIT_ENABLED", "true"),
        booking_rate_limit=os.getenv("BOOKING_RATE_LIMIT", "10/minute"),
        port=_resolve_port(),
    )
