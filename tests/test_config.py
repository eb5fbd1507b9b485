from __future__ import annotations

import logging

import pytest
from fastapi.testclient import TestClient

from config import load_settings
from main import build_notification_service, build_store, create_app
from routes.booking_routes import configure_rate_limit, limiter
from services.appointments import SqliteAppointmentStore

_ENV_KEYS = (
    "SENDGRID_API_KEY",
    "SENDGRID_SENDER_EMAIL",
    "SUPABASE_URL",
    "SUPABASE_SERVICE_ROLE_KEY",
    "EMAIL_SANDBOX_MODE",
    "PUBLIC_BASE_URL",
    "PORT",
    "RATE_LIMIT_ENABLED",
    "BOOKING_RATE_LIMIT",
)


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    # Set then delete so values loaded from a .env file are undone too.
    for key in _ENV_KEYS:
        monkeypatch.setenv(key, "unset")
        monkeypatch.delenv(key)
    monkeypatch.setenv("DATABASE_PATH", str(tmp_path / "citas.db"))
    return str(tmp_path / "missing.env")


def test_defaults_without_environment(clean_env):
    settings = load_settings(clean_env)
    assert settings.mail_enabled is False
    assert settings.supabase_enabled is False
    assert settings.port == 8080


def test_flags_and_base_url_are_normalised(clean_env, monkeypatch):
    monkeypatch.setenv("EMAIL_SANDBOX_MODE", "Yes")
    monkeypatch.setenv("PUBLIC_BASE_URL", "https://citas.example.gob/")
    monkeypatch.setenv("PORT", "not-a-port")

    settings = load_settings(clean_env)
    assert settings.email_sandbox_mode is True
    assert settings.public_base_url == "https://citas.example.gob"
    assert settings.port == 8080


def test_missing_mail_credentials_warn_instead_of_failing(clean_env, caplog):
    settings = load_settings(clean_env)
    with caplog.at_level(logging.WARNING):
        assert build_notification_service(settings) is None
    assert "SENDGRID_API_KEY not provided" in caplog.text


def test_sqlite_store_is_the_default_backend(clean_env):
    store = build_store(load_settings(clean_env))
    try:
        assert isinstance(store, SqliteAppointmentStore)
    finally:
        store.close()


def test_booking_rate_limit_is_read_from_dotenv(clean_env, tmp_path, notifier, booking_fields):
    dotenv_file = tmp_path / ".env"
    dotenv_file.write_text("BOOKING_RATE_LIMIT=1/minute\n")

    settings = load_settings(str(dotenv_file))
    assert settings.booking_rate_limit == "1/minute"
    assert settings.rate_limit_enabled is True

    limiter.reset()
    try:
        app = create_app(settings, notification_service=notifier)
        with TestClient(app) as client:
            first = client.post("/confirmar-cita", data=booking_fields, follow_redirects=False)
            second = client.post("/confirmar-cita", data=booking_fields, follow_redirects=False)
    finally:
        limiter.reset()
        limiter.enabled = False
        configure_rate_limit("10/minute")

    assert first.status_code == 302
    assert second.status_code == 429
