"""Shared test fixtures."""

from __future__ import annotations

from datetime import date
from typing import List

import pytest
from fastapi.testclient import TestClient

from config import Settings
from db.client import connect_sqlite
from main import create_app
from models.appointment import BookingForm
from services.appointments import SqliteAppointmentStore
from services.booking import BookingService
from services.notifications import NotificationMessage


class RecordingNotifier:
    """Collects messages instead of calling SendGrid."""

    def __init__(self, *, fail: bool = False) -> None:
        self.sent: List[NotificationMessage] = []
        self.fail = fail

    async def send_bulk(self, messages) -> None:
        messages = list(messages)
        if self.fail:
            raise RuntimeError("mail relay unavailable")
        self.sent.extend(messages)


@pytest.fixture
def booking_fields() -> dict:
    return {
        "tramite": "Renovación de pasaporte",
        "nombres": "María José",
        "apellidos": "Pérez Gómez",
        "correo_electronico": "maria@example.com",
        "cedula": "001-1234567-8",
        "direccion": "Calle 1 #23, Santo Domingo",
        "institucion": "Dirección General de Pasaportes",
        "telefono": "809-555-0101",
        "fecha_cita": "2025-03-15",
    }


@pytest.fixture
def booking_form(booking_fields) -> BookingForm:
    return BookingForm.model_validate(booking_fields)


@pytest.fixture
def store(tmp_path):
    store = SqliteAppointmentStore(connect_sqlite(str(tmp_path / "appointments.db")))
    yield store
    store.close()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def booking_service(store, notifier) -> BookingService:
    return BookingService(store, notifier, public_base_url="http://testserver")


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        database_path=str(tmp_path / "app.db"),
        public_base_url="http://testserver",
        rate_limit_enabled=False,
    )


@pytest.fixture
def client(settings, notifier):
    app = create_app(settings, notification_service=notifier)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def fixed_today(monkeypatch):
    """Pin the scheduling clock to 2025-03-01."""
    monkeypatch.setattr("utils.scheduling._today", lambda: date(2025, 3, 1))
    return date(2025, 3, 1)


@pytest.fixture
def failing_notifier() -> RecordingNotifier:
    return RecordingNotifier(fail=True)
