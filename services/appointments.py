"""Appointment record storage backends."""

from __future__ import annotations

import logging
import sqlite3
from datetime import date, datetime, timezone
from threading import Lock
from typing import Any, Dict, Mapping, Optional, Protocol

from postgrest.exceptions import APIError

from models.appointment import AppointmentRecord, BookingForm
from services.errors import DuplicateCredentialError, NotFoundError, PersistenceError

logger = logging.getLogger(__name__)

TABLE_NAME = "appointments"

_UNIQUE_VIOLATION = "23505"

# Identifiers are signed 64-bit integers in both SQLite and Postgres.
_MAX_ID = 2**63 - 1

_CREATE_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS appointments (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    tramite TEXT NOT NULL,
    nombres TEXT NOT NULL,
    apellidos TEXT NOT NULL,
    correo_electronico TEXT NOT NULL,
    cedula TEXT NOT NULL,
    direccion TEXT NOT NULL,
    institucion TEXT NOT NULL,
    telefono TEXT NOT NULL,
    fecha_cita TEXT NOT NULL,
    confirmation_code TEXT NOT NULL,
    qr_id_hash TEXT UNIQUE,
    qr_image_data_url TEXT,
    qr_expires_at TEXT,
    created_at TEXT NOT NULL
)
"""


class AppointmentStore(Protocol):
    """Contract shared by every storage backend."""

    def create(self, form: BookingForm, confirmation_code: str) -> int: ...

    def attach_credential(
        self,
        appointment_id: int,
        credential_hash: str,
        credential_image: str,
        expires_at: datetime,
    ) -> None: ...

    def get_by_id(self, appointment_id: int) -> AppointmentRecord: ...

    def discard_pending(self, appointment_id: int) -> None: ...

    def close(self) -> None: ...


def _form_to_row(form: BookingForm, confirmation_code: str) -> Dict[str, str]:
    return {
        "tramite": form.procedure,
        "nombres": form.first_names,
        "apellidos": form.last_names,
        "correo_electronico": str(form.email),
        "cedula": form.national_id,
        "direccion": form.address,
        "institucion": form.institution,
        "telefono": form.phone,
        "fecha_cita": form.appointment_date.isoformat(),
        "confirmation_code": confirmation_code,
        "created_at": datetime.now(timezone.utc).isoformat(),
    }


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if value in (None, ""):
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _is_storable_id(appointment_id: int) -> bool:
    return 0 < appointment_id <= _MAX_ID


def _require_storable_id(appointment_id: int) -> None:
    if not _is_storable_id(appointment_id):
        raise NotFoundError(f"appointment {appointment_id} not found")


def _row_to_record(row: Mapping[str, Any]) -> AppointmentRecord:
    appointment_date = row["fecha_cita"]
    if not isinstance(appointment_date, date):
        appointment_date = date.fromisoformat(str(appointment_date)[:10])
    return AppointmentRecord(
        id=int(row["id"]),
        procedure=row["tramite"],
        first_names=row["nombres"],
        last_names=row["apellidos"],
        email=row["correo_electronico"],
        national_id=row["cedula"],
        address=row["direccion"],
        institution=row["institucion"],
        phone=row["telefono"],
        appointment_date=appointment_date,
        confirmation_code=str(row["confirmation_code"]),
        created_at=_parse_timestamp(row["created_at"]),
        credential_hash=row["qr_id_hash"] or None,
        credential_image=row["qr_image_data_url"] or None,
        credential_expires_at=_parse_timestamp(row["qr_expires_at"]),
    )


class SqliteAppointmentStore:
    """
    Durable store backed by a single SQLite table.

    SQLite assigns identifiers and enforces the credential hash uniqueness;
    the lock serializes access to the shared connection across worker threads.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn
        self._lock = Lock()
        with self._lock, self._conn:
            self._conn.execute(_CREATE_TABLE_SQL)
        logger.info("Appointments table verified/created.")

    def create(self, form: BookingForm, confirmation_code: str) -> int:
        """Insert a pending appointment and return its identifier."""
        row = _form_to_row(form, confirmation_code)
        columns = ", ".join(row)
        placeholders = ", ".join("?" for _ in row)
        try:
            with self._lock, self._conn:
                cursor = self._conn.execute(
                    f"INSERT INTO appointments ({columns}) VALUES ({placeholders})",
                    tuple(row.values()),
                )
                appointment_id = cursor.lastrowid
        except sqlite3.Error as exc:
            logger.exception("Failed to insert appointment")
            raise PersistenceError(f"insert failed: {exc}") from exc
        logger.info("Pending appointment stored with id %s", appointment_id)
        return appointment_id

    def attach_credential(
        self,
        appointment_id: int,
        credential_hash: str,
        credential_image: str,
        expires_at: datetime,
    ) -> None:
        """Confirm a pending appointment by attaching its QR credential."""
        _require_storable_id(appointment_id)
        try:
            with self._lock, self._conn:
                cursor = self._conn.execute(
                    "UPDATE appointments SET qr_id_hash = ?, qr_image_data_url = ?, "
                    "qr_expires_at = ? WHERE id = ? AND qr_id_hash IS NULL",
                    (credential_hash, credential_image, expires_at.isoformat(), appointment_id),
                )
                updated = cursor.rowcount
                exists = updated or self._conn.execute(
                    "SELECT 1 FROM appointments WHERE id = ?", (appointment_id,)
                ).fetchone()
        except sqlite3.IntegrityError as exc:
            raise DuplicateCredentialError(f"credential hash collision: {exc}") from exc
        except sqlite3.Error as exc:
            logger.exception("Failed to attach credential to appointment %s", appointment_id)
            raise PersistenceError(f"update failed: {exc}") from exc

        if not exists:
            raise NotFoundError(f"appointment {appointment_id} not found")
        if not updated:
            raise PersistenceError(f"appointment {appointment_id} is already confirmed")

    def get_by_id(self, appointment_id: int) -> AppointmentRecord:
        """Retrieve an appointment by its identifier."""
        _require_storable_id(appointment_id)
        try:
            with self._lock:
                row = self._conn.execute(
                    "SELECT * FROM appointments WHERE id = ?", (appointment_id,)
                ).fetchone()
        except sqlite3.Error as exc:
            logger.exception("Failed to load appointment %s", appointment_id)
            raise PersistenceError(f"select failed: {exc}") from exc
        if row is None:
            raise NotFoundError(f"appointment {appointment_id} not found")
        return _row_to_record(row)

    def discard_pending(self, appointment_id: int) -> None:
        """Delete an appointment that never received its credential."""
        if not _is_storable_id(appointment_id):
            return
        try:
            with self._lock, self._conn:
                self._conn.execute(
                    "DELETE FROM appointments WHERE id = ? AND qr_id_hash IS NULL",
                    (appointment_id,),
                )
        except sqlite3.Error as exc:
            raise PersistenceError(f"delete failed: {exc}") from exc
        logger.info("Discarded pending appointment %s", appointment_id)

    def close(self) -> None:
        with self._lock:
            self._conn.close()


class SupabaseAppointmentStore:
    """Store backed by the Supabase ``appointments`` table (see db/schema.sql)."""

    def __init__(self, client, table: str = TABLE_NAME) -> None:
        if client is None:
            raise ValueError("Supabase client is required for SupabaseAppointmentStore")
        self._client = client
        self._table = table

    def create(self, form: BookingForm, confirmation_code: str) -> int:
        row = _form_to_row(form, confirmation_code)
        try:
            result = self._client.table(self._table).insert(row).execute()
        except Exception as exc:
            logger.exception("Failed to insert appointment into Supabase")
            raise PersistenceError(f"insert failed: {exc}") from exc
        if not result.data:
            raise PersistenceError("insert returned no rows")
        appointment_id = int(result.data[0]["id"])
        logger.info("Pending appointment stored with id %s", appointment_id)
        return appointment_id

    def attach_credential(
        self,
        appointment_id: int,
        credential_hash: str,
        credential_image: str,
        expires_at: datetime,
    ) -> None:
        _require_storable_id(appointment_id)
        update = {
            "qr_id_hash": credential_hash,
            "qr_image_data_url": credential_image,
            "qr_expires_at": expires_at.isoformat(),
        }
        try:
            result = (
                self._client.table(self._table)
                .update(update)
                .eq("id", appointment_id)
                .is_("qr_id_hash", "null")
                .execute()
            )
        except APIError as exc:
            if exc.code == _UNIQUE_VIOLATION:
                raise DuplicateCredentialError(f"credential hash collision: {exc.message}") from exc
            logger.exception("Failed to attach credential to appointment %s", appointment_id)
            raise PersistenceError(f"update failed: {exc.message}") from exc
        except Exception as exc:
            logger.exception("Failed to attach credential to appointment %s", appointment_id)
            raise PersistenceError(f"update failed: {exc}") from exc

        if not result.data:
            # Distinguish an unknown id from an already confirmed record.
            self.get_by_id(appointment_id)
            raise PersistenceError(f"appointment {appointment_id} is already confirmed")

    def get_by_id(self, appointment_id: int) -> AppointmentRecord:
        _require_storable_id(appointment_id)
        try:
            result = (
                self._client.table(self._table)
                .select("*")
                .eq("id", appointment_id)
                .limit(1)
                .execute()
            )
        except Exception as exc:
            logger.exception("Failed to load appointment %s from Supabase", appointment_id)
            raise PersistenceError(f"select failed: {exc}") from exc
        if not result.data:
            raise NotFoundError(f"appointment {appointment_id} not found")
        return _row_to_record(result.data[0])

    def discard_pending(self, appointment_id: int) -> None:
        if not _is_storable_id(appointment_id):
            return
        try:
            (
                self._client.table(self._table)
                .delete()
                .eq("id", appointment_id)
                .is_("qr_id_hash", "null")
                .execute()
            )
        except Exception as exc:
            raise PersistenceError(f"delete failed: {exc}") from exc
        logger.info("Discarded pending appointment %s", appointment_id)

    def close(self) -> None:
        # The Supabase client holds no resources that need explicit release.
        return None
