"""Booking pipeline: persist, confirm, and notify."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from models.appointment import AppointmentRecord, BookingForm
from services.appointments import AppointmentStore
from services.booking_notifications import send_booking_confirmation
from services.confirmation import credential_expiry, issue_code, issue_credential_hash
from services.credentials import CredentialPayload, encode_credential
from services.errors import DuplicateCredentialError, PersistenceError
from services.notifications import NotificationService

logger = logging.getLogger(__name__)

MAX_CREDENTIAL_ATTEMPTS = 3


class BookingService:
    """
    Runs one booking end to end.

    A booking is inserted as pending, then confirmed by attaching its QR
    credential. If confirmation fails the pending row is discarded, so a
    failed booking leaves nothing behind. Notification is a separate step
    the caller schedules once the booking succeeded.
    """

    def __init__(
        self,
        store: AppointmentStore,
        notification_service: Optional[NotificationService],
        *,
        public_base_url: str,
        max_credential_attempts: int = MAX_CREDENTIAL_ATTEMPTS,
    ) -> None:
        if max_credential_attempts < 1:
            raise ValueError("max_credential_attempts must be >= 1")
        self._store = store
        self._notification_service = notification_service
        self._public_base_url = public_base_url
        self._max_credential_attempts = max_credential_attempts

    def book(self, form: BookingForm) -> AppointmentRecord:
        """Persist a booking and attach its confirmation credential."""
        confirmation_code = issue_code()
        appointment_id = self._store.create(form, confirmation_code)

        try:
            self._confirm(appointment_id, form, confirmation_code)
        except Exception:
            logger.error("Confirmation failed for appointment %s; discarding", appointment_id)
            try:
                self._store.discard_pending(appointment_id)
            except PersistenceError:
                logger.exception("Could not discard pending appointment %s", appointment_id)
            raise

        record = self._store.get_by_id(appointment_id)
        logger.info("Appointment confirmed: %s", record.to_public_dict())
        return record

    def get(self, appointment_id: int) -> AppointmentRecord:
        return self._store.get_by_id(appointment_id)

    def _confirm(
        self, appointment_id: int, form: BookingForm, confirmation_code: str
    ) -> None:
        email = str(form.email)
        for attempt in range(1, self._max_credential_attempts + 1):
            issued_at = datetime.now(timezone.utc)
            expires_at = credential_expiry(issued_at)
            payload = CredentialPayload(
                appointment_id=appointment_id,
                credential_hash=issue_credential_hash(appointment_id, email, now=issued_at),
                email=email,
                confirmation_code=confirmation_code,
                appointment_date=form.appointment_date,
                procedure=form.procedure,
                institution=form.institution,
                first_names=form.first_names,
                last_names=form.last_names,
                issued_at=issued_at,
                expires_at=expires_at,
            )
            encoded = encode_credential(payload)
            try:
                self._store.attach_credential(
                    appointment_id, payload.credential_hash, encoded.data_url, expires_at
                )
                return
            except DuplicateCredentialError:
                logger.warning(
                    "Credential hash collision for appointment %s (attempt %s/%s)",
                    appointment_id,
                    attempt,
                    self._max_credential_attempts,
                )

        raise PersistenceError(
            f"could not allocate a unique credential for appointment {appointment_id}"
        )

    async def notify(self, record: AppointmentRecord) -> None:
        """
        Email the confirmation for ``record``.

        Runs as a background task after the HTTP response has been sent.
        Delivery failures are logged and dropped; there is no retry.
        """
        if self._notification_service is None:
            logger.warning(
                "Notification service disabled; confirmation for appointment %s not sent.",
                record.id,
            )
            return
        try:
            await send_booking_confirmation(
                record, self._notification_service, self._public_base_url
            )
        except Exception:
            logger.exception(
                "Confirmation email for appointment %s was not delivered; no retry scheduled.",
                record.id,
            )
