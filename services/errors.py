"""Error taxonomy for the booking flow.

Each error carries the HTTP status the routes map it to and a public,
user-facing message. Internal details stay in the exception args and logs.
"""

from __future__ import annotations


class BookingError(Exception):
    """Base class for booking failures."""

    status_code = 500
    public_message = "Error interno del servidor."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.public_message)


class ValidationError(BookingError):
    """A required booking field is missing or malformed."""

    status_code = 400
    public_message = "Por favor, complete todos los campos requeridos."


class NotFoundError(BookingError):
    """No appointment exists for the requested identifier."""

    status_code = 404
    public_message = "Cita no encontrada."


class PersistenceError(BookingError):
    """The record store is unavailable or rejected a write."""

    status_code = 500
    public_message = "Error interno del servidor al guardar la cita."


class DuplicateCredentialError(PersistenceError):
    """The credential hash collided with one already stored."""


class CredentialEncodingError(BookingError):
    """The QR credential could not be produced."""

    status_code = 500
    public_message = "Error interno del servidor al generar el código QR."


class NotificationError(BookingError):
    """Confirmation email delivery failed. Logged, never surfaced."""

    public_message = "Falló el envío del correo electrónico."
