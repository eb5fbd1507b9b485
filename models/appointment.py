"""Appointment models shared by the store, the booking flow and the routes."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

# Form / column names of the booking fields, in form order.
BOOKING_FIELDS = (
    "tramite",
    "nombres",
    "apellidos",
    "correo_electronico",
    "cedula",
    "direccion",
    "institucion",
    "telefono",
    "fecha_cita",
)


class AppointmentStatus(str, Enum):
    """Lifecycle of a booking."""

    PENDING = "pending"
    CONFIRMED = "confirmed"


class BookingForm(BaseModel):
    """Validated intake form submitted to ``POST /confirmar-cita``."""

    model_config = ConfigDict(str_strip_whitespace=True, populate_by_name=True)

    procedure: str = Field(..., alias="tramite", min_length=1, max_length=255)
    first_names: str = Field(..., alias="nombres", min_length=1, max_length=255)
    last_names: str = Field(..., alias="apellidos", min_length=1, max_length=255)
    email: EmailStr = Field(..., alias="correo_electronico")
    national_id: str = Field(..., alias="cedula", min_length=1, max_length=32)
    address: str = Field(..., alias="direccion", min_length=1, max_length=500)
    institution: str = Field(..., alias="institucion", min_length=1, max_length=255)
    phone: str = Field(..., alias="telefono", min_length=1, max_length=32)
    appointment_date: date = Field(..., alias="fecha_cita")


@dataclass(frozen=True, slots=True)
class AppointmentRecord:
    """Immutable snapshot of a stored appointment."""

    id: int
    procedure: str
    first_names: str
    last_names: str
    email: str
    national_id: str
    address: str
    institution: str
    phone: str
    appointment_date: date
    confirmation_code: str
    created_at: datetime
    credential_hash: Optional[str] = None
    credential_image: Optional[str] = None
    credential_expires_at: Optional[datetime] = None

    @property
    def status(self) -> AppointmentStatus:
        if self.credential_hash:
            return AppointmentStatus.CONFIRMED
        return AppointmentStatus.PENDING

    @property
    def full_name(self) -> str:
        return f"{self.first_names} {self.last_names}"

    def to_public_dict(self) -> Dict[str, str]:
        """Return non-sensitive fields for logging/debugging."""
        return {
            "id": str(self.id),
            "procedure": self.procedure,
            "institution": self.institution,
            "appointment_date": self.appointment_date.isoformat(),
            "status": self.status.value,
        }


class AvailableSlotsResponse(BaseModel):
    """Response payload for ``GET /api/available-slots``."""

    model_config = ConfigDict(populate_by_name=True)

    available_dates: List[date] = Field(default_factory=list, alias="availableDates")
