"""QR credential payloads and their PNG encoding."""

from __future__ import annotations

import base64
import binascii
import io
import json
import logging
from dataclasses import dataclass
from datetime import date, datetime

import qrcode
from qrcode.constants import ERROR_CORRECT_H

from services.errors import CredentialEncodingError

logger = logging.getLogger(__name__)

_DATA_URL_PREFIX = "data:image/png;base64,"


@dataclass(frozen=True, slots=True)
class CredentialPayload:
    """Everything a scanner needs to identify and validate a booking."""

    appointment_id: int
    credential_hash: str
    email: str
    confirmation_code: str
    appointment_date: date
    procedure: str
    institution: str
    first_names: str
    last_names: str
    issued_at: datetime
    expires_at: datetime

    def to_json(self) -> str:
        return json.dumps(
            {
                "citaId": self.appointment_id,
                "qrHash": self.credential_hash,
                "email": self.email,
                "codigo": self.confirmation_code,
                "fechaCita": self.appointment_date.isoformat(),
                "tramite": self.procedure,
                "institucion": self.institution,
                "nombres": self.first_names,
                "apellidos": self.last_names,
                "generado": self.issued_at.isoformat(),
                "expira": self.expires_at.isoformat(),
            },
            separators=(",", ":"),
        )

    @classmethod
    def from_json(cls, raw: str | bytes) -> "CredentialPayload":
        data = json.loads(raw)
        return cls(
            appointment_id=int(data["citaId"]),
            credential_hash=data["qrHash"],
            email=data["email"],
            confirmation_code=data["codigo"],
            appointment_date=date.fromisoformat(data["fechaCita"]),
            procedure=data["tramite"],
            institution=data["institucion"],
            first_names=data["nombres"],
            last_names=data["apellidos"],
            issued_at=datetime.fromisoformat(data["generado"]),
            expires_at=datetime.fromisoformat(data["expira"]),
        )


@dataclass(frozen=True, slots=True)
class EncodedCredential:
    """Rendered QR credential."""

    png: bytes

    @property
    def data_url(self) -> str:
        return _DATA_URL_PREFIX + base64.b64encode(self.png).decode("ascii")


def encode_credential(payload: CredentialPayload) -> EncodedCredential:
    """Render the payload as a high error-correction QR code PNG."""
    try:
        qr = qrcode.QRCode(error_correction=ERROR_CORRECT_H, box_size=6, border=1)
        qr.add_data(payload.to_json())
        qr.make(fit=True)
        image = qr.make_image(fill_color="black", back_color="white")
        buffer = io.BytesIO()
        image.save(buffer)
    except Exception as exc:
        logger.exception(
            "Failed to render QR credential for appointment %s", payload.appointment_id
        )
        raise CredentialEncodingError(
            f"QR rendering failed for appointment {payload.appointment_id}"
        ) from exc

    logger.info("QR credential generated for appointment %s", payload.appointment_id)
    return EncodedCredential(png=buffer.getvalue())


def data_url_to_bytes(data_url: str) -> bytes:
    """Recover the PNG bytes stored as a ``data:`` URL."""
    if not data_url.startswith(_DATA_URL_PREFIX):
        raise ValueError("Not a base64 PNG data URL")
    try:
        return base64.b64decode(data_url[len(_DATA_URL_PREFIX):], validate=True)
    except binascii.Error as exc:
        raise ValueError("Malformed base64 payload in data URL") from exc
