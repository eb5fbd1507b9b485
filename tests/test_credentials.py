from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from unittest.mock import patch

import cv2
import numpy as np
import pytest

from services.credentials import (
    CredentialPayload,
    data_url_to_bytes,
    encode_credential,
)
from services.errors import CredentialEncodingError

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


@pytest.fixture
def payload() -> CredentialPayload:
    issued_at = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)
    return CredentialPayload(
        appointment_id=42,
        credential_hash="ab" * 32,
        email="maria@example.com",
        confirmation_code="483920",
        appointment_date=date(2025, 3, 15),
        procedure="Renovación de pasaporte",
        institution="Dirección General de Pasaportes",
        first_names="María José",
        last_names="Pérez Gómez",
        issued_at=issued_at,
        expires_at=issued_at + timedelta(minutes=15),
    )


def test_payload_json_uses_scanner_keys(payload):
    raw = payload.to_json()
    for key in ("citaId", "qrHash", "email", "codigo", "fechaCita", "generado", "expira"):
        assert f'"{key}"' in raw
    assert '"fechaCita":"2025-03-15"' in raw


def test_payload_round_trip_preserves_fields(payload):
    decoded = CredentialPayload.from_json(payload.to_json())
    assert decoded == payload
    assert decoded.appointment_id == 42
    assert decoded.confirmation_code == "483920"


def test_encode_credential_produces_png_data_url(payload):
    encoded = encode_credential(payload)
    assert encoded.png.startswith(PNG_SIGNATURE)
    assert encoded.data_url.startswith("data:image/png;base64,")
    assert data_url_to_bytes(encoded.data_url) == encoded.png


def test_encoded_qr_decodes_back_to_payload(payload):
    encoded = encode_credential(payload)
    image = cv2.imdecode(np.frombuffer(encoded.png, np.uint8), cv2.IMREAD_GRAYSCALE)
    image = cv2.copyMakeBorder(image, 40, 40, 40, 40, cv2.BORDER_CONSTANT, value=255)

    data, points, _ = cv2.QRCodeDetector().detectAndDecode(image)

    assert points is not None
    assert CredentialPayload.from_json(data) == payload


def test_encoder_failure_raises_credential_encoding_error(payload):
    with patch("services.credentials.qrcode.QRCode.make", side_effect=RuntimeError("boom")):
        with pytest.raises(CredentialEncodingError):
            encode_credential(payload)


def test_data_url_to_bytes_rejects_other_urls():
    with pytest.raises(ValueError):
        data_url_to_bytes("data:image/jpeg;base64,AAAA")
    with pytest.raises(ValueError):
        data_url_to_bytes("data:image/png;base64,not-base64!")
