"""Confirmation code and credential hash issuance."""

from __future__ import annotations

import hashlib
import secrets
from datetime import datetime, timedelta, timezone

CODE_MIN = 100_000
CODE_MAX = 999_999

CREDENTIAL_TTL = timedelta(minutes=15)


def issue_code() -> str:
    """Draw a 6-digit confirmation code uniformly from [100000, 999999]."""
    return str(CODE_MIN + secrets.randbelow(CODE_MAX - CODE_MIN + 1))


def issue_credential_hash(
    appointment_id: int, email: str, *, now: datetime | None = None
) -> str:
    """
    Derive an opaque, unpredictable token bound to one appointment.

    A fresh 128-bit nonce is hashed together with the record id, the contact
    address and the current instant, so two calls never share an input even
    for the same record.
    """
    now = now or datetime.now(timezone.utc)
    nonce = secrets.token_hex(16)
    millis = int(now.timestamp() * 1000)
    material = f"{nonce}{appointment_id}{email}{millis}"
    return hashlib.sha256(material.encode("utf-8")).hexdigest()


def credential_expiry(issued_at: datetime) -> datetime:
    """Return when a credential issued at ``issued_at`` stops being valid."""
    return issued_at + CREDENTIAL_TTL
