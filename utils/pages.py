"""Minimal HTML views for the intake form and the confirmation page."""

from __future__ import annotations

from html import escape

from models.appointment import AppointmentRecord
from services.booking_notifications import format_long_date

_FORM_FIELDS = (
    ("tramite", "Trámite", "text"),
    ("nombres", "Nombres", "text"),
    ("apellidos", "Apellidos", "text"),
    ("correo_electronico", "Correo electrónico", "email"),
    ("cedula", "Cédula", "text"),
    ("direccion", "Dirección", "text"),
    ("institucion", "Institución", "text"),
    ("telefono", "Teléfono", "tel"),
    ("fecha_cita", "Fecha de la cita", "date"),
)


def _page(title: str, body: str) -> str:
    return f"""\
<!DOCTYPE html>
<html lang="es">
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1">
  <title>{escape(title)}</title>
</head>
<body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333; max-width: 640px; margin: 0 auto; padding: 20px;">
{body}
</body>
</html>"""


def render_intake_form() -> str:
    inputs = "".join(
        f'<p><label for="{name}">{label}</label><br/>'
        f'<input id="{name}" name="{name}" type="{kind}" required></p>'
        for name, label, kind in _FORM_FIELDS
    )
    body = (
        "<h1>Agendar cita en Puntos GOB</h1>"
        f'<form method="post" action="/confirmar-cita">{inputs}'
        '<button type="submit">Confirmar cita</button></form>'
    )
    return _page("Agendar cita", body)


def render_confirmation(record: AppointmentRecord) -> str:
    rows = (
        ("Trámite", record.procedure),
        ("Institución", record.institution),
        ("Fecha de la cita", format_long_date(record.appointment_date)),
        ("Nombres", record.full_name),
        ("Cédula", record.national_id),
        ("Correo electrónico", record.email),
        ("Teléfono", record.phone),
        ("Dirección", record.address),
    )
    details = "".join(
        f"<div><strong>{label}:</strong> {escape(value)}</div>" for label, value in rows
    )
    qr_html = ""
    if record.credential_image:
        qr_html = (
            f'<img src="{escape(record.credential_image)}" alt="Código QR de la cita" '
            'width="250" height="250">'
        )
    expiry_html = ""
    if record.credential_expires_at:
        expiry_html = (
            "<p>El código QR es válido hasta "
            f"{escape(record.credential_expires_at.strftime('%Y-%m-%d %H:%M UTC'))}.</p>"
        )
    body = (
        "<h1>¡Cita confirmada!</h1>"
        f"<p>Número de cita: {record.id}</p>"
        f"{qr_html}"
        "<p>Tu código de confirmación es:</p>"
        f'<p style="font-size: 1.5em; font-weight: bold; color: #28a745;">'
        f"{escape(record.confirmation_code)}</p>"
        f"{expiry_html}"
        f"{details}"
    )
    return _page("Cita confirmada", body)
