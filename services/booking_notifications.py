"""Confirmation email for booked appointments."""

from __future__ import annotations

import logging
from datetime import date
from html import escape

from models.appointment import AppointmentRecord
from services.credentials import data_url_to_bytes
from services.notifications import InlineImage, NotificationMessage, NotificationService

logger = logging.getLogger(__name__)

QR_CONTENT_ID = "qr-cita"

_MONTHS_ES = (
    "enero", "febrero", "marzo", "abril", "mayo", "junio",
    "julio", "agosto", "septiembre", "octubre", "noviembre", "diciembre",
)
_MONTHS_EN = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)


def format_long_date(value: date, locale: str = "es") -> str:
    """Format a date the way it reads in a letter: '15 de marzo de 2025'."""
    if locale == "es":
        return f"{value.day} de {_MONTHS_ES[value.month - 1]} de {value.year}"
    return f"{_MONTHS_EN[value.month - 1]} {value.day}, {value.year}"


def confirmation_url(base_url: str, appointment_id: int) -> str:
    return f"{base_url.rstrip('/')}/cita-confirmada?id={appointment_id}"


def build_confirmation_message(
    record: AppointmentRecord, base_url: str, locale: str = "es"
) -> NotificationMessage:
    """Render the confirmation email for a confirmed appointment."""
    formatted_date = format_long_date(record.appointment_date, locale)
    link = confirmation_url(base_url, record.id)

    if locale == "es":
        subject = "Confirmación de Cita Puntos GOB"
        header_text = "¡Tu Cita en Puntos GOB ha sido Confirmada!"
        greeting = f"Hola {record.first_names},"
        intro = (
            "Agradecemos tu confianza en nuestros servicios. "
            "Tu cita ha sido agendada con éxito."
        )
        code_intro = "Tu código de confirmación de 6 dígitos es:"
        details_title = "Detalles de tu Cita:"
        labels = (
            "Trámite", "Institución", "Fecha de la Cita", "Nombres",
            "Cédula", "Correo electrónico", "Teléfono", "Dirección",
        )
        closing = (
            "Por favor, presenta este correo electrónico o el código de "
            "confirmación al llegar a tu cita."
        )
        view_text = "Ver mi cita"
        footer = (
            "Gracias por usar Puntos GOB. Si tienes alguna pregunta, "
            "por favor contáctanos."
        )
    else:
        subject = "Puntos GOB Appointment Confirmation"
        header_text = "Your Puntos GOB appointment is confirmed!"
        greeting = f"Hello {record.first_names},"
        intro = "Thank you for using our services. Your appointment has been booked."
        code_intro = "Your 6-digit confirmation code is:"
        details_title = "Appointment details:"
        labels = (
            "Procedure", "Institution", "Appointment date", "Name",
            "National ID", "Email", "Phone", "Address",
        )
        closing = "Please bring this email or your confirmation code to your appointment."
        view_text = "View my appointment"
        footer = "Thank you for using Puntos GOB. Contact us if you have any questions."

    values = (
        record.procedure,
        record.institution,
        formatted_date,
        record.full_name,
        record.national_id,
        record.email,
        record.phone,
        record.address,
    )
    details = list(zip(labels, values))

    plain_lines = [
        greeting,
        "",
        intro,
        "",
        f"{code_intro} {record.confirmation_code}",
        "",
        details_title,
        *(f"{label}: {value}" for label, value in details),
        "",
        closing,
        f"{view_text}: {link}",
        "",
        footer,
    ]
    plain_body = "\n".join(plain_lines) + "\n"

    details_html = "".join(
        f'<div style="margin-bottom: 10px;"><strong style="display: inline-block; '
        f'width: 150px;">{escape(label)}:</strong> {escape(value)}</div>'
        for label, value in details
    )
    qr_html = ""
    if record.credential_image:
        qr_html = (
            f'<div style="text-align: center;"><img src="cid:{QR_CONTENT_ID}" '
            'alt="Código QR de la Cita" style="width: 200px; height: 200px; '
            'display: block; margin: 0 auto 20px;"></div>'
        )

    html_body = f"""\
<!DOCTYPE html>
<html>
<head><meta name="color-scheme" content="light"></head>
<body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">
<div style="max-width: 600px; margin: 0 auto; padding: 20px; border: 1px solid #eee; border-radius: 8px; background-color: #f9f9f9;">
  <h2 style="color: #007bff;">{escape(header_text)}</h2>
  <p>{escape(greeting)}</p>
  <p>{escape(intro)}</p>
  {qr_html}
  <p style="text-align: center;">{escape(code_intro)}</p>
  <div style="font-size: 1.5em; font-weight: bold; color: #28a745; text-align: center; margin-top: 20px;">{escape(record.confirmation_code)}</div>
  <h3>{escape(details_title)}</h3>
  {details_html}
  <p>{escape(closing)}</p>
  <p style="text-align: center;"><a href="{escape(link)}">{escape(view_text)}</a></p>
  <div style="margin-top: 30px; font-size: 0.9em; color: #777; text-align: center;">
    <p>{escape(footer)}</p>
  </div>
</div>
</body>
</html>"""

    inline_images = ()
    if record.credential_image:
        inline_images = (
            InlineImage(
                content_id=QR_CONTENT_ID,
                filename=f"cita-{record.id}.png",
                data=data_url_to_bytes(record.credential_image),
            ),
        )

    return NotificationMessage(
        recipient=record.email,
        subject=subject,
        plain_body=plain_body,
        html_body=html_body,
        inline_images=inline_images,
    )


async def send_booking_confirmation(
    record: AppointmentRecord,
    notification_service: NotificationService,
    base_url: str,
    locale: str = "es",
) -> None:
    """Send the confirmation email for a booked appointment.

    Args:
        record: The confirmed appointment.
        notification_service: The configured NotificationService instance.
        base_url: Public base URL used to link to the confirmation page.
        locale: 'es' or 'en'.
    """
    message = build_confirmation_message(record, base_url, locale)
    await notification_service.send_bulk([message])
    logger.info("Confirmation email sent for appointment %s", record.id)
