"""Appointment booking routes."""

import asyncio
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, BackgroundTasks, HTTPException, Query, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from pydantic import ValidationError as PydanticValidationError
from slowapi import Limiter
from slowapi.util import get_remote_address

from models.appointment import BOOKING_FIELDS, AvailableSlotsResponse, BookingForm
from services.booking import BookingService
from services.errors import BookingError, NotFoundError, ValidationError
from utils.pages import render_confirmation, render_intake_form
from utils.scheduling import available_dates, parse_month

logger = logging.getLogger(__name__)

limiter = Limiter(key_func=get_remote_address)
router = APIRouter(tags=["appointments"])

_booking_rate_limit = "10/minute"


def configure_rate_limit(limit: str) -> None:
    """Set the per-client limit applied to booking submissions."""
    global _booking_rate_limit
    _booking_rate_limit = limit


def booking_rate_limit() -> str:
    return _booking_rate_limit


def _get_booking_service(request: Request) -> BookingService:
    service: Optional[BookingService] = getattr(request.app.state, "booking_service", None)
    if service is None:
        logger.error("Booking attempted before the booking service was initialised.")
        raise HTTPException(status_code=503, detail="Servicio de citas no disponible.")
    return service


async def _read_submission(request: Request) -> Dict[str, Any]:
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("application/json"):
        try:
            body = await request.json()
        except ValueError:
            raise ValidationError("Cuerpo JSON inválido.") from None
        if not isinstance(body, dict):
            raise ValidationError("Cuerpo JSON inválido.")
        return body
    form = await request.form()
    return {key: value for key, value in form.items() if isinstance(value, str)}


def _parse_booking(submission: Dict[str, Any]) -> BookingForm:
    missing = [
        field
        for field in BOOKING_FIELDS
        if not str(submission.get(field) or "").strip()
    ]
    if missing:
        raise ValidationError()
    try:
        return BookingForm.model_validate(
            {field: submission[field] for field in BOOKING_FIELDS}
        )
    except PydanticValidationError as exc:
        invalid = sorted({str(error["loc"][0]) for error in exc.errors() if error["loc"]})
        raise ValidationError(
            "Datos inválidos en los campos: " + ", ".join(invalid)
        ) from exc


@router.get("/", response_class=HTMLResponse)
async def intake_form() -> HTMLResponse:
    """Serve the appointment intake form."""
    return HTMLResponse(render_intake_form())


@router.post("/confirmar-cita")
@limiter.limit(booking_rate_limit)
async def confirm_appointment(
    request: Request, background_tasks: BackgroundTasks
) -> RedirectResponse:
    """
    Book an appointment and redirect to its confirmation page.

    The confirmation email is sent by a background task after the redirect
    has been delivered; its outcome never affects this response.
    """
    booking_service = _get_booking_service(request)
    try:
        form = _parse_booking(await _read_submission(request))
    except ValidationError as exc:
        logger.info("Rejected booking submission: %s", exc)
        raise HTTPException(status_code=exc.status_code, detail=str(exc))

    try:
        record = await asyncio.to_thread(booking_service.book, form)
    except BookingError as exc:
        logger.error("Booking failed: %s", exc)
        raise HTTPException(status_code=exc.status_code, detail=exc.public_message)
    except Exception:
        logger.exception("Unhandled error while booking appointment.")
        raise HTTPException(
            status_code=500, detail="Error interno del servidor al guardar la cita."
        )

    background_tasks.add_task(booking_service.notify, record)
    return RedirectResponse(url=f"/cita-confirmada?id={record.id}", status_code=302)


@router.get("/cita-confirmada", response_class=HTMLResponse)
async def appointment_confirmed(
    request: Request, id: Optional[str] = Query(default=None)
) -> HTMLResponse:
    """Show the stored details of a booked appointment."""
    if not id:
        raise HTTPException(status_code=400, detail="ID de cita no proporcionado.")
    try:
        appointment_id = int(id)
    except ValueError:
        raise HTTPException(status_code=400, detail="ID de cita inválido.")

    booking_service = _get_booking_service(request)
    try:
        record = await asyncio.to_thread(booking_service.get, appointment_id)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Cita no encontrada.")
    except BookingError as exc:
        logger.error("Failed to load appointment %s: %s", appointment_id, exc)
        raise HTTPException(
            status_code=exc.status_code,
            detail="Error interno del servidor al buscar la cita.",
        )

    return HTMLResponse(render_confirmation(record))


@router.get("/api/available-slots", response_model=AvailableSlotsResponse)
async def available_slots(
    year: Optional[str] = Query(default=None),
    month: Optional[str] = Query(default=None),
) -> AvailableSlotsResponse:
    """List the offered appointment dates of a month."""
    if not year or not month:
        raise HTTPException(status_code=400, detail="Missing year or month parameter")
    try:
        month_number = parse_month(month)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid month parameter")
    try:
        dates = available_dates(int(year), month_number)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid year parameter")

    return AvailableSlotsResponse(available_dates=dates)


@router.get("/ping")
def ping() -> dict[str, str]:
    """Lightweight health check endpoint."""
    return {"message": "pong"}
