from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from config import Settings, load_settings
from db.client import connect_sqlite, create_supabase_client
from routes.booking_routes import configure_rate_limit, limiter, router as booking_router
from services.appointments import (
    AppointmentStore,
    SqliteAppointmentStore,
    SupabaseAppointmentStore,
)
from services.booking import BookingService
from services.notifications import NotificationService

logger = logging.getLogger("puntosgob.api")


def configure_logging(level_name: str) -> None:
    log_level = getattr(logging, level_name.upper(), logging.INFO)
    logging.basicConfig(level=log_level, format="%(asctime)s [%(levelname)s] %(message)s")
    logging.info(f"Using LOG_LEVEL={level_name}")


def build_store(settings: Settings) -> AppointmentStore:
    """Pick the storage backend from the configuration."""
    if settings.supabase_enabled:
        client = create_supabase_client(settings.supabase_url, settings.supabase_key)
        if client is not None:
            return SupabaseAppointmentStore(client)
    return SqliteAppointmentStore(connect_sqlite(settings.database_path))


def build_notification_service(settings: Settings) -> Optional[NotificationService]:
    """Return the SendGrid notifier, or None when mail is not configured."""
    if settings.mail_enabled:
        return NotificationService(
            settings.sendgrid_api_key,
            settings.sender_email,
            sandbox_mode=settings.email_sandbox_mode,
        )
    if not settings.sendgrid_api_key:
        logger.warning("SENDGRID_API_KEY not provided; confirmation emails disabled.")
    if not settings.sender_email:
        logger.warning("SENDGRID_SENDER_EMAIL not provided; confirmation emails disabled.")
    return None


def create_app(
    settings: Optional[Settings] = None,
    *,
    store: Optional[AppointmentStore] = None,
    notification_service: Optional[NotificationService] = None,
) -> FastAPI:
    """
    Build the application.

    The store and the notifier are created when the application starts and
    the store is closed on shutdown. Passing them in skips construction,
    which is how tests inject their own.
    """
    settings = settings or load_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app_store = store or build_store(settings)
        notifier = notification_service
        if notifier is None:
            notifier = build_notification_service(settings)
        app.state.booking_service = BookingService(
            app_store,
            notifier,
            public_base_url=settings.public_base_url,
        )
        logger.info("Booking service ready.")
        try:
            yield
        finally:
            app.state.booking_service = None
            app_store.close()
            logger.info("Appointment store closed.")

    app = FastAPI(title="Puntos GOB Citas API", lifespan=lifespan)

    limiter.enabled = settings.rate_limit_enabled
    configure_rate_limit(settings.booking_rate_limit)
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    app.include_router(booking_router)
    return app


_settings = load_settings()
configure_logging(_settings.log_level)
app = create_app(_settings)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=_settings.port)
