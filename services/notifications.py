"""Notification service for booking confirmation emails."""

from __future__ import annotations

import asyncio
import base64
import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import (
    Attachment,
    ContentId,
    Disposition,
    FileContent,
    FileName,
    FileType,
    Mail,
)

from services.errors import NotificationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class InlineImage:
    """Image embedded in the HTML body and referenced as ``cid:<content_id>``."""

    content_id: str
    filename: str
    data: bytes
    mime_type: str = "image/png"


@dataclass(frozen=True, slots=True)
class NotificationMessage:
    """Payload for an email notification."""

    recipient: str
    subject: str
    plain_body: str
    html_body: Optional[str] = None
    inline_images: Tuple[InlineImage, ...] = ()


class NotificationService:
    """Thin wrapper around SendGrid client to send notifications asynchronously."""

    def __init__(
        self, api_key: str, sender_email: str, *, sandbox_mode: bool = False
    ) -> None:
        if not api_key:
            raise ValueError("SendGrid API key is required for NotificationService")
        if not sender_email:
            raise ValueError("Sender email is required for NotificationService")
        self._client = SendGridAPIClient(api_key=api_key)
        self._sender_email = sender_email
        self._sandbox_mode = sandbox_mode

    async def send_bulk(self, messages: Iterable[NotificationMessage]) -> None:
        """Dispatch a collection of messages concurrently."""
        tasks = [
            asyncio.create_task(self._send_message(message))
            for message in messages
        ]
        if not tasks:
            logger.warning("No notification messages queued for delivery.")
            return
        await asyncio.gather(*tasks)

    def _build_mail(self, message: NotificationMessage) -> Mail:
        email = Mail(
            from_email=self._sender_email,
            to_emails=message.recipient,
            subject=message.subject,
            plain_text_content=message.plain_body,
            html_content=message.html_body or message.plain_body,
        )
        for image in message.inline_images:
            email.add_attachment(
                Attachment(
                    FileContent(base64.b64encode(image.data).decode("ascii")),
                    FileName(image.filename),
                    FileType(image.mime_type),
                    Disposition("inline"),
                    ContentId(image.content_id),
                )
            )
        return email

    async def _send_message(self, message: NotificationMessage) -> None:
        """Send a single message through SendGrid."""
        if self._sandbox_mode:
            logger.info(
                "[Sandbox] Notification to %s skipped. Subject: %s",
                message.recipient,
                message.subject,
            )
            logger.debug("[Sandbox] Body: %s", message.plain_body)
            return

        email = self._build_mail(message)
        logger.info("Sending notification to %s", message.recipient)
        try:
            response = await asyncio.to_thread(self._client.send, email)
        except Exception as exc:
            raise NotificationError(f"SendGrid request failed: {exc}") from exc

        logger.debug(
            "SendGrid response for %s: status=%s body=%s headers=%s",
            message.recipient,
            response.status_code,
            response.body,
            response.headers,
        )
        if response.status_code >= 400:
            raise NotificationError(
                f"SendGrid returned status {response.status_code} for recipient {message.recipient}"
            )
