"""Outbound email over SMTP.

smtplib is blocking, so each send runs in a worker thread. With no
``SMTP_HOST`` configured the message is logged and dropped, which keeps
development and test environments free of mail servers.
"""

from __future__ import annotations

import asyncio
import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional

from hrms.config import settings

logger = logging.getLogger(__name__)


class EmailDeliveryError(Exception):
    """Raised when the SMTP server refuses or cannot take a message."""


class EmailSender:
    """Sends multipart (text + optional HTML) messages."""

    def __init__(
        self,
        host: Optional[str] = None,
        port: Optional[int] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
        use_tls: Optional[bool] = None,
        from_address: Optional[str] = None,
    ):
        self.host = settings.SMTP_HOST if host is None else host
        self.port = port or settings.SMTP_PORT
        self.username = settings.SMTP_USERNAME if username is None else username
        self.password = settings.SMTP_PASSWORD if password is None else password
        self.use_tls = settings.SMTP_USE_TLS if use_tls is None else use_tls
        self.from_address = from_address or settings.EMAIL_FROM

    @property
    def enabled(self) -> bool:
        return bool(self.host)

    def build_message(
        self, to: str, subject: str, text: str, html: Optional[str] = None,
    ) -> MIMEMultipart:
        msg = MIMEMultipart("alternative")
        msg["From"] = self.from_address
        msg["To"] = to
        msg["Subject"] = subject
        msg.attach(MIMEText(text, "plain"))
        if html:
            msg.attach(MIMEText(html, "html"))
        return msg

    async def send(
        self, to: str, subject: str, text: str, html: Optional[str] = None,
    ) -> None:
        if not self.enabled:
            logger.info("SMTP not configured; would send %r to %s", subject, to)
            return
        message = self.build_message(to, subject, text, html)
        await asyncio.to_thread(self._deliver, message)
        logger.info("Email %r sent to %s", subject, to)

    def _deliver(self, message: MIMEMultipart) -> None:
        try:
            with smtplib.SMTP(self.host, self.port, timeout=30) as server:
                if self.use_tls:
                    server.starttls()
                if self.username:
                    server.login(self.username, self.password)
                server.send_message(message)
        except (smtplib.SMTPException, OSError) as exc:
            raise EmailDeliveryError(f"Failed to send email to {message['To']}: {exc}") from exc
