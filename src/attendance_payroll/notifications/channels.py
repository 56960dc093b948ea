"""Delivery channels for notifications.

Channels raise on delivery failure; retrying and swallowing errors is the
dispatcher's job.
"""

from __future__ import annotations

import asyncio
import logging
import smtplib
import ssl
from dataclasses import dataclass
from email.mime.text import MIMEText
from typing import Protocol

import httpx

from attendance_payroll.notifications.messages import Notification

logger = logging.getLogger(__name__)


class DeliveryError(Exception):
    """Raised when a channel cannot deliver a notification."""

    def __init__(self, channel: str, reason: str):
        self.channel = channel
        self.reason = reason
        super().__init__(f"{channel} delivery failed: {reason}")


@dataclass(frozen=True)
class Contact:
    """Where to reach an employee."""

    name: str
    email: str | None = None
    phone_number: str | None = None


class NotificationChannel(Protocol):
    name: str

    async def send(self, contact: Contact, message: Notification) -> None:
        ...


class LogChannel:
    """Writes notifications to the log instead of delivering them."""

    name = "log"

    async def send(self, contact: Contact, message: Notification) -> None:
        logger.info("[MOCK NOTIFICATION] To: %s | Subject: %s", contact.name, message.subject)
        logger.debug("[MOCK NOTIFICATION] Body: %s", message.body)


class EmailChannel:
    """SMTP delivery. Port 465 uses implicit TLS, anything else STARTTLS."""

    name = "email"

    def __init__(
        self,
        host: str,
        port: int,
        from_email: str,
        username: str | None = None,
        password: str | None = None,
        timeout: float = 30.0,
    ):
        self.host = host
        self.port = port
        self.from_email = from_email
        self.username = username
        self.password = password
        self.timeout = timeout

    def build_mime(self, to: str, message: Notification) -> MIMEText:
        msg = MIMEText(message.body, "plain")
        msg["Subject"] = message.subject
        msg["From"] = self.from_email
        msg["To"] = to
        return msg

    def _send_sync(self, to: str, message: Notification) -> None:
        msg = self.build_mime(to, message)
        context = ssl.create_default_context()
        if self.port == 465:
            with smtplib.SMTP_SSL(self.host, self.port, context=context, timeout=self.timeout) as server:
                if self.username and self.password:
                    server.login(self.username, self.password)
                server.sendmail(self.from_email, [to], msg.as_string())
        else:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
                server.starttls(context=context)
                if self.username and self.password:
                    server.login(self.username, self.password)
                server.sendmail(self.from_email, [to], msg.as_string())

    async def send(self, contact: Contact, message: Notification) -> None:
        if not contact.email:
            raise DeliveryError(self.name, f"{contact.name} has no email address")
        try:
            await asyncio.to_thread(self._send_sync, contact.email, message)
        except (smtplib.SMTPException, OSError) as e:
            raise DeliveryError(self.name, str(e)) from e
        logger.info("Email sent via SMTP to %s", contact.email)


class SmsChannel:
    """SMS through an HTTP gateway speaking the Sinch batch API shape."""

    name = "sms"

    def __init__(
        self,
        api_url: str,
        api_token: str | None,
        sender: str | None,
        country_prefix: str = "+63",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_url = api_url
        self.api_token = api_token
        self.sender = sender
        self.country_prefix = country_prefix
        self.timeout = timeout
        self._transport = transport

    def normalize_number(self, phone_number: str) -> str:
        """Local numbers (``09...``) become international (``+639...``)."""
        number = phone_number.strip().replace(" ", "").replace("-", "")
        if number.startswith("+"):
            return number
        return self.country_prefix + number.lstrip("0")

    async def send(self, contact: Contact, message: Notification) -> None:
        if not contact.phone_number:
            raise DeliveryError(self.name, f"{contact.name} has no phone number")

        payload = {
            "from": self.sender,
            "to": [self.normalize_number(contact.phone_number)],
            "body": message.body,
        }
        headers = {"Content-Type": "application/json"}
        if self.api_token:
            headers["Authorization"] = f"Bearer {self.api_token}"

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(self.api_url, json=payload, headers=headers)
        except httpx.HTTPError as e:
            raise DeliveryError(self.name, str(e)) from e

        if response.status_code not in (200, 201, 202):
            raise DeliveryError(
                self.name, f"gateway returned {response.status_code}: {response.text}"
            )
        logger.info("SMS sent to %s", payload["to"][0])
