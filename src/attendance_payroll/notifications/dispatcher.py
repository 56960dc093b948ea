"""Best-effort notification dispatch with retries."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping

from attendance_payroll.config import Settings
from attendance_payroll.notifications.channels import (
    Contact,
    EmailChannel,
    LogChannel,
    NotificationChannel,
    SmsChannel,
)
from attendance_payroll.notifications.messages import Notification

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    """Routes notifications to channels by name.

    ``dispatch`` never raises: a notification that still fails after
    ``max_attempts`` is logged and reported as undelivered. Callers have
    already committed whatever the notification is about.
    """

    def __init__(
        self,
        channels: Mapping[str, NotificationChannel],
        max_attempts: int = 3,
        retry_delay: float = 0.5,
    ):
        self.channels = dict(channels)
        self.max_attempts = max(1, max_attempts)
        self.retry_delay = retry_delay

    async def dispatch(self, contact: Contact, message: Notification, channel: str) -> bool:
        """Deliver ``message`` to ``contact`` over ``channel``.

        Returns True if delivered.
        """
        target = self.channels.get(channel)
        if target is None:
            logger.error("Unknown notification channel %r; dropping %r", channel, message.subject)
            return False

        for attempt in range(1, self.max_attempts + 1):
            try:
                await target.send(contact, message)
                return True
            except Exception as e:
                logger.warning(
                    "Notification %r to %s via %s failed (attempt %d/%d): %s",
                    message.subject,
                    contact.name,
                    channel,
                    attempt,
                    self.max_attempts,
                    e,
                )
                if attempt < self.max_attempts and self.retry_delay > 0:
                    await asyncio.sleep(self.retry_delay * attempt)

        logger.error(
            "Giving up on notification %r to %s via %s after %d attempts",
            message.subject,
            contact.name,
            channel,
            self.max_attempts,
        )
        return False


def build_dispatcher(settings: Settings) -> NotificationDispatcher:
    """Wire channels from configuration; unconfigured channels only log."""
    log_channel = LogChannel()
    channels: dict[str, NotificationChannel] = {"log": log_channel}

    if settings.smtp_host:
        channels["email"] = EmailChannel(
            host=settings.smtp_host,
            port=settings.smtp_port,
            from_email=settings.email_from,
            username=settings.smtp_username,
            password=settings.smtp_password,
        )
    else:
        channels["email"] = log_channel

    if settings.sms_api_url:
        channels["sms"] = SmsChannel(
            api_url=settings.sms_api_url,
            api_token=settings.sms_api_token,
            sender=settings.sms_sender,
            country_prefix=settings.sms_country_prefix,
        )
    else:
        channels["sms"] = log_channel

    return NotificationDispatcher(channels, max_attempts=settings.notify_max_attempts)
