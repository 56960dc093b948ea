"""Notification delivery with a persisted history."""

from __future__ import annotations

import logging
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from attendance_payroll.models import Employee, NotificationLog
from attendance_payroll.notifications import Contact, Notification, NotificationDispatcher

logger = logging.getLogger(__name__)


def contact_for(employee: Employee) -> Contact:
    return Contact(name=employee.name, email=employee.email, phone_number=employee.phone_number)


def recipient_for(contact: Contact, channel: str) -> str | None:
    if channel == "sms":
        return contact.phone_number
    if channel == "email":
        return contact.email
    return contact.name


class NotificationRecorder:
    """Sends a notification to an employee and logs the attempt.

    Runs after the caller has committed what the notification is about.
    The history row is committed on its own; failing to write it is
    logged and never reported as a failed delivery.
    """

    def __init__(self, session: AsyncSession, dispatcher: NotificationDispatcher | None):
        self.session = session
        self.dispatcher = dispatcher

    async def send(
        self,
        employee: Employee,
        message: Notification,
        channel: str,
        payroll_id: UUID | None = None,
    ) -> bool:
        """Dispatch ``message`` and record the outcome. Returns True if delivered."""
        if self.dispatcher is None:
            return False

        contact = contact_for(employee)
        delivered = await self.dispatcher.dispatch(contact, message, channel)

        self.session.add(
            NotificationLog(
                employee_id=employee.employee_id,
                payroll_id=payroll_id,
                channel=channel,
                recipient=recipient_for(contact, channel),
                subject=message.subject,
                body=message.body,
                delivered=delivered,
            )
        )
        try:
            await self.session.commit()
        except SQLAlchemyError:
            await self.session.rollback()
            logger.exception(
                "Could not record %s notification %r for employee %s",
                channel,
                message.subject,
                employee.employee_number,
            )
        return delivered
