"""Email/SMS notifications."""

from attendance_payroll.notifications.channels import (
    Contact,
    DeliveryError,
    EmailChannel,
    LogChannel,
    NotificationChannel,
    SmsChannel,
)
from attendance_payroll.notifications.dispatcher import NotificationDispatcher, build_dispatcher
from attendance_payroll.notifications.messages import (
    Notification,
    leave_rejected_message,
    leave_started_message,
    payslip_message,
)

__all__ = [
    "Contact",
    "DeliveryError",
    "EmailChannel",
    "LogChannel",
    "Notification",
    "NotificationChannel",
    "NotificationDispatcher",
    "SmsChannel",
    "build_dispatcher",
    "leave_rejected_message",
    "leave_started_message",
    "payslip_message",
]
