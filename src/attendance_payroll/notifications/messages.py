"""Notification message templates."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from attendance_payroll.calculators.types import PayBreakdown, PayPeriod


@dataclass(frozen=True)
class Notification:
    """Rendered notification, channel-independent."""

    subject: str
    body: str


def _money(amount: Decimal) -> str:
    return f"PHP {amount:,.2f}"


def payslip_message(
    name: str,
    period: PayPeriod,
    breakdown: PayBreakdown,
    absence_count: int,
) -> Notification:
    """Payslip summary sent after a payroll record is written."""
    body = (
        f"Hello, {name}. Your salary for {period.label} has been processed. "
        f"Total pay {_money(breakdown.final_pay)}, "
        f"overtime pay {_money(breakdown.overtime_pay)}, "
        f"hours worked {breakdown.hours_worked}, "
        f"absences {absence_count}."
    )
    return Notification(subject=f"Payslip for {period.label}", body=body)


def leave_started_message(name: str, leave_type: str, start: date, end: date) -> Notification:
    body = (
        f"Hello, {name}. Your {leave_type} leave from {start.isoformat()} "
        f"to {end.isoformat()} has started. You are marked as off duty until it ends."
    )
    return Notification(subject="Your leave has started", body=body)


def leave_rejected_message(name: str, leave_type: str, start: date) -> Notification:
    body = (
        f"Hello, {name}. Your {leave_type} leave request starting {start.isoformat()} "
        "was not acted on before its start date and has been rejected."
    )
    return Notification(subject="Leave request rejected", body=body)
