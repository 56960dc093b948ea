"""Attendance reconciliation: clock events + leave -> daily status list."""

from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Iterable
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from attendance_payroll.calculators.types import (
    DailyAttendance,
    DayStatus,
    PayPeriod,
    ReconciliationResult,
)
from attendance_payroll.errors import AttendanceDataError
from attendance_payroll.models import AttendanceRecord, LeaveRequest

logger = logging.getLogger(__name__)

HOURS_PRECISION = Decimal("0.01")
SECONDS_PER_HOUR = Decimal("3600")

# Leave statuses that take a day out of attendance accounting
COVERING_LEAVE_STATUSES = ("Approved", "Done")


def compute_worked_hours(work_date: date, time_in: time, time_out: time) -> Decimal:
    """Convert a time-in/time-out pair into worked hours.

    A time-out earlier than the time-in is read as the next calendar day
    (overnight shift). A pair that still has no positive duration is
    rejected.

    Raises:
        AttendanceDataError: If the duration is not positive
    """
    start = datetime.combine(work_date, time_in)
    end = datetime.combine(work_date, time_out)
    if end < start:
        end += timedelta(days=1)

    seconds = Decimal(str((end - start).total_seconds()))
    if seconds <= 0:
        raise AttendanceDataError(
            work_date, f"time-out {time_out} does not follow time-in {time_in}"
        )
    return (seconds / SECONDS_PER_HOUR).quantize(HOURS_PRECISION, rounding=ROUND_HALF_UP)


def expand_leave_dates(leaves: Iterable[LeaveRequest]) -> set[date]:
    """Set of individual dates covered by approved or completed leave."""
    covered: set[date] = set()
    for leave in leaves:
        if leave.status in COVERING_LEAVE_STATUSES:
            covered.update(leave.covered_dates())
    return covered


def _recorded_hours(record: AttendanceRecord, warnings: list[str]) -> Decimal:
    """Hours credited for an attended day, clamped at zero."""
    if record.time_in is None or record.time_out is None:
        return Decimal("0")

    if record.hours_worked is None:
        return compute_worked_hours(record.work_date, record.time_in, record.time_out)

    try:
        hours = Decimal(str(record.hours_worked))
    except InvalidOperation:
        raise AttendanceDataError(
            record.work_date, f"hours value {record.hours_worked!r} is not numeric"
        ) from None
    if not hours.is_finite():
        raise AttendanceDataError(
            record.work_date, f"hours value {record.hours_worked!r} is not numeric"
        )

    if hours < 0:
        message = (
            f"Negative hours ({hours}) for employee {record.employee_id} "
            f"on {record.work_date.isoformat()}; counted as 0"
        )
        logger.warning(message)
        warnings.append(message)
        return Decimal("0")
    return hours


def reconcile(
    period: PayPeriod,
    attendance: Iterable[AttendanceRecord],
    leaves: Iterable[LeaveRequest],
    workday_start: time,
    cutoff: date | None = None,
) -> ReconciliationResult:
    """Classify every day of ``period``.

    Per day, in priority order:
    1) Sunday -> off-duty (the organization is closed)
    2) Covered by approved/done leave -> off-duty
    3) Clocked in -> present (on or before ``workday_start``) or late
    4) Otherwise -> absent

    Days after ``cutoff`` are left out so an in-progress period never
    reports future days as absences.
    """
    warnings: list[str] = []
    leave_dates = expand_leave_dates(leaves)

    by_date: dict[date, AttendanceRecord] = {}
    for record in attendance:
        if period.contains(record.work_date):
            by_date.setdefault(record.work_date, record)

    days: list[DailyAttendance] = []
    for day in period.days():
        if cutoff is not None and day > cutoff:
            break

        record = by_date.get(day)
        time_in = record.time_in if record else None
        time_out = record.time_out if record else None

        if day.weekday() == 6:
            if record is not None and record.time_in is not None:
                warnings.append(f"Attendance recorded on Sunday {day.isoformat()} ignored")
            days.append(DailyAttendance(day, DayStatus.OFF_DUTY, Decimal("0"), time_in, time_out))
            continue

        if day in leave_dates:
            days.append(DailyAttendance(day, DayStatus.OFF_DUTY, Decimal("0"), time_in, time_out))
            continue

        if record is not None and record.time_in is not None:
            status = DayStatus.PRESENT if record.time_in <= workday_start else DayStatus.LATE
            hours = _recorded_hours(record, warnings)
            days.append(DailyAttendance(day, status, hours, time_in, time_out))
            continue

        days.append(DailyAttendance(day, DayStatus.ABSENT))

    return ReconciliationResult(period=period, days=days, warnings=warnings)


class AttendanceReconciler:
    """Loads an employee's attendance and leave rows and reconciles them."""

    def __init__(self, session: AsyncSession, workday_start: time):
        self.session = session
        self.workday_start = workday_start

    async def reconcile_employee(
        self,
        employee_id: UUID,
        period: PayPeriod,
        cutoff: date | None = None,
    ) -> ReconciliationResult:
        """Reconcile one employee over one period."""
        attendance = await self._get_attendance(employee_id, period)
        leaves = await self._get_covering_leaves(employee_id, period)
        return reconcile(period, attendance, leaves, self.workday_start, cutoff)

    # === Data Loading Methods ===

    async def _get_attendance(
        self, employee_id: UUID, period: PayPeriod
    ) -> list[AttendanceRecord]:
        """Get attendance rows for employee in the period."""
        result = await self.session.execute(
            select(AttendanceRecord)
            .where(
                AttendanceRecord.employee_id == employee_id,
                AttendanceRecord.work_date >= period.start,
                AttendanceRecord.work_date <= period.end,
            )
            .order_by(AttendanceRecord.work_date)
        )
        return list(result.scalars().all())

    async def _get_covering_leaves(
        self, employee_id: UUID, period: PayPeriod
    ) -> list[LeaveRequest]:
        """Get approved/done leave overlapping the period."""
        result = await self.session.execute(
            select(LeaveRequest).where(
                LeaveRequest.employee_id == employee_id,
                LeaveRequest.status.in_(COVERING_LEAVE_STATUSES),
                LeaveRequest.inclusive_date <= period.end,
                LeaveRequest.to_date >= period.start,
            )
        )
        return list(result.scalars().all())
