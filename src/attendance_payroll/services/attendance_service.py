"""Clock-in / clock-out operations."""

from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from attendance_payroll.calculators import (
    AttendanceReconciler,
    PayCalculator,
    PeriodResolver,
    ReconciliationResult,
    compute_worked_hours,
)
from attendance_payroll.clock import Clock, SystemClock
from attendance_payroll.database import insert_if_absent
from attendance_payroll.errors import AttendanceStateError, EmployeeNotFoundError
from attendance_payroll.models import AttendanceRecord, Employee
from attendance_payroll.services.salary_ledger import SOURCE_ATTENDANCE, SalaryLedger

logger = logging.getLogger(__name__)

# An open record can be closed at most one day rollover after its time-in
MAX_SHIFT = timedelta(hours=24)


def _wall_clock(clock: Clock) -> tuple[date, time]:
    now = clock.now()
    return now.date(), now.time().replace(microsecond=0, tzinfo=None)


class AttendanceService:
    """Records time-in and time-out events.

    A rejected event changes nothing. Callers own the transaction.
    """

    def __init__(
        self,
        session: AsyncSession,
        clock: Clock | None = None,
        workday_start: time = time(8, 0),
    ):
        self.session = session
        self.clock = clock or SystemClock()
        self.workday_start = workday_start

    async def _get_employee(self, employee_id: UUID) -> Employee:
        employee = await self.session.get(Employee, employee_id)
        if employee is None:
            raise EmployeeNotFoundError(employee_id)
        return employee

    async def _get_record(self, employee_id: UUID, work_date: date) -> AttendanceRecord | None:
        result = await self.session.execute(
            select(AttendanceRecord).where(
                AttendanceRecord.employee_id == employee_id,
                AttendanceRecord.work_date == work_date,
            )
        )
        return result.scalar_one_or_none()

    async def time_in(self, employee_id: UUID) -> AttendanceRecord:
        """Open today's attendance record.

        Raises:
            EmployeeNotFoundError: If the employee does not exist
            AttendanceStateError: If the employee already timed in today
        """
        employee = await self._get_employee(employee_id)
        today, now = _wall_clock(self.clock)

        inserted = await insert_if_absent(
            self.session,
            AttendanceRecord,
            {
                "attendance_id": uuid4(),
                "employee_id": employee_id,
                "work_date": today,
                "time_in": now,
            },
            index_elements=["employee_id", "work_date"],
        )
        if not inserted:
            raise AttendanceStateError(employee_id, f"already timed in on {today.isoformat()}")

        record = await self._get_record(employee_id, today)
        logger.info("Employee %s timed in at %s", employee.employee_number, now)
        return record

    async def _find_open_record(self, employee_id: UUID, today: date) -> AttendanceRecord:
        """Today's record, or yesterday's if it is still open (overnight shift)."""
        current = await self._get_record(employee_id, today)
        if current is not None and current.time_in is not None:
            if current.time_out is not None:
                raise AttendanceStateError(
                    employee_id, f"already timed out on {today.isoformat()}"
                )
            return current

        previous = await self._get_record(employee_id, today - timedelta(days=1))
        if previous is not None and previous.is_open:
            return previous

        raise AttendanceStateError(employee_id, "time-out without time-in")

    async def time_out(self, employee_id: UUID) -> AttendanceRecord:
        """Close the open attendance record and accrue the day's pay.

        Raises:
            EmployeeNotFoundError: If the employee does not exist
            AttendanceStateError: If there is no open record, or it has been
                open for a day or more
            AttendanceDataError: If the times give no positive duration
        """
        employee = await self._get_employee(employee_id)
        today, now = _wall_clock(self.clock)
        record = await self._find_open_record(employee_id, today)

        elapsed = datetime.combine(today, now) - datetime.combine(record.work_date, record.time_in)
        if elapsed >= MAX_SHIFT:
            raise AttendanceStateError(
                employee_id,
                f"record opened on {record.work_date.isoformat()} at {record.time_in} "
                "has been open for a day or more",
            )

        hours = compute_worked_hours(record.work_date, record.time_in, now)

        result = await self.session.execute(
            update(AttendanceRecord)
            .where(
                AttendanceRecord.attendance_id == record.attendance_id,
                AttendanceRecord.time_out.is_(None),
            )
            .values(time_out=now, hours_worked=hours)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise AttendanceStateError(
                employee_id, f"already timed out on {record.work_date.isoformat()}"
            )

        if employee.is_hourly:
            await self._accrue(employee, record, hours)

        await self.session.refresh(record)
        logger.info(
            "Employee %s timed out at %s (%s hours)", employee.employee_number, now, hours
        )
        return record

    async def _accrue(
        self, employee: Employee, record: AttendanceRecord, hours: Decimal
    ) -> None:
        if employee.basic_salary is None or employee.basic_salary <= 0:
            logger.warning(
                "No accrual for employee %s on %s: no basic salary",
                employee.employee_number,
                record.work_date,
            )
            return
        day = PayCalculator.daily_pay(employee.basic_salary, hours, record.work_date)
        await SalaryLedger(self.session).add_contribution(
            employee.employee_id,
            record.work_date,
            PayCalculator.round_to_cents(day.net),
            SOURCE_ATTENDANCE,
            record.attendance_id,
        )

    async def current_period_attendance(self, employee_id: UUID) -> ReconciliationResult:
        """Reconciled attendance for the window containing today, up to today."""
        await self._get_employee(employee_id)
        today = self.clock.today()
        period = PeriodResolver.window_containing(today)
        reconciler = AttendanceReconciler(self.session, self.workday_start)
        return await reconciler.reconcile_employee(employee_id, period, cutoff=today)
