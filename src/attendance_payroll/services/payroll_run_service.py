"""Payroll run service - orchestrates one payroll batch."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date, time
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from attendance_payroll.calculators import (
    AttendanceReconciler,
    PayCalculator,
    PayPeriod,
    PeriodResolver,
)
from attendance_payroll.clock import Clock, SystemClock
from attendance_payroll.config import Settings
from attendance_payroll.errors import DataInconsistencyError, EmployeeNotFoundError
from attendance_payroll.holidays import HolidayCalendar, NullHolidayCalendar, build_holiday_calendar
from attendance_payroll.models import Employee, PayrollRecord
from attendance_payroll.notifications import NotificationDispatcher, build_dispatcher
from attendance_payroll.services.ledger_writer import PayrollLedgerWriter

logger = logging.getLogger(__name__)

PROCESSED = "processed"
SKIPPED = "skipped"


@dataclass
class PayrollRunSummary:
    """What one batch did, keyed by employee number."""

    run_date: date
    processed: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return len(self.processed) + len(self.skipped) + len(self.failed)


class PayrollRunService:
    """Runs payroll for every employee (or a subset) as of one run date.

    Per employee, in its own session and transaction:
    1. Take the per-employee lock; skip if another run holds it
    2. Skip if a record already exists for the run date
    3. Resolve the period from the last record, resuming a window that
       an earlier run paid only part of
    4. Reconcile the unpaid days up to the run date
    5. Compute pay with the period's holidays
    6. Write the ledger entry (commit, then payslip)

    Data problems, store errors and anything unexpected are recorded
    against the employee and the batch moves on.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        clock: Clock | None = None,
        holiday_calendar: HolidayCalendar | None = None,
        dispatcher: NotificationDispatcher | None = None,
        workday_start: time = time(8, 0),
        payslip_channel: str = "sms",
        concurrency: int = 1,
    ):
        self.session_factory = session_factory
        self.clock = clock or SystemClock()
        self.holiday_calendar = holiday_calendar or NullHolidayCalendar()
        self.dispatcher = dispatcher
        self.workday_start = workday_start
        self.payslip_channel = payslip_channel
        self.concurrency = max(1, concurrency)
        self._holiday_cache: dict[PayPeriod, frozenset[date]] = {}

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        session_factory: async_sessionmaker[AsyncSession],
        clock: Clock | None = None,
    ) -> PayrollRunService:
        return cls(
            session_factory=session_factory,
            clock=clock or SystemClock(settings.org_timezone),
            holiday_calendar=build_holiday_calendar(settings),
            dispatcher=build_dispatcher(settings),
            workday_start=settings.workday_start,
            payslip_channel=settings.payslip_channel,
            concurrency=settings.payroll_concurrency,
        )

    async def run(
        self,
        as_of: date | None = None,
        employee_ids: Sequence[UUID] | None = None,
    ) -> PayrollRunSummary:
        """Run one payroll batch. Never raises for a single employee."""
        run_date = as_of or self.clock.today()
        summary = PayrollRunSummary(run_date=run_date)
        self._holiday_cache.clear()

        targets = await self._load_targets(employee_ids, summary)
        logger.info("Payroll run for %s started: %d employee(s)", run_date, len(targets))

        semaphore = asyncio.Semaphore(self.concurrency)

        async def guarded(employee_id: UUID, employee_number: str) -> None:
            async with semaphore:
                await self._run_one(employee_id, employee_number, run_date, summary)

        await asyncio.gather(*(guarded(eid, number) for eid, number in targets))

        logger.info(
            "Payroll run for %s finished: %d processed, %d skipped, %d failed",
            run_date,
            len(summary.processed),
            len(summary.skipped),
            len(summary.failed),
        )
        return summary

    async def _load_targets(
        self,
        employee_ids: Sequence[UUID] | None,
        summary: PayrollRunSummary,
    ) -> list[tuple[UUID, str]]:
        stmt = select(Employee.employee_id, Employee.employee_number).order_by(
            Employee.employee_number
        )
        if employee_ids is not None:
            stmt = stmt.where(Employee.employee_id.in_(list(employee_ids)))

        async with self.session_factory() as session:
            rows = (await session.execute(stmt)).all()

        targets = [(row.employee_id, row.employee_number) for row in rows]
        if employee_ids is not None:
            found = {eid for eid, _ in targets}
            for missing in employee_ids:
                if missing not in found:
                    summary.failed[str(missing)] = str(EmployeeNotFoundError(missing))
        return targets

    async def _run_one(
        self,
        employee_id: UUID,
        employee_number: str,
        run_date: date,
        summary: PayrollRunSummary,
    ) -> None:
        try:
            async with self.session_factory() as session:
                outcome = await self.process_employee(session, employee_id, run_date)
        except DataInconsistencyError as e:
            logger.warning("Payroll skipped for employee %s: %s", employee_number, e)
            summary.failed[employee_number] = str(e)
        except EmployeeNotFoundError as e:
            logger.warning("Payroll skipped: %s", e)
            summary.failed[employee_number] = str(e)
        except SQLAlchemyError as e:
            logger.exception("Database error during payroll for employee %s", employee_number)
            summary.failed[employee_number] = f"database error: {e.__class__.__name__}"
        except Exception as e:
            logger.exception("Unexpected error during payroll for employee %s", employee_number)
            summary.failed[employee_number] = f"unexpected error: {e.__class__.__name__}: {e}"
        else:
            if outcome == PROCESSED:
                summary.processed.append(employee_number)
            else:
                summary.skipped.append(employee_number)

    async def process_employee(
        self,
        session: AsyncSession,
        employee_id: UUID,
        run_date: date,
    ) -> str:
        """Run payroll for one employee. Returns ``processed`` or ``skipped``."""
        employee = await session.get(Employee, employee_id)
        if employee is None:
            raise EmployeeNotFoundError(employee_id)

        writer = PayrollLedgerWriter(session, self.dispatcher, self.payslip_channel)
        if not await writer.try_lock(employee_id):
            logger.info(
                "Payroll for employee %s is in progress elsewhere", employee.employee_number
            )
            return SKIPPED

        if await self._already_processed(session, employee_id, run_date):
            logger.info(
                "Payroll already processed for employee %s on %s",
                employee.employee_number,
                run_date.isoformat(),
            )
            return SKIPPED

        last = await self._last_record(session, employee_id)
        period, paid_from = PeriodResolver.resume(
            run_date,
            last.period_end if last is not None else None,
            last.paid_through if last is not None else None,
        )
        if paid_from > run_date:
            logger.info(
                "Next period %s for employee %s has not started on %s",
                period.label,
                employee.employee_number,
                run_date.isoformat(),
            )
            return SKIPPED

        # Hourly staff are paid for the days up to the run date; flat
        # salaries cover the whole window at once
        paid_through = min(run_date, period.end) if employee.is_hourly else period.end
        paid = PayPeriod(paid_from, paid_through)

        reconciler = AttendanceReconciler(session, self.workday_start)
        reconciliation = await reconciler.reconcile_employee(employee_id, paid, cutoff=run_date)

        holidays = await self._holidays_for(period)
        breakdown = PayCalculator.compute(
            employee.classification,
            employee.basic_salary,
            reconciliation,
            holidays,
            employee.employee_number,
        )

        result = await writer.write(
            employee, breakdown, period, reconciliation.absence_count, run_date, paid
        )
        return PROCESSED if result.is_new else SKIPPED

    # === Data Loading Methods ===

    async def _already_processed(
        self, session: AsyncSession, employee_id: UUID, run_date: date
    ) -> bool:
        result = await session.execute(
            select(PayrollRecord.payroll_id).where(
                PayrollRecord.employee_id == employee_id,
                PayrollRecord.run_date == run_date,
            )
        )
        return result.first() is not None

    async def _last_record(
        self, session: AsyncSession, employee_id: UUID
    ) -> PayrollRecord | None:
        """Get the record that paid furthest into the employee's history."""
        result = await session.execute(
            select(PayrollRecord)
            .where(PayrollRecord.employee_id == employee_id)
            .order_by(PayrollRecord.period_end.desc(), PayrollRecord.paid_through.desc())
            .limit(1)
        )
        return result.scalars().first()

    async def _holidays_for(self, period: PayPeriod) -> frozenset[date]:
        if period not in self._holiday_cache:
            self._holiday_cache[period] = await self.holiday_calendar.holidays_between(
                period.start, period.end
            )
        return self._holiday_cache[period]
