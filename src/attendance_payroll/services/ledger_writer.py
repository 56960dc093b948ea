"""Idempotent payroll ledger writes."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from uuid import UUID, uuid4

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from attendance_payroll.calculators.types import PayBreakdown, PayPeriod
from attendance_payroll.database import insert_if_absent, try_advisory_xact_lock
from attendance_payroll.models import Employee, PayrollRecord
from attendance_payroll.notifications import NotificationDispatcher, payslip_message
from attendance_payroll.services.notification_log import NotificationRecorder
from attendance_payroll.services.salary_ledger import SalaryLedger

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WriteResult:
    """Outcome of a ledger write."""

    payroll_id: UUID | None
    is_new: bool
    accrued_amount: Decimal = Decimal("0")
    notified: bool = False


class PayrollLedgerWriter:
    """Persists payroll records exactly once per employee and run day.

    Key invariants:
    1. One payroll record per (employee_id, run_date), enforced by a unique
       constraint and ``INSERT ... ON CONFLICT DO NOTHING``
    2. The record insert and the consumption of accrued contributions
       commit together
    3. The payslip is sent only after commit, and a failed send never
       undoes the write
    4. A duplicate write changes nothing and sends nothing
    5. Every payslip attempt leaves a notification history row
    """

    def __init__(
        self,
        session: AsyncSession,
        dispatcher: NotificationDispatcher | None = None,
        payslip_channel: str = "sms",
    ):
        self.session = session
        self.dispatcher = dispatcher
        self.payslip_channel = payslip_channel
        self.ledger = SalaryLedger(session)

    async def try_lock(self, employee_id: UUID) -> bool:
        """Take the per-employee payroll lock for the current transaction.

        Only PostgreSQL has advisory locks; elsewhere this always succeeds
        and the unique constraint alone guards against duplicates.
        """
        return await try_advisory_xact_lock(self.session, f"payroll:{employee_id}")

    async def write(
        self,
        employee: Employee,
        breakdown: PayBreakdown,
        period: PayPeriod,
        absence_count: int,
        run_date: date,
        paid: PayPeriod | None = None,
    ) -> WriteResult:
        """Insert the payroll record, consume accruals, commit, then notify.

        ``paid`` is the span of days this record pays; it defaults to the
        whole period.
        """
        paid = paid or period
        payroll_id = uuid4()
        inserted = await insert_if_absent(
            self.session,
            PayrollRecord,
            {
                "payroll_id": payroll_id,
                "employee_id": employee.employee_id,
                "period_start": period.start,
                "period_end": period.end,
                "paid_from": paid.start,
                "paid_through": paid.end,
                "run_date": run_date,
                "hours_worked": breakdown.hours_worked.quantize(
                    Decimal("0.01"), rounding=ROUND_HALF_UP
                ),
                "regular_pay": breakdown.regular_pay,
                "overtime_pay": breakdown.overtime_pay,
                "deduction": breakdown.deduction,
                "total_pay": breakdown.final_pay,
                "absence_count": absence_count,
                "accrued_amount": Decimal("0"),
            },
            index_elements=["employee_id", "run_date"],
        )

        if not inserted:
            logger.info(
                "Payroll already processed for employee %s on %s",
                employee.employee_number,
                run_date.isoformat(),
            )
            await self.session.rollback()
            return WriteResult(payroll_id=None, is_new=False)

        accrued = Decimal("0")
        if employee.is_hourly:
            accrued = await self.ledger.consume(employee.employee_id, payroll_id, through=paid.end)
            if accrued:
                await self.session.execute(
                    update(PayrollRecord)
                    .where(PayrollRecord.payroll_id == payroll_id)
                    .values(accrued_amount=accrued)
                )

        await self.session.commit()
        logger.info(
            "Payroll %s written for employee %s (%s, paid %s): total %s",
            payroll_id,
            employee.employee_number,
            period.label,
            paid.label,
            breakdown.final_pay,
        )

        message = payslip_message(employee.name, period, breakdown, absence_count)
        notified = await NotificationRecorder(self.session, self.dispatcher).send(
            employee, message, self.payslip_channel, payroll_id=payroll_id
        )
        return WriteResult(
            payroll_id=payroll_id, is_new=True, accrued_amount=accrued, notified=notified
        )
