"""Append-only salary accrual ledger for hourly staff."""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from attendance_payroll.database import insert_if_absent
from attendance_payroll.models import SalaryContribution

logger = logging.getLogger(__name__)

SOURCE_ATTENDANCE = "attendance"
SOURCE_PAID_LEAVE = "paid_leave"


class SalaryLedger:
    """Running salary as a sum of dated contributions.

    Key invariants:
    1. One contribution per (employee, source, source_ref), so repeated
       time-outs or sweeps never accrue twice
    2. Contributions are never updated except to stamp the consuming payroll
    3. The running total is the sum of contributions with no payroll yet
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def add_contribution(
        self,
        employee_id: UUID,
        work_date: date,
        amount: Decimal,
        source: str,
        source_ref: UUID,
    ) -> bool:
        """Record an accrual. Returns False if it was already recorded."""
        inserted = await insert_if_absent(
            self.session,
            SalaryContribution,
            {
                "contribution_id": uuid4(),
                "employee_id": employee_id,
                "work_date": work_date,
                "amount": max(Decimal("0"), amount),
                "source": source,
                "source_ref": source_ref,
            },
            index_elements=["employee_id", "source", "source_ref"],
        )
        if not inserted:
            logger.info(
                "Contribution %s/%s for employee %s already recorded",
                source,
                source_ref,
                employee_id,
            )
        return inserted

    async def running_total(self, employee_id: UUID) -> Decimal:
        """Sum of unconsumed contributions."""
        result = await self.session.execute(
            select(func.coalesce(func.sum(SalaryContribution.amount), 0)).where(
                SalaryContribution.employee_id == employee_id,
                SalaryContribution.payroll_id.is_(None),
            )
        )
        return Decimal(str(result.scalar_one()))

    async def consume(
        self, employee_id: UUID, payroll_id: UUID, through: date | None = None
    ) -> Decimal:
        """Stamp unconsumed contributions with ``payroll_id``.

        Only contributions dated on or before ``through`` are taken; later
        ones wait for the payroll that pays their day. Must run in the
        transaction that inserts the payroll record. Returns the consumed
        amount.
        """
        stmt = select(SalaryContribution.contribution_id, SalaryContribution.amount).where(
            SalaryContribution.employee_id == employee_id,
            SalaryContribution.payroll_id.is_(None),
        )
        if through is not None:
            stmt = stmt.where(SalaryContribution.work_date <= through)
        result = await self.session.execute(stmt)
        rows = result.all()
        if not rows:
            return Decimal("0")

        await self.session.execute(
            update(SalaryContribution)
            .where(SalaryContribution.contribution_id.in_([r.contribution_id for r in rows]))
            .values(payroll_id=payroll_id)
        )
        return sum((Decimal(str(r.amount)) for r in rows), Decimal("0"))
