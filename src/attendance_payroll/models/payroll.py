"""Payroll ledger and salary accrual models."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlalchemy import (
    CheckConstraint,
    Date,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from attendance_payroll.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from attendance_payroll.models.employee import Employee


class PayrollRecord(Base, TimestampMixin):
    """Finalized payroll entry for one employee, written once per run day.

    Immutable after insert. ``(employee_id, run_date)`` is the idempotency
    key. ``period_start``/``period_end`` are the canonical window;
    ``paid_from``/``paid_through`` are the days this record actually pays,
    which end at the run date when the run falls inside the window.
    """

    __tablename__ = "payroll"

    payroll_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    employee_id: Mapped[UUID] = mapped_column(
        ForeignKey("employee.employee_id", ondelete="RESTRICT"),
        nullable=False,
    )
    period_start: Mapped[date] = mapped_column(Date, nullable=False)
    period_end: Mapped[date] = mapped_column(Date, nullable=False)
    paid_from: Mapped[date] = mapped_column(Date, nullable=False)
    paid_through: Mapped[date] = mapped_column(Date, nullable=False)
    run_date: Mapped[date] = mapped_column(Date, nullable=False)
    hours_worked: Mapped[Decimal] = mapped_column(Numeric(8, 2), nullable=False)
    regular_pay: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    overtime_pay: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    deduction: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    total_pay: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    absence_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    accrued_amount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False, default=Decimal("0")
    )

    __table_args__ = (
        UniqueConstraint("employee_id", "run_date", name="payroll_employee_run_date_unique"),
        CheckConstraint("total_pay >= 0", name="payroll_total_pay_check"),
        CheckConstraint("hours_worked >= 0", name="payroll_hours_check"),
        CheckConstraint("absence_count >= 0", name="payroll_absence_check"),
        CheckConstraint("period_end >= period_start", name="payroll_period_check"),
        CheckConstraint(
            "paid_from >= period_start AND paid_through <= period_end "
            "AND paid_through >= paid_from",
            name="payroll_paid_span_check",
        ),
        Index("payroll_employee_period_idx", "employee_id", "period_end"),
    )

    # Relationships
    employee: Mapped[Employee] = relationship(back_populates="payroll_records")


class SalaryContribution(Base, TimestampMixin):
    """Dated pay accrual for an hourly employee.

    The running salary of an employee is the sum of its contributions that
    no payroll has consumed yet. A payroll run stamps them with its
    ``payroll_id`` instead of zeroing a counter.
    """

    __tablename__ = "salary_contribution"

    contribution_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    employee_id: Mapped[UUID] = mapped_column(
        ForeignKey("employee.employee_id", ondelete="CASCADE"),
        nullable=False,
    )
    work_date: Mapped[date] = mapped_column(Date, nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    source: Mapped[str] = mapped_column(String, nullable=False)
    source_ref: Mapped[UUID] = mapped_column(nullable=False)
    payroll_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("payroll.payroll_id"),
        nullable=True,
    )

    __table_args__ = (
        UniqueConstraint(
            "employee_id", "source", "source_ref", name="salary_contribution_source_unique"
        ),
        CheckConstraint("amount >= 0", name="salary_contribution_amount_check"),
        CheckConstraint(
            "source IN ('attendance', 'paid_leave')",
            name="salary_contribution_source_check",
        ),
    )

    # Relationships
    employee: Mapped[Employee] = relationship(back_populates="contributions")
