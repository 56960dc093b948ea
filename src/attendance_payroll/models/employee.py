"""Employee model."""

from __future__ import annotations

from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlalchemy import Boolean, CheckConstraint, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from attendance_payroll.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from attendance_payroll.models.attendance import AttendanceRecord
    from attendance_payroll.models.leave import LeaveRequest
    from attendance_payroll.models.notification import NotificationLog
    from attendance_payroll.models.payroll import PayrollRecord, SalaryContribution


class Classification(str, Enum):
    """Employee pay classification."""

    RANK_AND_FILE = "RankAndFile"
    MANAGERIAL = "Managerial"
    SUPERVISOR = "Supervisor"

    @property
    def is_hourly(self) -> bool:
        """Rank & File staff are paid by the hour; everyone else is flat."""
        return self is Classification.RANK_AND_FILE


class Employee(Base, TimestampMixin):
    """Employee record.

    ``basic_salary`` is the flat per-period amount for managerial and
    supervisory staff, and the daily rate for Rank & File staff (their
    hourly rate is ``basic_salary / 8``).
    """

    __tablename__ = "employee"

    employee_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    employee_number: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    email: Mapped[str | None] = mapped_column(String, nullable=True)
    phone_number: Mapped[str | None] = mapped_column(String, nullable=True)
    classification: Mapped[str] = mapped_column(
        String, nullable=False, default=Classification.RANK_AND_FILE.value
    )
    basic_salary: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    leave_credit: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    day_off: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    __table_args__ = (
        CheckConstraint(
            "classification IN ('RankAndFile', 'Managerial', 'Supervisor')",
            name="employee_classification_check",
        ),
        CheckConstraint("leave_credit >= 0", name="employee_leave_credit_check"),
    )

    # Relationships
    attendance: Mapped[list[AttendanceRecord]] = relationship(back_populates="employee")
    leave_requests: Mapped[list[LeaveRequest]] = relationship(back_populates="employee")
    payroll_records: Mapped[list[PayrollRecord]] = relationship(back_populates="employee")
    contributions: Mapped[list[SalaryContribution]] = relationship(
        back_populates="employee"
    )
    notifications: Mapped[list[NotificationLog]] = relationship(back_populates="employee")

    @property
    def pay_classification(self) -> Classification:
        """Get the classification as an enum."""
        return Classification(self.classification)

    @property
    def is_hourly(self) -> bool:
        return self.pay_classification.is_hourly
