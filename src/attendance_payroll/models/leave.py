"""Leave request model."""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from attendance_payroll.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from attendance_payroll.models.employee import Employee


class LeaveRequest(Base, TimestampMixin):
    """Leave request covering ``inclusive_date`` through ``to_date``."""

    __tablename__ = "leave_request"

    leave_request_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    employee_id: Mapped[UUID] = mapped_column(
        ForeignKey("employee.employee_id", ondelete="CASCADE"),
        nullable=False,
    )
    leave_type: Mapped[str] = mapped_column(String, nullable=False)
    inclusive_date: Mapped[date] = mapped_column(Date, nullable=False)
    to_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False, default="Pending")
    days_requested: Mapped[int] = mapped_column(Integer, nullable=False)
    with_pay: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    decided_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        CheckConstraint(
            "status IN ('Pending', 'Processing', 'Approved', 'Rejected', 'Done')",
            name="leave_request_status_check",
        ),
        CheckConstraint("days_requested > 0", name="leave_request_days_check"),
        CheckConstraint("to_date >= inclusive_date", name="leave_request_dates_check"),
    )

    # Relationships
    employee: Mapped[Employee] = relationship(back_populates="leave_requests")

    def covered_dates(self) -> list[date]:
        """Expand the inclusive range into individual dates."""
        span = (self.to_date - self.inclusive_date).days
        return [self.inclusive_date + timedelta(days=i) for i in range(span + 1)]

    def covers(self, day: date) -> bool:
        return self.inclusive_date <= day <= self.to_date
