"""Notification history model."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlalchemy import Boolean, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from attendance_payroll.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from attendance_payroll.models.employee import Employee


class NotificationLog(Base, TimestampMixin):
    """One notification the system tried to deliver.

    Written after the dispatch attempt, delivered or not. ``payroll_id``
    is set for payslips.
    """

    __tablename__ = "notification_log"

    notification_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    employee_id: Mapped[UUID] = mapped_column(
        ForeignKey("employee.employee_id", ondelete="CASCADE"),
        nullable=False,
    )
    payroll_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("payroll.payroll_id"),
        nullable=True,
    )
    channel: Mapped[str] = mapped_column(String, nullable=False)
    recipient: Mapped[str | None] = mapped_column(String, nullable=True)
    subject: Mapped[str] = mapped_column(String, nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False)
    delivered: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    __table_args__ = (Index("notification_log_employee_idx", "employee_id", "created_at"),)

    # Relationships
    employee: Mapped[Employee] = relationship(back_populates="notifications")
