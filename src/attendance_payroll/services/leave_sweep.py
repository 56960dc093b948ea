"""Periodic leave/day-off status sweep."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from attendance_payroll.clock import Clock, SystemClock
from attendance_payroll.models import Employee, LeaveRequest
from attendance_payroll.notifications import (
    Notification,
    NotificationDispatcher,
    leave_rejected_message,
    leave_started_message,
)
from attendance_payroll.services.notification_log import NotificationRecorder
from attendance_payroll.services.salary_ledger import SOURCE_PAID_LEAVE, SalaryLedger
from attendance_payroll.services.state_machine import LeaveStateMachine, LeaveStatus

logger = logging.getLogger(__name__)

LEAVE_NOTICE_CHANNEL = "email"


@dataclass
class LeaveSweepSummary:
    today: date
    started: list[UUID] = field(default_factory=list)
    completed: list[UUID] = field(default_factory=list)
    rejected: list[UUID] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)


class LeaveSweepService:
    """Keeps ``day_off`` flags and leave statuses in step with the calendar.

    For a sweep on ``today``:
    - Approved leave covering today: the employee goes off duty. The first
      sweep that sees it sends the day-off notice and, for paid leave of
      hourly staff, accrues ``basic_salary * days_requested``.
    - Approved leave that ended before today: the employee is back on
      duty and the request is Done. Comparing with ``<`` rather than
      "yesterday" lets a missed sweep catch up.
    - Pending leave whose start date has passed: Rejected, with an email.

    Every request is handled in its own transaction.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        clock: Clock | None = None,
        dispatcher: NotificationDispatcher | None = None,
    ):
        self.session_factory = session_factory
        self.clock = clock or SystemClock()
        self.dispatcher = dispatcher

    async def run(self, today: date | None = None) -> LeaveSweepSummary:
        today = today or self.clock.today()
        summary = LeaveSweepSummary(today=today)

        async with self.session_factory() as session:
            starting = await self._ids(
                session,
                LeaveRequest.status == LeaveStatus.APPROVED.value,
                LeaveRequest.inclusive_date <= today,
                LeaveRequest.to_date >= today,
            )
            ended = await self._ids(
                session,
                LeaveRequest.status == LeaveStatus.APPROVED.value,
                LeaveRequest.to_date < today,
            )
            expired = await self._ids(
                session,
                LeaveRequest.status == LeaveStatus.PENDING.value,
                LeaveRequest.inclusive_date < today,
            )

        for leave_id in starting:
            await self._isolated(self._start_leave, leave_id, summary, summary.started)
        for leave_id in ended:
            await self._isolated(self._complete_leave, leave_id, summary, summary.completed)
        for leave_id in expired:
            await self._isolated(self._expire_request, leave_id, summary, summary.rejected)

        logger.info(
            "Leave sweep for %s: %d started, %d completed, %d rejected, %d failed",
            today,
            len(summary.started),
            len(summary.completed),
            len(summary.rejected),
            len(summary.failed),
        )
        return summary

    async def _ids(self, session: AsyncSession, *criteria) -> list[UUID]:
        result = await session.execute(
            select(LeaveRequest.leave_request_id)
            .where(*criteria)
            .order_by(LeaveRequest.inclusive_date)
        )
        return list(result.scalars().all())

    async def _isolated(
        self,
        handler,
        leave_id: UUID,
        summary: LeaveSweepSummary,
        bucket: list[UUID],
    ) -> None:
        try:
            async with self.session_factory() as session:
                changed = await handler(session, leave_id)
        except SQLAlchemyError as e:
            logger.exception("Leave sweep failed for request %s", leave_id)
            summary.failed[str(leave_id)] = f"database error: {e.__class__.__name__}"
            return
        if changed:
            bucket.append(leave_id)

    async def _start_leave(self, session: AsyncSession, leave_id: UUID) -> bool:
        leave = await session.get(LeaveRequest, leave_id)
        if leave is None or leave.status != LeaveStatus.APPROVED.value:
            return False

        flipped = await session.execute(
            update(Employee)
            .where(Employee.employee_id == leave.employee_id, Employee.day_off.is_(False))
            .values(day_off=True)
            .execution_options(synchronize_session=False)
        )
        if flipped.rowcount == 0:
            # Already off duty from an earlier sweep
            await session.rollback()
            return False

        employee = await session.get(Employee, leave.employee_id)
        if leave.with_pay and employee is not None and employee.is_hourly:
            await self._accrue_paid_leave(session, employee, leave)

        await session.commit()
        logger.info("Employee %s is off duty for leave %s", leave.employee_id, leave_id)

        if employee is not None:
            await self._notify(
                session,
                employee,
                leave_started_message(
                    employee.name, leave.leave_type, leave.inclusive_date, leave.to_date
                ),
            )
        return True

    async def _accrue_paid_leave(
        self, session: AsyncSession, employee: Employee, leave: LeaveRequest
    ) -> None:
        if employee.basic_salary is None or employee.basic_salary <= 0:
            logger.warning(
                "Paid leave %s not accrued: employee %s has no basic salary",
                leave.leave_request_id,
                employee.employee_number,
            )
            return
        amount = Decimal(str(employee.basic_salary)) * leave.days_requested
        await SalaryLedger(session).add_contribution(
            employee.employee_id,
            leave.inclusive_date,
            amount,
            SOURCE_PAID_LEAVE,
            leave.leave_request_id,
        )

    async def _complete_leave(self, session: AsyncSession, leave_id: UUID) -> bool:
        leave = await session.get(LeaveRequest, leave_id)
        if leave is None or not LeaveStateMachine.can_transition(leave.status, LeaveStatus.DONE):
            return False

        await session.execute(
            update(Employee)
            .where(Employee.employee_id == leave.employee_id)
            .values(day_off=False)
            .execution_options(synchronize_session=False)
        )
        leave.status = LeaveStatus.DONE.value
        await session.commit()
        logger.info("Leave request %s is done; employee %s back on duty", leave_id, leave.employee_id)
        return True

    async def _expire_request(self, session: AsyncSession, leave_id: UUID) -> bool:
        leave = await session.get(LeaveRequest, leave_id)
        if leave is None or not LeaveStateMachine.can_transition(
            leave.status, LeaveStatus.REJECTED
        ):
            return False

        leave.status = LeaveStatus.REJECTED.value
        leave.decided_at = self.clock.now()
        employee = await session.get(Employee, leave.employee_id)
        await session.commit()
        logger.info("Leave request %s automatically rejected", leave_id)

        if employee is not None:
            await self._notify(
                session,
                employee,
                leave_rejected_message(employee.name, leave.leave_type, leave.inclusive_date),
            )
        return True

    async def _notify(
        self, session: AsyncSession, employee: Employee, message: Notification
    ) -> None:
        await NotificationRecorder(session, self.dispatcher).send(
            employee, message, LEAVE_NOTICE_CHANNEL
        )
