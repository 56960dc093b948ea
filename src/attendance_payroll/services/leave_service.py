"""Leave request lifecycle."""

from __future__ import annotations

import logging
from datetime import date
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from attendance_payroll.clock import Clock, SystemClock
from attendance_payroll.errors import (
    EmployeeNotFoundError,
    InsufficientLeaveCreditError,
    LeaveConflictError,
    LeaveNotFoundError,
    LeaveRequestError,
)
from attendance_payroll.models import Employee, LeaveRequest
from attendance_payroll.services.state_machine import LeaveStateMachine, LeaveStatus

logger = logging.getLogger(__name__)


class LeaveService:
    """Service for managing leave requests.

    Operations:
    - submit: File a new request (one outstanding request per employee)
    - start_processing: Pending → Processing
    - approve: Processing → Approved, deducting leave credit
    - reject: Pending/Processing → Rejected, credit untouched

    Callers own the transaction; nothing here commits.
    """

    def __init__(self, session: AsyncSession, clock: Clock | None = None):
        self.session = session
        self.clock = clock or SystemClock()

    async def get_leave(self, leave_request_id: UUID) -> LeaveRequest:
        leave = await self.session.get(LeaveRequest, leave_request_id)
        if leave is None:
            raise LeaveNotFoundError(leave_request_id)
        return leave

    async def get_outstanding(self, employee_id: UUID) -> LeaveRequest | None:
        """The employee's Pending, Processing or Approved request, if any."""
        result = await self.session.execute(
            select(LeaveRequest)
            .where(
                LeaveRequest.employee_id == employee_id,
                LeaveRequest.status.in_([s.value for s in LeaveStateMachine.OUTSTANDING]),
            )
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def submit(
        self,
        employee_id: UUID,
        leave_type: str,
        inclusive_date: date,
        to_date: date,
        days_requested: int,
        with_pay: bool = False,
    ) -> LeaveRequest:
        """File a new Pending leave request.

        Raises:
            EmployeeNotFoundError: If the employee does not exist
            LeaveRequestError: If the dates or day count are invalid
            LeaveConflictError: If another request is still outstanding
        """
        if days_requested <= 0:
            raise LeaveRequestError("days_requested must be positive")
        if to_date < inclusive_date:
            raise LeaveRequestError("to_date must not be before inclusive_date")

        employee = await self.session.get(Employee, employee_id)
        if employee is None:
            raise EmployeeNotFoundError(employee_id)

        existing = await self.get_outstanding(employee_id)
        if existing is not None:
            raise LeaveConflictError(employee_id, existing.leave_request_id)

        leave = LeaveRequest(
            employee_id=employee_id,
            leave_type=leave_type,
            inclusive_date=inclusive_date,
            to_date=to_date,
            days_requested=days_requested,
            with_pay=with_pay,
            status=LeaveStatus.PENDING.value,
        )
        self.session.add(leave)
        await self.session.flush()
        logger.info(
            "Leave request %s submitted for employee %s (%s to %s)",
            leave.leave_request_id,
            employee.employee_number,
            inclusive_date,
            to_date,
        )
        return leave

    async def transition(self, leave: LeaveRequest, to_status: str) -> LeaveRequest:
        """Move a request to ``to_status``.

        Raises InvalidTransitionError if transition is not allowed.
        """
        LeaveStateMachine.validate_transition(leave.status, to_status)
        old_status = leave.status
        leave.status = LeaveStatus(to_status).value
        if to_status in (LeaveStatus.APPROVED, LeaveStatus.REJECTED):
            leave.decided_at = self.clock.now()
        await self.session.flush()
        logger.info(
            "Leave request %s: %s -> %s", leave.leave_request_id, old_status, leave.status
        )
        return leave

    async def start_processing(self, leave_request_id: UUID) -> LeaveRequest:
        leave = await self.get_leave(leave_request_id)
        return await self.transition(leave, LeaveStatus.PROCESSING)

    async def approve(self, leave_request_id: UUID) -> LeaveRequest:
        """Approve a request and deduct its days from leave credit.

        The deduction is a conditional update so concurrent approvals can
        never take the credit below zero.

        Raises:
            InvalidTransitionError: If the request is not Processing
            InsufficientLeaveCreditError: If credit is short
        """
        leave = await self.get_leave(leave_request_id)
        LeaveStateMachine.validate_transition(leave.status, LeaveStatus.APPROVED)

        result = await self.session.execute(
            update(Employee)
            .where(
                Employee.employee_id == leave.employee_id,
                Employee.leave_credit >= leave.days_requested,
            )
            .values(leave_credit=Employee.leave_credit - leave.days_requested)
            .execution_options(synchronize_session=False)
        )
        employee = await self.session.get(Employee, leave.employee_id)
        if employee is None:
            raise EmployeeNotFoundError(leave.employee_id)
        await self.session.refresh(employee, ["leave_credit"])

        if result.rowcount == 0:
            raise InsufficientLeaveCreditError(
                leave.employee_id, employee.leave_credit, leave.days_requested
            )

        return await self.transition(leave, LeaveStatus.APPROVED)

    async def reject(self, leave_request_id: UUID) -> LeaveRequest:
        leave = await self.get_leave(leave_request_id)
        return await self.transition(leave, LeaveStatus.REJECTED)

