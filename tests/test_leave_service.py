"""Tests for the leave request lifecycle."""

from datetime import date
from uuid import uuid4

import pytest

from attendance_payroll.errors import (
    EmployeeNotFoundError,
    InsufficientLeaveCreditError,
    LeaveConflictError,
    LeaveNotFoundError,
    LeaveRequestError,
)
from attendance_payroll.models import Employee, LeaveRequest
from attendance_payroll.services import InvalidTransitionError, LeaveService

pytestmark = pytest.mark.asyncio


async def submit(session_factory, clock, employee_id, start, end, days=None, **kwargs):
    async with session_factory() as session:
        leave = await LeaveService(session, clock).submit(
            employee_id,
            kwargs.pop("leave_type", "Vacation"),
            start,
            end,
            days if days is not None else (end - start).days + 1,
            **kwargs,
        )
        await session.commit()
        return leave


async def act(session_factory, clock, method, leave_request_id):
    async with session_factory() as session:
        service = LeaveService(session, clock)
        leave = await getattr(service, method)(leave_request_id)
        await session.commit()
        return leave


class TestSubmit:
    async def test_creates_pending_request(self, session_factory, clock, make_employee):
        employee = await make_employee()

        leave = await submit(
            session_factory, clock, employee.employee_id, date(2024, 5, 6), date(2024, 5, 8),
            with_pay=True,
        )

        assert leave.status == "Pending"
        assert leave.days_requested == 3
        assert leave.with_pay is True

    async def test_second_outstanding_request_conflicts(
        self, session_factory, clock, make_employee
    ):
        employee = await make_employee()
        first = await submit(
            session_factory, clock, employee.employee_id, date(2024, 5, 6), date(2024, 5, 6)
        )

        with pytest.raises(LeaveConflictError) as exc_info:
            await submit(
                session_factory, clock, employee.employee_id, date(2024, 6, 3), date(2024, 6, 3)
            )

        assert exc_info.value.existing_id == first.leave_request_id

    async def test_rejected_request_does_not_block(
        self, session_factory, clock, make_employee, add_leave
    ):
        employee = await make_employee()
        await add_leave(employee.employee_id, date(2024, 5, 6), date(2024, 5, 6), status="Rejected")
        await add_leave(employee.employee_id, date(2024, 4, 1), date(2024, 4, 2), status="Done")

        leave = await submit(
            session_factory, clock, employee.employee_id, date(2024, 6, 3), date(2024, 6, 3)
        )
        assert leave.status == "Pending"

    @pytest.mark.parametrize(
        "start,end,days",
        [
            (date(2024, 5, 8), date(2024, 5, 6), 1),
            (date(2024, 5, 6), date(2024, 5, 8), 0),
        ],
    )
    async def test_malformed_request_rejected(
        self, session_factory, clock, make_employee, start, end, days
    ):
        employee = await make_employee()
        with pytest.raises(LeaveRequestError):
            await submit(session_factory, clock, employee.employee_id, start, end, days)

    async def test_unknown_employee(self, session_factory, clock):
        with pytest.raises(EmployeeNotFoundError):
            await submit(session_factory, clock, uuid4(), date(2024, 5, 6), date(2024, 5, 6))


class TestApprove:
    async def test_approval_deducts_credit(self, session_factory, clock, make_employee):
        """Three approved days take credit from 5 to 2."""
        employee = await make_employee(leave_credit=5)
        leave = await submit(
            session_factory, clock, employee.employee_id, date(2024, 5, 6), date(2024, 5, 8)
        )
        await act(session_factory, clock, "start_processing", leave.leave_request_id)

        approved = await act(session_factory, clock, "approve", leave.leave_request_id)

        assert approved.status == "Approved"
        assert approved.decided_at is not None
        async with session_factory() as session:
            refreshed = await session.get(Employee, employee.employee_id)
        assert refreshed.leave_credit == 2

    async def test_insufficient_credit_leaves_everything_unchanged(
        self, session_factory, clock, make_employee
    ):
        employee = await make_employee(leave_credit=2)
        leave = await submit(
            session_factory, clock, employee.employee_id, date(2024, 5, 6), date(2024, 5, 8)
        )
        await act(session_factory, clock, "start_processing", leave.leave_request_id)

        with pytest.raises(InsufficientLeaveCreditError) as exc_info:
            await act(session_factory, clock, "approve", leave.leave_request_id)

        assert exc_info.value.available == 2
        assert exc_info.value.requested == 3
        async with session_factory() as session:
            stored = await session.get(LeaveRequest, leave.leave_request_id)
            refreshed = await session.get(Employee, employee.employee_id)
        assert stored.status == "Processing"
        assert refreshed.leave_credit == 2

    async def test_cannot_approve_pending(self, session_factory, clock, make_employee):
        """Approval must go through Processing first."""
        employee = await make_employee(leave_credit=5)
        leave = await submit(
            session_factory, clock, employee.employee_id, date(2024, 5, 6), date(2024, 5, 6)
        )

        with pytest.raises(InvalidTransitionError):
            await act(session_factory, clock, "approve", leave.leave_request_id)

        async with session_factory() as session:
            refreshed = await session.get(Employee, employee.employee_id)
        assert refreshed.leave_credit == 5


class TestReject:
    async def test_reject_keeps_credit(self, session_factory, clock, make_employee):
        employee = await make_employee(leave_credit=5)
        leave = await submit(
            session_factory, clock, employee.employee_id, date(2024, 5, 6), date(2024, 5, 7)
        )

        rejected = await act(session_factory, clock, "reject", leave.leave_request_id)

        assert rejected.status == "Rejected"
        async with session_factory() as session:
            refreshed = await session.get(Employee, employee.employee_id)
        assert refreshed.leave_credit == 5

    async def test_rejected_is_terminal(self, session_factory, clock, make_employee):
        employee = await make_employee()
        leave = await submit(
            session_factory, clock, employee.employee_id, date(2024, 5, 6), date(2024, 5, 7)
        )
        await act(session_factory, clock, "reject", leave.leave_request_id)

        with pytest.raises(InvalidTransitionError):
            await act(session_factory, clock, "start_processing", leave.leave_request_id)

    async def test_unknown_request(self, session_factory, clock):
        with pytest.raises(LeaveNotFoundError):
            await act(session_factory, clock, "reject", uuid4())
