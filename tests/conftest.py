"""Pytest fixtures for attendance payroll tests."""

from __future__ import annotations

from collections.abc import AsyncGenerator, Awaitable, Callable
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any
from uuid import UUID, uuid4

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from attendance_payroll.clock import FixedClock
from attendance_payroll.database import create_schema, get_engine, make_session_factory
from attendance_payroll.models import (
    AttendanceRecord,
    Classification,
    Employee,
    LeaveRequest,
    PayrollRecord,
)
from attendance_payroll.notifications import (
    Contact,
    DeliveryError,
    Notification,
    NotificationDispatcher,
)

# In-memory SQLite shared through a StaticPool; a fresh database per test
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
ORG_TZ = "Asia/Manila"


class RecordingChannel:
    """Channel that keeps every notification it is asked to send."""

    def __init__(self, name: str = "recording"):
        self.name = name
        self.sent: list[tuple[Contact, Notification]] = []

    async def send(self, contact: Contact, message: Notification) -> None:
        self.sent.append((contact, message))


class FailingChannel:
    """Channel that always fails."""

    def __init__(self, name: str = "failing"):
        self.name = name
        self.attempts = 0

    async def send(self, contact: Contact, message: Notification) -> None:
        self.attempts += 1
        raise DeliveryError(self.name, "gateway unavailable")


@pytest_asyncio.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create test database engine with the schema applied."""
    engine = get_engine(TEST_DATABASE_URL)
    await create_schema(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return make_session_factory(engine)


@pytest.fixture
def clock() -> FixedClock:
    """Monday 2024-05-20, 17:00 Manila time (a scheduled payroll slot)."""
    return FixedClock(datetime(2024, 5, 20, 17, 0), ORG_TZ)


@pytest.fixture
def sms_channel() -> RecordingChannel:
    return RecordingChannel("sms")


@pytest.fixture
def email_channel() -> RecordingChannel:
    return RecordingChannel("email")


@pytest.fixture
def dispatcher(
    sms_channel: RecordingChannel, email_channel: RecordingChannel
) -> NotificationDispatcher:
    return NotificationDispatcher(
        {"sms": sms_channel, "email": email_channel, "log": RecordingChannel("log")},
        max_attempts=2,
        retry_delay=0,
    )


@pytest.fixture
def make_employee(
    session_factory: async_sessionmaker[AsyncSession],
) -> Callable[..., Awaitable[Employee]]:
    """Factory fixture that commits an employee and returns it."""

    async def _make(
        employee_number: str = "E1",
        classification: Classification = Classification.RANK_AND_FILE,
        basic_salary: Decimal | None = Decimal("8000"),
        leave_credit: int = 5,
        **overrides: Any,
    ) -> Employee:
        employee = Employee(
            employee_id=uuid4(),
            employee_number=employee_number,
            name=overrides.pop("name", f"Employee {employee_number}"),
            email=overrides.pop("email", f"{employee_number.lower()}@example.com"),
            phone_number=overrides.pop("phone_number", "09171234567"),
            classification=classification.value,
            basic_salary=basic_salary,
            leave_credit=leave_credit,
            **overrides,
        )
        async with session_factory() as session:
            session.add(employee)
            await session.commit()
        return employee

    return _make


@pytest.fixture
def add_attendance(
    session_factory: async_sessionmaker[AsyncSession],
) -> Callable[..., Awaitable[None]]:
    """Factory fixture that commits attendance rows for the given dates."""

    async def _add(
        employee_id: UUID,
        days: list[date],
        time_in: time = time(8, 0),
        time_out: time | None = time(16, 0),
        hours_worked: Decimal | None = Decimal("8"),
    ) -> None:
        async with session_factory() as session:
            for day in days:
                session.add(
                    AttendanceRecord(
                        employee_id=employee_id,
                        work_date=day,
                        time_in=time_in,
                        time_out=time_out,
                        hours_worked=hours_worked,
                    )
                )
            await session.commit()

    return _add


@pytest.fixture
def add_leave(
    session_factory: async_sessionmaker[AsyncSession],
) -> Callable[..., Awaitable[LeaveRequest]]:
    """Factory fixture that commits a leave request in any status."""

    async def _add(
        employee_id: UUID,
        inclusive_date: date,
        to_date: date,
        status: str = "Approved",
        with_pay: bool = False,
        days_requested: int | None = None,
        leave_type: str = "Vacation",
    ) -> LeaveRequest:
        leave = LeaveRequest(
            employee_id=employee_id,
            leave_type=leave_type,
            inclusive_date=inclusive_date,
            to_date=to_date,
            status=status,
            with_pay=with_pay,
            days_requested=days_requested or (to_date - inclusive_date).days + 1,
        )
        async with session_factory() as session:
            session.add(leave)
            await session.commit()
        return leave

    return _add


@pytest.fixture
def add_payroll_record(
    session_factory: async_sessionmaker[AsyncSession],
) -> Callable[..., Awaitable[PayrollRecord]]:
    """Factory fixture for a historical payroll record."""

    async def _add(
        employee_id: UUID,
        period_start: date,
        period_end: date,
        run_date: date | None = None,
        paid_through: date | None = None,
    ) -> PayrollRecord:
        record = PayrollRecord(
            employee_id=employee_id,
            period_start=period_start,
            period_end=period_end,
            paid_from=period_start,
            paid_through=paid_through or period_end,
            run_date=run_date or period_end,
            hours_worked=Decimal("0"),
            regular_pay=Decimal("0"),
            overtime_pay=Decimal("0"),
            deduction=Decimal("0"),
            total_pay=Decimal("0"),
            absence_count=0,
        )
        async with session_factory() as session:
            session.add(record)
            await session.commit()
        return record

    return _add
