"""API test fixtures."""

from collections.abc import AsyncGenerator

import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from attendance_payroll.api.app import create_app
from attendance_payroll.holidays import NullHolidayCalendar


@pytest_asyncio.fixture
async def client(session_factory, clock, dispatcher) -> AsyncGenerator[AsyncClient, None]:
    """Create async HTTP client bound to the test database and clock."""
    app = create_app(
        session_factory=session_factory,
        clock=clock,
        dispatcher=dispatcher,
        holiday_calendar=NullHolidayCalendar(),
    )
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
