"""FastAPI dependencies for dependency injection."""

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from attendance_payroll.clock import Clock, SystemClock
from attendance_payroll.config import Settings, get_settings
from attendance_payroll.database import get_session_factory as get_global_session_factory
from attendance_payroll.holidays import build_holiday_calendar
from attendance_payroll.notifications import build_dispatcher
from attendance_payroll.services import LeaveSweepService, PayrollRunService


def get_app_settings(request: Request) -> Settings:
    return getattr(request.app.state, "settings", None) or get_settings()


def get_session_factory(request: Request) -> async_sessionmaker[AsyncSession]:
    """Session factory installed on the app, or the global one."""
    factory = getattr(request.app.state, "session_factory", None)
    if factory is None:
        factory = get_global_session_factory()
        request.app.state.session_factory = factory
    return factory


def get_clock(request: Request) -> Clock:
    clock = getattr(request.app.state, "clock", None)
    if clock is None:
        clock = SystemClock(get_app_settings(request).org_timezone)
        request.app.state.clock = clock
    return clock


async def get_db_session(
    factory: Annotated[async_sessionmaker[AsyncSession], Depends(get_session_factory)],
) -> AsyncGenerator[AsyncSession, None]:
    """Get database session dependency."""
    async with factory() as session:
        try:
            yield session
        finally:
            await session.close()


def get_payroll_service(request: Request) -> PayrollRunService:
    settings = get_app_settings(request)
    state = request.app.state
    return PayrollRunService(
        session_factory=get_session_factory(request),
        clock=get_clock(request),
        holiday_calendar=getattr(state, "holiday_calendar", None)
        or build_holiday_calendar(settings),
        dispatcher=getattr(state, "dispatcher", None) or build_dispatcher(settings),
        workday_start=settings.workday_start,
        payslip_channel=settings.payslip_channel,
        concurrency=settings.payroll_concurrency,
    )


def get_leave_sweep_service(request: Request) -> LeaveSweepService:
    settings = get_app_settings(request)
    return LeaveSweepService(
        get_session_factory(request),
        get_clock(request),
        getattr(request.app.state, "dispatcher", None) or build_dispatcher(settings),
    )


# Type aliases for cleaner dependency injection
DbSession = Annotated[AsyncSession, Depends(get_db_session)]
AppClock = Annotated[Clock, Depends(get_clock)]
AppSettings = Annotated[Settings, Depends(get_app_settings)]
PayrollRuns = Annotated[PayrollRunService, Depends(get_payroll_service)]
LeaveSweeps = Annotated[LeaveSweepService, Depends(get_leave_sweep_service)]
