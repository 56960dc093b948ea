"""Attendance endpoints."""

from uuid import UUID

from fastapi import APIRouter, Path, status

from attendance_payroll.api.dependencies import AppClock, AppSettings, DbSession
from attendance_payroll.api.schemas import (
    AttendanceResponse,
    DailyAttendanceResponse,
    ErrorResponse,
    ReconciledAttendanceResponse,
)
from attendance_payroll.services import AttendanceService

router = APIRouter(prefix="/employees/{employee_id}", tags=["attendance"])


@router.post(
    "/time-in",
    response_model=AttendanceResponse,
    status_code=status.HTTP_201_CREATED,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def time_in(
    db: DbSession,
    clock: AppClock,
    settings: AppSettings,
    employee_id: UUID = Path(...),
) -> AttendanceResponse:
    """Record the employee's time-in for today."""
    service = AttendanceService(db, clock, settings.workday_start)
    record = await service.time_in(employee_id)
    await db.commit()
    return AttendanceResponse.model_validate(record)


@router.post(
    "/time-out",
    response_model=AttendanceResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def time_out(
    db: DbSession,
    clock: AppClock,
    settings: AppSettings,
    employee_id: UUID = Path(...),
) -> AttendanceResponse:
    """Close the employee's open attendance record."""
    service = AttendanceService(db, clock, settings.workday_start)
    record = await service.time_out(employee_id)
    await db.commit()
    return AttendanceResponse.model_validate(record)


@router.get(
    "/attendance",
    response_model=ReconciledAttendanceResponse,
    responses={404: {"model": ErrorResponse}},
)
async def current_attendance(
    db: DbSession,
    clock: AppClock,
    settings: AppSettings,
    employee_id: UUID = Path(...),
) -> ReconciledAttendanceResponse:
    """Reconciled attendance for the current semi-monthly period."""
    service = AttendanceService(db, clock, settings.workday_start)
    result = await service.current_period_attendance(employee_id)
    return ReconciledAttendanceResponse(
        employee_id=employee_id,
        period_start=result.period.start,
        period_end=result.period.end,
        absence_count=result.absence_count,
        total_hours=result.total_hours,
        days=[
            DailyAttendanceResponse(
                work_date=day.date,
                status=day.status.value,
                hours_worked=day.hours_worked,
                time_in=day.time_in,
                time_out=day.time_out,
            )
            for day in result.days
        ],
        warnings=result.warnings,
    )
