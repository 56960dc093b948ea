"""Pydantic schemas for API request/response models."""

from datetime import date, datetime, time
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


# ============================================================================
# Error schemas
# ============================================================================


class ErrorResponse(BaseModel):
    """Error body returned by the exception handlers."""

    detail: str
    code: str


# ============================================================================
# Payroll run schemas
# ============================================================================


class PayrollRunRequest(BaseModel):
    """Administrative payroll trigger."""

    as_of: date | None = Field(None, description="Run date; defaults to today (org timezone)")
    employee_ids: list[UUID] | None = Field(None, description="Restrict the run to these employees")


class PayrollRunResponse(BaseModel):
    """Outcome of a payroll batch."""

    model_config = ConfigDict(from_attributes=True)

    run_date: date
    processed: list[str]
    skipped: list[str]
    failed: dict[str, str]


class LeaveSweepRequest(BaseModel):
    today: date | None = None


class LeaveSweepResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    today: date
    started: list[UUID]
    completed: list[UUID]
    rejected: list[UUID]
    failed: dict[str, str]


# ============================================================================
# Attendance schemas
# ============================================================================


class AttendanceResponse(BaseModel):
    """One attendance record."""

    model_config = ConfigDict(from_attributes=True)

    attendance_id: UUID
    employee_id: UUID
    work_date: date
    time_in: time | None = None
    time_out: time | None = None
    hours_worked: Decimal | None = None


class DailyAttendanceResponse(BaseModel):
    work_date: date
    status: str
    hours_worked: Decimal
    time_in: time | None = None
    time_out: time | None = None


class ReconciledAttendanceResponse(BaseModel):
    """Reconciled attendance for the current period."""

    employee_id: UUID
    period_start: date
    period_end: date
    absence_count: int
    total_hours: Decimal
    days: list[DailyAttendanceResponse]
    warnings: list[str] = []


# ============================================================================
# Leave schemas
# ============================================================================


class LeaveRequestCreate(BaseModel):
    """Schema for filing a leave request."""

    leave_type: str = Field(..., min_length=1)
    inclusive_date: date
    to_date: date
    days_requested: int
    with_pay: bool = False


class LeaveRequestResponse(BaseModel):
    """Schema for leave request response."""

    model_config = ConfigDict(from_attributes=True)

    leave_request_id: UUID
    employee_id: UUID
    leave_type: str
    inclusive_date: date
    to_date: date
    status: str
    days_requested: int
    with_pay: bool
    decided_at: datetime | None = None
