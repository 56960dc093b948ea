"""Leave request endpoints."""

from uuid import UUID

from fastapi import APIRouter, Path, status

from attendance_payroll.api.dependencies import AppClock, DbSession
from attendance_payroll.api.schemas import ErrorResponse, LeaveRequestCreate, LeaveRequestResponse
from attendance_payroll.services import LeaveService

router = APIRouter(tags=["leave"])


@router.post(
    "/employees/{employee_id}/leave-requests",
    response_model=LeaveRequestResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
    },
)
async def submit_leave_request(
    db: DbSession,
    clock: AppClock,
    payload: LeaveRequestCreate,
    employee_id: UUID = Path(...),
) -> LeaveRequestResponse:
    """File a new leave request."""
    leave = await LeaveService(db, clock).submit(
        employee_id=employee_id,
        leave_type=payload.leave_type,
        inclusive_date=payload.inclusive_date,
        to_date=payload.to_date,
        days_requested=payload.days_requested,
        with_pay=payload.with_pay,
    )
    await db.commit()
    return LeaveRequestResponse.model_validate(leave)


@router.post(
    "/leave-requests/{leave_request_id}/process",
    response_model=LeaveRequestResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def process_leave_request(
    db: DbSession,
    clock: AppClock,
    leave_request_id: UUID = Path(...),
) -> LeaveRequestResponse:
    """Move a pending request into processing."""
    leave = await LeaveService(db, clock).start_processing(leave_request_id)
    await db.commit()
    return LeaveRequestResponse.model_validate(leave)


@router.post(
    "/leave-requests/{leave_request_id}/approve",
    response_model=LeaveRequestResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def approve_leave_request(
    db: DbSession,
    clock: AppClock,
    leave_request_id: UUID = Path(...),
) -> LeaveRequestResponse:
    """Approve a request, deducting leave credit."""
    leave = await LeaveService(db, clock).approve(leave_request_id)
    await db.commit()
    return LeaveRequestResponse.model_validate(leave)


@router.post(
    "/leave-requests/{leave_request_id}/reject",
    response_model=LeaveRequestResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def reject_leave_request(
    db: DbSession,
    clock: AppClock,
    leave_request_id: UUID = Path(...),
) -> LeaveRequestResponse:
    """Reject a pending or processing request."""
    leave = await LeaveService(db, clock).reject(leave_request_id)
    await db.commit()
    return LeaveRequestResponse.model_validate(leave)
