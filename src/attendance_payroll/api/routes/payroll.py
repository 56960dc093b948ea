"""Administrative triggers: payroll runs and leave sweeps."""

from fastapi import APIRouter, status

from attendance_payroll.api.dependencies import LeaveSweeps, PayrollRuns
from attendance_payroll.api.schemas import (
    LeaveSweepRequest,
    LeaveSweepResponse,
    PayrollRunRequest,
    PayrollRunResponse,
)

router = APIRouter(tags=["payroll"])


@router.post(
    "/payroll-runs",
    response_model=PayrollRunResponse,
    status_code=status.HTTP_200_OK,
)
async def trigger_payroll_run(
    service: PayrollRuns,
    payload: PayrollRunRequest | None = None,
) -> PayrollRunResponse:
    """Run payroll now. Safe to repeat: employees already paid today are skipped."""
    payload = payload or PayrollRunRequest()
    summary = await service.run(as_of=payload.as_of, employee_ids=payload.employee_ids)
    return PayrollRunResponse.model_validate(summary)


@router.post(
    "/leave-sweeps",
    response_model=LeaveSweepResponse,
    status_code=status.HTTP_200_OK,
)
async def trigger_leave_sweep(
    service: LeaveSweeps,
    payload: LeaveSweepRequest | None = None,
) -> LeaveSweepResponse:
    """Reconcile leave statuses and day-off flags now."""
    payload = payload or LeaveSweepRequest()
    summary = await service.run(payload.today)
    return LeaveSweepResponse.model_validate(summary)
