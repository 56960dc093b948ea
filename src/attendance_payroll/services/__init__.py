"""Business services."""

from attendance_payroll.services.attendance_service import AttendanceService
from attendance_payroll.services.leave_service import LeaveService
from attendance_payroll.services.leave_sweep import LeaveSweepService, LeaveSweepSummary
from attendance_payroll.services.ledger_writer import PayrollLedgerWriter, WriteResult
from attendance_payroll.services.notification_log import NotificationRecorder
from attendance_payroll.services.payroll_run_service import PayrollRunService, PayrollRunSummary
from attendance_payroll.services.salary_ledger import SalaryLedger
from attendance_payroll.services.state_machine import (
    InvalidTransitionError,
    LeaveStateMachine,
    LeaveStatus,
)

__all__ = [
    "AttendanceService",
    "InvalidTransitionError",
    "LeaveService",
    "LeaveStateMachine",
    "LeaveStatus",
    "LeaveSweepService",
    "LeaveSweepSummary",
    "NotificationRecorder",
    "PayrollLedgerWriter",
    "PayrollRunService",
    "PayrollRunSummary",
    "SalaryLedger",
    "WriteResult",
]
