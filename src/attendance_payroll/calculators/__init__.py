"""Attendance reconciliation and pay calculation."""

from attendance_payroll.calculators.pay_calculator import PayCalculator
from attendance_payroll.calculators.period_resolver import PeriodResolver
from attendance_payroll.calculators.reconciliation import (
    AttendanceReconciler,
    compute_worked_hours,
    reconcile,
)
from attendance_payroll.calculators.types import (
    DailyAttendance,
    DayPay,
    DayStatus,
    PayBreakdown,
    PayPeriod,
    ReconciliationResult,
)

__all__ = [
    "AttendanceReconciler",
    "DailyAttendance",
    "DayPay",
    "DayStatus",
    "PayBreakdown",
    "PayCalculator",
    "PayPeriod",
    "PeriodResolver",
    "ReconciliationResult",
    "compute_worked_hours",
    "reconcile",
]
