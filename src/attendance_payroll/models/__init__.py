"""ORM models."""

from attendance_payroll.models.attendance import AttendanceRecord
from attendance_payroll.models.base import Base, TimestampMixin
from attendance_payroll.models.employee import Classification, Employee
from attendance_payroll.models.leave import LeaveRequest
from attendance_payroll.models.notification import NotificationLog
from attendance_payroll.models.payroll import PayrollRecord, SalaryContribution

__all__ = [
    "AttendanceRecord",
    "Base",
    "Classification",
    "Employee",
    "LeaveRequest",
    "NotificationLog",
    "PayrollRecord",
    "SalaryContribution",
    "TimestampMixin",
]
