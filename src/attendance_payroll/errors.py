"""Domain exceptions shared across calculators and services."""

from __future__ import annotations

from datetime import date
from uuid import UUID


class DataInconsistencyError(Exception):
    """Stored data cannot be processed as-is.

    The payroll batch records these against the employee, skips that
    employee, and carries on with the rest.
    """


class PeriodInconsistencyError(DataInconsistencyError):
    """Raised when the previous period-end is not a canonical boundary."""

    def __init__(self, period_end: date):
        self.period_end = period_end
        super().__init__(
            f"Previous payroll period ended on {period_end.isoformat()}, "
            "which is neither the 15th nor a month-end"
        )


class AttendanceDataError(DataInconsistencyError):
    """Raised when an attendance row cannot yield a valid duration."""

    def __init__(self, work_date: date, reason: str):
        self.work_date = work_date
        self.reason = reason
        super().__init__(f"Attendance on {work_date.isoformat()} rejected: {reason}")


class MissingSalaryError(DataInconsistencyError):
    """Raised when an employee has no usable basic salary."""

    def __init__(self, employee_number: str):
        self.employee_number = employee_number
        super().__init__(f"Employee {employee_number} has no positive basic salary")


class EmployeeNotFoundError(LookupError):
    """Raised when an employee id does not resolve."""

    def __init__(self, employee_id: UUID | str):
        self.employee_id = employee_id
        super().__init__(f"Employee {employee_id} not found")


class AttendanceStateError(Exception):
    """Raised for clock events that are invalid in the record's state."""

    def __init__(self, employee_id: UUID, reason: str):
        self.employee_id = employee_id
        self.reason = reason
        super().__init__(f"Attendance for employee {employee_id}: {reason}")


class LeaveNotFoundError(LookupError):
    """Raised when a leave request id does not resolve."""

    def __init__(self, leave_request_id: UUID | str):
        self.leave_request_id = leave_request_id
        super().__init__(f"Leave request {leave_request_id} not found")


class LeaveRequestError(ValueError):
    """Raised when a leave request is malformed (bad dates or day count)."""


class LeaveConflictError(Exception):
    """Raised when an employee already has an outstanding leave request."""

    def __init__(self, employee_id: UUID, existing_id: UUID):
        self.employee_id = employee_id
        self.existing_id = existing_id
        super().__init__(
            f"Employee {employee_id} already has outstanding leave request {existing_id}"
        )


class InsufficientLeaveCreditError(Exception):
    """Raised when approval would take leave credit below zero."""

    def __init__(self, employee_id: UUID, available: int, requested: int):
        self.employee_id = employee_id
        self.available = available
        self.requested = requested
        super().__init__(
            f"Employee {employee_id} has {available} leave credit(s), "
            f"{requested} requested"
        )
