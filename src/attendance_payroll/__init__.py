"""Attendance reconciliation and semi-monthly payroll."""

__version__ = "1.0.0"
