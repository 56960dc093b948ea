"""API routes."""

from attendance_payroll.api.routes.attendance import router as attendance_router
from attendance_payroll.api.routes.health import router as health_router
from attendance_payroll.api.routes.leave import router as leave_router
from attendance_payroll.api.routes.payroll import router as payroll_router

__all__ = ["attendance_router", "health_router", "leave_router", "payroll_router"]
