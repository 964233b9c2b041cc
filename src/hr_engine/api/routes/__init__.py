"""API routes."""

from hr_engine.api.routes.attendance import router as attendance_router
from hr_engine.api.routes.employees import router as employees_router
from hr_engine.api.routes.health import router as health_router
from hr_engine.api.routes.leave_balances import router as leave_balances_router
from hr_engine.api.routes.leave_requests import router as leave_requests_router
from hr_engine.api.routes.payroll_runs import router as payroll_runs_router

__all__ = [
    "attendance_router",
    "employees_router",
    "health_router",
    "leave_balances_router",
    "leave_requests_router",
    "payroll_runs_router",
]
