"""API routes."""

from payroll_core.api.routes.adjustments import router as adjustments_router
from payroll_core.api.routes.final_pay import router as final_pay_router
from payroll_core.api.routes.health import router as health_router
from payroll_core.api.routes.pay_runs import router as pay_runs_router
from payroll_core.api.routes.payslips import router as payslips_router
from payroll_core.api.routes.schedule import router as schedule_router

__all__ = [
    "adjustments_router",
    "final_pay_router",
    "health_router",
    "pay_runs_router",
    "payslips_router",
    "schedule_router",
]
