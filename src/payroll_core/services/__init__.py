"""Payroll core services."""

from payroll_core.services.adjustment_service import AdjustmentService
from payroll_core.services.final_pay_service import FinalPayService
from payroll_core.services.locking_service import LockingService
from payroll_core.services.pay_run_service import (
    BankFileRow,
    PayrollRunService,
    render_bank_file,
)
from payroll_core.services.payslip_service import (
    IssueBatchResult,
    IssueRequest,
    PayslipService,
    cutoff_for_day,
    cutoff_period,
)
from payroll_core.services.state_machine import (
    AdjustmentStateMachine,
    FinalPayStateMachine,
    PayrollRunStateMachine,
    PayslipStateMachine,
)

__all__ = [
    "AdjustmentService",
    "AdjustmentStateMachine",
    "BankFileRow",
    "FinalPayService",
    "FinalPayStateMachine",
    "IssueBatchResult",
    "IssueRequest",
    "LockingService",
    "PayrollRunService",
    "PayrollRunStateMachine",
    "PayslipService",
    "PayslipStateMachine",
    "cutoff_for_day",
    "cutoff_period",
    "render_bank_file",
]
