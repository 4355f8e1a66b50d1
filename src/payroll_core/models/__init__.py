"""Payroll domain records."""

from payroll_core.models.adjustment import Adjustment, AdjustmentType
from payroll_core.models.employee import Employee, Loan, LoanDeduction
from payroll_core.models.final_pay import FinalPayComputation, final_pay_id_for
from payroll_core.models.payroll_run import PayrollRun, PolicySnapshot, run_id_for
from payroll_core.models.payslip import Payslip, PayslipKind
from payroll_core.models.status import (
    AdjustmentStatus,
    FinalPayStatus,
    PayrollRunStatus,
    PayslipStatus,
)

__all__ = [
    "Adjustment",
    "AdjustmentStatus",
    "AdjustmentType",
    "Employee",
    "FinalPayComputation",
    "FinalPayStatus",
    "Loan",
    "LoanDeduction",
    "Payslip",
    "PayslipKind",
    "PayslipStatus",
    "PayrollRun",
    "PayrollRunStatus",
    "PolicySnapshot",
    "final_pay_id_for",
    "run_id_for",
]
