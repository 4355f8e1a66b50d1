"""Payroll calculation components."""

from payroll_core.calculators.deductions import (
    compute_government_deductions,
    compute_gross_pay,
    resolve_gov_multiplier,
)
from payroll_core.calculators.final_pay import FinalPayCalculator, FinalPayInputs
from payroll_core.calculators.holiday_pay import HolidayPayResolver
from payroll_core.calculators.loan_allocator import LoanDeductionAllocator

__all__ = [
    "compute_government_deductions",
    "compute_gross_pay",
    "resolve_gov_multiplier",
    "FinalPayCalculator",
    "FinalPayInputs",
    "HolidayPayResolver",
    "LoanDeductionAllocator",
]
