"""Loan deduction allocator."""

from __future__ import annotations

from collections.abc import Iterable

from payroll_core.calculators.types import (
    ZERO,
    LoanAllocation,
    LoanAllocationResult,
    LoanBalance,
)


class LoanDeductionAllocator:
    """Computes per-loan withholdings for one payslip.

    Each active loan withholds its scheduled installment, capped by the
    remaining balance. Loans that would withhold nothing are dropped.
    """

    @staticmethod
    def withholding_for(loan: LoanBalance) -> LoanAllocation:
        amount = min(loan.scheduled_installment, loan.remaining_balance)
        return LoanAllocation(
            loan_id=loan.loan_id,
            amount=max(amount, ZERO),
            remaining_before=loan.remaining_balance,
        )

    @classmethod
    def allocate(cls, loans: Iterable[LoanBalance]) -> LoanAllocationResult:
        result = LoanAllocationResult()
        for loan in loans:
            allocation = cls.withholding_for(loan)
            if allocation.amount > 0:
                result.allocations.append(allocation)
        return result
