"""Records owned by external collaborators (employee directory, loans)."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal

from payroll_core.calculators.types import PayFrequency


@dataclass(frozen=True)
class Employee:
    """Directory view of an employee, consumed read-only."""

    id: str
    name: str
    monthly_salary: Decimal
    status: str = "active"
    pay_frequency: PayFrequency | None = None
    join_date: date | None = None
    resigned_on: date | None = None

    @property
    def is_active(self) -> bool:
        return self.status == "active"


@dataclass(frozen=True)
class LoanDeduction:
    """One withholding recorded against a loan."""

    loan_id: str
    payslip_id: str
    amount: Decimal
    remaining_after: Decimal
    deducted_at: datetime


@dataclass
class Loan:
    """Employee loan as kept by the loan collaborator."""

    id: str
    employee_id: str
    principal: Decimal
    scheduled_installment: Decimal
    remaining_balance: Decimal
    status: str = "active"
    deductions: list[LoanDeduction] = field(default_factory=list)
