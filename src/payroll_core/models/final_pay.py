"""Final pay computation record."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from payroll_core.models.status import FinalPayStatus


def final_pay_id_for(employee_id: str, resigned_at: datetime) -> str:
    """Computations are keyed by employee and resignation timestamp."""
    return f"FP-{employee_id}-{resigned_at.strftime('%Y%m%dT%H%M%S')}"


@dataclass
class FinalPayComputation:
    """One-shot settlement for a resignation event."""

    id: str
    employee_id: str
    resigned_at: datetime
    pro_rated_salary: Decimal
    leave_payout: Decimal
    overtime_payout: Decimal
    loan_balance: Decimal
    other_deductions: Decimal
    gross_final_pay: Decimal
    net_final_pay: Decimal
    created_at: datetime
    status: FinalPayStatus = FinalPayStatus.DRAFT

    locked_at: datetime | None = None
    locked_by: str | None = None
    published_at: datetime | None = None
    paid_at: datetime | None = None
