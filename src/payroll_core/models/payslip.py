"""Payslip record."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum

from payroll_core.calculators.types import ZERO, Cutoff, PayFrequency
from payroll_core.models.status import PayslipStatus


class PayslipKind(str, Enum):
    """Origin of a payslip."""

    REGULAR = "regular"
    THIRTEENTH_MONTH = "thirteenth_month"
    CORRECTION = "correction"


@dataclass
class Payslip:
    """One employee's computed pay for one period.

    ``status`` is the single source of truth for the lifecycle; the ``*_at``
    timestamps are metadata recorded by the transitions.
    """

    id: str
    employee_id: str
    period_start: date
    period_end: date
    issued_on: date
    pay_frequency: PayFrequency
    gross_pay: Decimal
    allowances: Decimal
    sss_deduction: Decimal
    philhealth_deduction: Decimal
    pagibig_deduction: Decimal
    tax_deduction: Decimal
    other_deductions: Decimal
    loan_deduction: Decimal
    holiday_pay: Decimal
    net_pay: Decimal
    gov_multiplier: Decimal
    issued_at: datetime
    status: PayslipStatus = PayslipStatus.ISSUED
    kind: PayslipKind = PayslipKind.REGULAR
    cutoff: Cutoff | None = None

    confirmed_at: datetime | None = None
    published_at: datetime | None = None
    paid_at: datetime | None = None
    acknowledged_at: datetime | None = None

    payment_method: str | None = None
    payment_reference: str | None = None
    paid_by: str | None = None

    signature: str | None = None
    signed_at: datetime | None = None

    notes: str | None = None
    adjustment_ref: str | None = None

    @property
    def is_signed(self) -> bool:
        return self.signature is not None

    @property
    def government_deductions(self) -> Decimal:
        return (
            self.sss_deduction
            + self.philhealth_deduction
            + self.pagibig_deduction
            + self.tax_deduction
        )

    def computed_net(self) -> Decimal:
        """Net pay recomputed from the stored financial fields."""
        return (
            self.gross_pay
            + self.allowances
            + self.holiday_pay
            - self.government_deductions
            - self.other_deductions
            - self.loan_deduction
        )


EMPTY_DEDUCTIONS = {
    "sss_deduction": ZERO,
    "philhealth_deduction": ZERO,
    "pagibig_deduction": ZERO,
    "tax_deduction": ZERO,
    "other_deductions": ZERO,
    "loan_deduction": ZERO,
    "holiday_pay": ZERO,
}
