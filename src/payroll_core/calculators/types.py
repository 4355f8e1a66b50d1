"""Type definitions for the calculation pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum

WHOLE_UNIT = Decimal("1")
CENTS = Decimal("0.01")
ZERO = Decimal("0")


def round_whole(amount: Decimal) -> Decimal:
    """Round to whole currency units (half-up)."""
    return amount.quantize(WHOLE_UNIT, rounding=ROUND_HALF_UP)


def round_cents(amount: Decimal) -> Decimal:
    """Round to 2 decimal places (half-up)."""
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)


def to_decimal(value: Decimal | int | float | str) -> Decimal:
    """Coerce a numeric input to Decimal without float artifacts."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


class PayFrequency(str, Enum):
    """Pay frequencies supported at issuance."""

    MONTHLY = "monthly"
    SEMI_MONTHLY = "semi_monthly"
    BI_WEEKLY = "bi_weekly"
    WEEKLY = "weekly"


class Cutoff(str, Enum):
    """Half of a semi-monthly pay period."""

    FIRST = "first"
    SECOND = "second"


class GovDeductionSource(str, Enum):
    """Which semi-monthly cutoff carries the government deductions."""

    FIRST = "first"
    SECOND = "second"
    BOTH = "both"


class HolidayCategory(str, Enum):
    """Holiday categories with distinct pay rules."""

    REGULAR = "regular"
    SPECIAL = "special"


class AttendanceStatus(str, Enum):
    """Per-day attendance status supplied by the attendance collaborator."""

    PRESENT = "present"
    ABSENT = "absent"
    ON_LEAVE = "on_leave"


@dataclass(frozen=True)
class GovernmentDeductions:
    """The four statutory withholding amounts for one payslip."""

    sss: Decimal = ZERO
    philhealth: Decimal = ZERO
    pagibig: Decimal = ZERO
    withholding_tax: Decimal = ZERO

    @property
    def total(self) -> Decimal:
        return self.sss + self.philhealth + self.pagibig + self.withholding_tax


@dataclass(frozen=True)
class Holiday:
    """One entry of the holiday calendar."""

    holiday_date: date
    category: HolidayCategory
    display_name: str = ""


@dataclass(frozen=True)
class HolidayPayLine:
    """Adjustment contributed by a single holiday (traceability)."""

    holiday: Holiday
    worked: bool
    amount: Decimal


@dataclass
class HolidayPayResult:
    """Signed holiday adjustment for a period."""

    daily_rate: Decimal
    lines: list[HolidayPayLine] = field(default_factory=list)

    @property
    def total(self) -> Decimal:
        return sum((line.amount for line in self.lines), ZERO)


@dataclass(frozen=True)
class LoanBalance:
    """An active loan as seen by the allocator."""

    loan_id: str
    scheduled_installment: Decimal
    remaining_balance: Decimal


@dataclass(frozen=True)
class LoanAllocation:
    """Amount withheld from a payslip for one loan."""

    loan_id: str
    amount: Decimal
    remaining_before: Decimal


@dataclass
class LoanAllocationResult:
    """Loan withholdings for one payslip."""

    allocations: list[LoanAllocation] = field(default_factory=list)

    @property
    def total(self) -> Decimal:
        return sum((a.amount for a in self.allocations), ZERO)


@dataclass(frozen=True)
class PayComputation:
    """Financial fields of a payslip before it enters the lifecycle."""

    gross_pay: Decimal
    allowances: Decimal
    deductions: GovernmentDeductions
    other_deductions: Decimal
    loan_deduction: Decimal
    holiday_pay: Decimal
    gov_multiplier: Decimal

    @property
    def net_pay(self) -> Decimal:
        return (
            self.gross_pay
            + self.allowances
            + self.holiday_pay
            - self.deductions.total
            - self.other_deductions
            - self.loan_deduction
        )
