"""Government deduction and gross pay calculator.

All statutory functions take the MONTHLY salary and return the employee share,
following the simulated Philippine 2025 contribution tables.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from payroll_core.calculators.types import (
    ZERO,
    Cutoff,
    GovDeductionSource,
    GovernmentDeductions,
    PayFrequency,
    round_cents,
    round_whole,
)

SSS_MIN_CREDIT = Decimal("4250")
SSS_MAX_CREDIT = Decimal("29750")
SSS_CREDIT_STEP = Decimal("500")
SSS_EMPLOYEE_RATE = Decimal("0.045")

PHILHEALTH_FLOOR_SALARY = Decimal("10000")
PHILHEALTH_CEILING_SALARY = Decimal("100000")
PHILHEALTH_EMPLOYEE_RATE = Decimal("0.025")

PAGIBIG_LOW_SALARY = Decimal("1500")
PAGIBIG_LOW_RATE = Decimal("0.01")
PAGIBIG_MAX_SHARE = Decimal("100")

# (upper bound, bracket floor, base tax, rate applied above the floor)
WITHHOLDING_BRACKETS: list[tuple[Decimal | None, Decimal, Decimal, Decimal]] = [
    (Decimal("20833"), Decimal("0"), Decimal("0"), Decimal("0")),
    (Decimal("33333"), Decimal("20833"), Decimal("0"), Decimal("0.15")),
    (Decimal("66667"), Decimal("33333"), Decimal("1875"), Decimal("0.20")),
    (Decimal("166667"), Decimal("66667"), Decimal("8542"), Decimal("0.25")),
    (Decimal("666667"), Decimal("166667"), Decimal("33542"), Decimal("0.30")),
    (None, Decimal("666667"), Decimal("183542"), Decimal("0.35")),
]

VALID_MULTIPLIERS = (Decimal("0"), Decimal("0.5"), Decimal("1"))


def compute_sss(monthly_salary: Decimal) -> Decimal:
    """SSS employee share: 4.5% of the salary credit, floored and capped."""
    if monthly_salary <= SSS_MIN_CREDIT:
        return Decimal("180")
    if monthly_salary >= SSS_MAX_CREDIT:
        return Decimal("1350")
    steps = (monthly_salary / SSS_CREDIT_STEP).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    credit = min(SSS_MAX_CREDIT, max(SSS_MIN_CREDIT, steps * SSS_CREDIT_STEP))
    return round_cents(credit * SSS_EMPLOYEE_RATE)


def compute_philhealth(monthly_salary: Decimal) -> Decimal:
    """PhilHealth employee share: 2.5% of basic salary, floored and capped."""
    if monthly_salary <= PHILHEALTH_FLOOR_SALARY:
        return Decimal("250")
    if monthly_salary >= PHILHEALTH_CEILING_SALARY:
        return Decimal("2500")
    return round_cents(monthly_salary * PHILHEALTH_EMPLOYEE_RATE)


def compute_pagibig(monthly_salary: Decimal) -> Decimal:
    """Pag-IBIG employee share, capped at 100 per month."""
    if monthly_salary <= PAGIBIG_LOW_SALARY:
        return round_whole(monthly_salary * PAGIBIG_LOW_RATE)
    return PAGIBIG_MAX_SHARE


def compute_withholding_tax(taxable_income: Decimal) -> Decimal:
    """Monthly withholding tax on income net of the other contributions."""
    for upper, floor, base, rate in WITHHOLDING_BRACKETS:
        if upper is None or taxable_income <= upper:
            return base + round_whole((taxable_income - floor) * rate)
    raise AssertionError("unreachable: open-ended bracket")


def compute_government_deductions(
    monthly_salary: Decimal,
    gov_multiplier: Decimal = Decimal("1"),
) -> GovernmentDeductions:
    """Compute the four deductions and scale them by the cutoff multiplier.

    The multiplier is applied after the base computation and each term is
    rounded to whole units independently.
    """
    if gov_multiplier not in VALID_MULTIPLIERS:
        raise ValueError(f"Government multiplier must be one of 0, 0.5, 1 (got {gov_multiplier})")

    sss = compute_sss(monthly_salary)
    philhealth = compute_philhealth(monthly_salary)
    pagibig = compute_pagibig(monthly_salary)
    taxable = max(ZERO, monthly_salary - sss - philhealth - pagibig)
    tax = compute_withholding_tax(taxable)

    return GovernmentDeductions(
        sss=round_whole(sss * gov_multiplier),
        philhealth=round_whole(philhealth * gov_multiplier),
        pagibig=round_whole(pagibig * gov_multiplier),
        withholding_tax=round_whole(tax * gov_multiplier),
    )


def compute_gross_pay(monthly_salary: Decimal, frequency: PayFrequency) -> Decimal:
    """Per-period gross pay for a monthly salary."""
    if frequency == PayFrequency.MONTHLY:
        return monthly_salary
    if frequency == PayFrequency.SEMI_MONTHLY:
        return round_whole(monthly_salary / 2)
    if frequency == PayFrequency.BI_WEEKLY:
        return round_whole(monthly_salary * 12 / 26)
    if frequency == PayFrequency.WEEKLY:
        return round_whole(monthly_salary * 12 / 52)
    raise ValueError(f"Unknown pay frequency: {frequency}")


def resolve_gov_multiplier(
    frequency: PayFrequency,
    cutoff: Cutoff | None,
    deduct_from: GovDeductionSource,
) -> Decimal:
    """Government deduction multiplier for a frequency and cutoff half."""
    if frequency != PayFrequency.SEMI_MONTHLY:
        return Decimal("1")
    if deduct_from == GovDeductionSource.BOTH:
        return Decimal("0.5")
    if cutoff is None:
        raise ValueError("Semi-monthly issuance requires a cutoff")
    if deduct_from.value == cutoff.value:
        return Decimal("1")
    return Decimal("0")
