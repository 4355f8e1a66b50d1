"""Final pay calculator for resigning employees."""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from payroll_core.calculators.holiday_pay import HolidayPayResolver
from payroll_core.calculators.types import ZERO, round_whole


@dataclass(frozen=True)
class FinalPayInputs:
    """Inputs for a one-shot final pay computation."""

    monthly_salary: Decimal
    resigned_at: datetime
    unpaid_overtime_hours: Decimal = ZERO
    leave_days: Decimal = ZERO
    loan_balance: Decimal = ZERO
    other_deductions: Decimal = ZERO


@dataclass(frozen=True)
class FinalPayBreakdown:
    """Result of a final pay computation. Net may be zero or negative."""

    pro_rated_salary: Decimal
    leave_payout: Decimal
    overtime_payout: Decimal
    loan_balance: Decimal
    other_deductions: Decimal

    @property
    def gross_final_pay(self) -> Decimal:
        return self.pro_rated_salary + self.leave_payout + self.overtime_payout

    @property
    def net_final_pay(self) -> Decimal:
        return self.gross_final_pay - self.loan_balance - self.other_deductions


class FinalPayCalculator:
    """Computes final pay over the calendar month of resignation."""

    HOURS_PER_DAY = Decimal("8")
    OVERTIME_MULTIPLIER = Decimal("1.25")

    @staticmethod
    def elapsed_fraction(resigned_at: datetime) -> Decimal:
        """Fraction of the resignation month worked, resignation day included."""
        days_in_month = calendar.monthrange(resigned_at.year, resigned_at.month)[1]
        return Decimal(resigned_at.day) / Decimal(days_in_month)

    @classmethod
    def compute(cls, inputs: FinalPayInputs) -> FinalPayBreakdown:
        if inputs.monthly_salary < 0:
            raise ValueError("Monthly salary cannot be negative")
        if inputs.unpaid_overtime_hours < 0 or inputs.leave_days < 0:
            raise ValueError("Overtime hours and leave days cannot be negative")

        daily_rate = HolidayPayResolver.daily_rate(inputs.monthly_salary)
        hourly_rate = daily_rate / cls.HOURS_PER_DAY

        return FinalPayBreakdown(
            pro_rated_salary=round_whole(
                inputs.monthly_salary * cls.elapsed_fraction(inputs.resigned_at)
            ),
            leave_payout=round_whole(inputs.leave_days * daily_rate),
            overtime_payout=round_whole(
                inputs.unpaid_overtime_hours * hourly_rate * cls.OVERTIME_MULTIPLIER
            ),
            loan_balance=inputs.loan_balance,
            other_deductions=inputs.other_deductions,
        )
