"""Holiday pay resolver."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from datetime import date
from decimal import Decimal

from payroll_core.calculators.types import (
    AttendanceStatus,
    Holiday,
    HolidayCategory,
    HolidayPayLine,
    HolidayPayResult,
    round_whole,
)

AttendanceLookup = Callable[[date], "AttendanceStatus | None"]


class HolidayPayResolver:
    """Computes the signed holiday adjustment for a pay period.

    Base pay for the day is already part of gross, so:
    - regular holiday: worked adds one daily rate, absent adds nothing
    - special holiday: worked adds the premium over base, absent claws the
      day's base pay back
    """

    DAILY_RATE_DIVISOR = Decimal("22")
    SPECIAL_PREMIUM_MULTIPLIER = Decimal("1.3")

    @classmethod
    def daily_rate(cls, monthly_salary: Decimal) -> Decimal:
        """Daily rate from a monthly salary (fixed 22-day divisor)."""
        return round_whole(monthly_salary / cls.DAILY_RATE_DIVISOR)

    @classmethod
    def holiday_amount(
        cls, category: HolidayCategory, worked: bool, daily_rate: Decimal
    ) -> Decimal:
        """Adjustment for a single holiday."""
        if category == HolidayCategory.REGULAR:
            return daily_rate if worked else Decimal("0")
        if worked:
            return round_whole(daily_rate * (cls.SPECIAL_PREMIUM_MULTIPLIER - 1))
        return -daily_rate

    @classmethod
    def resolve(
        cls,
        monthly_salary: Decimal,
        period_start: date,
        period_end: date,
        holidays: Iterable[Holiday],
        attendance: AttendanceLookup,
    ) -> HolidayPayResult:
        """Resolve the adjustment over ``[period_start, period_end]``."""
        rate = cls.daily_rate(monthly_salary)
        result = HolidayPayResult(daily_rate=rate)

        for holiday in sorted(holidays, key=lambda h: h.holiday_date):
            if not period_start <= holiday.holiday_date <= period_end:
                continue
            worked = attendance(holiday.holiday_date) == AttendanceStatus.PRESENT
            result.lines.append(
                HolidayPayLine(
                    holiday=holiday,
                    worked=worked,
                    amount=cls.holiday_amount(holiday.category, worked, rate),
                )
            )

        return result
