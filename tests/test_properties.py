"""Property-based tests for pay arithmetic.

Uses Hypothesis to check invariants that must hold for any salary, schedule
and loan book, not only the hand-picked cases.
"""

from decimal import Decimal

from hypothesis import given, settings
from hypothesis import strategies as st

from conftest import PAY_DATE, SECOND_HALF, fixed_clock, issue_request, make_settings
from payroll_core.calculators import LoanDeductionAllocator, compute_government_deductions
from payroll_core.calculators.types import (
    Cutoff,
    GovDeductionSource,
    LoanBalance,
    PayFrequency,
)
from payroll_core.collaborators import InMemoryEmployeeDirectory
from payroll_core.config import PaySchedule
from payroll_core.engine import PayrollEngine
from payroll_core.errors import ValidationRefusal
from payroll_core.models import Employee

amounts = st.integers(min_value=0, max_value=200_000).map(Decimal)
salaries = st.integers(min_value=500, max_value=250_000).map(Decimal)


def engine_for(salary: Decimal, deduct_from: GovDeductionSource) -> PayrollEngine:
    return PayrollEngine.create(
        settings=make_settings(PaySchedule(deduct_gov_from=deduct_from.value)),
        employees=InMemoryEmployeeDirectory(
            [Employee(id="EMP-P", name="Prop Test", monthly_salary=salary)]
        ),
        clock=fixed_clock,
    )


class TestNetPayIdentity:
    """Stored net always equals its components, and is positive when stored."""

    @given(
        salary=salaries,
        allowances=st.integers(min_value=0, max_value=20_000).map(Decimal),
        other=st.integers(min_value=0, max_value=20_000).map(Decimal),
        frequency=st.sampled_from(list(PayFrequency)),
        cutoff=st.sampled_from(list(Cutoff)),
        deduct_from=st.sampled_from(list(GovDeductionSource)),
    )
    @settings(max_examples=75, deadline=None)
    def test_issue_or_refuse(self, salary, allowances, other, frequency, cutoff, deduct_from):
        payroll = engine_for(salary, deduct_from)
        request = issue_request(
            "EMP-P",
            period=SECOND_HALF,
            issued_on=PAY_DATE,
            frequency=frequency,
            cutoff=cutoff,
            allowances=allowances,
            other_deductions=other,
        )

        try:
            payslip = payroll.payslips.issue(request)
        except ValidationRefusal as e:
            assert "net ≤ 0" in e.reason
            assert payroll.store.payslips == {}
            return

        assert payslip.net_pay > 0
        assert payslip.computed_net() == payslip.net_pay
        assert payslip.net_pay == payslip.net_pay.to_integral_value()


class TestMultiplierScaling:
    @given(salary=salaries)
    def test_half_split_never_exceeds_full(self, salary):
        full = compute_government_deductions(salary, Decimal("1"))
        half = compute_government_deductions(salary, Decimal("0.5"))

        assert half.total <= full.total
        # Per-term rounding can add at most one unit per term
        assert abs(half.total * 2 - full.total) <= 4


class TestLoanAllocation:
    @given(
        st.lists(
            st.tuples(amounts, amounts),
            max_size=6,
        )
    )
    def test_total_is_sum_of_capped_installments(self, pairs):
        loans = [
            LoanBalance(f"L{i}", installment, remaining)
            for i, (installment, remaining) in enumerate(pairs)
        ]

        result = LoanDeductionAllocator.allocate(loans)

        expected = sum((min(i, r) for i, r in pairs if r > 0), Decimal("0"))
        assert result.total == expected
        for allocation in result.allocations:
            assert allocation.amount <= allocation.remaining_before
