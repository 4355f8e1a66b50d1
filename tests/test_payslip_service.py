"""Tests for payslip issuance and the payslip lifecycle."""

from datetime import date
from decimal import Decimal

import pytest

from conftest import (
    FIRST_HALF,
    PAY_DATE,
    SECOND_HALF,
    advance_to_paid,
    fixed_clock,
    issue_request,
    make_settings,
)
from payroll_core.calculators.types import (
    AttendanceStatus,
    Cutoff,
    Holiday,
    HolidayCategory,
    PayFrequency,
)
from payroll_core.collaborators import InMemoryLoanLedger
from payroll_core.engine import PayrollEngine
from payroll_core.errors import (
    ImmutabilityViolation,
    NotFoundError,
    StateViolation,
    ValidationRefusal,
)
from payroll_core.events import PayslipIssued
from payroll_core.models import Loan, PayslipKind, PayslipStatus
from payroll_core.services import cutoff_for_day, cutoff_period


class TestIssuance:
    """Test single payslip issuance."""

    def test_second_cutoff_carries_no_gov_deductions(self, payroll):
        """Default schedule deducts on the first cutoff only."""
        payslip = payroll.payslips.issue(
            issue_request(
                "EMP-001",
                allowances=Decimal("500"),
                other_deductions=Decimal("200"),
            )
        )

        assert payslip.id == "PS-0001"
        assert payslip.status == PayslipStatus.ISSUED
        assert payslip.cutoff == Cutoff.SECOND
        assert payslip.gross_pay == Decimal("11000")
        assert payslip.government_deductions == Decimal("0")
        assert payslip.gov_multiplier == Decimal("0")
        assert payslip.net_pay == Decimal("11300")

    def test_first_cutoff_takes_full_deductions(self, payroll):
        payslip = payroll.payslips.issue(issue_request("EMP-001", period=FIRST_HALF))

        assert payslip.cutoff == Cutoff.FIRST
        assert payslip.sss_deduction == Decimal("990")
        assert payslip.philhealth_deduction == Decimal("550")
        assert payslip.pagibig_deduction == Decimal("100")
        assert payslip.tax_deduction == Decimal("0")
        assert payslip.net_pay == Decimal("9360")

    def test_split_schedule_halves_each_deduction(self, payroll):
        payroll.store.update_pay_schedule(deduct_gov_from="both")

        payslip = payroll.payslips.issue(issue_request("EMP-001"))

        assert payslip.gov_multiplier == Decimal("0.5")
        assert payslip.sss_deduction == Decimal("495")
        assert payslip.philhealth_deduction == Decimal("275")
        assert payslip.pagibig_deduction == Decimal("50")
        assert payslip.net_pay == Decimal("10180")

    def test_stored_multiplier_survives_schedule_change(self, payroll):
        payslip = payroll.payslips.issue(issue_request("EMP-001", period=FIRST_HALF))

        payroll.store.update_pay_schedule(deduct_gov_from="second")

        assert payslip.gov_multiplier == Decimal("1")
        assert payslip.net_pay == Decimal("9360")

    def test_frequency_defaults_to_schedule(self, payroll):
        payslip = payroll.payslips.issue(issue_request("EMP-002", frequency=None))
        assert payslip.pay_frequency == PayFrequency.SEMI_MONTHLY
        assert payslip.net_pay == Decimal("15000")

    def test_monthly_frequency_takes_full_deductions(self, payroll):
        payslip = payroll.payslips.issue(
            issue_request(
                "EMP-002",
                period=(date(2025, 3, 1), date(2025, 3, 31)),
                frequency=PayFrequency.MONTHLY,
            )
        )
        assert payslip.cutoff is None
        assert payslip.net_pay == Decimal("26755")

    def test_net_not_positive_is_refused(self, payroll):
        with pytest.raises(ValidationRefusal) as exc_info:
            payroll.payslips.issue(issue_request("EMP-003", period=FIRST_HALF))

        assert exc_info.value.reason == "net ≤ 0 (computed -38)"
        assert payroll.store.payslips == {}

    def test_unknown_employee(self, payroll):
        with pytest.raises(NotFoundError):
            payroll.payslips.issue(issue_request("EMP-404"))

    def test_inverted_period_is_refused(self, payroll):
        with pytest.raises(ValidationRefusal, match="period end"):
            payroll.payslips.issue(
                issue_request("EMP-001", period=(date(2025, 3, 31), date(2025, 3, 16)))
            )

    def test_stored_net_matches_components(self, issued_pair):
        for payslip in issued_pair:
            assert payslip.computed_net() == payslip.net_pay

    def test_joins_open_run_for_its_date(self, payroll):
        run = payroll.runs.create_draft(PAY_DATE)
        assert run.payslip_count == 0

        payslip = payroll.payslips.issue(issue_request("EMP-001"))

        assert run.payslip_ids == [payslip.id]
        assert run.total_net == Decimal("11000")


class TestHolidaysAndLoans:
    """Test collaborator inputs folded into net pay."""

    def test_holiday_pay_added(self, payroll, attendance):
        attendance.add_holiday(Holiday(date(2025, 3, 20), HolidayCategory.SPECIAL, "Local"))
        attendance.mark("EMP-001", date(2025, 3, 20), AttendanceStatus.PRESENT)

        payslip = payroll.payslips.issue(issue_request("EMP-001"))

        assert payslip.holiday_pay == Decimal("300")
        assert payslip.net_pay == Decimal("11300")

    def test_missed_special_holiday_is_deducted(self, payroll, attendance):
        attendance.add_holiday(Holiday(date(2025, 3, 20), HolidayCategory.SPECIAL, "Local"))

        payslip = payroll.payslips.issue(issue_request("EMP-001"))

        assert payslip.holiday_pay == Decimal("-1000")
        assert payslip.net_pay == Decimal("10000")

    def test_loan_withheld_and_recorded_once(self, payroll, loans):
        loans.add(
            Loan(
                id="LN-1",
                employee_id="EMP-001",
                principal=Decimal("3000"),
                scheduled_installment=Decimal("1000"),
                remaining_balance=Decimal("1500"),
            )
        )

        first = payroll.payslips.issue(issue_request("EMP-001"))
        second = payroll.payslips.issue(
            issue_request(
                "EMP-001",
                period=(date(2025, 4, 1), date(2025, 4, 15)),
                issued_on=date(2025, 4, 15),
            )
        )

        assert first.loan_deduction == Decimal("1000")
        assert first.net_pay == Decimal("10000")
        # Capped at the 500 left on the loan
        assert second.loan_deduction == Decimal("500")
        assert second.net_pay == Decimal("8860")

        loan = loans.get("LN-1")
        assert loan.status == "settled"
        assert [d.payslip_id for d in loan.deductions] == [first.id, second.id]


class TestBatchIssuance:
    """Test per-employee isolation in batches."""

    def test_refusal_is_skipped_not_fatal(self, payroll):
        result = payroll.payslips.issue_batch(
            issue_request(emp_id, period=FIRST_HALF)
            for emp_id in ("EMP-001", "EMP-002", "EMP-003")
        )

        assert result.issued_count == 2
        assert [p.employee_id for p in result.issued] == ["EMP-001", "EMP-002"]
        assert len(result.skipped) == 1
        employee_id, reason = result.skipped[0]
        assert employee_id == "EMP-003"
        assert "net ≤ 0" in reason

    def test_unknown_employee_is_skipped(self, payroll):
        result = payroll.payslips.issue_batch(
            [issue_request("EMP-404"), issue_request("EMP-001")]
        )
        assert result.issued_count == 1
        assert result.skipped[0][0] == "EMP-404"

    def test_issued_events_follow_the_whole_batch(self, payroll):
        stored_at_delivery = []
        payroll.emitter.on(
            PayslipIssued, lambda event: stored_at_delivery.append(len(payroll.store.payslips))
        )

        payroll.payslips.issue_batch([issue_request("EMP-001"), issue_request("EMP-002")])

        assert stored_at_delivery == [2, 2]


def loan(loan_id: str, installment: str, remaining: str) -> Loan:
    return Loan(
        id=loan_id,
        employee_id="EMP-001",
        principal=Decimal(remaining),
        scheduled_installment=Decimal(installment),
        remaining_balance=Decimal(remaining),
    )


class FlakyLedger(InMemoryLoanLedger):
    """Loan ledger that cannot record against one loan."""

    def __init__(self, loans, failing_loan: str):
        super().__init__(loans)
        self.failing_loan = failing_loan

    def record_deduction(self, loan_id, payslip_id, amount):
        if loan_id == self.failing_loan:
            raise RuntimeError("loan ledger unavailable")
        return super().record_deduction(loan_id, payslip_id, amount)


class TestLoanLedgerFailure:
    """Test that a ledger failure during issuance leaves no partial state."""

    @pytest.fixture
    def ledger(self):
        return FlakyLedger([loan("L1", "1000", "5000"), loan("L2", "500", "2000")], "L2")

    @pytest.fixture
    def flaky_payroll(self, employees, ledger):
        return PayrollEngine.create(
            settings=make_settings(),
            employees=employees,
            loans=ledger,
            clock=fixed_clock,
        )

    def test_issue_is_undone(self, flaky_payroll, ledger):
        run = flaky_payroll.runs.create_draft(PAY_DATE)

        with pytest.raises(RuntimeError):
            flaky_payroll.payslips.issue(issue_request("EMP-001"))

        assert flaky_payroll.store.payslips == {}
        assert run.payslip_ids == []
        first = ledger.get("L1")
        assert first.remaining_balance == Decimal("5000")
        assert first.deductions == []
        assert first.status == "active"

    def test_batch_skips_and_continues(self, flaky_payroll, ledger):
        result = flaky_payroll.payslips.issue_batch(
            [issue_request("EMP-001"), issue_request("EMP-002")]
        )

        assert [p.employee_id for p in result.issued] == ["EMP-002"]
        assert result.skipped == [("EMP-001", "error: loan ledger unavailable")]
        assert [p.employee_id for p in flaky_payroll.store.payslips.values()] == ["EMP-002"]
        assert ledger.get("L1").deductions == []

    def test_recovered_ledger_records_each_loan_once(self, flaky_payroll, ledger):
        with pytest.raises(RuntimeError):
            flaky_payroll.payslips.issue(issue_request("EMP-001"))
        ledger.failing_loan = None

        payslip = flaky_payroll.payslips.issue(issue_request("EMP-001"))

        assert payslip.loan_deduction == Decimal("1500")
        assert payslip.net_pay == Decimal("9500")
        assert ledger.get("L1").remaining_balance == Decimal("4000")
        assert ledger.get("L2").remaining_balance == Decimal("1500")


class TestThirteenthMonth:
    def test_one_twelfth_of_salary_without_deductions(self, payroll):
        result = payroll.payslips.generate_thirteenth_month(2025, date(2025, 12, 20))

        amounts = {p.employee_id: p.net_pay for p in result.issued}
        assert amounts == {
            "EMP-001": Decimal("1833"),
            "EMP-002": Decimal("2500"),
            "EMP-003": Decimal("67"),
        }
        payslip = result.issued[0]
        assert payslip.kind == PayslipKind.THIRTEENTH_MONTH
        assert payslip.period_start == date(2025, 1, 1)
        assert payslip.period_end == date(2025, 12, 31)
        assert payslip.government_deductions == Decimal("0")
        assert payslip.notes == "13th month pay 2025"

    def test_selected_employees_only(self, payroll):
        result = payroll.payslips.generate_thirteenth_month(
            2025, date(2025, 12, 20), employee_ids=["EMP-002", "EMP-404"]
        )
        assert [p.employee_id for p in result.issued] == ["EMP-002"]
        assert result.skipped[0][0] == "EMP-404"


class TestLifecycle:
    """Test issued → confirmed → published → paid → acknowledged."""

    def test_full_lifecycle(self, payroll, issued_pair, notifier):
        ana, _ = issued_pair

        advance_to_paid(payroll, ana.id)
        payroll.payslips.sign(ana.id, "ana-signature")
        payroll.payslips.acknowledge(ana.id, "EMP-001")

        assert ana.status == PayslipStatus.ACKNOWLEDGED
        assert ana.payment_method == "bank_transfer"
        assert ana.payment_reference == "REF-1"
        assert ana.acknowledged_at is not None
        assert notifier.kinds() == [
            "payslip_published",
            "payslip_paid",
            "payslip_signed",
            "payslip_acknowledged",
        ]

    def test_cannot_skip_confirmation(self, payroll, issued_pair):
        ana, _ = issued_pair

        with pytest.raises(StateViolation):
            payroll.payslips.publish(ana.id)
        assert ana.status == PayslipStatus.ISSUED
        assert ana.published_at is None

    def test_payment_requires_method(self, payroll, issued_pair):
        ana, _ = issued_pair
        payroll.payslips.confirm(ana.id)
        payroll.payslips.publish(ana.id)

        with pytest.raises(ValidationRefusal):
            payroll.payslips.record_payment(ana.id, "")
        assert ana.status == PayslipStatus.PUBLISHED

    def test_payment_records_paying_actor(self, payroll, issued_pair):
        ana, _ = issued_pair
        payroll.payslips.confirm(ana.id)
        payroll.payslips.publish(ana.id)

        payroll.payslips.record_payment(ana.id, "bank_transfer", "REF-9", actor_id="FIN-9")

        assert ana.paid_by == "FIN-9"
        assert ana.paid_at is not None

    def test_confirm_refused_once_run_locked(self, payroll, issued_pair):
        ana, _ = issued_pair
        payroll.runs.lock(PAY_DATE, "HR-1")

        with pytest.raises(StateViolation, match="is locked"):
            payroll.payslips.confirm(ana.id)
        assert ana.status == PayslipStatus.ISSUED

    def test_unknown_payslip(self, payroll):
        with pytest.raises(NotFoundError):
            payroll.payslips.confirm("PS-9999")


class TestSignAndAcknowledge:
    """Test signature and acknowledgement rules."""

    def test_sign_keeps_status(self, payroll, issued_pair):
        ana, _ = issued_pair
        payroll.payslips.confirm(ana.id)
        payroll.payslips.publish(ana.id)

        payroll.payslips.sign(ana.id, "ana-signature")

        assert ana.status == PayslipStatus.PUBLISHED
        assert ana.signature == "ana-signature"
        assert ana.signed_at is not None

    def test_sign_before_publish_is_refused(self, payroll, issued_pair):
        ana, _ = issued_pair
        payroll.payslips.confirm(ana.id)

        with pytest.raises(StateViolation, match="published"):
            payroll.payslips.sign(ana.id, "ana-signature")
        assert ana.signature is None

    def test_sign_only_once(self, payroll, issued_pair):
        ana, _ = issued_pair
        advance_to_paid(payroll, ana.id)
        payroll.payslips.sign(ana.id, "first")

        with pytest.raises(StateViolation, match="already signed"):
            payroll.payslips.sign(ana.id, "second")
        assert ana.signature == "first"

    def test_empty_signature_is_refused(self, payroll, issued_pair):
        ana, _ = issued_pair
        advance_to_paid(payroll, ana.id)

        with pytest.raises(ValidationRefusal):
            payroll.payslips.sign(ana.id, "")

    def test_acknowledge_requires_signature(self, payroll, issued_pair):
        ana, _ = issued_pair
        advance_to_paid(payroll, ana.id)

        with pytest.raises(StateViolation, match="must be signed"):
            payroll.payslips.acknowledge(ana.id, "EMP-001")
        assert ana.status == PayslipStatus.PAID

    def test_acknowledge_requires_paid(self, payroll, issued_pair):
        ana, _ = issued_pair
        payroll.payslips.confirm(ana.id)
        payroll.payslips.publish(ana.id)
        payroll.payslips.sign(ana.id, "ana-signature")

        with pytest.raises(StateViolation):
            payroll.payslips.acknowledge(ana.id, "EMP-001")
        assert ana.status == PayslipStatus.PUBLISHED

    def test_only_owner_may_acknowledge(self, payroll, issued_pair):
        ana, _ = issued_pair
        advance_to_paid(payroll, ana.id)
        payroll.payslips.sign(ana.id, "ana-signature")

        with pytest.raises(ValidationRefusal):
            payroll.payslips.acknowledge(ana.id, "EMP-002")
        assert ana.status == PayslipStatus.PAID


class TestQueries:
    def test_pending_signed_and_unsigned(self, payroll, issued_pair):
        ana, ben = issued_pair
        advance_to_paid(payroll, ana.id)
        payroll.payslips.confirm(ben.id)
        payroll.payslips.publish(ben.id)
        payroll.payslips.sign(ben.id, "ben-signature")

        assert payroll.payslips.pending() == []
        assert payroll.payslips.signed() == [ben]
        assert payroll.payslips.unsigned_published() == [ana]

    def test_by_employee_and_status(self, payroll, issued_pair):
        ana, ben = issued_pair
        payroll.payslips.confirm(ben.id)

        assert payroll.payslips.by_employee("EMP-001") == [ana]
        assert payroll.payslips.by_status(PayslipStatus.CONFIRMED) == [ben]
        assert payroll.payslips.pending() == [ana]


class TestCutoffHelpers:
    def test_cutoff_for_day(self):
        assert cutoff_for_day(1) == Cutoff.FIRST
        assert cutoff_for_day(15) == Cutoff.FIRST
        assert cutoff_for_day(16) == Cutoff.SECOND
        assert cutoff_for_day(11, first_cutoff=10) == Cutoff.SECOND

    def test_cutoff_period(self):
        assert cutoff_period(2025, 3, Cutoff.FIRST) == FIRST_HALF
        assert cutoff_period(2025, 3, Cutoff.SECOND) == SECOND_HALF
        assert cutoff_period(2024, 2, Cutoff.SECOND) == (date(2024, 2, 16), date(2024, 2, 29))


class TestIssuanceOnLockedDate:
    def test_locked_date_refuses_new_payslips(self, payroll, issued_pair):
        payroll.runs.lock(PAY_DATE, "HR-1")

        with pytest.raises(ImmutabilityViolation, match="adjustment"):
            payroll.payslips.issue(issue_request("EMP-001"))
        assert payroll.runs.get_run(PAY_DATE).payslip_count == 2
