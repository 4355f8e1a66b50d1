"""Tests for the adjustment workflow on locked runs."""

from datetime import date
from decimal import Decimal

import pytest

from conftest import PAY_DATE, issue_request
from payroll_core.errors import (
    ImmutabilityViolation,
    NotFoundError,
    StateViolation,
    ValidationRefusal,
)
from payroll_core.models import (
    AdjustmentStatus,
    AdjustmentType,
    PayrollRunStatus,
    PayslipKind,
)
from payroll_core.services import BankFileRow

NEXT_PAY_DATE = date(2025, 4, 15)


@pytest.fixture
def locked_run(payroll, issued_pair):
    return payroll.runs.lock(PAY_DATE, "HR-1")


def propose(payroll, amount="1500", **overrides):
    fields = dict(
        employee_id="EMP-001",
        adjustment_type=AdjustmentType.EARNINGS,
        amount=Decimal(amount),
        reason="Missed overtime",
        payroll_run_id="RUN-2025-03-31",
        created_by="HR-1",
        reference_payslip_id="PS-0001",
    )
    fields.update(overrides)
    return payroll.adjustments.propose(**fields)


class TestPropose:
    def test_starts_pending(self, payroll, locked_run):
        adjustment = propose(payroll)

        assert adjustment.id == "ADJ-0001"
        assert adjustment.status == AdjustmentStatus.PENDING
        assert payroll.adjustments.list_adjustments(AdjustmentStatus.PENDING) == [adjustment]

    def test_zero_amount_refused(self, payroll, locked_run):
        with pytest.raises(ValidationRefusal, match="zero"):
            propose(payroll, amount="0")

    def test_reason_required(self, payroll, locked_run):
        with pytest.raises(ValidationRefusal, match="reason"):
            propose(payroll, reason="   ")

    def test_reference_must_belong_to_employee(self, payroll, locked_run):
        with pytest.raises(ValidationRefusal, match="another employee"):
            propose(payroll, reference_payslip_id="PS-0002")

    def test_unknown_employee(self, payroll, locked_run):
        with pytest.raises(NotFoundError):
            propose(payroll, employee_id="EMP-404")


class TestDecisions:
    def test_approve(self, payroll, locked_run):
        adjustment = propose(payroll)

        payroll.adjustments.approve(adjustment.id, "MGR-1")

        assert adjustment.status == AdjustmentStatus.APPROVED
        assert adjustment.approved_by == "MGR-1"

    def test_rejected_is_final(self, payroll, locked_run):
        adjustment = propose(payroll)
        payroll.adjustments.reject(adjustment.id, "MGR-1")

        with pytest.raises(StateViolation):
            payroll.adjustments.approve(adjustment.id, "MGR-1")
        with pytest.raises(StateViolation):
            payroll.adjustments.apply(adjustment.id, NEXT_PAY_DATE)
        assert adjustment.status == AdjustmentStatus.REJECTED

    def test_pending_cannot_be_applied(self, payroll, locked_run):
        adjustment = propose(payroll)

        with pytest.raises(StateViolation):
            payroll.adjustments.apply(adjustment.id, NEXT_PAY_DATE)
        assert adjustment.status == AdjustmentStatus.PENDING
        assert all(p.kind != PayslipKind.CORRECTION for p in payroll.store.payslips.values())


class TestApply:
    """Test realizing an approved adjustment as a correction payslip."""

    def test_positive_correction(self, payroll, locked_run, notifier):
        adjustment = propose(payroll)
        payroll.adjustments.approve(adjustment.id, "MGR-1")

        correction = payroll.adjustments.apply(adjustment.id, NEXT_PAY_DATE)

        assert correction.id == "PS-ADJ-0001"
        assert correction.kind == PayslipKind.CORRECTION
        assert correction.issued_on == NEXT_PAY_DATE
        assert correction.period_start == date(2025, 3, 16)
        assert correction.period_end == date(2025, 3, 31)
        assert correction.gross_pay == Decimal("1500")
        assert correction.net_pay == Decimal("1500")
        assert correction.government_deductions == Decimal("0")
        assert correction.adjustment_ref == "ADJ-0001"
        assert correction.notes == (
            "Adjustment ADJ-0001 (earnings): Missed overtime [corrects PS-0001]"
        )

        assert adjustment.status == AdjustmentStatus.APPLIED
        assert adjustment.applied_run_id == "RUN-2025-04-15"
        assert adjustment.correction_payslip_id == correction.id
        assert "adjustment_applied" in notifier.kinds()

    def test_negative_correction(self, payroll, locked_run):
        adjustment = propose(
            payroll, amount="-700", adjustment_type=AdjustmentType.DEDUCTION, reason="Overpaid"
        )
        payroll.adjustments.approve(adjustment.id, "MGR-1")

        correction = payroll.adjustments.apply(adjustment.id, NEXT_PAY_DATE)

        assert correction.gross_pay == Decimal("0")
        assert correction.other_deductions == Decimal("700")
        assert correction.net_pay == Decimal("-700")
        assert correction.computed_net() == correction.net_pay

    def test_original_run_untouched(self, payroll, locked_run):
        before = (list(locked_run.payslip_ids), locked_run.total_net, locked_run.policy_snapshot)
        adjustment = propose(payroll)
        payroll.adjustments.approve(adjustment.id, "MGR-1")

        payroll.adjustments.apply(adjustment.id, NEXT_PAY_DATE)

        assert (locked_run.payslip_ids, locked_run.total_net, locked_run.policy_snapshot) == before
        assert locked_run.status == PayrollRunStatus.LOCKED

    def test_locked_target_is_refused(self, payroll, locked_run):
        adjustment = propose(payroll)
        payroll.adjustments.approve(adjustment.id, "MGR-1")
        count = len(payroll.store.payslips)

        with pytest.raises(ImmutabilityViolation):
            payroll.adjustments.apply(adjustment.id, PAY_DATE)

        assert adjustment.status == AdjustmentStatus.APPROVED
        assert len(payroll.store.payslips) == count

    def test_joins_open_target_run(self, payroll, locked_run):
        target = payroll.runs.create_draft(NEXT_PAY_DATE)
        adjustment = propose(payroll, amount="-700", reason="Overpaid")
        payroll.adjustments.approve(adjustment.id, "MGR-1")

        correction = payroll.adjustments.apply(adjustment.id, NEXT_PAY_DATE)

        assert target.payslip_ids == [correction.id]
        assert target.total_net == Decimal("-700")
        # Negative corrections do not block the target run's lock
        payroll.runs.lock(NEXT_PAY_DATE, "HR-1")
        assert target.status == PayrollRunStatus.LOCKED

    def test_applies_only_once(self, payroll, locked_run):
        adjustment = propose(payroll)
        payroll.adjustments.approve(adjustment.id, "MGR-1")
        payroll.adjustments.apply(adjustment.id, NEXT_PAY_DATE)

        with pytest.raises(StateViolation):
            payroll.adjustments.apply(adjustment.id, NEXT_PAY_DATE)

    def test_reopens_validated_target_run(self, payroll, locked_run):
        target = payroll.runs.create_draft(NEXT_PAY_DATE)
        payroll.runs.validate(NEXT_PAY_DATE)
        adjustment = propose(payroll)
        payroll.adjustments.approve(adjustment.id, "MGR-1")

        payroll.adjustments.apply(adjustment.id, NEXT_PAY_DATE)

        assert target.status == PayrollRunStatus.DRAFT
        assert target.validated_at is None


class TestCorrectionsInBankFile:
    """Test that corrections are netted into the disbursement rows."""

    def apply_overpayment(self, payroll):
        adjustment = propose(
            payroll, amount="-700", adjustment_type=AdjustmentType.DEDUCTION, reason="Overpaid"
        )
        payroll.adjustments.approve(adjustment.id, "MGR-1")
        payroll.adjustments.apply(adjustment.id, NEXT_PAY_DATE)

    def test_negative_total_is_left_out(self, payroll, locked_run, employees):
        self.apply_overpayment(payroll)

        assert payroll.runs.export_bank_file(NEXT_PAY_DATE, employees.list_active()) == []

    def test_correction_offsets_regular_pay(self, payroll, locked_run, employees):
        payroll.payslips.issue(
            issue_request(
                "EMP-001",
                period=(date(2025, 4, 1), date(2025, 4, 15)),
                issued_on=NEXT_PAY_DATE,
            )
        )
        payroll.payslips.issue(
            issue_request(
                "EMP-002",
                period=(date(2025, 4, 1), date(2025, 4, 15)),
                issued_on=NEXT_PAY_DATE,
            )
        )
        self.apply_overpayment(payroll)

        rows = payroll.runs.export_bank_file(NEXT_PAY_DATE, employees.list_active())

        assert rows[0] == BankFileRow("EMP-001", "Ana Reyes", Decimal("8660"))
        assert [r.employee_id for r in rows] == ["EMP-001", "EMP-002"]
