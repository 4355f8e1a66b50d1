"""Adjustment service - corrections that never reopen a locked run."""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal

from payroll_core.calculators.types import ZERO, PayFrequency
from payroll_core.collaborators import EmployeeDirectory
from payroll_core.errors import NotFoundError, ValidationRefusal
from payroll_core.events import AdjustmentApplied, EventEmitter, EventMetadata
from payroll_core.models import (
    Adjustment,
    AdjustmentStatus,
    AdjustmentType,
    Payslip,
    PayslipKind,
    run_id_for,
)
from payroll_core.models.payslip import EMPTY_DEDUCTIONS
from payroll_core.services.pay_run_service import PayrollRunService
from payroll_core.services.payslip_service import Clock, utcnow
from payroll_core.services.state_machine import AdjustmentStateMachine
from payroll_core.store import PayrollStore

logger = logging.getLogger(__name__)


class AdjustmentService:
    """Propose, approve, reject and apply payroll adjustments.

    Applying realizes the correction as a new ``PS-ADJ-`` payslip issued on a
    target run label; the original run and its payslips are left untouched.
    """

    def __init__(
        self,
        store: PayrollStore,
        employees: EmployeeDirectory,
        runs: PayrollRunService,
        emitter: EventEmitter,
        clock: Clock = utcnow,
    ):
        self.store = store
        self.employees = employees
        self.runs = runs
        self.emitter = emitter
        self.clock = clock

    def get(self, adjustment_id: str) -> Adjustment:
        return self.store.get_adjustment(adjustment_id)

    def list_adjustments(self, status: AdjustmentStatus | None = None) -> list[Adjustment]:
        return [
            a
            for a in self.store.adjustments.values()
            if status is None or a.status == status
        ]

    def propose(
        self,
        employee_id: str,
        adjustment_type: AdjustmentType,
        amount: Decimal,
        reason: str,
        payroll_run_id: str,
        created_by: str,
        reference_payslip_id: str | None = None,
    ) -> Adjustment:
        if self.employees.get(employee_id) is None:
            raise NotFoundError("Employee", employee_id)
        if not reason or not reason.strip():
            raise ValidationRefusal("adjustment reason is required", employee_id)
        if amount == 0:
            raise ValidationRefusal("adjustment amount cannot be zero", employee_id)
        if reference_payslip_id is not None:
            original = self.store.get_payslip(reference_payslip_id)
            if original.employee_id != employee_id:
                raise ValidationRefusal(
                    f"payslip {reference_payslip_id} belongs to another employee",
                    employee_id,
                )

        with self.store.write_guard():
            adjustment = Adjustment(
                id=self.store.next_adjustment_id(),
                employee_id=employee_id,
                adjustment_type=AdjustmentType(adjustment_type),
                amount=amount,
                reason=reason,
                payroll_run_id=payroll_run_id,
                created_by=created_by,
                created_at=self.clock(),
                reference_payslip_id=reference_payslip_id,
            )
            self.store.adjustments[adjustment.id] = adjustment

        logger.info(
            "Proposed adjustment %s for %s (%s %s)",
            adjustment.id, employee_id, adjustment.adjustment_type.value, amount,
        )
        return adjustment

    def approve(self, adjustment_id: str, actor_id: str) -> Adjustment:
        with self.store.write_guard():
            adjustment = self.store.get_adjustment(adjustment_id)
            AdjustmentStateMachine.validate_transition(
                adjustment.status, AdjustmentStatus.APPROVED
            )
            adjustment.status = AdjustmentStatus.APPROVED
            adjustment.approved_by = actor_id
            adjustment.approved_at = self.clock()

        logger.info("Adjustment %s approved by %s", adjustment_id, actor_id)
        return adjustment

    def reject(self, adjustment_id: str, actor_id: str) -> Adjustment:
        with self.store.write_guard():
            adjustment = self.store.get_adjustment(adjustment_id)
            AdjustmentStateMachine.validate_transition(
                adjustment.status, AdjustmentStatus.REJECTED
            )
            adjustment.status = AdjustmentStatus.REJECTED
            adjustment.rejected_by = actor_id
            adjustment.rejected_at = self.clock()

        logger.info("Adjustment %s rejected by %s", adjustment_id, actor_id)
        return adjustment

    def apply(
        self, adjustment_id: str, target_run_date: date, actor_id: str | None = None
    ) -> Payslip:
        """Realize an approved adjustment as a correction payslip.

        Raises:
            StateViolation: the adjustment is not ``approved``
            ImmutabilityViolation: the target run label is already locked
        """
        with self.store.write_guard():
            adjustment = self.store.get_adjustment(adjustment_id)
            AdjustmentStateMachine.validate_transition(
                adjustment.status, AdjustmentStatus.APPLIED
            )
            with self.store.run_guard(target_run_date):
                self.runs.ensure_mutable(target_run_date)
                correction = self._correction_payslip(adjustment, target_run_date)
                self.store.add_payslip(correction)

            adjustment.status = AdjustmentStatus.APPLIED
            adjustment.applied_run_id = run_id_for(target_run_date)
            adjustment.applied_at = correction.issued_at
            adjustment.correction_payslip_id = correction.id

        logger.info(
            "Applied adjustment %s as %s on %s",
            adjustment_id, correction.id, adjustment.applied_run_id,
        )
        self.emitter.emit(
            AdjustmentApplied(
                metadata=EventMetadata.create(actor_id),
                adjustment_id=adjustment.id,
                adjustment_employee_id=adjustment.employee_id,
                correction_payslip_id=correction.id,
                amount=adjustment.amount,
            )
        )
        return correction

    def _correction_payslip(self, adjustment: Adjustment, issued_on: date) -> Payslip:
        """Net equals the signed amount; no statutory deductions are taken."""
        original = None
        if adjustment.reference_payslip_id is not None:
            original = self.store.get_payslip(adjustment.reference_payslip_id)

        fields = dict(EMPTY_DEDUCTIONS)
        if adjustment.amount < 0:
            fields["other_deductions"] = -adjustment.amount

        notes = f"Adjustment {adjustment.id} ({adjustment.adjustment_type.value}): {adjustment.reason}"
        if original is not None:
            notes += f" [corrects {original.id}]"

        return Payslip(
            id=self.store.next_correction_payslip_id(),
            employee_id=adjustment.employee_id,
            period_start=original.period_start if original else issued_on,
            period_end=original.period_end if original else issued_on,
            issued_on=issued_on,
            pay_frequency=original.pay_frequency if original else PayFrequency.MONTHLY,
            gross_pay=max(adjustment.amount, ZERO),
            allowances=ZERO,
            net_pay=adjustment.amount,
            gov_multiplier=ZERO,
            issued_at=self.clock(),
            kind=PayslipKind.CORRECTION,
            notes=notes,
            adjustment_ref=adjustment.id,
            **fields,
        )
