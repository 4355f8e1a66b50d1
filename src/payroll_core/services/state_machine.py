"""Lifecycle state machines with transition validation."""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING, ClassVar

from payroll_core.errors import StateViolation
from payroll_core.models.payslip import PayslipKind
from payroll_core.models.status import (
    AdjustmentStatus,
    FinalPayStatus,
    PayrollRunStatus,
    PayslipStatus,
)

if TYPE_CHECKING:
    from payroll_core.models import Payslip, PayrollRun


class LifecycleStateMachine:
    """Table-driven transition checks shared by every lifecycle."""

    ENTITY: ClassVar[str] = "entity"
    VALID_TRANSITIONS: ClassVar[dict[str, list[str]]] = {}

    @classmethod
    def can_transition(cls, from_status: str, to_status: str) -> bool:
        """Check if a transition is valid."""
        allowed = cls.VALID_TRANSITIONS.get(from_status, [])
        return to_status in allowed

    @classmethod
    def validate_transition(
        cls, from_status: str, to_status: str, reason: str | None = None
    ) -> None:
        """Validate a transition, raising StateViolation if invalid."""
        if not cls.can_transition(from_status, to_status):
            raise StateViolation(
                cls.ENTITY,
                _value(from_status),
                _value(to_status),
                reason or f"requires status in {cls.sources_for(to_status)}",
            )

    @classmethod
    def sources_for(cls, to_status: str) -> list[str]:
        """Statuses from which ``to_status`` can be reached."""
        return [
            _value(src)
            for src, targets in cls.VALID_TRANSITIONS.items()
            if to_status in targets
        ]

    @classmethod
    def get_next_statuses(cls, current_status: str) -> list[str]:
        """Get list of valid next statuses from current status."""
        return cls.VALID_TRANSITIONS.get(current_status, [])


class PayslipStateMachine(LifecycleStateMachine):
    """Payslip lifecycle.

    Allowed transitions (strictly forward, no skips):
    - issued → confirmed
    - confirmed → published
    - published → paid
    - paid → acknowledged
    """

    ENTITY = "payslip"

    VALID_TRANSITIONS = {
        PayslipStatus.ISSUED: [PayslipStatus.CONFIRMED],
        PayslipStatus.CONFIRMED: [PayslipStatus.PUBLISHED],
        PayslipStatus.PUBLISHED: [PayslipStatus.PAID],
        PayslipStatus.PAID: [PayslipStatus.ACKNOWLEDGED],
        PayslipStatus.ACKNOWLEDGED: [],  # Terminal state
    }

    # Statuses in which the employee may attach a signature
    SIGNABLE = {PayslipStatus.PUBLISHED, PayslipStatus.PAID}

    @classmethod
    def can_sign(cls, status: str) -> bool:
        """Check if a signature may be attached in this status."""
        return status in cls.SIGNABLE


class PayrollRunStateMachine(LifecycleStateMachine):
    """Payroll run lifecycle.

    Allowed transitions:
    - draft → validated
    - draft → locked
    - validated → locked
    - locked → published
    - published → paid
    """

    ENTITY = "payroll run"

    VALID_TRANSITIONS = {
        PayrollRunStatus.DRAFT: [PayrollRunStatus.VALIDATED, PayrollRunStatus.LOCKED],
        PayrollRunStatus.VALIDATED: [PayrollRunStatus.LOCKED],
        PayrollRunStatus.LOCKED: [PayrollRunStatus.PUBLISHED],
        PayrollRunStatus.PUBLISHED: [PayrollRunStatus.PAID],
        PayrollRunStatus.PAID: [],  # Terminal state
    }

    # Statuses where the payslip set and snapshot are frozen
    IMMUTABLE = {
        PayrollRunStatus.LOCKED,
        PayrollRunStatus.PUBLISHED,
        PayrollRunStatus.PAID,
    }

    @classmethod
    def is_immutable(cls, status: str) -> bool:
        return status in cls.IMMUTABLE

    @classmethod
    def consistency_errors(
        cls, run: PayrollRun, payslips: Iterable[Payslip | None]
    ) -> list[str]:
        """Consistency checks over a run's payslips.

        Returns list of error messages (empty if consistent).
        """
        errors: list[str] = []
        for payslip_id, payslip in zip(run.payslip_ids, payslips):
            if payslip is None:
                errors.append(f"Payslip {payslip_id} does not exist")
                continue
            if payslip.net_pay <= 0 and payslip.kind != PayslipKind.CORRECTION:
                errors.append(f"Payslip {payslip_id} has net pay <= 0")
            if payslip.issued_on != run.run_date:
                errors.append(
                    f"Payslip {payslip_id} was issued on {payslip.issued_on}, "
                    f"not {run.run_date}"
                )
            if payslip.computed_net() != payslip.net_pay:
                errors.append(f"Payslip {payslip_id} net pay does not match its components")
        return errors


class AdjustmentStateMachine(LifecycleStateMachine):
    """Adjustment lifecycle: pending → approved → applied, or pending → rejected."""

    ENTITY = "adjustment"

    VALID_TRANSITIONS = {
        AdjustmentStatus.PENDING: [AdjustmentStatus.APPROVED, AdjustmentStatus.REJECTED],
        AdjustmentStatus.APPROVED: [AdjustmentStatus.APPLIED],
        AdjustmentStatus.REJECTED: [],
        AdjustmentStatus.APPLIED: [],
    }


class FinalPayStateMachine(LifecycleStateMachine):
    """Final pay lifecycle: draft → locked → published → paid."""

    ENTITY = "final pay"

    VALID_TRANSITIONS = {
        FinalPayStatus.DRAFT: [FinalPayStatus.LOCKED],
        FinalPayStatus.LOCKED: [FinalPayStatus.PUBLISHED],
        FinalPayStatus.PUBLISHED: [FinalPayStatus.PAID],
        FinalPayStatus.PAID: [],
    }


def _value(status: str) -> str:
    return getattr(status, "value", status)
