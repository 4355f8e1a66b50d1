"""Final pay service for resigning employees."""

from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal

from payroll_core.calculators import FinalPayCalculator, FinalPayInputs
from payroll_core.calculators.types import ZERO
from payroll_core.collaborators import EmployeeDirectory, LoanLedger
from payroll_core.errors import NotFoundError, StateViolation, ValidationRefusal
from payroll_core.events import EventEmitter, EventMetadata, FinalPayPublished
from payroll_core.models import FinalPayComputation, FinalPayStatus, final_pay_id_for
from payroll_core.services.payslip_service import Clock, utcnow
from payroll_core.services.state_machine import FinalPayStateMachine
from payroll_core.store import PayrollStore

logger = logging.getLogger(__name__)


class FinalPayService:
    """Computes and advances final pay: draft → locked → published → paid.

    One computation per (employee, resignation timestamp). A later
    resignation of the same employee gets its own computation.
    """

    def __init__(
        self,
        store: PayrollStore,
        employees: EmployeeDirectory,
        loans: LoanLedger,
        emitter: EventEmitter,
        clock: Clock = utcnow,
    ):
        self.store = store
        self.employees = employees
        self.loans = loans
        self.emitter = emitter
        self.clock = clock

    def compute(
        self,
        employee_id: str,
        resigned_at: datetime,
        unpaid_overtime_hours: Decimal = ZERO,
        leave_days: Decimal = ZERO,
        other_deductions: Decimal = ZERO,
        loan_balance: Decimal | None = None,
    ) -> FinalPayComputation:
        """Compute final pay; net may be zero or negative.

        ``loan_balance`` defaults to the sum of the employee's active loans.
        """
        employee = self.employees.get(employee_id)
        if employee is None:
            raise NotFoundError("Employee", employee_id)
        if other_deductions < 0:
            raise ValidationRefusal("other deductions cannot be negative", employee_id)

        if loan_balance is None:
            loan_balance = sum(
                (loan.remaining_balance for loan in self.loans.active_loans(employee_id)),
                ZERO,
            )

        try:
            breakdown = FinalPayCalculator.compute(
                FinalPayInputs(
                    monthly_salary=employee.monthly_salary,
                    resigned_at=resigned_at,
                    unpaid_overtime_hours=unpaid_overtime_hours,
                    leave_days=leave_days,
                    loan_balance=loan_balance,
                    other_deductions=other_deductions,
                )
            )
        except ValueError as e:
            raise ValidationRefusal(str(e), employee_id) from e

        key = (employee_id, resigned_at)
        with self.store.write_guard():
            existing = self.store.final_pays.get(key)
            if existing is not None:
                raise StateViolation(
                    FinalPayStateMachine.ENTITY,
                    existing.status.value,
                    FinalPayStatus.DRAFT.value,
                    f"final pay {existing.id} already computed for this resignation",
                )
            computation = FinalPayComputation(
                id=final_pay_id_for(employee_id, resigned_at),
                employee_id=employee_id,
                resigned_at=resigned_at,
                pro_rated_salary=breakdown.pro_rated_salary,
                leave_payout=breakdown.leave_payout,
                overtime_payout=breakdown.overtime_payout,
                loan_balance=breakdown.loan_balance,
                other_deductions=breakdown.other_deductions,
                gross_final_pay=breakdown.gross_final_pay,
                net_final_pay=breakdown.net_final_pay,
                created_at=self.clock(),
            )
            self.store.final_pays[key] = computation

        logger.info(
            "Computed final pay %s for %s (net %s)",
            computation.id, employee_id, computation.net_final_pay,
        )
        return computation

    def get(self, final_pay_id: str) -> FinalPayComputation:
        return self.store.find_final_pay(final_pay_id)

    def by_employee(self, employee_id: str) -> list[FinalPayComputation]:
        return [fp for fp in self.store.final_pays.values() if fp.employee_id == employee_id]

    def lock(self, final_pay_id: str, actor_id: str) -> FinalPayComputation:
        with self.store.write_guard():
            computation = self.store.find_final_pay(final_pay_id)
            FinalPayStateMachine.validate_transition(computation.status, FinalPayStatus.LOCKED)
            computation.status = FinalPayStatus.LOCKED
            computation.locked_at = self.clock()
            computation.locked_by = actor_id

        logger.info("Final pay %s locked by %s", final_pay_id, actor_id)
        return computation

    def publish(self, final_pay_id: str, actor_id: str | None = None) -> FinalPayComputation:
        with self.store.write_guard():
            computation = self.store.find_final_pay(final_pay_id)
            FinalPayStateMachine.validate_transition(
                computation.status, FinalPayStatus.PUBLISHED
            )
            computation.status = FinalPayStatus.PUBLISHED
            computation.published_at = self.clock()

        logger.info("Final pay %s published", final_pay_id)
        self.emitter.emit(
            FinalPayPublished(
                metadata=EventMetadata.create(actor_id),
                final_pay_id=computation.id,
                final_pay_employee_id=computation.employee_id,
                net_final_pay=computation.net_final_pay,
            )
        )
        return computation

    def mark_paid(self, final_pay_id: str) -> FinalPayComputation:
        with self.store.write_guard():
            computation = self.store.find_final_pay(final_pay_id)
            FinalPayStateMachine.validate_transition(computation.status, FinalPayStatus.PAID)
            computation.status = FinalPayStatus.PAID
            computation.paid_at = self.clock()

        logger.info("Final pay %s marked paid", final_pay_id)
        return computation
