"""Payslip issuance and lifecycle service."""

from __future__ import annotations

import calendar
import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal

from payroll_core.calculators import (
    HolidayPayResolver,
    LoanDeductionAllocator,
    compute_government_deductions,
    compute_gross_pay,
    resolve_gov_multiplier,
)
from payroll_core.calculators.types import (
    ZERO,
    Cutoff,
    GovDeductionSource,
    LoanAllocationResult,
    PayComputation,
    PayFrequency,
    round_whole,
)
from payroll_core.collaborators import AttendanceSource, EmployeeDirectory, LoanLedger
from payroll_core.errors import (
    ImmutabilityViolation,
    NotFoundError,
    PayrollError,
    StateViolation,
    ValidationRefusal,
)
from payroll_core.events import (
    EventEmitter,
    EventMetadata,
    PayslipAcknowledged,
    PayslipIssued,
    PayslipPaid,
    PayslipPublished,
    PayslipSigned,
)
from payroll_core.models import (
    Employee,
    Payslip,
    PayslipKind,
    PayslipStatus,
    run_id_for,
)
from payroll_core.models.payslip import EMPTY_DEDUCTIONS
from payroll_core.services.state_machine import PayslipStateMachine
from payroll_core.store import PayrollStore

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def cutoff_for_day(day: int, first_cutoff: int = 15) -> Cutoff:
    """Semi-monthly half a day of the month falls in."""
    return Cutoff.SECOND if day > first_cutoff else Cutoff.FIRST


def cutoff_period(
    year: int, month: int, cutoff: Cutoff, first_cutoff: int = 15
) -> tuple[date, date]:
    """Inclusive date range covered by one semi-monthly cutoff."""
    if cutoff == Cutoff.FIRST:
        return date(year, month, 1), date(year, month, first_cutoff)
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, first_cutoff + 1), date(year, month, last_day)


@dataclass(frozen=True)
class IssueRequest:
    """Inputs for issuing one employee's payslip."""

    employee_id: str
    period_start: date
    period_end: date
    issued_on: date
    frequency: PayFrequency | None = None
    cutoff: Cutoff | None = None
    allowances: Decimal = ZERO
    other_deductions: Decimal = ZERO
    notes: str | None = None


@dataclass
class IssueBatchResult:
    """Outcome of a batch issuance; skips never abort the batch."""

    issued: list[Payslip] = field(default_factory=list)
    skipped: list[tuple[str, str]] = field(default_factory=list)

    @property
    def issued_count(self) -> int:
        return len(self.issued)


@dataclass(frozen=True)
class PayslipQuote:
    """A fully computed payslip that has not been stored yet."""

    employee: Employee
    frequency: PayFrequency
    cutoff: Cutoff | None
    computation: PayComputation
    loans: LoanAllocationResult


class PayslipService:
    """Issues payslips and moves them through their lifecycle.

    Lifecycle: issued → confirmed → published → paid → acknowledged.
    Signing is allowed once in ``published`` or ``paid`` and does not
    change the status.
    """

    def __init__(
        self,
        store: PayrollStore,
        employees: EmployeeDirectory,
        attendance: AttendanceSource,
        loans: LoanLedger,
        emitter: EventEmitter,
        clock: Clock = utcnow,
    ):
        self.store = store
        self.employees = employees
        self.attendance = attendance
        self.loans = loans
        self.emitter = emitter
        self.clock = clock

    # ------------------------------------------------------------------
    # Issuance
    # ------------------------------------------------------------------

    def quote(self, request: IssueRequest) -> PayslipQuote:
        """Compute a payslip's financial fields without storing anything."""
        employee = self.employees.get(request.employee_id)
        if employee is None:
            raise NotFoundError("Employee", request.employee_id)
        if request.period_end < request.period_start:
            raise ValidationRefusal("period end is before period start", employee.id)
        if request.allowances < 0 or request.other_deductions < 0:
            raise ValidationRefusal(
                "allowances and other deductions cannot be negative", employee.id
            )

        schedule = self.store.pay_schedule
        frequency = (
            request.frequency
            or employee.pay_frequency
            or PayFrequency(schedule.default_frequency)
        )
        cutoff = None
        if frequency == PayFrequency.SEMI_MONTHLY:
            cutoff = request.cutoff or cutoff_for_day(
                request.period_start.day, schedule.semi_monthly_first_cutoff
            )

        multiplier = resolve_gov_multiplier(
            frequency, cutoff, GovDeductionSource(schedule.deduct_gov_from)
        )
        holiday = HolidayPayResolver.resolve(
            employee.monthly_salary,
            request.period_start,
            request.period_end,
            self.attendance.holidays(),
            lambda day: self.attendance.status_on(employee.id, day),
        )
        loans = LoanDeductionAllocator.allocate(self.loans.active_loans(employee.id))

        computation = PayComputation(
            gross_pay=compute_gross_pay(employee.monthly_salary, frequency),
            allowances=request.allowances,
            deductions=compute_government_deductions(employee.monthly_salary, multiplier),
            other_deductions=request.other_deductions,
            loan_deduction=loans.total,
            holiday_pay=holiday.total,
            gov_multiplier=multiplier,
        )
        return PayslipQuote(
            employee=employee,
            frequency=frequency,
            cutoff=cutoff,
            computation=computation,
            loans=loans,
        )

    def issue(self, request: IssueRequest, actor_id: str | None = None) -> Payslip:
        """Issue one payslip.

        Raises:
            ImmutabilityViolation: the issuance date belongs to a locked run
            ValidationRefusal: computed net pay is not positive
        """
        with self.store.run_guard(request.issued_on):
            self._ensure_date_open(request.issued_on)
            quote = self.quote(request)
            computation = quote.computation
            if computation.net_pay <= 0:
                raise ValidationRefusal(
                    f"net ≤ 0 (computed {computation.net_pay})", request.employee_id
                )

            deductions = computation.deductions
            payslip = Payslip(
                id=self.store.next_payslip_id(),
                employee_id=quote.employee.id,
                period_start=request.period_start,
                period_end=request.period_end,
                issued_on=request.issued_on,
                pay_frequency=quote.frequency,
                cutoff=quote.cutoff,
                gross_pay=computation.gross_pay,
                allowances=computation.allowances,
                sss_deduction=deductions.sss,
                philhealth_deduction=deductions.philhealth,
                pagibig_deduction=deductions.pagibig,
                tax_deduction=deductions.withholding_tax,
                other_deductions=computation.other_deductions,
                loan_deduction=computation.loan_deduction,
                holiday_pay=computation.holiday_pay,
                net_pay=computation.net_pay,
                gov_multiplier=computation.gov_multiplier,
                issued_at=self.clock(),
                notes=request.notes,
            )
            self._record_loan_deductions(payslip.id, quote.loans)
            self.store.add_payslip(payslip)

        logger.info(
            "Issued payslip %s for employee %s on %s (net %s)",
            payslip.id, payslip.employee_id, payslip.issued_on, payslip.net_pay,
        )
        self._emit_issued(payslip, actor_id)
        return payslip

    def issue_batch(
        self, requests: Iterable[IssueRequest], actor_id: str | None = None
    ) -> IssueBatchResult:
        """Issue payslips one employee at a time.

        Each request is an isolated unit of work: a refusal or a collaborator
        failure is recorded as a skip and the remaining requests still run.
        Issued events are delivered once the whole batch has been attempted.
        """
        result = IssueBatchResult()
        with self.emitter.batch():
            for request in requests:
                try:
                    result.issued.append(self.issue(request, actor_id))
                except PayrollError as e:
                    reason = getattr(e, "reason", None) or str(e)
                    logger.warning("Skipped payslip for %s: %s", request.employee_id, reason)
                    result.skipped.append((request.employee_id, reason))
                except Exception as e:
                    logger.exception("Payslip for %s failed", request.employee_id)
                    result.skipped.append((request.employee_id, f"error: {e}"))
        return result

    def generate_thirteenth_month(
        self,
        year: int,
        issued_on: date,
        employee_ids: Iterable[str] | None = None,
        actor_id: str | None = None,
    ) -> IssueBatchResult:
        """Issue 13th-month payslips: salary / 12, no deductions, whole year."""
        if employee_ids is None:
            employees: list[Employee | str] = list(self.employees.list_active())
        else:
            employees = list(employee_ids)

        result = IssueBatchResult()
        with self.emitter.batch():
            for entry in employees:
                employee_id = entry if isinstance(entry, str) else entry.id
                try:
                    result.issued.append(
                        self._issue_thirteenth_month(employee_id, year, issued_on, actor_id)
                    )
                except PayrollError as e:
                    reason = getattr(e, "reason", None) or str(e)
                    logger.warning("Skipped 13th month for %s: %s", employee_id, reason)
                    result.skipped.append((employee_id, reason))
        return result

    def _issue_thirteenth_month(
        self, employee_id: str, year: int, issued_on: date, actor_id: str | None
    ) -> Payslip:
        employee = self.employees.get(employee_id)
        if employee is None:
            raise NotFoundError("Employee", employee_id)

        gross = round_whole(employee.monthly_salary / 12)
        with self.store.run_guard(issued_on):
            self._ensure_date_open(issued_on)
            if gross <= 0:
                raise ValidationRefusal(f"net ≤ 0 (computed {gross})", employee_id)
            payslip = Payslip(
                id=self.store.next_payslip_id(),
                employee_id=employee_id,
                period_start=date(year, 1, 1),
                period_end=date(year, 12, 31),
                issued_on=issued_on,
                pay_frequency=PayFrequency.MONTHLY,
                gross_pay=gross,
                allowances=ZERO,
                net_pay=gross,
                gov_multiplier=ZERO,
                issued_at=self.clock(),
                kind=PayslipKind.THIRTEENTH_MONTH,
                notes=f"13th month pay {year}",
                **EMPTY_DEDUCTIONS,
            )
            self.store.add_payslip(payslip)

        logger.info("Issued 13th month payslip %s for %s", payslip.id, employee_id)
        self._emit_issued(payslip, actor_id)
        return payslip

    def _ensure_date_open(self, issued_on: date) -> None:
        if self.store.is_date_locked(issued_on):
            logger.warning("Refused issuance on locked date %s", issued_on)
            raise ImmutabilityViolation(
                f"Payroll run {run_id_for(issued_on)} is locked; "
                "route corrections through an adjustment"
            )

    def _record_loan_deductions(
        self, payslip_id: str, loans: LoanAllocationResult
    ) -> None:
        """Record every withholding for ``payslip_id`` or none of them."""
        recorded: list[str] = []
        try:
            for allocation in loans.allocations:
                self.loans.record_deduction(allocation.loan_id, payslip_id, allocation.amount)
                recorded.append(allocation.loan_id)
        except Exception:
            logger.error(
                "Loan ledger failed for payslip %s; reversing %d recorded deductions",
                payslip_id, len(recorded),
            )
            for loan_id in reversed(recorded):
                self.loans.reverse_deduction(loan_id, payslip_id)
            raise

    def _emit_issued(self, payslip: Payslip, actor_id: str | None) -> None:
        self.emitter.emit(
            PayslipIssued(
                metadata=EventMetadata.create(actor_id),
                payslip_id=payslip.id,
                payslip_employee_id=payslip.employee_id,
                net_pay=payslip.net_pay,
                issued_on=payslip.issued_on,
            )
        )

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def confirm(self, payslip_id: str, actor_id: str | None = None) -> Payslip:
        payslip = self.store.get_payslip(payslip_id)
        with self.store.run_guard(payslip.issued_on):
            PayslipStateMachine.validate_transition(payslip.status, PayslipStatus.CONFIRMED)
            if self.store.is_date_locked(payslip.issued_on):
                raise StateViolation(
                    PayslipStateMachine.ENTITY,
                    payslip.status.value,
                    PayslipStatus.CONFIRMED.value,
                    f"containing run {run_id_for(payslip.issued_on)} is locked",
                )
            payslip.status = PayslipStatus.CONFIRMED
            payslip.confirmed_at = self.clock()

        logger.info("Payslip %s confirmed", payslip_id)
        return payslip

    def publish(self, payslip_id: str, actor_id: str | None = None) -> Payslip:
        payslip = self.store.get_payslip(payslip_id)
        with self.store.run_guard(payslip.issued_on):
            PayslipStateMachine.validate_transition(payslip.status, PayslipStatus.PUBLISHED)
            payslip.status = PayslipStatus.PUBLISHED
            payslip.published_at = self.clock()

        logger.info("Payslip %s published", payslip_id)
        self.emitter.emit(
            PayslipPublished(
                metadata=EventMetadata.create(actor_id),
                payslip_id=payslip.id,
                payslip_employee_id=payslip.employee_id,
                net_pay=payslip.net_pay,
            )
        )
        return payslip

    def record_payment(
        self,
        payslip_id: str,
        method: str,
        reference: str | None = None,
        actor_id: str | None = None,
    ) -> Payslip:
        payslip = self.store.get_payslip(payslip_id)
        if not method:
            raise ValidationRefusal("payment method is required", payslip.employee_id)
        with self.store.run_guard(payslip.issued_on):
            PayslipStateMachine.validate_transition(payslip.status, PayslipStatus.PAID)
            payslip.status = PayslipStatus.PAID
            payslip.paid_at = self.clock()
            payslip.payment_method = method
            payslip.payment_reference = reference
            payslip.paid_by = actor_id

        logger.info("Payslip %s paid via %s by %s", payslip_id, method, actor_id)
        self.emitter.emit(
            PayslipPaid(
                metadata=EventMetadata.create(actor_id),
                payslip_id=payslip.id,
                payslip_employee_id=payslip.employee_id,
                payment_method=method,
                payment_reference=reference,
            )
        )
        return payslip

    def sign(self, payslip_id: str, signature: str) -> Payslip:
        """Attach the employee's signature; the status is unchanged."""
        payslip = self.store.get_payslip(payslip_id)
        if not signature:
            raise ValidationRefusal("signature is required", payslip.employee_id)
        with self.store.run_guard(payslip.issued_on):
            if not PayslipStateMachine.can_sign(payslip.status):
                raise StateViolation(
                    PayslipStateMachine.ENTITY,
                    payslip.status.value,
                    "signed",
                    "signing requires status in ['published', 'paid']",
                )
            if payslip.is_signed:
                raise StateViolation(
                    PayslipStateMachine.ENTITY,
                    payslip.status.value,
                    "signed",
                    "payslip is already signed",
                )
            payslip.signature = signature
            payslip.signed_at = self.clock()

        logger.info("Payslip %s signed", payslip_id)
        self.emitter.emit(
            PayslipSigned(
                metadata=EventMetadata.create(payslip.employee_id),
                payslip_id=payslip.id,
                payslip_employee_id=payslip.employee_id,
                signed_at=payslip.signed_at,
            )
        )
        return payslip

    def acknowledge(self, payslip_id: str, employee_id: str) -> Payslip:
        """Employee confirms receipt of a paid, signed payslip."""
        payslip = self.store.get_payslip(payslip_id)
        with self.store.run_guard(payslip.issued_on):
            if employee_id != payslip.employee_id:
                raise ValidationRefusal(
                    f"payslip {payslip_id} belongs to another employee", employee_id
                )
            PayslipStateMachine.validate_transition(payslip.status, PayslipStatus.ACKNOWLEDGED)
            if not payslip.is_signed:
                raise StateViolation(
                    PayslipStateMachine.ENTITY,
                    payslip.status.value,
                    PayslipStatus.ACKNOWLEDGED.value,
                    "payslip must be signed before acknowledgement",
                )
            payslip.status = PayslipStatus.ACKNOWLEDGED
            payslip.acknowledged_at = self.clock()

        logger.info("Payslip %s acknowledged by %s", payslip_id, employee_id)
        self.emitter.emit(
            PayslipAcknowledged(
                metadata=EventMetadata.create(employee_id),
                payslip_id=payslip.id,
                payslip_employee_id=payslip.employee_id,
                acknowledged_at=payslip.acknowledged_at,
            )
        )
        return payslip

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get(self, payslip_id: str) -> Payslip:
        return self.store.get_payslip(payslip_id)

    def by_employee(self, employee_id: str) -> list[Payslip]:
        return [p for p in self.store.payslips.values() if p.employee_id == employee_id]

    def by_status(self, status: PayslipStatus) -> list[Payslip]:
        return [p for p in self.store.payslips.values() if p.status == status]

    def pending(self) -> list[Payslip]:
        """Payslips still awaiting confirmation."""
        return self.by_status(PayslipStatus.ISSUED)

    def signed(self) -> list[Payslip]:
        return [p for p in self.store.payslips.values() if p.is_signed]

    def unsigned_published(self) -> list[Payslip]:
        """Payslips visible to their employee that still lack a signature."""
        return [
            p
            for p in self.store.payslips.values()
            if PayslipStateMachine.can_sign(p.status) and not p.is_signed
        ]
