"""Payroll run service - groups a date's payslips and governs the run lifecycle."""

from __future__ import annotations

import csv
import io
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from payroll_core.calculators.types import ZERO
from payroll_core.errors import ImmutabilityViolation, StateViolation, ValidationRefusal
from payroll_core.events import (
    EventEmitter,
    EventMetadata,
    PayrollRunLocked,
    PayrollRunPaid,
    PayrollRunPublished,
)
from payroll_core.models import Employee, PayrollRun, PayrollRunStatus, run_id_for
from payroll_core.services.locking_service import LockingService
from payroll_core.services.payslip_service import Clock, utcnow
from payroll_core.services.state_machine import PayrollRunStateMachine
from payroll_core.store import PayrollStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BankFileRow:
    """One disbursement line."""

    employee_id: str
    employee_name: str
    net_amount: Decimal


BANK_FILE_COLUMNS = ("employee_id", "employee_name", "net_amount")


def render_bank_file(rows: Iterable[BankFileRow]) -> str:
    """Render disbursement rows as CSV text with a header line."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(BANK_FILE_COLUMNS)
    for row in rows:
        writer.writerow([row.employee_id, row.employee_name, str(row.net_amount)])
    return buffer.getvalue()


class PayrollRunService:
    """Service for managing payroll run lifecycle.

    Operations:
    - create_draft: Group a date's payslips into a run
    - validate: Consistency-check the contained payslips
    - lock: Capture the policy snapshot and freeze the run (irreversible)
    - publish / mark_paid: Flip the run's own status only
    - export_bank_file: Read-only disbursement projection
    """

    def __init__(
        self,
        store: PayrollStore,
        locking_service: LockingService,
        emitter: EventEmitter,
        clock: Clock = utcnow,
    ):
        self.store = store
        self.locking_service = locking_service
        self.emitter = emitter
        self.clock = clock

    def get_run(self, run_date: date) -> PayrollRun:
        return self.store.get_run(run_date)

    def list_runs(self) -> list[PayrollRun]:
        return sorted(self.store.runs.values(), key=lambda r: r.run_date)

    def create_draft(
        self, run_date: date, payslip_ids: Iterable[str] | None = None
    ) -> PayrollRun:
        """Create the run for ``run_date``.

        When ``payslip_ids`` is omitted the run holds every payslip issued on
        that date.
        """
        with self.store.run_guard(run_date):
            run = self._build_run(run_date, payslip_ids)
            self.store.runs[run_date] = run
        logger.info("Created draft run %s with %d payslips", run.id, run.payslip_count)
        return run

    def _build_run(
        self, run_date: date, payslip_ids: Iterable[str] | None
    ) -> PayrollRun:
        existing = self.store.find_run(run_date)
        if existing is not None:
            raise StateViolation(
                "payroll run",
                existing.status.value,
                PayrollRunStatus.DRAFT.value,
                f"run {existing.id} already exists",
            )

        if payslip_ids is None:
            ids = [p.id for p in self.store.payslips_issued_on(run_date)]
        else:
            ids = list(dict.fromkeys(payslip_ids))
            for payslip_id in ids:
                payslip = self.store.get_payslip(payslip_id)
                if payslip.issued_on != run_date:
                    raise ValidationRefusal(
                        f"payslip {payslip_id} was issued on {payslip.issued_on}, "
                        f"not {run_date}",
                        payslip.employee_id,
                    )

        run = PayrollRun(
            id=run_id_for(run_date),
            run_date=run_date,
            created_at=self.clock(),
            payslip_ids=ids,
        )
        self.store.refresh_run_totals(run)
        return run

    def validate(self, run_date: date) -> PayrollRun:
        run = self.store.get_run(run_date)
        with self.store.run_guard(run_date):
            PayrollRunStateMachine.validate_transition(run.status, PayrollRunStatus.VALIDATED)
            self._check_consistency(run, PayrollRunStatus.VALIDATED)
            run.status = PayrollRunStatus.VALIDATED
            run.validated_at = self.clock()

        logger.info("Validated run %s", run.id)
        return run

    def lock(self, run_date: date, actor_id: str) -> PayrollRun:
        """Lock the run for ``run_date``, capturing the policy snapshot once.

        Creates the run from the date's payslips if no run exists yet. A
        second lock is refused and leaves the snapshot untouched.
        """
        if not actor_id:
            raise ValidationRefusal("locking actor is required")

        with self.store.run_guard(run_date):
            run = self.store.find_run(run_date)
            created = run is None
            if run is None:
                run = self._build_run(run_date, None)
            if run.locked:
                logger.warning("Refused lock of %s: already locked", run.id)
                raise StateViolation(
                    "payroll run",
                    run.status.value,
                    PayrollRunStatus.LOCKED.value,
                    "already locked",
                )
            PayrollRunStateMachine.validate_transition(run.status, PayrollRunStatus.LOCKED)
            self._check_consistency(run, PayrollRunStatus.LOCKED)

            now = self.clock()
            run.policy_snapshot = self.locking_service.capture_snapshot(actor_id, now)
            run.locked = True
            run.locked_at = now
            run.locked_by = actor_id
            run.status = PayrollRunStatus.LOCKED
            if created:
                self.store.runs[run_date] = run

        logger.info("Locked run %s by %s", run.id, actor_id)
        self.emitter.emit(
            PayrollRunLocked(
                metadata=EventMetadata.create(actor_id),
                run_id=run.id,
                locked_by=actor_id,
                snapshot_fingerprint=run.policy_snapshot.fingerprint,
            )
        )
        return run

    def publish(self, run_date: date, actor_id: str | None = None) -> PayrollRun:
        """Declare the run ready to pay; payslips are published individually."""
        run = self.store.get_run(run_date)
        with self.store.run_guard(run_date):
            PayrollRunStateMachine.validate_transition(run.status, PayrollRunStatus.PUBLISHED)
            run.status = PayrollRunStatus.PUBLISHED
            run.published_at = self.clock()

        logger.info("Published run %s", run.id)
        self.emitter.emit(
            PayrollRunPublished(metadata=EventMetadata.create(actor_id), run_id=run.id)
        )
        return run

    def mark_paid(self, run_date: date, actor_id: str | None = None) -> PayrollRun:
        run = self.store.get_run(run_date)
        with self.store.run_guard(run_date):
            PayrollRunStateMachine.validate_transition(run.status, PayrollRunStatus.PAID)
            run.status = PayrollRunStatus.PAID
            run.paid_at = self.clock()

        logger.info("Run %s marked paid", run.id)
        self.emitter.emit(
            PayrollRunPaid(
                metadata=EventMetadata.create(actor_id),
                run_id=run.id,
                total_net=run.total_net,
            )
        )
        return run

    def verify_snapshot(self, run_date: date) -> list[str]:
        """Audit check that a locked run's snapshot still matches its fingerprint."""
        run = self.store.get_run(run_date)
        if run.policy_snapshot is None:
            return [f"Run {run.id} has no policy snapshot"]
        return self.locking_service.verify_snapshot(run.policy_snapshot)

    def export_bank_file(
        self, run_date: date, roster: Mapping[str, Employee] | Iterable[Employee]
    ) -> list[BankFileRow]:
        """Disbursement rows for the payslips of ``run_date``, at any run status.

        Uses the run's payslips if a run exists, else every payslip issued on
        that date. Net pay is summed per employee and only positive totals are
        paid out; a negative correction offsets that employee's other payslips.
        Employees missing from the roster get an empty name.
        """
        if isinstance(roster, Mapping):
            names = {emp_id: emp.name for emp_id, emp in roster.items()}
        else:
            names = {emp.id: emp.name for emp in roster}

        run = self.store.find_run(run_date)
        if run is not None:
            payslips = [self.store.get_payslip(pid) for pid in run.payslip_ids]
        else:
            payslips = self.store.payslips_issued_on(run_date)

        totals: dict[str, Decimal] = {}
        for p in payslips:
            totals[p.employee_id] = totals.get(p.employee_id, ZERO) + p.net_pay

        held = {emp_id: amount for emp_id, amount in totals.items() if amount <= 0}
        if held:
            logger.warning("Bank file %s leaves out non-positive totals: %s", run_date, held)

        return [
            BankFileRow(
                employee_id=emp_id,
                employee_name=names.get(emp_id, ""),
                net_amount=amount,
            )
            for emp_id, amount in totals.items()
            if amount > 0
        ]

    def _check_consistency(self, run: PayrollRun, to_status: PayrollRunStatus) -> None:
        payslips = [self.store.payslips.get(pid) for pid in run.payslip_ids]
        errors = PayrollRunStateMachine.consistency_errors(run, payslips)
        if errors:
            logger.warning("Run %s failed consistency checks: %s", run.id, errors)
            raise StateViolation(
                "payroll run", run.status.value, to_status.value, "; ".join(errors)
            )

    def ensure_mutable(self, run_date: date) -> None:
        """Raise if the run for ``run_date`` is frozen."""
        run = self.store.find_run(run_date)
        if run is not None and PayrollRunStateMachine.is_immutable(run.status):
            raise ImmutabilityViolation(
                f"Payroll run {run.id} is {run.status.value} and cannot be modified"
            )
