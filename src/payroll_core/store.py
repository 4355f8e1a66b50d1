"""Owned in-memory state for the payroll core.

A ``PayrollStore`` is created once and passed to every service. It owns the
four collections, the id sequences, the current pay schedule and a lock per
run date. Only the service transition functions write to it.
"""

from __future__ import annotations

import itertools
import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import replace
from datetime import date, datetime
from typing import Any

from payroll_core.calculators.types import ZERO, GovDeductionSource, PayFrequency
from payroll_core.config import PaySchedule
from payroll_core.errors import NotFoundError, ValidationRefusal
from payroll_core.models import (
    Adjustment,
    FinalPayComputation,
    PayrollRun,
    PayrollRunStatus,
    Payslip,
    run_id_for,
)

logger = logging.getLogger(__name__)


class PayrollStore:
    """Payslips, runs, adjustments and final pay computations."""

    def __init__(self, pay_schedule: PaySchedule | None = None) -> None:
        self.payslips: dict[str, Payslip] = {}
        self.runs: dict[date, PayrollRun] = {}
        self.adjustments: dict[str, Adjustment] = {}
        self.final_pays: dict[tuple[str, datetime], FinalPayComputation] = {}
        self.pay_schedule = pay_schedule or PaySchedule()

        self._payslip_seq = itertools.count(1)
        self._correction_seq = itertools.count(1)
        self._adjustment_seq = itertools.count(1)

        self._guard = threading.Lock()
        self._writes = threading.RLock()
        self._run_locks: dict[date, threading.RLock] = {}

    # ------------------------------------------------------------------
    # Identifiers
    # ------------------------------------------------------------------

    def next_payslip_id(self) -> str:
        return f"PS-{next(self._payslip_seq):04d}"

    def next_correction_payslip_id(self) -> str:
        return f"PS-ADJ-{next(self._correction_seq):04d}"

    def next_adjustment_id(self) -> str:
        return f"ADJ-{next(self._adjustment_seq):04d}"

    # ------------------------------------------------------------------
    # Serialisation
    # ------------------------------------------------------------------

    @contextmanager
    def run_guard(self, run_date: date) -> Iterator[None]:
        """Serialise writes that touch the run for ``run_date``.

        Re-entrant so a lock can create its run under the same guard.
        """
        with self._guard:
            lock = self._run_locks.setdefault(run_date, threading.RLock())
        with lock:
            yield

    @contextmanager
    def write_guard(self) -> Iterator[None]:
        """Serialise writes that are not scoped to a run date."""
        with self._writes:
            yield

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def get_payslip(self, payslip_id: str) -> Payslip:
        payslip = self.payslips.get(payslip_id)
        if payslip is None:
            raise NotFoundError("Payslip", payslip_id)
        return payslip

    def get_run(self, run_date: date) -> PayrollRun:
        run = self.runs.get(run_date)
        if run is None:
            raise NotFoundError("Payroll run", run_id_for(run_date))
        return run

    def find_run(self, run_date: date) -> PayrollRun | None:
        return self.runs.get(run_date)

    def get_adjustment(self, adjustment_id: str) -> Adjustment:
        adjustment = self.adjustments.get(adjustment_id)
        if adjustment is None:
            raise NotFoundError("Adjustment", adjustment_id)
        return adjustment

    def find_final_pay(self, final_pay_id: str) -> FinalPayComputation:
        for computation in self.final_pays.values():
            if computation.id == final_pay_id:
                return computation
        raise NotFoundError("Final pay", final_pay_id)

    def payslips_issued_on(self, issued_on: date) -> list[Payslip]:
        return [p for p in self.payslips.values() if p.issued_on == issued_on]

    def is_date_locked(self, issued_on: date) -> bool:
        run = self.runs.get(issued_on)
        return run is not None and run.locked

    def add_payslip(self, payslip: Payslip) -> PayrollRun | None:
        """Store a new payslip and join it to the run for its date, if any.

        A validated run goes back to draft and must be validated again.
        Callers hold the run guard and have already refused locked dates.
        """
        self.payslips[payslip.id] = payslip
        run = self.runs.get(payslip.issued_on)
        if run is None:
            return None
        run.payslip_ids.append(payslip.id)
        self.refresh_run_totals(run)
        if run.status == PayrollRunStatus.VALIDATED:
            run.status = PayrollRunStatus.DRAFT
            run.validated_at = None
            logger.info("Run %s reopened to draft by payslip %s", run.id, payslip.id)
        return run

    def refresh_run_totals(self, run: PayrollRun) -> None:
        members = [self.payslips[pid] for pid in run.payslip_ids if pid in self.payslips]
        run.total_gross = sum((p.gross_pay for p in members), ZERO)
        run.total_net = sum((p.net_pay for p in members), ZERO)

    # ------------------------------------------------------------------
    # Pay schedule
    # ------------------------------------------------------------------

    def update_pay_schedule(self, **changes: Any) -> PaySchedule:
        """Replace the schedule used for future issuances.

        Payslips already issued keep the multiplier stored on them.
        """
        schedule = replace(self.pay_schedule, **changes)
        if schedule.deduct_gov_from not in [s.value for s in GovDeductionSource]:
            raise ValidationRefusal(
                f"deduct_gov_from must be one of first, second, both "
                f"(got {schedule.deduct_gov_from!r})"
            )
        if schedule.default_frequency not in [f.value for f in PayFrequency]:
            raise ValidationRefusal(
                f"Unknown pay frequency {schedule.default_frequency!r}"
            )
        if not 1 <= schedule.semi_monthly_first_cutoff <= 27:
            raise ValidationRefusal("First cutoff day must be between 1 and 27")
        with self._writes:
            self.pay_schedule = schedule
            return self.pay_schedule
