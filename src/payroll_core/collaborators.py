"""Contracts for external collaborators, with in-memory implementations.

The payroll core reads employees, attendance, holidays and loans through these
protocols and pushes notifications out through ``Notifier``. The in-memory
classes back the demo API and the test suite.
"""

from __future__ import annotations

import logging
import re
import threading
from collections.abc import Iterable
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Protocol, runtime_checkable

from payroll_core.calculators.types import (
    ZERO,
    AttendanceStatus,
    Holiday,
    LoanBalance,
)
from payroll_core.events import (
    AdjustmentApplied,
    DomainEvent,
    EventEmitter,
    FinalPayPublished,
    PayslipAcknowledged,
    PayslipPaid,
    PayslipPublished,
    PayslipSigned,
)
from payroll_core.models import Employee, Loan, LoanDeduction

logger = logging.getLogger(__name__)


@runtime_checkable
class EmployeeDirectory(Protocol):
    def get(self, employee_id: str) -> Employee | None: ...

    def list_active(self) -> list[Employee]: ...


@runtime_checkable
class AttendanceSource(Protocol):
    def status_on(self, employee_id: str, day: date) -> AttendanceStatus | None: ...

    def holidays(self) -> list[Holiday]: ...


@runtime_checkable
class LoanLedger(Protocol):
    def active_loans(self, employee_id: str) -> list[LoanBalance]: ...

    def record_deduction(self, loan_id: str, payslip_id: str, amount: Decimal) -> bool:
        """Record a withholding; returns False if (loan, payslip) was already recorded."""
        ...

    def reverse_deduction(self, loan_id: str, payslip_id: str) -> bool:
        """Undo a withholding; returns False if none was recorded."""
        ...


@runtime_checkable
class Notifier(Protocol):
    def dispatch(self, event_kind: str, payload: dict[str, Any], employee_id: str | None) -> None: ...


class InMemoryEmployeeDirectory:
    """Employee directory backed by a dict."""

    def __init__(self, employees: Iterable[Employee] = ()) -> None:
        self._employees = {e.id: e for e in employees}

    def add(self, employee: Employee) -> None:
        self._employees[employee.id] = employee

    def get(self, employee_id: str) -> Employee | None:
        return self._employees.get(employee_id)

    def list_active(self) -> list[Employee]:
        return [e for e in self._employees.values() if e.is_active]


class InMemoryAttendance:
    """Attendance facts and holiday calendar."""

    def __init__(
        self,
        statuses: dict[tuple[str, date], AttendanceStatus] | None = None,
        holidays: Iterable[Holiday] = (),
    ) -> None:
        self._statuses = dict(statuses or {})
        self._holidays = sorted(holidays, key=lambda h: h.holiday_date)

    def mark(self, employee_id: str, day: date, status: AttendanceStatus) -> None:
        self._statuses[(employee_id, day)] = status

    def add_holiday(self, holiday: Holiday) -> None:
        self._holidays.append(holiday)
        self._holidays.sort(key=lambda h: h.holiday_date)

    def status_on(self, employee_id: str, day: date) -> AttendanceStatus | None:
        return self._statuses.get((employee_id, day))

    def holidays(self) -> list[Holiday]:
        return list(self._holidays)


class InMemoryLoanLedger:
    """Loan ledger with idempotent, auto-settling deductions."""

    def __init__(self, loans: Iterable[Loan] = ()) -> None:
        self._loans = {loan.id: loan for loan in loans}
        self._recorded: set[tuple[str, str]] = set()
        self._lock = threading.Lock()

    def add(self, loan: Loan) -> None:
        self._loans[loan.id] = loan

    def get(self, loan_id: str) -> Loan | None:
        return self._loans.get(loan_id)

    def active_loans(self, employee_id: str) -> list[LoanBalance]:
        return [
            LoanBalance(
                loan_id=loan.id,
                scheduled_installment=loan.scheduled_installment,
                remaining_balance=loan.remaining_balance,
            )
            for loan in self._loans.values()
            if loan.employee_id == employee_id and loan.status == "active"
        ]

    def record_deduction(self, loan_id: str, payslip_id: str, amount: Decimal) -> bool:
        with self._lock:
            key = (loan_id, payslip_id)
            if key in self._recorded:
                logger.info("Loan %s already deducted for payslip %s", loan_id, payslip_id)
                return False

            loan = self._loans.get(loan_id)
            if loan is None:
                raise KeyError(f"Loan {loan_id} not found")

            new_balance = max(ZERO, loan.remaining_balance - amount)
            loan.deductions.append(
                LoanDeduction(
                    loan_id=loan_id,
                    payslip_id=payslip_id,
                    amount=amount,
                    remaining_after=new_balance,
                    deducted_at=datetime.now(timezone.utc),
                )
            )
            loan.remaining_balance = new_balance
            if new_balance == 0:
                loan.status = "settled"
            self._recorded.add(key)
            return True

    def reverse_deduction(self, loan_id: str, payslip_id: str) -> bool:
        with self._lock:
            key = (loan_id, payslip_id)
            if key not in self._recorded:
                return False

            loan = self._loans[loan_id]
            entry = next(d for d in loan.deductions if d.payslip_id == payslip_id)
            loan.deductions.remove(entry)
            loan.remaining_balance += entry.amount
            loan.status = "active"
            self._recorded.discard(key)
            logger.info("Reversed loan %s deduction for payslip %s", loan_id, payslip_id)
            return True


class LoggingNotifier:
    """Notifier that only logs; used when no dispatcher is configured."""

    def dispatch(self, event_kind: str, payload: dict[str, Any], employee_id: str | None) -> None:
        logger.info("Notification %s for employee %s", event_kind, employee_id)


class RecordingNotifier:
    """Notifier that keeps every dispatch for inspection."""

    def __init__(self) -> None:
        self.dispatched: list[tuple[str, dict[str, Any], str | None]] = []

    def dispatch(self, event_kind: str, payload: dict[str, Any], employee_id: str | None) -> None:
        self.dispatched.append((event_kind, payload, employee_id))

    def kinds(self) -> list[str]:
        return [kind for kind, _, _ in self.dispatched]


NOTIFIED_EVENTS: list[type[DomainEvent]] = [
    PayslipPublished,
    PayslipPaid,
    PayslipSigned,
    PayslipAcknowledged,
    AdjustmentApplied,
    FinalPayPublished,
]


def event_kind(event: DomainEvent) -> str:
    """``PayslipPublished`` -> ``payslip_published``."""
    return re.sub(r"(?<!^)(?=[A-Z])", "_", event.event_type).lower()


class NotificationBridge:
    """Forwards employee-facing events to the notification collaborator.

    Dispatch is fire-and-forget: a failing notifier is logged by the emitter
    and never fails the transition.
    """

    def __init__(self, emitter: EventEmitter, notifier: Notifier) -> None:
        self.notifier = notifier
        emitter.on(NOTIFIED_EVENTS, self)

    def __call__(self, event: DomainEvent) -> None:
        payload = event.to_dict()
        payload.pop("metadata", None)
        self.notifier.dispatch(event_kind(event), payload, event.employee_id)
