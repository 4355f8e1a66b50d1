"""Wiring of the store, collaborators and services into one handle."""

from __future__ import annotations

from dataclasses import dataclass

from payroll_core.collaborators import (
    AttendanceSource,
    EmployeeDirectory,
    InMemoryAttendance,
    InMemoryEmployeeDirectory,
    InMemoryLoanLedger,
    LoanLedger,
    LoggingNotifier,
    NotificationBridge,
    Notifier,
)
from payroll_core.config import Settings, get_settings
from payroll_core.events import EventEmitter
from payroll_core.services import (
    AdjustmentService,
    FinalPayService,
    LockingService,
    PayrollRunService,
    PayslipService,
)
from payroll_core.services.payslip_service import Clock, utcnow
from payroll_core.store import PayrollStore


@dataclass
class PayrollEngine:
    """Every role-specific surface calls the same services through this."""

    settings: Settings
    store: PayrollStore
    emitter: EventEmitter
    employees: EmployeeDirectory
    attendance: AttendanceSource
    loans: LoanLedger
    notifier: Notifier
    payslips: PayslipService
    runs: PayrollRunService
    adjustments: AdjustmentService
    final_pay: FinalPayService

    @classmethod
    def create(
        cls,
        settings: Settings | None = None,
        employees: EmployeeDirectory | None = None,
        attendance: AttendanceSource | None = None,
        loans: LoanLedger | None = None,
        notifier: Notifier | None = None,
        clock: Clock = utcnow,
    ) -> PayrollEngine:
        settings = settings or get_settings()
        employees = employees if employees is not None else InMemoryEmployeeDirectory()
        attendance = attendance if attendance is not None else InMemoryAttendance()
        loans = loans if loans is not None else InMemoryLoanLedger()
        notifier = notifier if notifier is not None else LoggingNotifier()

        store = PayrollStore(settings.pay_schedule)
        emitter = EventEmitter()
        NotificationBridge(emitter, notifier)

        runs = PayrollRunService(store, LockingService(settings.policy_versions), emitter, clock)
        return cls(
            settings=settings,
            store=store,
            emitter=emitter,
            employees=employees,
            attendance=attendance,
            loans=loans,
            notifier=notifier,
            payslips=PayslipService(store, employees, attendance, loans, emitter, clock),
            runs=runs,
            adjustments=AdjustmentService(store, employees, runs, emitter, clock),
            final_pay=FinalPayService(store, employees, loans, emitter, clock),
        )
