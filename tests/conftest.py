"""Pytest fixtures for payroll core tests."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from datetime import date, datetime, timezone
from decimal import Decimal

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from payroll_core.api.app import create_app
from payroll_core.calculators.types import Cutoff, PayFrequency
from payroll_core.collaborators import (
    InMemoryAttendance,
    InMemoryEmployeeDirectory,
    InMemoryLoanLedger,
    RecordingNotifier,
)
from payroll_core.config import PaySchedule, PolicyVersions, Settings
from payroll_core.engine import PayrollEngine
from payroll_core.models import Employee
from payroll_core.services import IssueRequest

FIXED_NOW = datetime(2025, 3, 31, 9, 0, tzinfo=timezone.utc)

FIRST_HALF = (date(2025, 3, 1), date(2025, 3, 15))
SECOND_HALF = (date(2025, 3, 16), date(2025, 3, 31))
PAY_DATE = date(2025, 3, 31)


def fixed_clock() -> datetime:
    return FIXED_NOW


def make_settings(pay_schedule: PaySchedule | None = None) -> Settings:
    return Settings(
        engine_version="test",
        host="127.0.0.1",
        port=8000,
        debug=False,
        log_level="INFO",
        policy_versions=PolicyVersions(),
        pay_schedule=pay_schedule or PaySchedule(),
    )


def issue_request(
    employee_id: str,
    period: tuple[date, date] = SECOND_HALF,
    issued_on: date = PAY_DATE,
    **overrides,
) -> IssueRequest:
    """Semi-monthly request for ``period``; keyword overrides pass through."""
    fields = {
        "employee_id": employee_id,
        "period_start": period[0],
        "period_end": period[1],
        "issued_on": issued_on,
        "frequency": PayFrequency.SEMI_MONTHLY,
    }
    fields.update(overrides)
    return IssueRequest(**fields)


@pytest.fixture
def employees() -> InMemoryEmployeeDirectory:
    """Ana earns 22,000; Ben 30,000; Cara's 800 cannot cover deductions."""
    return InMemoryEmployeeDirectory(
        [
            Employee(id="EMP-001", name="Ana Reyes", monthly_salary=Decimal("22000")),
            Employee(id="EMP-002", name="Ben Cruz", monthly_salary=Decimal("30000")),
            Employee(id="EMP-003", name="Cara Lim", monthly_salary=Decimal("800")),
        ]
    )


@pytest.fixture
def attendance() -> InMemoryAttendance:
    return InMemoryAttendance()


@pytest.fixture
def loans() -> InMemoryLoanLedger:
    return InMemoryLoanLedger()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def payroll(employees, attendance, loans, notifier) -> PayrollEngine:
    """Engine with in-memory collaborators and a fixed clock."""
    return PayrollEngine.create(
        settings=make_settings(),
        employees=employees,
        attendance=attendance,
        loans=loans,
        notifier=notifier,
        clock=fixed_clock,
    )


@pytest.fixture
def issued_pair(payroll: PayrollEngine):
    """Second-cutoff payslips for Ana and Ben on the pay date."""
    ana = payroll.payslips.issue(issue_request("EMP-001", cutoff=Cutoff.SECOND))
    ben = payroll.payslips.issue(issue_request("EMP-002", cutoff=Cutoff.SECOND))
    return ana, ben


def advance_to_paid(payroll: PayrollEngine, payslip_id: str) -> None:
    payroll.payslips.confirm(payslip_id)
    payroll.payslips.publish(payslip_id)
    payroll.payslips.record_payment(payslip_id, "bank_transfer", "REF-1")


@pytest_asyncio.fixture
async def client(payroll: PayrollEngine) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client bound to an app that serves ``payroll``."""
    app = create_app(payroll)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
