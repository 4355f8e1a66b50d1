"""Payroll run and policy snapshot records."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from payroll_core.calculators.types import ZERO
from payroll_core.models.status import PayrollRunStatus


def run_id_for(run_date: date) -> str:
    """Run identifiers are derived from the issuance date."""
    return f"RUN-{run_date.isoformat()}"


@dataclass(frozen=True)
class PolicySnapshot:
    """Versions of every computation rule in effect when a run was locked."""

    tax_table_version: str
    sss_version: str
    philhealth_version: str
    pagibig_version: str
    holiday_list_version: str
    formula_version: str
    rule_set_version: str
    locked_by: str
    captured_at: datetime
    fingerprint: str

    def canonical_dict(self) -> dict[str, Any]:
        """Fields covered by the fingerprint, in deterministic form."""
        return {
            "tax_table_version": self.tax_table_version,
            "sss_version": self.sss_version,
            "philhealth_version": self.philhealth_version,
            "pagibig_version": self.pagibig_version,
            "holiday_list_version": self.holiday_list_version,
            "formula_version": self.formula_version,
            "rule_set_version": self.rule_set_version,
            "locked_by": self.locked_by,
            "captured_at": self.captured_at.isoformat(),
        }


@dataclass
class PayrollRun:
    """The batch of payslips issued on one calendar date."""

    id: str
    run_date: date
    created_at: datetime
    payslip_ids: list[str] = field(default_factory=list)
    total_gross: Decimal = ZERO
    total_net: Decimal = ZERO
    status: PayrollRunStatus = PayrollRunStatus.DRAFT

    validated_at: datetime | None = None
    locked: bool = False
    locked_at: datetime | None = None
    locked_by: str | None = None
    published_at: datetime | None = None
    paid_at: datetime | None = None
    policy_snapshot: PolicySnapshot | None = None

    @property
    def payslip_count(self) -> int:
        return len(self.payslip_ids)
