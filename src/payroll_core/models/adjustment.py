"""Payroll adjustment record."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum

from payroll_core.models.status import AdjustmentStatus


class AdjustmentType(str, Enum):
    """Category of correction."""

    EARNINGS = "earnings"
    DEDUCTION = "deduction"
    NET_CORRECTION = "net_correction"
    STATUTORY_CORRECTION = "statutory_correction"


@dataclass
class Adjustment:
    """An out-of-band correction to an already-locked run."""

    id: str
    employee_id: str
    adjustment_type: AdjustmentType
    amount: Decimal
    reason: str
    payroll_run_id: str
    created_by: str
    created_at: datetime
    reference_payslip_id: str | None = None
    status: AdjustmentStatus = AdjustmentStatus.PENDING

    approved_by: str | None = None
    approved_at: datetime | None = None
    rejected_by: str | None = None
    rejected_at: datetime | None = None
    applied_run_id: str | None = None
    applied_at: datetime | None = None
    correction_payslip_id: str | None = None
