"""Lifecycle status values."""

from __future__ import annotations

from enum import Enum


class PayslipStatus(str, Enum):
    """Payslip status values, in lifecycle order."""

    ISSUED = "issued"
    CONFIRMED = "confirmed"
    PUBLISHED = "published"
    PAID = "paid"
    ACKNOWLEDGED = "acknowledged"


class PayrollRunStatus(str, Enum):
    """Payroll run status values, in lifecycle order."""

    DRAFT = "draft"
    VALIDATED = "validated"
    LOCKED = "locked"
    PUBLISHED = "published"
    PAID = "paid"


class AdjustmentStatus(str, Enum):
    """Adjustment status values."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    APPLIED = "applied"


class FinalPayStatus(str, Enum):
    """Final pay computation status values."""

    DRAFT = "draft"
    LOCKED = "locked"
    PUBLISHED = "published"
    PAID = "paid"
