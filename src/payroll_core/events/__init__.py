"""Payroll domain events package."""

from payroll_core.events.emitter import EventBatch, EventEmitter, EventHandler
from payroll_core.events.types import (
    AdjustmentApplied,
    DomainEvent,
    EventCategory,
    EventMetadata,
    FinalPayPublished,
    PayrollRunLocked,
    PayrollRunPaid,
    PayrollRunPublished,
    PayslipAcknowledged,
    PayslipIssued,
    PayslipPaid,
    PayslipPublished,
    PayslipSigned,
)

__all__ = [
    "AdjustmentApplied",
    "DomainEvent",
    "EventBatch",
    "EventCategory",
    "EventEmitter",
    "EventHandler",
    "EventMetadata",
    "FinalPayPublished",
    "PayrollRunLocked",
    "PayrollRunPaid",
    "PayrollRunPublished",
    "PayslipAcknowledged",
    "PayslipIssued",
    "PayslipPaid",
    "PayslipPublished",
    "PayslipSigned",
]
