"""Domain event types for payroll lifecycle transitions.

All events are immutable, typed with explicit payloads, and serializable so
that the notification collaborator can receive them as plain dicts.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID, uuid4


class EventCategory(str, Enum):
    """Event categories for routing and filtering."""

    PAYSLIP = "payslip"
    PAYROLL_RUN = "payroll_run"
    ADJUSTMENT = "adjustment"
    FINAL_PAY = "final_pay"


@dataclass(frozen=True)
class EventMetadata:
    """Metadata attached to every domain event."""

    event_id: UUID
    timestamp: datetime
    actor_id: str | None
    source_service: str

    @classmethod
    def create(
        cls,
        actor_id: str | None = None,
        source_service: str = "payroll_core",
    ) -> EventMetadata:
        """Create metadata with auto-generated fields."""
        return cls(
            event_id=uuid4(),
            timestamp=datetime.now(timezone.utc),
            actor_id=actor_id,
            source_service=source_service,
        )


@dataclass(frozen=True)
class DomainEvent:
    """Base class for all domain events."""

    metadata: EventMetadata

    @property
    def event_type(self) -> str:
        """Event type name for routing."""
        return self.__class__.__name__

    @property
    def category(self) -> EventCategory:
        """Event category for filtering."""
        raise NotImplementedError("Subclasses must define category")

    @property
    def employee_id(self) -> str | None:
        """Employee the event concerns, if any."""
        return None

    def to_dict(self) -> dict[str, Any]:
        """Serialize event to dictionary."""
        return _serialize_dict(asdict(self))

    def to_json(self) -> str:
        """Serialize event to JSON string."""
        return json.dumps(self.to_dict(), default=str)


def _serialize_dict(obj: Any) -> Any:
    """Recursively serialize objects for JSON compatibility."""
    if isinstance(obj, dict):
        return {k: _serialize_dict(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [_serialize_dict(v) for v in obj]
    elif isinstance(obj, UUID):
        return str(obj)
    elif isinstance(obj, (datetime, date)):
        return obj.isoformat()
    elif isinstance(obj, Decimal):
        return str(obj)
    elif isinstance(obj, Enum):
        return obj.value
    return obj


# =============================================================================
# Payslip Events
# =============================================================================


@dataclass(frozen=True)
class _PayslipEvent(DomainEvent):
    payslip_id: str
    payslip_employee_id: str

    @property
    def category(self) -> EventCategory:
        return EventCategory.PAYSLIP

    @property
    def employee_id(self) -> str | None:
        return self.payslip_employee_id


@dataclass(frozen=True)
class PayslipIssued(_PayslipEvent):
    """A payslip was created."""

    net_pay: Decimal
    issued_on: date


@dataclass(frozen=True)
class PayslipPublished(_PayslipEvent):
    """A payslip became visible to its employee."""

    net_pay: Decimal


@dataclass(frozen=True)
class PayslipPaid(_PayslipEvent):
    """Payment was recorded for a payslip."""

    payment_method: str
    payment_reference: str | None


@dataclass(frozen=True)
class PayslipSigned(_PayslipEvent):
    """The employee attached a signature."""

    signed_at: datetime


@dataclass(frozen=True)
class PayslipAcknowledged(_PayslipEvent):
    """The employee confirmed receipt of a paid, signed payslip."""

    acknowledged_at: datetime


# =============================================================================
# Payroll Run Events
# =============================================================================


@dataclass(frozen=True)
class PayrollRunLocked(DomainEvent):
    """A run was locked and its policy snapshot captured."""

    run_id: str
    locked_by: str
    snapshot_fingerprint: str

    @property
    def category(self) -> EventCategory:
        return EventCategory.PAYROLL_RUN


@dataclass(frozen=True)
class PayrollRunPublished(DomainEvent):
    """A locked run was declared ready to pay."""

    run_id: str

    @property
    def category(self) -> EventCategory:
        return EventCategory.PAYROLL_RUN


@dataclass(frozen=True)
class PayrollRunPaid(DomainEvent):
    """A published run was marked paid."""

    run_id: str
    total_net: Decimal

    @property
    def category(self) -> EventCategory:
        return EventCategory.PAYROLL_RUN


# =============================================================================
# Adjustment / Final Pay Events
# =============================================================================


@dataclass(frozen=True)
class AdjustmentApplied(DomainEvent):
    """An approved adjustment was realized as a correction payslip."""

    adjustment_id: str
    adjustment_employee_id: str
    correction_payslip_id: str
    amount: Decimal

    @property
    def category(self) -> EventCategory:
        return EventCategory.ADJUSTMENT

    @property
    def employee_id(self) -> str | None:
        return self.adjustment_employee_id


@dataclass(frozen=True)
class FinalPayPublished(DomainEvent):
    """A final pay computation was published to the departing employee."""

    final_pay_id: str
    final_pay_employee_id: str
    net_final_pay: Decimal

    @property
    def category(self) -> EventCategory:
        return EventCategory.FINAL_PAY

    @property
    def employee_id(self) -> str | None:
        return self.final_pay_employee_id
