"""Error taxonomy for payroll operations.

Every refusal names the precondition that failed; the entity is left unchanged.
"""

from __future__ import annotations


class PayrollError(Exception):
    """Base class for refused payroll operations."""

    code = "PAYROLL_ERROR"


class NotFoundError(PayrollError):
    """Raised when a payslip, run, adjustment or computation does not exist."""

    code = "NOT_FOUND"

    def __init__(self, entity: str, entity_id: str):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} '{entity_id}' not found")


class ValidationRefusal(PayrollError):
    """A single unit of work failed validation (e.g. net pay <= 0)."""

    code = "VALIDATION_REFUSED"

    def __init__(self, reason: str, employee_id: str | None = None):
        self.reason = reason
        self.employee_id = employee_id
        msg = reason if employee_id is None else f"Employee {employee_id}: {reason}"
        super().__init__(msg)


class StateViolation(PayrollError):
    """Raised when a lifecycle transition's precondition does not hold."""

    code = "STATE_VIOLATION"

    def __init__(
        self,
        entity: str,
        from_status: str,
        to_status: str,
        reason: str | None = None,
    ):
        self.entity = entity
        self.from_status = from_status
        self.to_status = to_status
        self.reason = reason
        msg = f"Invalid {entity} transition from '{from_status}' to '{to_status}'"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class ImmutabilityViolation(PayrollError):
    """Raised on any attempt to change a locked run or its snapshot.

    Corrections to locked runs go through the adjustment workflow instead.
    """

    code = "IMMUTABLE"

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)
