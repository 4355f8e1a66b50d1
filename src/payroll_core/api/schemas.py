"""Pydantic schemas for API request/response models."""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from payroll_core.calculators.types import Cutoff, GovDeductionSource, PayFrequency
from payroll_core.models import (
    AdjustmentStatus,
    AdjustmentType,
    FinalPayStatus,
    PayrollRunStatus,
    PayslipKind,
    PayslipStatus,
)


class ErrorResponse(BaseModel):
    """Refused operation; ``detail`` names the failed precondition."""

    detail: str
    code: str


# ============================================================================
# Payslip schemas
# ============================================================================


class PayslipIssue(BaseModel):
    """Schema for issuing one payslip."""

    employee_id: str
    period_start: date
    period_end: date
    issued_on: date
    frequency: PayFrequency | None = None
    cutoff: Cutoff | None = None
    allowances: Decimal = Field(default=Decimal("0"), ge=0)
    other_deductions: Decimal = Field(default=Decimal("0"), ge=0)
    notes: str | None = None


class PayslipBatchIssue(BaseModel):
    items: list[PayslipIssue]


class PayslipResponse(BaseModel):
    """Schema for payslip response."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    employee_id: str
    kind: PayslipKind
    status: PayslipStatus
    period_start: date
    period_end: date
    issued_on: date
    pay_frequency: PayFrequency
    cutoff: Cutoff | None = None
    gross_pay: Decimal
    allowances: Decimal
    sss_deduction: Decimal
    philhealth_deduction: Decimal
    pagibig_deduction: Decimal
    tax_deduction: Decimal
    other_deductions: Decimal
    loan_deduction: Decimal
    holiday_pay: Decimal
    net_pay: Decimal
    gov_multiplier: Decimal
    issued_at: datetime
    confirmed_at: datetime | None = None
    published_at: datetime | None = None
    paid_at: datetime | None = None
    acknowledged_at: datetime | None = None
    payment_method: str | None = None
    payment_reference: str | None = None
    paid_by: str | None = None
    signature: str | None = None
    signed_at: datetime | None = None
    notes: str | None = None
    adjustment_ref: str | None = None


class SkippedEmployee(BaseModel):
    employee_id: str
    reason: str


class PayslipBatchResponse(BaseModel):
    """Issued payslips and per-employee skip reasons."""

    issued: list[PayslipResponse]
    skipped: list[SkippedEmployee]
    issued_count: int


class PaymentRecord(BaseModel):
    method: str = Field(min_length=1)
    reference: str | None = None
    actor_id: str | None = None


class SignatureSubmit(BaseModel):
    signature: str = Field(min_length=1)


class AcknowledgeRequest(BaseModel):
    employee_id: str


class ActorRequest(BaseModel):
    actor_id: str | None = None


class ThirteenthMonthRequest(BaseModel):
    year: int = Field(ge=1900, le=9999)
    issued_on: date
    employee_ids: list[str] | None = None


# ============================================================================
# Payroll run schemas
# ============================================================================


class PayrollRunCreate(BaseModel):
    """Schema for creating a draft run; omit ids to take the whole date."""

    run_date: date
    payslip_ids: list[str] | None = None


class LockRequest(BaseModel):
    actor_id: str = Field(min_length=1)


class PolicySnapshotResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

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


class PayrollRunResponse(BaseModel):
    """Schema for payroll run response."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    run_date: date
    status: PayrollRunStatus
    payslip_ids: list[str]
    payslip_count: int
    total_gross: Decimal
    total_net: Decimal
    created_at: datetime
    validated_at: datetime | None = None
    locked: bool
    locked_at: datetime | None = None
    locked_by: str | None = None
    published_at: datetime | None = None
    paid_at: datetime | None = None
    policy_snapshot: PolicySnapshotResponse | None = None


class BankFileRowResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    employee_id: str
    employee_name: str
    net_amount: Decimal


class BankFileResponse(BaseModel):
    run_date: date
    rows: list[BankFileRowResponse]
    csv: str


# ============================================================================
# Adjustment schemas
# ============================================================================


class AdjustmentCreate(BaseModel):
    employee_id: str
    adjustment_type: AdjustmentType
    amount: Decimal
    reason: str = Field(min_length=1)
    payroll_run_id: str
    created_by: str
    reference_payslip_id: str | None = None


class DecisionRequest(BaseModel):
    actor_id: str = Field(min_length=1)


class AdjustmentApply(BaseModel):
    target_run_date: date
    actor_id: str | None = None


class AdjustmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    employee_id: str
    adjustment_type: AdjustmentType
    amount: Decimal
    reason: str
    payroll_run_id: str
    reference_payslip_id: str | None = None
    status: AdjustmentStatus
    created_by: str
    created_at: datetime
    approved_by: str | None = None
    approved_at: datetime | None = None
    rejected_by: str | None = None
    rejected_at: datetime | None = None
    applied_run_id: str | None = None
    applied_at: datetime | None = None
    correction_payslip_id: str | None = None


# ============================================================================
# Final pay schemas
# ============================================================================


class FinalPayCreate(BaseModel):
    employee_id: str
    resigned_at: datetime
    unpaid_overtime_hours: Decimal = Field(default=Decimal("0"), ge=0)
    leave_days: Decimal = Field(default=Decimal("0"), ge=0)
    other_deductions: Decimal = Field(default=Decimal("0"), ge=0)
    loan_balance: Decimal | None = Field(default=None, ge=0)


class FinalPayResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    employee_id: str
    resigned_at: datetime
    status: FinalPayStatus
    pro_rated_salary: Decimal
    leave_payout: Decimal
    overtime_payout: Decimal
    loan_balance: Decimal
    other_deductions: Decimal
    gross_final_pay: Decimal
    net_final_pay: Decimal
    created_at: datetime
    locked_at: datetime | None = None
    locked_by: str | None = None
    published_at: datetime | None = None
    paid_at: datetime | None = None


# ============================================================================
# Pay schedule schemas
# ============================================================================


class PayScheduleResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    default_frequency: PayFrequency
    semi_monthly_first_cutoff: int
    deduct_gov_from: GovDeductionSource


class PayScheduleUpdate(BaseModel):
    default_frequency: PayFrequency | None = None
    semi_monthly_first_cutoff: int | None = Field(default=None, ge=1, le=27)
    deduct_gov_from: GovDeductionSource | None = None
