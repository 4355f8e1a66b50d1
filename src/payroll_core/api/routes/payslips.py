"""Payslip API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Path, Query, status

from payroll_core.api.dependencies import Engine
from payroll_core.api.schemas import (
    AcknowledgeRequest,
    ActorRequest,
    ErrorResponse,
    PaymentRecord,
    PayslipBatchIssue,
    PayslipBatchResponse,
    PayslipIssue,
    PayslipResponse,
    SignatureSubmit,
    SkippedEmployee,
    ThirteenthMonthRequest,
)
from payroll_core.models import PayslipStatus
from payroll_core.services import IssueBatchResult, IssueRequest

router = APIRouter(prefix="/payslips", tags=["payslips"])

PayslipId = Annotated[str, Path()]


def _to_request(payload: PayslipIssue) -> IssueRequest:
    return IssueRequest(**payload.model_dump())


def _batch_response(result: IssueBatchResult) -> PayslipBatchResponse:
    return PayslipBatchResponse(
        issued=[PayslipResponse.model_validate(p) for p in result.issued],
        skipped=[
            SkippedEmployee(employee_id=emp_id, reason=reason)
            for emp_id, reason in result.skipped
        ],
        issued_count=result.issued_count,
    )


# ============================================================================
# Issuance
# ============================================================================


@router.post(
    "",
    response_model=PayslipResponse,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
)
async def issue_payslip(engine: Engine, payload: PayslipIssue) -> PayslipResponse:
    """Issue one payslip; refused if net ≤ 0 or the date is locked."""
    payslip = engine.payslips.issue(_to_request(payload))
    return PayslipResponse.model_validate(payslip)


@router.post("/batch", response_model=PayslipBatchResponse)
async def issue_batch(engine: Engine, payload: PayslipBatchIssue) -> PayslipBatchResponse:
    """Issue payslips employee by employee; refusals are reported as skips."""
    result = engine.payslips.issue_batch(_to_request(item) for item in payload.items)
    return _batch_response(result)


@router.post("/thirteenth-month", response_model=PayslipBatchResponse)
async def generate_thirteenth_month(
    engine: Engine, payload: ThirteenthMonthRequest
) -> PayslipBatchResponse:
    result = engine.payslips.generate_thirteenth_month(
        payload.year, payload.issued_on, payload.employee_ids
    )
    return _batch_response(result)


# ============================================================================
# Queries
# ============================================================================


@router.get("", response_model=list[PayslipResponse])
async def list_payslips(
    engine: Engine,
    employee_id: str | None = None,
    status_filter: Annotated[PayslipStatus | None, Query(alias="status")] = None,
) -> list[PayslipResponse]:
    """List payslips with optional employee and status filters."""
    if employee_id is not None:
        payslips = engine.payslips.by_employee(employee_id)
    else:
        payslips = list(engine.store.payslips.values())
    if status_filter is not None:
        payslips = [p for p in payslips if p.status == status_filter]
    return [PayslipResponse.model_validate(p) for p in payslips]


@router.get("/pending", response_model=list[PayslipResponse])
async def list_pending(engine: Engine) -> list[PayslipResponse]:
    return [PayslipResponse.model_validate(p) for p in engine.payslips.pending()]


@router.get("/signed", response_model=list[PayslipResponse])
async def list_signed(engine: Engine) -> list[PayslipResponse]:
    return [PayslipResponse.model_validate(p) for p in engine.payslips.signed()]


@router.get("/unsigned", response_model=list[PayslipResponse])
async def list_unsigned_published(engine: Engine) -> list[PayslipResponse]:
    return [PayslipResponse.model_validate(p) for p in engine.payslips.unsigned_published()]


@router.get(
    "/{payslip_id}",
    response_model=PayslipResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_payslip(engine: Engine, payslip_id: PayslipId) -> PayslipResponse:
    return PayslipResponse.model_validate(engine.payslips.get(payslip_id))


# ============================================================================
# Lifecycle transitions
# ============================================================================


@router.post(
    "/{payslip_id}/confirm",
    response_model=PayslipResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def confirm_payslip(
    engine: Engine, payslip_id: PayslipId, payload: ActorRequest | None = None
) -> PayslipResponse:
    actor_id = payload.actor_id if payload else None
    return PayslipResponse.model_validate(engine.payslips.confirm(payslip_id, actor_id))


@router.post(
    "/{payslip_id}/publish",
    response_model=PayslipResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def publish_payslip(
    engine: Engine, payslip_id: PayslipId, payload: ActorRequest | None = None
) -> PayslipResponse:
    """Make the payslip visible to its employee."""
    actor_id = payload.actor_id if payload else None
    return PayslipResponse.model_validate(engine.payslips.publish(payslip_id, actor_id))


@router.post(
    "/{payslip_id}/payment",
    response_model=PayslipResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def record_payment(
    engine: Engine, payslip_id: PayslipId, payload: PaymentRecord
) -> PayslipResponse:
    payslip = engine.payslips.record_payment(
        payslip_id, payload.method, payload.reference, payload.actor_id
    )
    return PayslipResponse.model_validate(payslip)


@router.post(
    "/{payslip_id}/sign",
    response_model=PayslipResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def sign_payslip(
    engine: Engine, payslip_id: PayslipId, payload: SignatureSubmit
) -> PayslipResponse:
    return PayslipResponse.model_validate(engine.payslips.sign(payslip_id, payload.signature))


@router.post(
    "/{payslip_id}/acknowledge",
    response_model=PayslipResponse,
    responses={
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
    },
)
async def acknowledge_payslip(
    engine: Engine, payslip_id: PayslipId, payload: AcknowledgeRequest
) -> PayslipResponse:
    payslip = engine.payslips.acknowledge(payslip_id, payload.employee_id)
    return PayslipResponse.model_validate(payslip)
