"""Adjustment API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Path, Query, status

from payroll_core.api.dependencies import Engine
from payroll_core.api.schemas import (
    AdjustmentApply,
    AdjustmentCreate,
    AdjustmentResponse,
    DecisionRequest,
    ErrorResponse,
    PayslipResponse,
)
from payroll_core.models import AdjustmentStatus

router = APIRouter(prefix="/adjustments", tags=["adjustments"])

AdjustmentId = Annotated[str, Path()]


@router.post(
    "",
    response_model=AdjustmentResponse,
    status_code=status.HTTP_201_CREATED,
    responses={404: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
)
async def propose_adjustment(engine: Engine, payload: AdjustmentCreate) -> AdjustmentResponse:
    """Propose a correction; it starts as pending."""
    adjustment = engine.adjustments.propose(**payload.model_dump())
    return AdjustmentResponse.model_validate(adjustment)


@router.get("", response_model=list[AdjustmentResponse])
async def list_adjustments(
    engine: Engine,
    status_filter: Annotated[AdjustmentStatus | None, Query(alias="status")] = None,
) -> list[AdjustmentResponse]:
    return [
        AdjustmentResponse.model_validate(a)
        for a in engine.adjustments.list_adjustments(status_filter)
    ]


@router.get(
    "/{adjustment_id}",
    response_model=AdjustmentResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_adjustment(engine: Engine, adjustment_id: AdjustmentId) -> AdjustmentResponse:
    return AdjustmentResponse.model_validate(engine.adjustments.get(adjustment_id))


@router.post(
    "/{adjustment_id}/approve",
    response_model=AdjustmentResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def approve_adjustment(
    engine: Engine, adjustment_id: AdjustmentId, payload: DecisionRequest
) -> AdjustmentResponse:
    adjustment = engine.adjustments.approve(adjustment_id, payload.actor_id)
    return AdjustmentResponse.model_validate(adjustment)


@router.post(
    "/{adjustment_id}/reject",
    response_model=AdjustmentResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def reject_adjustment(
    engine: Engine, adjustment_id: AdjustmentId, payload: DecisionRequest
) -> AdjustmentResponse:
    adjustment = engine.adjustments.reject(adjustment_id, payload.actor_id)
    return AdjustmentResponse.model_validate(adjustment)


@router.post(
    "/{adjustment_id}/apply",
    response_model=PayslipResponse,
    status_code=status.HTTP_201_CREATED,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def apply_adjustment(
    engine: Engine, adjustment_id: AdjustmentId, payload: AdjustmentApply
) -> PayslipResponse:
    """Realize an approved adjustment as a correction payslip."""
    correction = engine.adjustments.apply(
        adjustment_id, payload.target_run_date, payload.actor_id
    )
    return PayslipResponse.model_validate(correction)
