"""Final pay API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Path, status

from payroll_core.api.dependencies import Engine
from payroll_core.api.schemas import (
    ActorRequest,
    DecisionRequest,
    ErrorResponse,
    FinalPayCreate,
    FinalPayResponse,
)

router = APIRouter(prefix="/final-pay", tags=["final-pay"])

FinalPayId = Annotated[str, Path()]


@router.post(
    "",
    response_model=FinalPayResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
    },
)
async def compute_final_pay(engine: Engine, payload: FinalPayCreate) -> FinalPayResponse:
    """Compute final pay for one resignation event. Net may be ≤ 0."""
    computation = engine.final_pay.compute(**payload.model_dump())
    return FinalPayResponse.model_validate(computation)


@router.get("/employee/{employee_id}", response_model=list[FinalPayResponse])
async def list_employee_final_pay(
    engine: Engine, employee_id: Annotated[str, Path()]
) -> list[FinalPayResponse]:
    return [
        FinalPayResponse.model_validate(fp)
        for fp in engine.final_pay.by_employee(employee_id)
    ]


@router.get(
    "/{final_pay_id}",
    response_model=FinalPayResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_final_pay(engine: Engine, final_pay_id: FinalPayId) -> FinalPayResponse:
    return FinalPayResponse.model_validate(engine.final_pay.get(final_pay_id))


@router.post(
    "/{final_pay_id}/lock",
    response_model=FinalPayResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def lock_final_pay(
    engine: Engine, final_pay_id: FinalPayId, payload: DecisionRequest
) -> FinalPayResponse:
    return FinalPayResponse.model_validate(
        engine.final_pay.lock(final_pay_id, payload.actor_id)
    )


@router.post(
    "/{final_pay_id}/publish",
    response_model=FinalPayResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def publish_final_pay(
    engine: Engine, final_pay_id: FinalPayId, payload: ActorRequest | None = None
) -> FinalPayResponse:
    actor_id = payload.actor_id if payload else None
    return FinalPayResponse.model_validate(engine.final_pay.publish(final_pay_id, actor_id))


@router.post(
    "/{final_pay_id}/paid",
    response_model=FinalPayResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def mark_final_pay_paid(engine: Engine, final_pay_id: FinalPayId) -> FinalPayResponse:
    return FinalPayResponse.model_validate(engine.final_pay.mark_paid(final_pay_id))
