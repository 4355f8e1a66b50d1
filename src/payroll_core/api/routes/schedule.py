"""Pay schedule endpoints."""

from fastapi import APIRouter

from payroll_core.api.dependencies import Engine
from payroll_core.api.schemas import ErrorResponse, PayScheduleResponse, PayScheduleUpdate

router = APIRouter(prefix="/pay-schedule", tags=["pay-schedule"])


@router.get("", response_model=PayScheduleResponse)
async def get_pay_schedule(engine: Engine) -> PayScheduleResponse:
    return PayScheduleResponse.model_validate(engine.store.pay_schedule)


@router.put(
    "",
    response_model=PayScheduleResponse,
    responses={422: {"model": ErrorResponse}},
)
async def update_pay_schedule(
    engine: Engine, payload: PayScheduleUpdate
) -> PayScheduleResponse:
    """Change the schedule for future issuances; issued payslips keep their multiplier."""
    schedule = engine.store.update_pay_schedule(
        **payload.model_dump(mode="json", exclude_none=True)
    )
    return PayScheduleResponse.model_validate(schedule)
