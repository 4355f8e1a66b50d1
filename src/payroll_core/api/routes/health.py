"""Health check endpoints."""

from datetime import datetime, timezone

from fastapi import APIRouter, Response, status
from pydantic import BaseModel

from payroll_core.api.dependencies import Engine

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    timestamp: datetime
    engine_version: str
    payslips: int
    runs: int


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
)
async def health_check(engine: Engine) -> HealthResponse:
    """Check API health and report the size of the owned state."""
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(timezone.utc),
        engine_version=engine.settings.engine_version,
        payslips=len(engine.store.payslips),
        runs=len(engine.store.runs),
    )


class ReadinessResponse(BaseModel):
    """Readiness of the engine to serve writes."""

    status: str
    deduct_gov_from: str
    locked_runs: int
    snapshot_issues: list[str]


@router.get(
    "/ready",
    response_model=ReadinessResponse,
    responses={503: {"model": ReadinessResponse}},
)
async def readiness_check(engine: Engine, response: Response) -> ReadinessResponse:
    """Ready while every locked run's policy snapshot still verifies."""
    locked = [run for run in engine.runs.list_runs() if run.locked]
    issues = [msg for run in locked for msg in engine.runs.verify_snapshot(run.run_date)]
    if issues:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return ReadinessResponse(
        status="degraded" if issues else "ready",
        deduct_gov_from=engine.store.pay_schedule.deduct_gov_from,
        locked_runs=len(locked),
        snapshot_issues=issues,
    )


@router.get("/live", status_code=status.HTTP_200_OK)
async def liveness_check() -> dict[str, str]:
    """Liveness check for container orchestration."""
    return {"status": "alive"}
