"""Payroll run API endpoints."""

from datetime import date
from typing import Annotated

from fastapi import APIRouter, Path, status

from payroll_core.api.dependencies import Engine
from payroll_core.api.schemas import (
    ActorRequest,
    BankFileResponse,
    BankFileRowResponse,
    ErrorResponse,
    LockRequest,
    PayrollRunCreate,
    PayrollRunResponse,
)
from payroll_core.models import Employee, run_id_for
from payroll_core.services import render_bank_file

router = APIRouter(prefix="/payroll-runs", tags=["payroll-runs"])

RunDate = Annotated[date, Path()]


# ============================================================================
# Payroll Run CRUD
# ============================================================================


@router.post(
    "",
    response_model=PayrollRunResponse,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
)
async def create_payroll_run(engine: Engine, payload: PayrollRunCreate) -> PayrollRunResponse:
    """Create the draft run for a date."""
    run = engine.runs.create_draft(payload.run_date, payload.payslip_ids)
    return PayrollRunResponse.model_validate(run)


@router.get("", response_model=list[PayrollRunResponse])
async def list_payroll_runs(engine: Engine) -> list[PayrollRunResponse]:
    return [PayrollRunResponse.model_validate(run) for run in engine.runs.list_runs()]


@router.get(
    "/{run_date}",
    response_model=PayrollRunResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_payroll_run(engine: Engine, run_date: RunDate) -> PayrollRunResponse:
    return PayrollRunResponse.model_validate(engine.runs.get_run(run_date))


# ============================================================================
# Payroll Run State Transitions
# ============================================================================


@router.post(
    "/{run_date}/validate",
    response_model=PayrollRunResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def validate_payroll_run(engine: Engine, run_date: RunDate) -> PayrollRunResponse:
    return PayrollRunResponse.model_validate(engine.runs.validate(run_date))


@router.post(
    "/{run_date}/lock",
    response_model=PayrollRunResponse,
    responses={409: {"model": ErrorResponse}},
)
async def lock_payroll_run(
    engine: Engine, run_date: RunDate, payload: LockRequest
) -> PayrollRunResponse:
    """Lock the run and capture its policy snapshot. Irreversible."""
    return PayrollRunResponse.model_validate(engine.runs.lock(run_date, payload.actor_id))


@router.post(
    "/{run_date}/publish",
    response_model=PayrollRunResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def publish_payroll_run(
    engine: Engine, run_date: RunDate, payload: ActorRequest | None = None
) -> PayrollRunResponse:
    actor_id = payload.actor_id if payload else None
    return PayrollRunResponse.model_validate(engine.runs.publish(run_date, actor_id))


@router.post(
    "/{run_date}/paid",
    response_model=PayrollRunResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def mark_payroll_run_paid(
    engine: Engine, run_date: RunDate, payload: ActorRequest | None = None
) -> PayrollRunResponse:
    actor_id = payload.actor_id if payload else None
    return PayrollRunResponse.model_validate(engine.runs.mark_paid(run_date, actor_id))


# ============================================================================
# Read-only projections
# ============================================================================


@router.get(
    "/{run_date}/snapshot/verify",
    responses={404: {"model": ErrorResponse}},
)
async def verify_policy_snapshot(engine: Engine, run_date: RunDate) -> dict[str, object]:
    errors = engine.runs.verify_snapshot(run_date)
    return {"run_id": run_id_for(run_date), "intact": not errors, "errors": errors}


@router.get("/{run_date}/bank-file", response_model=BankFileResponse)
async def export_bank_file(engine: Engine, run_date: RunDate) -> BankFileResponse:
    """Disbursement rows for a date, available at any run status."""
    roster: dict[str, Employee] = {}
    for payslip in engine.store.payslips_issued_on(run_date):
        employee = engine.employees.get(payslip.employee_id)
        if employee is not None:
            roster[employee.id] = employee

    rows = engine.runs.export_bank_file(run_date, roster)
    return BankFileResponse(
        run_date=run_date,
        rows=[BankFileRowResponse.model_validate(row) for row in rows],
        csv=render_bank_file(rows),
    )
