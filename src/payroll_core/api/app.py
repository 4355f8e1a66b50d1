"""FastAPI application factory."""

import logging

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from payroll_core import __version__
from payroll_core.api.routes import (
    adjustments_router,
    final_pay_router,
    health_router,
    pay_runs_router,
    payslips_router,
    schedule_router,
)
from payroll_core.engine import PayrollEngine
from payroll_core.errors import (
    ImmutabilityViolation,
    NotFoundError,
    PayrollError,
    StateViolation,
    ValidationRefusal,
)

logger = logging.getLogger(__name__)

ERROR_STATUS: dict[type[PayrollError], int] = {
    NotFoundError: 404,
    StateViolation: 409,
    ImmutabilityViolation: 409,
    ValidationRefusal: 422,
}


def status_for(exc: PayrollError) -> int:
    for error_type, code in ERROR_STATUS.items():
        if isinstance(exc, error_type):
            return code
    return status.HTTP_400_BAD_REQUEST


def create_app(engine: PayrollEngine | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Payroll Core API",
        description="Payslip issuance and payroll run lifecycle",
        version=__version__,
    )
    app.state.engine = engine or PayrollEngine.create()

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Exception handlers
    @app.exception_handler(PayrollError)
    async def payroll_error_handler(request: Request, exc: PayrollError) -> JSONResponse:
        """Refused operations keep the entity unchanged and name the precondition."""
        logger.warning("%s %s refused: %s", request.method, request.url.path, exc)
        return JSONResponse(
            status_code=status_for(exc),
            content={"detail": str(exc), "code": exc.code},
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        """Handle unexpected exceptions."""
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "detail": "An unexpected error occurred",
                "code": "INTERNAL_ERROR",
            },
        )

    # Include routers
    app.include_router(health_router)
    app.include_router(payslips_router, prefix="/api/v1")
    app.include_router(pay_runs_router, prefix="/api/v1")
    app.include_router(adjustments_router, prefix="/api/v1")
    app.include_router(final_pay_router, prefix="/api/v1")
    app.include_router(schedule_router, prefix="/api/v1")

    return app
