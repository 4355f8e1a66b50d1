"""FastAPI dependencies for dependency injection."""

from typing import Annotated

from fastapi import Depends, Request

from payroll_core.engine import PayrollEngine


def get_engine(request: Request) -> PayrollEngine:
    """The engine owned by the running application."""
    return request.app.state.engine


# Type alias for cleaner dependency injection
Engine = Annotated[PayrollEngine, Depends(get_engine)]
