"""FastAPI dependencies for dependency injection."""

from typing import Annotated

from fastapi import Depends, Request

from wage_compliance.calculators.engine import ComplianceEngine
from wage_compliance.calculators.rate_table import RateTable


def get_engine(request: Request) -> ComplianceEngine:
    """Get the application's compliance engine."""
    return request.app.state.engine


def get_rate_table(engine: Annotated[ComplianceEngine, Depends(get_engine)]) -> RateTable:
    """Get a rate table over the current rate snapshot.

    A configuration that cannot be loaded surfaces as a 503 through the
    application's ConfigurationLoadError handler.
    """
    return engine.current_rate_table()


# Type aliases for cleaner dependency injection
Engine = Annotated[ComplianceEngine, Depends(get_engine)]
Rates = Annotated[RateTable, Depends(get_rate_table)]
