"""API routes."""

from wage_compliance.api.routes.compliance import router as compliance_router
from wage_compliance.api.routes.health import router as health_router
from wage_compliance.api.routes.rates import router as rates_router

__all__ = ["compliance_router", "health_router", "rates_router"]
