"""Health check endpoints."""

from datetime import datetime, timezone

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from wage_compliance.api.dependencies import Engine
from wage_compliance.api.schemas import HealthResponse
from wage_compliance.errors import ConfigurationError

router = APIRouter(tags=["health"])


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
)
async def health_check(engine: Engine) -> HealthResponse:
    """Check API and rate configuration health."""
    rates_status = "unhealthy"
    version = None
    try:
        version = engine.snapshot_source().version
        rates_status = "healthy"
    except ConfigurationError:
        pass

    return HealthResponse(
        status="healthy" if rates_status == "healthy" else "degraded",
        timestamp=datetime.now(timezone.utc),
        rates=rates_status,
        rates_version=version,
    )


@router.get("/ready", status_code=status.HTTP_200_OK)
async def readiness_check(engine: Engine):
    """Readiness check for container orchestration."""
    try:
        engine.snapshot_source()
    except ConfigurationError:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "not_ready"},
        )
    return {"status": "ready"}


@router.get("/live", status_code=status.HTTP_200_OK)
async def liveness_check() -> dict[str, str]:
    """Liveness check for container orchestration."""
    return {"status": "alive"}
