"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from wage_compliance import __version__
from wage_compliance.api.routes import compliance_router, health_router, rates_router
from wage_compliance.calculators.engine import ComplianceEngine
from wage_compliance.config import Settings, get_settings
from wage_compliance.errors import ConfigurationLoadError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    # Startup: fail loudly in the log if the rate file is unusable
    try:
        snapshot = app.state.engine.snapshot_source()
        logger.info("Serving minimum wage rates version %s", snapshot.version)
    except ConfigurationLoadError as exc:
        logger.error("Rate configuration unavailable at startup: %s", exc)
    yield


def create_app(
    settings: Settings | None = None,
    engine: ComplianceEngine | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = settings or get_settings()

    app = FastAPI(
        title="Wage Compliance Engine API",
        description="UK National Minimum Wage / National Living Wage compliance checks",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.engine = engine or ComplianceEngine.from_settings(settings)

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Exception handlers
    @app.exception_handler(ConfigurationLoadError)
    async def configuration_exception_handler(
        request: Request, exc: ConfigurationLoadError
    ) -> JSONResponse:
        """Rate configuration could not be loaded."""
        logger.error("Rate configuration unavailable: %s", exc)
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"detail": exc.message, "code": exc.code},
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
    app.include_router(compliance_router, prefix="/api/v1")
    app.include_router(rates_router, prefix="/api/v1")

    return app


app = create_app()
