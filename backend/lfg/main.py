"""LFG Cycling API - FastAPI Application Entry Point."""

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from lfg.config import Settings, get_settings
from lfg.database import Base, engine as default_engine
from lfg.exceptions import ConfigurationError, LFGError
from lfg.logging_config import setup_logging
from lfg.routers import auth_router, routes_router, strava_router
from lfg.security import PLACEHOLDER_SECRETS
from lfg.services.strava_client import StravaClient


logger = logging.getLogger(__name__)


def configure_integrations(settings: Settings) -> Optional[StravaClient]:
    """One-time startup check of secrets and construction of the Strava client.

    Raises:
        ConfigurationError: If ``REQUIRE_STRAVA`` is set but the Strava
            credentials are missing.
    """
    if not settings.jwt_secret or settings.jwt_secret in PLACEHOLDER_SECRETS:
        logger.error("JWT_SECRET is not configured - login and registration will fail")

    if not settings.strava_enabled:
        if settings.require_strava:
            raise ConfigurationError("Strava API credentials are not properly configured")
        logger.warning("Strava API credentials not configured - Strava features are disabled")
        return None

    logger.info("Strava API credentials configured")
    return StravaClient.from_settings(settings)


def create_app(settings: Optional[Settings] = None, engine=None) -> FastAPI:
    """Build the application around the given settings and database engine."""
    settings = settings or get_settings()
    engine = engine or default_engine

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan events."""
        # Startup: logging, tables, integrations
        setup_logging(settings.log_level)
        Base.metadata.create_all(bind=engine)
        app.state.strava_client = configure_integrations(settings)
        yield
        # Shutdown: Cleanup if needed

    app = FastAPI(
        title=settings.app_name,
        description="Accounts, Strava integration and route import for group rides",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.strava_client = None

    # CORS configuration
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[
            "http://localhost:3000",
            "http://localhost:5173",
            settings.frontend_url,
        ],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(LFGError)
    async def lfg_error_handler(request: Request, exc: LFGError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        content = {"error": exc.message}
        if exc.code:
            content["code"] = exc.code
        return JSONResponse(status_code=exc.status_code, content=content)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={"error": "Validation failed", "details": jsonable_encoder(exc.errors())},
        )

    # Include routers
    app.include_router(auth_router, prefix="/api")
    app.include_router(strava_router, prefix="/api")
    app.include_router(routes_router, prefix="/api")

    @app.get("/")
    def root():
        """Root endpoint with API info."""
        return {
            "name": settings.app_name,
            "version": "1.0.0",
            "status": "running",
            "docs": "/docs",
        }

    @app.get("/health")
    def health_check():
        """Health check endpoint for container orchestration."""
        return {"status": "OK", "timestamp": datetime.utcnow().isoformat()}

    return app


app = create_app()
