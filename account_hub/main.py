"""
Account Hub API Server

Entry point for the FastAPI application.
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from account_hub.core.config import get_settings
from account_hub.core.database import engine, ping_db
from account_hub.core.errors import error_body, install_error_handlers
from account_hub.core.logging_config import configure_logging
from account_hub.core.middleware import (
    CSRFMiddleware,
    RequestContextMiddleware,
    SecurityHeadersMiddleware,
)
from account_hub.api.v1 import router as api_v1_router

settings = get_settings()
log = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    log.info("Account Hub starting", debug=settings.debug)
    yield
    log.info("Account Hub shutting down")
    await engine.dispose()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    configure_logging(settings.log_level, settings.log_format)

    app = FastAPI(
        title="Account Hub",
        description="Organizations, memberships and app entitlements for Velox apps.",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Middleware (each add wraps the previous ones, so the last added runs first)
    app.add_middleware(CSRFMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "PUT", "DELETE"],
        allow_headers=["Content-Type", "Authorization", "X-Request-ID", "X-CSRF-Token"],
    )
    app.add_middleware(RequestContextMiddleware)

    install_error_handlers(app)

    # API routes
    app.include_router(api_v1_router, prefix="/api/v1")

    @app.get("/health", tags=["System"])
    async def health_check():
        """Health check endpoint for liveness probes."""
        return {"status": "ok"}

    @app.get("/ready", tags=["System"])
    async def readiness_check():
        """Readiness check endpoint: the database must answer."""
        try:
            await ping_db()
        except Exception as exc:
            log.warning("readiness.database_unavailable", error=str(exc))
            return JSONResponse(
                status_code=503,
                content=error_body("NOT_READY", "Database unavailable", 503),
            )
        return {"status": "ready"}

    return app


app = create_app()
