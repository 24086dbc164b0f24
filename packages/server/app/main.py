"""
Timesheet Store API Server

Entry point for the FastAPI application.
"""

import structlog
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.v1 import router as api_v1_router
from app.api.v1.auth import router as auth_router
from app.core.config import get_settings
from app.core.sessions import close_redis
from timesheet_shared.logging import configure_logging

settings = get_settings()
log = structlog.get_logger()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    configure_logging(settings.log_level, settings.log_format)

    app = FastAPI(
        title="Timesheet",
        description="Profiles, projects and memberships for multi-tenant timesheets.",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "PUT"],
        allow_headers=["Content-Type", "Authorization"],
    )

    # Auth routes (not org-scoped)
    app.include_router(auth_router, prefix="/auth", tags=["Authentication"])

    # API routes
    app.include_router(api_v1_router, prefix="/api/v1")

    @app.get("/health", tags=["System"])
    async def health_check():
        """Health check endpoint for liveness probes."""
        return {"status": "ok"}

    @app.on_event("startup")
    async def on_startup():
        log.info("timesheet.starting", debug=settings.debug)

    @app.on_event("shutdown")
    async def on_shutdown():
        log.info("timesheet.shutting_down")
        await close_redis()

    return app


app = create_app()


def run() -> None:
    """CLI entry point for the store service."""
    uvicorn.run("app.main:app", host=settings.host, port=settings.port)
