"""
AlertBridge - Main Application
==============================

Monitoring-alert to ITSM bridge.

Modules:
- Ingestion: authenticated webhook turning alerts into incidents
- Enrichment: CMDB lookups for configuration items
- Tickets: incident/problem/change records and their links
- Escalation: scheduled SLA escalation sweep

Clean Architecture Layers:
- Interfaces: FastAPI controllers
- Application: Services and DTOs
- Domain: Entities, value objects, pure policies
- Infrastructure: Database, CMDB client, scheduler, config file
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from alertbridge.config import Settings, get_settings
from alertbridge.container import ServiceContainer, build_container
from alertbridge.infrastructure.config_provider import YAMLConfigManager
from alertbridge.infrastructure.database import (
    close_database, create_tables, get_session_maker, init_database
)
from alertbridge.ingestion.interfaces import webhook_router
from alertbridge.tickets.interfaces import tickets_router
from alertbridge.escalation.interfaces import escalation_router
from alertbridge.shared.api.middleware import (
    CorrelationIDMiddleware,
    LoggingMiddleware,
    global_exception_handler,
    http_exception_handler,
    validation_exception_handler,
)
from alertbridge.shared.infrastructure.logging import get_logger, setup_logging

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Application lifespan manager.

    STARTUP (skipped when a container was supplied to create_app):
    1. Setup structured logging
    2. Initialize database and create tables
    3. Load runtime configuration and watch it for changes
    4. Wire the service container
    5. Start the escalation scheduler

    SHUTDOWN:
    1. Stop the escalation scheduler and CMDB client
    2. Stop config watcher
    3. Close database connections
    """
    if getattr(app.state, "container", None) is not None:
        yield
        return

    settings: Settings = app.state.settings

    # === STARTUP ===
    setup_logging(settings.log_level, settings.environment)
    logger.info("Starting AlertBridge", extra={
        "version": settings.app_version,
        "environment": settings.environment
    })

    logger.info("Initializing database")
    init_database()
    await create_tables()

    logger.info("Loading runtime configuration", extra={"path": str(settings.config_path)})
    config_manager = YAMLConfigManager(settings)
    config_manager.load(settings.config_path)
    config_manager.start_watching()

    container = build_container(settings, config_manager, session_maker=get_session_maker())
    app.state.container = container

    if settings.escalation_enabled:
        await container.scheduler.start()
    else:
        logger.info("Escalation scheduler disabled")

    logger.info("AlertBridge started successfully")

    yield  # Application runs here

    # === SHUTDOWN ===
    logger.info("Shutting down AlertBridge")

    await container.close()
    config_manager.stop_watching()
    await close_database()
    app.state.container = None

    logger.info("AlertBridge shutdown complete")


def create_app(
    container: Optional[ServiceContainer] = None,
    settings: Optional[Settings] = None
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        container: Pre-wired services (tests); when omitted the lifespan
            builds them from settings on startup
        settings: Overrides the cached environment settings
    """
    settings = settings or (container.settings if container else get_settings())

    app = FastAPI(
        title="AlertBridge API",
        description="""
        ## Monitoring alerts to ITSM tickets

        - `POST /webhook/alert` - authenticated alert intake, creates an Incident
        - `GET /tickets/{id}` - ticket view
        - `GET /tickets/{id}/ci-context` - CMDB context for the ticket's CI
        - `POST /tickets/{id}/change` - raise a Change from a Problem
        - `POST /tickets/{id}/close-related` - close issues fixed by a Change
        - `POST /escalation/sweep`, `GET /escalation/status` - SLA escalation
        """,
        version=settings.app_version,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan
    )
    app.state.settings = settings
    app.state.container = container

    # === CORS Middleware ===
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # === Custom Middleware (from shared) ===
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(CorrelationIDMiddleware)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, global_exception_handler)

    # === Include Module Routers ===
    app.include_router(webhook_router)
    app.include_router(tickets_router)
    app.include_router(escalation_router)

    @app.get("/health", tags=["Health"], responses={
        200: {
            "description": "Service is healthy",
            "content": {
                "application/json": {
                    "example": {
                        "status": "healthy",
                        "version": "1.0.0",
                        "environment": "development",
                        "checks": {
                            "services": "ready",
                            "cmdb": "configured",
                            "escalation_scheduler": "running"
                        }
                    }
                }
            }
        }
    })
    async def health_check(request: Request):
        """Health check endpoint for load balancers and orchestrators."""
        services = request.app.state.container
        checks = {"services": "ready" if services else "starting"}
        if services:
            cmdb = services.config_provider.get_config().cmdb
            checks["cmdb"] = "configured" if cmdb.is_configured else "not_configured"
            checks["escalation_scheduler"] = "running" if services.scheduler.is_running else "stopped"

        return {
            "status": "healthy" if services else "starting",
            "version": settings.app_version,
            "environment": settings.environment,
            "checks": checks
        }

    @app.get("/", tags=["Root"])
    async def root():
        """Root endpoint with API information."""
        return {
            "service": settings.app_name,
            "version": settings.app_version,
            "architecture": "Clean Architecture / Modular Monolith",
            "docs": "/docs",
            "health": "/health",
            "modules": {
                "webhook": {
                    "prefix": "/webhook",
                    "endpoints": ["POST /webhook/alert - Create incident from alert"]
                },
                "tickets": {
                    "prefix": "/tickets",
                    "endpoints": [
                        "GET /tickets/{id} - Get ticket",
                        "GET /tickets/{id}/ci-context - Get CI context",
                        "POST /tickets/{id}/change - Create change from problem",
                        "POST /tickets/{id}/close-related - Close related issues"
                    ]
                },
                "escalation": {
                    "prefix": "/escalation",
                    "endpoints": [
                        "POST /escalation/sweep - Run escalation sweep",
                        "GET /escalation/status - Scheduler status"
                    ]
                }
            }
        }

    return app


def run() -> None:
    """Console entry point."""
    settings = get_settings()
    uvicorn.run(
        "alertbridge.main:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower()
    )


if __name__ == "__main__":
    run()
