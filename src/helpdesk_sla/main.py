"""
Helpdesk SLA - Main Application
================================

Business-time SLA accounting for helpdesk tickets.

Modules:
- SLA: effective business time, SLA status per ticket, dashboard averages

Clean Architecture Layers:
- Interfaces: FastAPI controllers
- Application: Services and DTOs
- Domain: Entities, value objects and the business-time calculator
- Infrastructure: YAML configuration with hot reload
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from helpdesk_sla.config import settings
from helpdesk_sla.shared.api.middleware import (
    CorrelationIDMiddleware,
    LoggingMiddleware,
    register_exception_handlers,
)
from helpdesk_sla.shared.infrastructure.logging import get_logger, setup_logging
from helpdesk_sla.sla.infrastructure import SLAConfigManager
from helpdesk_sla.sla.interfaces import sla_router

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Application lifespan manager.

    STARTUP:
    1. Setup structured logging
    2. Load SLA configuration (defaults when the file is absent)
    3. Start watching the configuration file

    SHUTDOWN:
    1. Stop the configuration watcher
    """
    # === STARTUP ===
    setup_logging(settings.log_level, settings.environment)
    logger.info("Starting Helpdesk SLA service", extra={
        "version": settings.app_version,
        "environment": settings.environment
    })

    sla_config_manager = SLAConfigManager.from_settings(settings)
    sla_config_manager.load(settings.sla_config_path)
    if settings.sla_config_watch:
        sla_config_manager.start_watching()

    app.state.settings = settings
    app.state.sla_config_manager = sla_config_manager

    logger.info("Helpdesk SLA service started successfully")

    yield  # Application runs here

    # === SHUTDOWN ===
    logger.info("Shutting down Helpdesk SLA service")
    sla_config_manager.stop_watching()
    logger.info("Helpdesk SLA service shutdown complete")


app = FastAPI(
    title="Helpdesk SLA API",
    description="""
    ## Business-time SLA accounting for helpdesk tickets

    Time counts toward an SLA only inside business hours and only while the
    ticket is in a status that keeps the SLA clock running.

    **Endpoints:**
    - `POST /sla/effective-time` - Effective business time of one status history
    - `POST /sla/tickets/evaluate` - Response and resolution SLA status per ticket
    - `POST /sla/dashboard` - Average first-response and resolution times
    - `GET /sla/business-hours` - Effective business calendar

    **Paused statuses:** `waiting_customer`, `suspended`, `pending_deployment`

    ---

    ### Default SLA targets (business hours)

    | Priority | Response | Resolution |
    |----------|----------|------------|
    | Critical | 1        | 4          |
    | High     | 2        | 8          |
    | Medium   | 4        | 24         |
    | Low      | 8        | 48         |

    Targets, calendars and thresholds are read from `sla_config.yaml` and
    reloaded when the file changes.
    """,
    version=settings.app_version,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# === CORS Middleware ===
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Last added runs first: correlation ID is set before the access log reads it
app.add_middleware(LoggingMiddleware)
app.add_middleware(CorrelationIDMiddleware)
register_exception_handlers(app)

# === Include Module Routers ===
app.include_router(sla_router)


# === Health Check Endpoint ===

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
                        "sla_config": "loaded",
                        "sla_config_watch": "watching"
                    }
                }
            }
        }
    }
})
async def health_check(request: Request):
    """Health check endpoint for load balancers and orchestrators."""
    manager = getattr(request.app.state, "sla_config_manager", None)
    checks = {
        "sla_config": "loaded" if manager is not None else "not_loaded",
        "sla_config_watch": "watching" if manager is not None and manager.is_watching else "static"
    }

    return {
        "status": "healthy" if manager is not None else "degraded",
        "version": settings.app_version,
        "environment": settings.environment,
        "checks": checks
    }


@app.get("/", tags=["Root"])
async def root():
    """Root endpoint with API information."""
    return {
        "service": "Helpdesk SLA",
        "version": settings.app_version,
        "docs": "/docs",
        "health": "/health",
        "modules": {
            "sla": {
                "prefix": "/sla",
                "endpoints": [
                    "POST /sla/effective-time - Effective business time",
                    "POST /sla/tickets/evaluate - Evaluate ticket SLAs",
                    "POST /sla/dashboard - Dashboard averages",
                    "GET /sla/business-hours - Business calendar"
                ]
            }
        }
    }


# === Development Entry Point ===

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "helpdesk_sla.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.environment == "development",
        log_level=settings.log_level.lower()
    )
