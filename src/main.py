"""
Service Desk - Main Application
===============================

Business-hours SLA engine and ticket lifecycle for a multi-unit
service desk.

Modules:
- Access: role/permission cache and actor resolution
- SLA: working calendars, deadline computation, breach sweep
- Tickets: status/stage state machine, approvals, merges

Clean Architecture Layers:
- Interfaces: FastAPI controllers
- Application: Services and DTOs
- Domain: Entities and value objects
- Infrastructure: Database, webhook, scheduler
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

# Configuration and Core
from src.config import settings
from src.core import ApplicationException

# Infrastructure
from src.infrastructure.database import (
    close_database,
    create_tables,
    init_database,
    session_scope,
)
from src.access.infrastructure import RBACConfigManager
from src.sla.infrastructure.external import EscalationWebhookClient, SLAScheduler

# Module Routers
from src.access.interfaces import access_router
from src.sla.interfaces import build_breach_sweeper, sla_router
from src.tickets.interfaces import tickets_router

# Shared
from src.shared.api.middleware import (
    CorrelationIDMiddleware,
    LoggingMiddleware,
    TimingMiddleware,
    application_exception_handler,
    global_exception_handler,
)
from src.shared.infrastructure.logging import get_logger, setup_logging

logger = get_logger(__name__)

# Global service instances
rbac_manager: Optional[RBACConfigManager] = None
sla_scheduler: Optional[SLAScheduler] = None
escalation_client: Optional[EscalationWebhookClient] = None


async def breach_sweep_job() -> None:
    """Background breach sweep, one transaction per run."""
    try:
        async with session_scope() as session:
            await build_breach_sweeper(session, escalation_client).sweep()
    except Exception as e:
        logger.error("Breach sweep failed", extra={"error": str(e)}, exc_info=True)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Application lifespan manager.

    STARTUP:
    1. Setup structured logging
    2. Initialize database and create tables
    3. Load the RBAC table and watch its file
    4. Create the escalation webhook client (when configured)
    5. Start the breach sweep scheduler

    SHUTDOWN:
    1. Stop scheduler
    2. Stop RBAC watcher
    3. Close webhook client
    4. Close database connections
    """
    global rbac_manager, sla_scheduler, escalation_client

    # === STARTUP ===
    setup_logging(settings.log_level, settings.environment)
    logger.info("Starting Service Desk", extra={
        "version": settings.app_version,
        "environment": settings.environment
    })

    logger.info("Initializing database")
    init_database()

    # Create tables (for development - use migrations in production)
    try:
        await create_tables()
    except Exception as e:
        logger.warning(
            "Database not available - running in degraded mode",
            extra={"error": str(e)}
        )

    logger.info("Loading RBAC configuration")
    rbac_manager = RBACConfigManager(ttl_seconds=settings.rbac_cache_ttl_seconds)
    rbac_manager.load(settings.rbac_config_path)
    rbac_manager.start_watching()
    app.state.rbac = rbac_manager

    if settings.escalation_webhook_url:
        escalation_client = EscalationWebhookClient(
            settings.escalation_webhook_url,
            timeout_seconds=settings.escalation_webhook_timeout_seconds
        )
    else:
        logger.info("Escalation webhook not configured")
    app.state.escalation_publisher = escalation_client

    if settings.sla_sweep_interval_seconds > 0:
        sla_scheduler = SLAScheduler(interval_seconds=settings.sla_sweep_interval_seconds)
        await sla_scheduler.start(breach_sweep_job)
    else:
        logger.info("Breach sweep scheduler disabled")

    logger.info("Service Desk started successfully")

    yield  # Application runs here

    # === SHUTDOWN ===
    logger.info("Shutting down Service Desk")

    if sla_scheduler:
        await sla_scheduler.stop()

    if rbac_manager:
        rbac_manager.stop_watching()

    if escalation_client:
        await escalation_client.close()

    await close_database()

    logger.info("Service Desk shutdown complete")


# Create FastAPI application
app = FastAPI(
    title="Service Desk API",
    description="""
    ## Service Desk SLA & Ticket Lifecycle

    ### Tickets
    - `POST /api/v1/incidents` - Report an internal incident
    - `POST /api/v1/public/incidents` - Submit an incident without an account
    - `POST /api/v1/requests` - Create a service request (optional approvals)
    - `PUT /api/v1/tickets/{id}/assign` - Assign a technician, starts the SLA clock
    - `PUT /api/v1/tickets/{id}/classify` - Change urgency/impact
    - `POST /api/v1/tickets/{id}/progress` - Record a progress update
    - `POST /api/v1/incidents/merge` - Merge duplicates

    ### SLA
    - Deadlines count only working hours of the owning unit, skipping holidays
    - Overdue tickets are flagged and escalated every 10 minutes

    ### Priority Matrix

    | Score (urgency x impact) | Priority |
    |--------------------------|----------|
    | 1 - 5                    | low      |
    | 6 - 10                   | medium   |
    | 11 - 15                  | high     |
    | 16 - 25                  | major    |

    Callers identify themselves with `X-Actor-Id`, `X-Actor-Role` and
    `X-Actor-Unit` headers set by the gateway.
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

# === Custom Middleware (from shared) ===
app.add_middleware(LoggingMiddleware)
app.add_middleware(CorrelationIDMiddleware)
app.add_middleware(TimingMiddleware)
app.add_exception_handler(ApplicationException, application_exception_handler)
app.add_exception_handler(Exception, global_exception_handler)

# === Include Module Routers ===
API_PREFIX = "/api/v1"
app.include_router(tickets_router, prefix=API_PREFIX)
app.include_router(sla_router, prefix=API_PREFIX)
app.include_router(access_router, prefix=API_PREFIX)


# === Health Check Endpoint ===

@app.get("/health", tags=["Health"], responses={
    200: {
        "description": "Service is healthy",
        "content": {
            "application/json": {
                "example": {
                    "status": "healthy",
                    "version": "2.0.0",
                    "environment": "development",
                    "checks": {
                        "rbac": "loaded (6 roles)",
                        "sla_scheduler": "running",
                        "escalation_webhook": "configured"
                    }
                }
            }
        }
    }
})
async def health_check(request: Request):
    """
    Health check endpoint for load balancers and orchestrators.
    """
    rbac = getattr(request.app.state, "rbac", None)
    checks = {
        "rbac": f"loaded ({len(rbac.config.roles)} roles)" if rbac else "not_loaded",
        "sla_scheduler": "running" if sla_scheduler and sla_scheduler.is_running else "stopped",
        "escalation_webhook": "configured" if escalation_client else "not_configured",
    }

    return {
        "status": "healthy",
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
            "tickets": {"prefix": f"{API_PREFIX}"},
            "sla": {"prefix": f"{API_PREFIX}/admin/sla"},
            "access": {"prefix": f"{API_PREFIX}/admin/rbac"},
        }
    }


# === Development Entry Point ===

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "src.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.environment == "development",
        log_level=settings.log_level.lower()
    )
