"""
SLA Interfaces Layer
====================

Interface adapters (controllers) for the SLA engine.

Contains:
- Controllers: FastAPI route handlers and session-bound service builders
"""

from src.sla.interfaces.controllers import (
    sla_router,
    build_sla_service,
    build_breach_sweeper,
    business_now,
)

__all__ = ["sla_router", "build_sla_service", "build_breach_sweeper", "business_now"]
