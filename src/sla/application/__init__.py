"""
SLA Application Layer
======================

Application layer for the business-hours SLA engine.

Contains:
- Services: calendar resolution, deadline computation, policy admin
- DTOs: Data transfer objects for API serialization

The breach sweeper lives in ``src.sla.application.sweeper`` and is
imported from there directly; it depends on the ticket context, which in
turn depends on the services exported here.
"""

from src.sla.application.dto import (
    SLAPolicyItem,
    SLAPolicyUpsertRequest,
    SLAPolicyResponse,
    SLAPreviewResponse,
    SweepResponse,
)
from src.sla.application.services import (
    SLAService,
    SLAPolicyService,
    WorkingCalendarResolver,
    ISLAPolicyRepository,
    IWorkingCalendarRepository,
)

__all__ = [
    # DTOs
    "SLAPolicyItem",
    "SLAPolicyUpsertRequest",
    "SLAPolicyResponse",
    "SLAPreviewResponse",
    "SweepResponse",
    # Services
    "SLAService",
    "SLAPolicyService",
    "WorkingCalendarResolver",
    # Repository Interfaces
    "ISLAPolicyRepository",
    "IWorkingCalendarRepository",
]
