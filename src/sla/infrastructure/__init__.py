"""
SLA Infrastructure Layer
=========================

Infrastructure implementations for the SLA engine:
- Models: SQLAlchemy ORM models
- Repositories: Data access layer
- External: Escalation webhook and scheduler
"""

from src.sla.infrastructure.models import SLAPolicyModel, WorkingHoursModel, HolidayModel
from src.sla.infrastructure.repositories import (
    SQLAlchemySLAPolicyRepository,
    SQLAlchemyWorkingCalendarRepository,
)

__all__ = [
    "SLAPolicyModel",
    "WorkingHoursModel",
    "HolidayModel",
    "SQLAlchemySLAPolicyRepository",
    "SQLAlchemyWorkingCalendarRepository",
]
