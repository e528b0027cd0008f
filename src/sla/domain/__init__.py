"""
SLA Domain Layer
================

Domain layer for the SLA engine.

Contains:
- Value Objects: WorkingCalendar, DaySchedule, SLAPolicy, SLADeadline
- Domain Services: BusinessHoursCalculator, SLAStatusEvaluator
- Entities: SLAStatusSnapshot, SweepResult

This layer has no dependencies on infrastructure - pure Python business logic.
"""

from src.sla.domain.value_objects import (
    DaySchedule,
    WorkingCalendar,
    SLAPolicy,
    SLADeadline,
    day_of_week,
)
from src.sla.domain.calculator import (
    BusinessHoursCalculator,
    SLAStatusEvaluator,
    MAX_SIMULATED_HOURS,
    next_hour_boundary,
)
from src.sla.domain.entities import SLAStatusSnapshot, SweepResult

__all__ = [
    # Value Objects
    "DaySchedule",
    "WorkingCalendar",
    "SLAPolicy",
    "SLADeadline",
    "day_of_week",
    # Domain Services
    "BusinessHoursCalculator",
    "SLAStatusEvaluator",
    "MAX_SIMULATED_HOURS",
    "next_hour_boundary",
    # Entities
    "SLAStatusSnapshot",
    "SweepResult",
]
