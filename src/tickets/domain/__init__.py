"""
Ticket Domain Layer
===================

Contains:
- Entities: Ticket, ApprovalStep, ProgressUpdate, ActivityLogEntry, Notification
- Value Objects: PriorityResult
- Domain Services: PriorityClassifier, StatusTokenMapper

This layer has no dependencies on infrastructure - pure Python business logic.
"""

from src.tickets.domain.value_objects import (
    PriorityResult,
    PriorityClassifier,
    StatusTokenMapper,
)
from src.tickets.domain.entities import (
    Ticket,
    ApprovalStep,
    ProgressUpdate,
    ActivityLogEntry,
    Notification,
    MergeOutcome,
    generate_ticket_number,
)

__all__ = [
    "PriorityResult",
    "PriorityClassifier",
    "StatusTokenMapper",
    "Ticket",
    "ApprovalStep",
    "ProgressUpdate",
    "ActivityLogEntry",
    "Notification",
    "MergeOutcome",
    "generate_ticket_number",
]
