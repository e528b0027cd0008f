"""
Ticket Application Layer
========================

Contains:
- TicketLifecycleService: every ticket mutation and the read helpers
- ActivityRecorder / Notifier: fire-and-forget writers
- Repository interfaces
- DTOs
"""

from src.tickets.application.ports import (
    ITicketRepository,
    IApprovalRepository,
    IProgressUpdateRepository,
    IActivityLogRepository,
    INotificationRepository,
    IUserDirectory,
)
from src.tickets.application.recorders import ActivityRecorder, Notifier
from src.tickets.application.services import TicketLifecycleService
from src.tickets.application.dto import (
    IncidentCreateRequest,
    PublicIncidentCreateRequest,
    ServiceRequestCreateRequest,
    AssignRequest,
    ClassifyRequest,
    ProgressUpdateRequest,
    ApprovalDecisionRequest,
    MergeRequest,
    TicketResponse,
    MergeResponse,
    SLAStatusResponse,
)

__all__ = [
    "ITicketRepository",
    "IApprovalRepository",
    "IProgressUpdateRepository",
    "IActivityLogRepository",
    "INotificationRepository",
    "IUserDirectory",
    "ActivityRecorder",
    "Notifier",
    "TicketLifecycleService",
    "IncidentCreateRequest",
    "PublicIncidentCreateRequest",
    "ServiceRequestCreateRequest",
    "AssignRequest",
    "ClassifyRequest",
    "ProgressUpdateRequest",
    "ApprovalDecisionRequest",
    "MergeRequest",
    "TicketResponse",
    "MergeResponse",
    "SLAStatusResponse",
]
