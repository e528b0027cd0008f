"""
Ticket Infrastructure Layer
===========================

Infrastructure implementations for the ticket lifecycle:
- Models: SQLAlchemy ORM models
- Repositories: Data access layer
"""

from src.tickets.infrastructure.models import (
    TicketModel,
    TicketLogModel,
    ProgressUpdateModel,
    ApprovalWorkflowModel,
    NotificationModel,
    UserModel,
)
from src.tickets.infrastructure.repositories import (
    SQLAlchemyTicketRepository,
    SQLAlchemyApprovalRepository,
    SQLAlchemyProgressUpdateRepository,
    SQLAlchemyActivityLogRepository,
    SQLAlchemyNotificationRepository,
    SQLAlchemyUserDirectory,
)

__all__ = [
    "TicketModel",
    "TicketLogModel",
    "ProgressUpdateModel",
    "ApprovalWorkflowModel",
    "NotificationModel",
    "UserModel",
    "SQLAlchemyTicketRepository",
    "SQLAlchemyApprovalRepository",
    "SQLAlchemyProgressUpdateRepository",
    "SQLAlchemyActivityLogRepository",
    "SQLAlchemyNotificationRepository",
    "SQLAlchemyUserDirectory",
]
