"""
Activity and Notification Recorders
===================================

Fire-and-forget writers. A failed log or notification write is logged and
swallowed so it never fails the operation that produced it.
"""

from datetime import datetime, timezone
from typing import Optional

from src.config import ActivityAction, NotificationSeverity
from src.shared.infrastructure.logging import get_logger
from src.tickets.application.ports import IActivityLogRepository, INotificationRepository
from src.tickets.domain import ActivityLogEntry, Notification

logger = get_logger(__name__)


class ActivityRecorder:
    """Writes activity log entries."""

    def __init__(self, repository: IActivityLogRepository):
        self._repo = repository

    async def record(
        self,
        ticket_id: str,
        actor_id: Optional[str],
        action: ActivityAction,
        description: str,
        old_value: Optional[str] = None,
        new_value: Optional[str] = None
    ) -> bool:
        entry = ActivityLogEntry(
            ticket_id=ticket_id,
            actor_id=actor_id,
            action=action,
            description=description,
            old_value=old_value,
            new_value=new_value,
            created_at=datetime.now(timezone.utc),
        )
        try:
            await self._repo.append(entry)
            return True
        except Exception as e:
            logger.error(
                "Failed to write activity log",
                extra={"ticket_id": ticket_id, "action": action.value, "error": str(e)}
            )
            return False


class Notifier:
    """Writes in-app notifications."""

    def __init__(self, repository: INotificationRepository):
        self._repo = repository

    async def notify(
        self,
        user_id: Optional[str],
        title: str,
        message: str,
        severity: NotificationSeverity = NotificationSeverity.INFO,
        related_ticket_id: Optional[str] = None
    ) -> bool:
        if not user_id:
            return False

        notification = Notification(
            user_id=user_id,
            title=title,
            message=message,
            severity=severity,
            related_ticket_id=related_ticket_id,
            created_at=datetime.now(timezone.utc),
        )
        try:
            await self._repo.create(notification)
            return True
        except Exception as e:
            logger.error(
                "Failed to send notification",
                extra={"user_id": user_id, "ticket_id": related_ticket_id, "error": str(e)}
            )
            return False
