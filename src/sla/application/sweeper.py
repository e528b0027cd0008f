"""
Breach Sweeper
==============

Recurring job that flags overdue tickets and escalates them.

Flagging is a single compare-and-set write; only tickets that write
actually flipped are escalated, so a ticket resolved between the scan and
the write is neither flagged nor escalated. A failure while escalating one
ticket is logged and the sweep moves on; flags are never rolled back.
"""

from abc import ABC, abstractmethod
from contextlib import nullcontext
from datetime import datetime, timezone
from typing import AsyncContextManager, Callable, Optional

from src.config import ActivityAction, NotificationSeverity
from src.shared.infrastructure.logging import get_logger, log_latency
from src.sla.domain import SweepResult
from src.tickets.application.ports import ITicketRepository, IUserDirectory
from src.tickets.application.recorders import ActivityRecorder, Notifier
from src.tickets.domain import Ticket

logger = get_logger(__name__)

ESCALATION_LOG_TEXT = "SLA breached. Escalated automatically to the unit admins."


class IEscalationPublisher(ABC):
    """Outbound channel for breach escalations (chat webhook)."""

    @abstractmethod
    async def publish_breach(self, ticket: Ticket) -> bool:
        """Post a breach alert. Returns False when the message was not delivered."""


class BreachSweeper:
    """Flags overdue tickets and notifies handlers and unit admins."""

    def __init__(
        self,
        ticket_repository: ITicketRepository,
        activity: ActivityRecorder,
        notifier: Notifier,
        user_directory: IUserDirectory,
        escalation_admin_role: str = "admin_opd",
        publisher: Optional[IEscalationPublisher] = None,
        clock: Optional[Callable[[], datetime]] = None,
        savepoint: Optional[Callable[[], AsyncContextManager]] = None
    ):
        """
        Args:
            savepoint: Factory for a nested transaction wrapping each ticket's
                escalation, so a failed statement rolls back only that ticket
                and leaves the breach flags of the batch intact
        """
        self._tickets = ticket_repository
        self._activity = activity
        self._notifier = notifier
        self._users = user_directory
        self._admin_role = escalation_admin_role
        self._publisher = publisher
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._savepoint = savepoint or nullcontext

    async def sweep(self, now: Optional[datetime] = None) -> SweepResult:
        """
        Run one sweep.

        Storage failures while scanning or flagging propagate; failures
        while escalating a flagged ticket do not.
        """
        now = now or self._clock()
        result = SweepResult(started_at=now)

        with log_latency(logger, "breach_sweep"):
            candidates = await self._tickets.find_overdue(now)
            result.candidates = len(candidates)
            if not candidates:
                return result

            by_id = {t.id: t for t in candidates}
            result.flagged_ids = list(await self._tickets.mark_breached(list(by_id), now))

            for ticket_id in result.flagged_ids:
                ticket = by_id.get(ticket_id)
                if ticket is None:
                    continue
                try:
                    async with self._savepoint():
                        await self._escalate(ticket)
                    result.escalated_ids.append(ticket_id)
                except Exception as e:
                    result.failed_ids.append(ticket_id)
                    logger.error(
                        "Escalation failed",
                        extra={"ticket_id": ticket_id, "error": str(e)},
                        exc_info=True
                    )

        logger.info("Breach sweep finished", extra=result.to_dict())
        return result

    async def _escalate(self, ticket: Ticket) -> None:
        ticket.sla_breached = True

        await self._activity.record(
            ticket.id, None, ActivityAction.ESCALATION, ESCALATION_LOG_TEXT
        )

        if ticket.assigned_to:
            await self._notifier.notify(
                ticket.assigned_to,
                "SLA BREACH ALERT",
                f"Ticket {ticket.ticket_number} has passed its SLA deadline.",
                NotificationSeverity.ERROR,
                related_ticket_id=ticket.id
            )

        admins = await self._users.list_user_ids(ticket.unit_id, self._admin_role)
        for admin_id in admins:
            await self._notifier.notify(
                admin_id,
                "TICKET ESCALATION",
                f"Ticket {ticket.ticket_number} breached its SLA and needs attention.",
                NotificationSeverity.WARNING,
                related_ticket_id=ticket.id
            )

        if self._publisher is not None:
            await self._publisher.publish_breach(ticket)
