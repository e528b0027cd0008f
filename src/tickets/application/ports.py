"""
Ticket Repository Interfaces
============================

Abstractions the lifecycle service and the breach sweeper depend on.
Implementations live in ``src.tickets.infrastructure``; tests use
in-memory fakes.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, List, Optional

from src.tickets.domain import (
    ActivityLogEntry,
    ApprovalStep,
    Notification,
    ProgressUpdate,
    Ticket,
)


class ITicketRepository(ABC):
    """Interface for ticket data access."""

    @abstractmethod
    async def get_by_id(self, ticket_id: str) -> Optional[Ticket]:
        """Get ticket by ID."""

    @abstractmethod
    async def create(self, ticket: Ticket) -> Ticket:
        """Insert a ticket and return it with its ID assigned."""

    @abstractmethod
    async def update(self, ticket_id: str, fields: Dict[str, Any]) -> None:
        """Write only the given columns."""

    @abstractmethod
    async def find_overdue(self, now: datetime) -> List[Ticket]:
        """Tickets past due, not yet flagged and not in a terminal status."""

    @abstractmethod
    async def mark_breached(self, ticket_ids: List[str], now: datetime) -> List[str]:
        """
        Flag tickets as breached.

        The write re-checks the overdue predicate and returns the IDs that
        were actually flipped; tickets that were resolved or flagged in the
        meantime are skipped.
        """


class IApprovalRepository(ABC):
    """Interface for approval workflow steps."""

    @abstractmethod
    async def create_steps(self, steps: List[ApprovalStep]) -> List[ApprovalStep]:
        """Insert workflow steps."""

    @abstractmethod
    async def list_for_ticket(self, ticket_id: str) -> List[ApprovalStep]:
        """Steps of one ticket ordered by level."""

    @abstractmethod
    async def save_step(self, step: ApprovalStep) -> None:
        """Persist a step's decision."""


class IProgressUpdateRepository(ABC):
    """Interface for technician progress reports."""

    @abstractmethod
    async def next_update_number(self, ticket_id: str) -> int:
        """1 for the first update of a ticket."""

    @abstractmethod
    async def create(self, update: ProgressUpdate) -> ProgressUpdate:
        """Insert a progress update."""


class IActivityLogRepository(ABC):
    """Append-only activity log."""

    @abstractmethod
    async def append(self, entry: ActivityLogEntry) -> None:
        """Append one entry."""


class INotificationRepository(ABC):
    """User inbox."""

    @abstractmethod
    async def create(self, notification: Notification) -> None:
        """Insert one notification."""


class IUserDirectory(ABC):
    """Read-only view of users."""

    @abstractmethod
    async def list_user_ids(self, unit_id: Optional[str], role: str) -> List[str]:
        """IDs of users with ``role`` in ``unit_id``."""
