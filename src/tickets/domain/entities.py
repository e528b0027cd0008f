"""
Ticket Domain Entities
======================

Pure Python entities for the ticket lifecycle.

The Ticket entity owns status, stage and the SLA fields. Each transition
mutates the entity and returns the dict of changed fields so the caller
can issue a partial write touching only those columns.
"""

import random
from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import Any, Dict, List, Optional

from src.config import (
    ActivityAction,
    ApprovalStatus,
    NotificationSeverity,
    PriorityCategory,
    TicketStage,
    TicketStatus,
    TicketType,
)
from src.core import InvalidTransitionException
from src.tickets.domain.value_objects import PriorityResult

ASSIGNABLE_STATUSES = (TicketStatus.OPEN, TicketStatus.ASSIGNED, TicketStatus.IN_PROGRESS)
LOCKED_STATUSES = (TicketStatus.CLOSED, TicketStatus.REJECTED)


def generate_ticket_number(ticket_type: TicketType, now: datetime) -> str:
    """INC-2025-0042 / REQ-2025-0042."""
    prefix = "INC" if ticket_type == TicketType.INCIDENT else "REQ"
    return f"{prefix}-{now.year}-{random.randint(0, 9999):04d}"


@dataclass
class Ticket:
    """
    Ticket entity.

    ``sla_start_at`` is the instant the current SLA clock started: creation
    for public incidents and service requests, the latest assignment for
    everything that has been assigned. It is the basis every recomputation
    uses.
    """

    # Identity
    id: Optional[str]
    ticket_number: str
    type: TicketType
    title: str
    description: str

    # Ownership
    unit_id: Optional[str]
    reporter_id: Optional[str] = None
    reporter_name: Optional[str] = None
    reporter_email: Optional[str] = None
    assigned_to: Optional[str] = None

    # Lifecycle
    status: TicketStatus = TicketStatus.OPEN
    stage: Optional[str] = TicketStage.TRIASE.value

    # Priority
    urgency: Optional[int] = None
    impact: Optional[int] = None
    priority: PriorityCategory = PriorityCategory.MEDIUM
    priority_score: Optional[int] = None

    # SLA
    sla_start_at: Optional[datetime] = None
    sla_due: Optional[datetime] = None
    sla_target_date: Optional[date] = None
    sla_target_time: Optional[time] = None
    sla_breached: bool = False

    # Resolution
    resolution: Optional[str] = None
    merged_to: Optional[str] = None
    merge_reason: Optional[str] = None

    # Timestamps
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None
    closed_at: Optional[datetime] = None

    @property
    def is_assigned(self) -> bool:
        return self.assigned_to is not None

    @property
    def sla_clock_started(self) -> bool:
        return self.sla_start_at is not None

    def _apply(self, changes: Dict[str, Any]) -> Dict[str, Any]:
        for name, value in changes.items():
            setattr(self, name, value)
        return changes

    def _require(self, allowed: tuple, operation: str) -> None:
        if self.status not in allowed:
            raise InvalidTransitionException(str(self.id), self.status.value, operation)

    # ========== Transitions ==========

    def assign(
        self,
        technician_id: str,
        at: datetime,
        sla_fields: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """
        Hand the ticket to a technician and restart the SLA clock at ``at``.

        ``sla_fields`` is None when no deadline could be computed; the
        previous SLA fields then stay as they are.
        """
        self._require(ASSIGNABLE_STATUSES, "assign")

        changes: Dict[str, Any] = {
            "assigned_to": technician_id,
            "status": TicketStatus.ASSIGNED,
            "updated_at": at,
        }
        if sla_fields is not None:
            changes["sla_start_at"] = at
            changes.update(sla_fields)
        return self._apply(changes)

    def reclassify(
        self,
        urgency: int,
        impact: int,
        result: PriorityResult,
        at: datetime,
        sla_fields: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """New priority; SLA fields are replaced only when a recomputation ran."""
        if self.status in LOCKED_STATUSES:
            raise InvalidTransitionException(str(self.id), self.status.value, "classify")

        changes: Dict[str, Any] = {
            "urgency": urgency,
            "impact": impact,
            "priority": result.category,
            "priority_score": result.score,
            "updated_at": at,
        }
        if sla_fields is not None:
            changes.update(sla_fields)
        return self._apply(changes)

    def record_progress(
        self,
        status: TicketStatus,
        at: datetime,
        stage_change: Optional[str] = None,
        final_solution: Optional[str] = None
    ) -> Dict[str, Any]:
        """Apply a progress update's status. Resolving forces stage to finished."""
        if self.status in LOCKED_STATUSES:
            raise InvalidTransitionException(str(self.id), self.status.value, "update progress of")

        changes: Dict[str, Any] = {"status": status, "updated_at": at}
        if stage_change:
            changes["stage"] = stage_change

        if status == TicketStatus.RESOLVED:
            changes["resolved_at"] = at
            changes["stage"] = TicketStage.FINISHED.value
            if final_solution:
                changes["resolution"] = final_solution
        elif status == TicketStatus.CLOSED:
            changes["closed_at"] = at

        return self._apply(changes)

    def unlock_after_approval(self, at: datetime) -> Dict[str, Any]:
        """Every approval step approved: the request enters the normal flow."""
        self._require((TicketStatus.PENDING_APPROVAL,), "unlock")
        return self._apply({
            "status": TicketStatus.OPEN,
            "stage": TicketStage.TRIASE.value,
            "updated_at": at,
        })

    def reject(self, at: datetime) -> Dict[str, Any]:
        self._require((TicketStatus.PENDING_APPROVAL,), "reject")
        return self._apply({
            "status": TicketStatus.REJECTED,
            "closed_at": at,
            "updated_at": at,
        })

    def merge_into(self, target: "Ticket", reason: str, at: datetime) -> Dict[str, Any]:
        """Force-close as a duplicate of ``target``. SLA fields are left alone."""
        target_ref = target.ticket_number or str(target.id)
        return self._apply({
            "status": TicketStatus.CLOSED,
            "merged_to": target.id,
            "merge_reason": reason,
            "resolution": f"Merged into {target_ref}. Reason: {reason}",
            "closed_at": at,
            "updated_at": at,
        })


@dataclass
class ApprovalStep:
    """One level of a service request's approval workflow."""
    id: Optional[str]
    ticket_id: str
    level: int
    approver_role: str
    status: ApprovalStatus = ApprovalStatus.PENDING
    approver_id: Optional[str] = None
    notes: Optional[str] = None
    responded_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    @property
    def is_pending(self) -> bool:
        return self.status == ApprovalStatus.PENDING

    def respond(
        self,
        status: ApprovalStatus,
        approver_id: Optional[str],
        notes: Optional[str],
        at: datetime
    ) -> None:
        if not self.is_pending:
            raise InvalidTransitionException(self.ticket_id, self.status.value, "respond to approval step of")
        self.status = status
        self.approver_id = approver_id
        self.notes = notes
        self.responded_at = at


@dataclass
class ProgressUpdate:
    """Free-text handling report submitted by a technician."""
    ticket_id: str
    update_number: int
    status_change: str
    updated_by: Optional[str]
    stage_change: Optional[str] = None
    reason: Optional[str] = None
    problem_detail: Optional[str] = None
    handling_description: Optional[str] = None
    final_solution: Optional[str] = None
    id: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class ActivityLogEntry:
    """Immutable audit trail entry. ``actor_id`` None means the system."""
    ticket_id: str
    actor_id: Optional[str]
    action: ActivityAction
    description: str
    old_value: Optional[str] = None
    new_value: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass
class Notification:
    """In-app notification for one user."""
    user_id: str
    title: str
    message: str
    severity: NotificationSeverity = NotificationSeverity.INFO
    related_ticket_id: Optional[str] = None
    id: Optional[str] = None
    is_read: bool = False
    created_at: Optional[datetime] = None


@dataclass
class MergeOutcome:
    """Tickets closed by a merge."""
    target_id: str
    merged_ids: List[str] = field(default_factory=list)
