"""
Ticket Lifecycle Application Service
====================================

Orchestrates every ticket mutation: permission check, domain transition,
SLA (re)computation, partial write, activity log and notifications.

Permission checks and transition checks run before any write, so a
denied or invalid operation leaves no trace.
"""

from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from src.access.domain import Actor, Permissions, SYSTEM_ACTOR
from src.config import (
    ActivityAction,
    ApprovalStatus,
    NotificationSeverity,
    PriorityCategory,
    TicketStage,
    TicketStatus,
    TicketType,
)
from src.core import (
    InvalidTransitionException,
    PermissionDeniedException,
    ResourceNotFoundException,
    ValidationException,
)
from src.shared.infrastructure.logging import get_logger
from src.sla.application.services import SLAService
from src.sla.domain import SLADeadline, SLAStatusSnapshot
from src.tickets.application.ports import (
    IApprovalRepository,
    IProgressUpdateRepository,
    ITicketRepository,
)
from src.tickets.application.recorders import ActivityRecorder, Notifier
from src.tickets.domain import (
    ApprovalStep,
    MergeOutcome,
    PriorityClassifier,
    ProgressUpdate,
    StatusTokenMapper,
    Ticket,
    generate_ticket_number,
)

logger = get_logger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TicketLifecycleService:
    """
    Service for the ticket status/stage state machine.

    The SLA clock starts on assignment for internal incidents and at
    creation for public incidents and service requests. ``sla_start_at``
    stores the basis every later recomputation uses.
    """

    def __init__(
        self,
        ticket_repository: ITicketRepository,
        approval_repository: IApprovalRepository,
        progress_repository: IProgressUpdateRepository,
        activity: ActivityRecorder,
        notifier: Notifier,
        sla_service: SLAService,
        default_urgency: int = 3,
        default_impact: int = 3,
        clock: Callable[[], datetime] = utc_now
    ):
        self._tickets = ticket_repository
        self._approvals = approval_repository
        self._progress = progress_repository
        self._activity = activity
        self._notifier = notifier
        self._sla = sla_service
        self._default_urgency = default_urgency
        self._default_impact = default_impact
        self._clock = clock

    # ========== Helpers ==========

    @staticmethod
    def _authorize(actor: Actor, permission: str) -> None:
        if not actor.can(permission):
            logger.warning(
                "Permission denied",
                extra={"actor_id": actor.id, "role": actor.role, "permission": permission}
            )
            raise PermissionDeniedException(permission, actor.role)

    async def _get(self, ticket_id: str) -> Ticket:
        ticket = await self._tickets.get_by_id(ticket_id)
        if ticket is None:
            raise ResourceNotFoundException("Ticket", ticket_id)
        return ticket

    async def _deadline_fields(
        self,
        unit_id: Optional[str],
        priority: PriorityCategory,
        start: datetime
    ) -> Optional[Dict[str, Any]]:
        """
        SLA columns for a clock starting at ``start``, or None.

        A failing SLA lookup never blocks the ticket mutation; it is logged
        and treated like a missing policy.
        """
        try:
            deadline = await self._sla.compute_deadline(unit_id, priority, start)
        except Exception as e:
            logger.error(
                "SLA computation failed",
                extra={"unit_id": unit_id, "priority": priority.value, "error": str(e)},
                exc_info=True
            )
            return None
        return deadline.as_fields() if deadline is not None else None

    # ========== Creation ==========

    async def create_incident(self, actor: Actor, data: Any) -> Ticket:
        """
        Create an internal incident. The SLA clock does not start until
        the ticket is assigned.
        """
        self._authorize(actor, Permissions.INCIDENTS_CREATE)
        now = self._clock()

        urgency = getattr(data, "urgency", None) or self._default_urgency
        impact = getattr(data, "impact", None) or self._default_impact
        result = PriorityClassifier.classify(urgency, impact)

        ticket = Ticket(
            id=None,
            ticket_number=generate_ticket_number(TicketType.INCIDENT, now),
            type=TicketType.INCIDENT,
            title=data.title,
            description=data.description,
            unit_id=getattr(data, "organizational_unit_id", None) or actor.unit_id,
            reporter_id=actor.id,
            status=TicketStatus.OPEN,
            stage=TicketStage.TRIASE.value,
            urgency=urgency,
            impact=impact,
            priority=result.category,
            priority_score=result.score,
            created_at=now,
            updated_at=now,
        )

        created = await self._tickets.create(ticket)
        await self._activity.record(
            created.id, actor.id, ActivityAction.CREATE,
            f"Incident {created.ticket_number} created",
            new_value=created.priority.value
        )

        logger.info(
            "Incident created",
            extra={"ticket_id": created.id, "priority": created.priority.value}
        )
        return created

    async def create_public_incident(self, data: Any) -> Ticket:
        """
        Create an incident submitted from outside. The SLA clock starts at
        creation; a missing policy leaves the deadline empty but never
        blocks the submission.
        """
        now = self._clock()

        urgency = getattr(data, "urgency", None) or self._default_urgency
        impact = getattr(data, "impact", None) or self._default_impact
        result = PriorityClassifier.classify(urgency, impact)
        unit_id = getattr(data, "organizational_unit_id", None)

        ticket = Ticket(
            id=None,
            ticket_number=generate_ticket_number(TicketType.INCIDENT, now),
            type=TicketType.INCIDENT,
            title=data.title,
            description=data.description,
            unit_id=unit_id,
            reporter_name=getattr(data, "reporter_name", None),
            reporter_email=getattr(data, "reporter_email", None),
            status=TicketStatus.OPEN,
            stage=TicketStage.TRIASE.value,
            urgency=urgency,
            impact=impact,
            priority=result.category,
            priority_score=result.score,
            sla_start_at=now,
            created_at=now,
            updated_at=now,
        )

        sla_fields = await self._deadline_fields(unit_id, result.category, now)
        if sla_fields is not None:
            for name, value in sla_fields.items():
                setattr(ticket, name, value)

        created = await self._tickets.create(ticket)
        await self._activity.record(
            created.id, SYSTEM_ACTOR.id, ActivityAction.CREATE_PUBLIC,
            f"Public incident {created.ticket_number} submitted",
            new_value=created.priority.value
        )

        logger.info(
            "Public incident created",
            extra={
                "ticket_id": created.id,
                "priority": created.priority.value,
                "sla_due": created.sla_due.isoformat() if created.sla_due else None,
            }
        )
        return created

    async def create_service_request(self, actor: Actor, data: Any) -> Ticket:
        """
        Create a service request, optionally gated by an approval workflow.

        Each entry of ``data.approval_levels`` is an approver role; one
        pending step per role is stored in order, in the same transaction
        as the ticket.
        """
        self._authorize(actor, Permissions.REQUESTS_CREATE)
        now = self._clock()

        approval_roles = [r for r in (getattr(data, "approval_levels", None) or []) if r]
        needs_approval = bool(approval_roles)
        unit_id = getattr(data, "organizational_unit_id", None) or actor.unit_id
        priority = PriorityCategory.MEDIUM

        ticket = Ticket(
            id=None,
            ticket_number=generate_ticket_number(TicketType.REQUEST, now),
            type=TicketType.REQUEST,
            title=data.title,
            description=data.description,
            unit_id=unit_id,
            reporter_id=actor.id,
            status=TicketStatus.PENDING_APPROVAL if needs_approval else TicketStatus.OPEN,
            stage=(TicketStage.APPROVAL_SEKSI if needs_approval else TicketStage.TRIASE).value,
            priority=priority,
            sla_start_at=now,
            created_at=now,
            updated_at=now,
        )

        sla_fields = await self._deadline_fields(unit_id, priority, now)
        if sla_fields is not None:
            for name, value in sla_fields.items():
                setattr(ticket, name, value)

        created = await self._tickets.create(ticket)

        if needs_approval:
            await self._approvals.create_steps([
                ApprovalStep(
                    id=None,
                    ticket_id=created.id,
                    level=level,
                    approver_role=role,
                    created_at=now,
                )
                for level, role in enumerate(approval_roles, start=1)
            ])

        await self._activity.record(
            created.id, actor.id, ActivityAction.CREATE,
            f"Service request {created.ticket_number} created",
            new_value=created.status.value
        )

        logger.info(
            "Service request created",
            extra={"ticket_id": created.id, "approval_steps": len(approval_roles)}
        )
        return created

    # ========== Transitions ==========

    async def assign(self, actor: Actor, ticket_id: str, technician_id: str) -> Ticket:
        """
        Assign or reassign a handler and restart the SLA clock now.

        Reassignment (the ticket already has a handler) needs the
        reassign permission; first assignment needs the assign permission.
        """
        ticket = await self._get(ticket_id)
        reassigning = ticket.is_assigned
        self._authorize(
            actor,
            Permissions.TICKETS_REASSIGN if reassigning else Permissions.TICKETS_ASSIGN
        )

        now = self._clock()
        previous = ticket.assigned_to
        sla_fields = await self._deadline_fields(ticket.unit_id, ticket.priority, now)
        changes = ticket.assign(technician_id, now, sla_fields)
        await self._tickets.update(ticket.id, changes)

        action = ActivityAction.REASSIGN if reassigning else ActivityAction.ASSIGN
        await self._activity.record(
            ticket.id, actor.id, action,
            f"Ticket {'reassigned' if reassigning else 'assigned'} to {technician_id}",
            old_value=previous,
            new_value=technician_id
        )
        await self._notifier.notify(
            technician_id,
            "New ticket assignment",
            f"Ticket {ticket.ticket_number} has been assigned to you.",
            NotificationSeverity.INFO,
            related_ticket_id=ticket.id
        )

        logger.info(
            "Ticket assigned",
            extra={
                "ticket_id": ticket.id,
                "technician_id": technician_id,
                "reassigned": reassigning,
                "sla_computed": sla_fields is not None,
            }
        )
        return ticket

    async def classify(self, actor: Actor, ticket_id: str, urgency: int, impact: int) -> Ticket:
        """
        Reclassify priority. The deadline is recomputed from the ticket's
        existing clock start; a ticket whose clock has not started keeps an
        empty SLA.
        """
        self._authorize(actor, Permissions.TICKETS_WRITE)
        ticket = await self._get(ticket_id)

        result = PriorityClassifier.classify(urgency, impact)
        old_priority = ticket.priority

        sla_fields = None
        if ticket.sla_clock_started:
            sla_fields = await self._deadline_fields(
                ticket.unit_id, result.category, ticket.sla_start_at
            )
            if sla_fields is None:
                sla_fields = SLADeadline.empty_fields()

        changes = ticket.reclassify(urgency, impact, result, self._clock(), sla_fields)
        await self._tickets.update(ticket.id, changes)

        await self._activity.record(
            ticket.id, actor.id, ActivityAction.CLASSIFY,
            f"Priority changed from {old_priority.value} to {result.category.value} "
            f"(urgency {urgency}, impact {impact})",
            old_value=old_priority.value,
            new_value=result.category.value
        )
        return ticket

    async def record_progress(self, actor: Actor, ticket_id: str, update: Any) -> Ticket:
        """
        Store a technician's progress report and apply its status token.

        Raises:
            ValidationException: token is not in the status vocabulary
            InvalidTransitionException: ticket is closed or rejected
        """
        self._authorize(actor, Permissions.TICKETS_UPDATE_PROGRESS)
        ticket = await self._get(ticket_id)

        token = getattr(update, "status_change", None) or ""
        new_status = StatusTokenMapper.lookup(token)
        if new_status is None:
            raise ValidationException(
                f"Unknown status '{token}'",
                {"accepted": sorted(StatusTokenMapper.TOKENS)}
            )

        now = self._clock()
        old_status = ticket.status
        stage_change = getattr(update, "stage_change", None)
        final_solution = getattr(update, "final_solution", None)
        changes = ticket.record_progress(new_status, now, stage_change, final_solution)

        number = await self._progress.next_update_number(ticket.id)
        await self._progress.create(ProgressUpdate(
            ticket_id=ticket.id,
            update_number=number,
            status_change=new_status.value,
            updated_by=actor.id,
            stage_change=changes.get("stage"),
            reason=getattr(update, "reason", None),
            problem_detail=getattr(update, "problem_detail", None),
            handling_description=getattr(update, "handling_description", None),
            final_solution=final_solution,
            created_at=now,
        ))
        await self._tickets.update(ticket.id, changes)

        await self._activity.record(
            ticket.id, actor.id, ActivityAction.PROGRESS_UPDATE,
            f"Progress update #{number}: {old_status.value} -> {new_status.value}",
            old_value=old_status.value,
            new_value=new_status.value
        )
        if new_status != old_status and ticket.reporter_id and ticket.reporter_id != actor.id:
            await self._notifier.notify(
                ticket.reporter_id,
                "Ticket status updated",
                f"Ticket {ticket.ticket_number} is now {new_status.value}.",
                NotificationSeverity.INFO,
                related_ticket_id=ticket.id
            )
        return ticket

    # ========== Approval Workflow ==========

    async def _pending_step_for(self, actor: Actor, ticket: Ticket, operation: str):
        if ticket.type != TicketType.REQUEST:
            raise ValidationException(
                "Approvals apply to service requests only",
                {"ticket_id": ticket.id, "type": ticket.type.value}
            )
        if ticket.status != TicketStatus.PENDING_APPROVAL:
            raise InvalidTransitionException(str(ticket.id), ticket.status.value, operation)

        steps = await self._approvals.list_for_ticket(ticket.id)
        step = next(
            (s for s in steps if s.is_pending and s.approver_role == actor.role),
            None
        )
        if step is None:
            raise ResourceNotFoundException("ApprovalStep", f"{ticket.id}/{actor.role}")
        return step, steps

    async def approve(self, actor: Actor, ticket_id: str, notes: Optional[str] = None) -> Ticket:
        """Approve the actor's step; the ticket opens once every step is approved."""
        ticket = await self._get(ticket_id)
        step, steps = await self._pending_step_for(actor, ticket, "approve")

        now = self._clock()
        step.respond(ApprovalStatus.APPROVED, actor.id, notes, now)
        await self._approvals.save_step(step)
        await self._activity.record(
            ticket.id, actor.id, ActivityAction.APPROVE,
            f"Approval level {step.level} ({step.approver_role}) approved",
            new_value=ApprovalStatus.APPROVED.value
        )

        if all(s.status == ApprovalStatus.APPROVED for s in steps):
            changes = ticket.unlock_after_approval(now)
            await self._tickets.update(ticket.id, changes)
            await self._notifier.notify(
                ticket.reporter_id,
                "Service request approved",
                f"Request {ticket.ticket_number} has been fully approved.",
                NotificationSeverity.INFO,
                related_ticket_id=ticket.id
            )
            logger.info("Service request approved", extra={"ticket_id": ticket.id})
        return ticket

    async def reject(self, actor: Actor, ticket_id: str, notes: Optional[str]) -> Ticket:
        """Reject the request. Remaining pending steps are cancelled."""
        if not notes or not notes.strip():
            raise ValidationException("Rejection notes are required")

        ticket = await self._get(ticket_id)
        step, steps = await self._pending_step_for(actor, ticket, "reject")

        now = self._clock()
        step.respond(ApprovalStatus.REJECTED, actor.id, notes, now)
        await self._approvals.save_step(step)
        for other in steps:
            if other.is_pending:
                other.respond(ApprovalStatus.CANCELLED, None, None, now)
                await self._approvals.save_step(other)

        changes = ticket.reject(now)
        await self._tickets.update(ticket.id, changes)

        await self._activity.record(
            ticket.id, actor.id, ActivityAction.REJECT,
            f"Approval level {step.level} ({step.approver_role}) rejected: {notes}",
            old_value=TicketStatus.PENDING_APPROVAL.value,
            new_value=TicketStatus.REJECTED.value
        )
        await self._notifier.notify(
            ticket.reporter_id,
            "Service request rejected",
            f"Request {ticket.ticket_number} was rejected: {notes}",
            NotificationSeverity.WARNING,
            related_ticket_id=ticket.id
        )
        return ticket

    # ========== Merge ==========

    async def merge(
        self,
        actor: Actor,
        source_ids: List[str],
        target_id: str,
        reason: str
    ) -> MergeOutcome:
        """Close duplicates into ``target_id``. Deadlines are not touched."""
        self._authorize(actor, Permissions.TICKETS_WRITE)

        unique_ids = list(dict.fromkeys(source_ids))
        if not unique_ids:
            raise ValidationException("At least one source ticket is required")
        if target_id in unique_ids:
            raise ValidationException(
                "A ticket cannot be merged into itself",
                {"ticket_id": target_id}
            )

        target = await self._get(target_id)
        sources = [await self._get(source_id) for source_id in unique_ids]

        now = self._clock()
        outcome = MergeOutcome(target_id=target.id)
        for source in sources:
            changes = source.merge_into(target, reason, now)
            await self._tickets.update(source.id, changes)
            await self._activity.record(
                source.id, actor.id, ActivityAction.MERGE,
                f"Merged into {target.ticket_number}: {reason}",
                new_value=str(target.id)
            )
            outcome.merged_ids.append(source.id)

        await self._activity.record(
            target.id, actor.id, ActivityAction.MERGE,
            f"Absorbed {', '.join(s.ticket_number for s in sources)}: {reason}"
        )

        logger.info(
            "Tickets merged",
            extra={"target_id": target.id, "merged": len(outcome.merged_ids)}
        )
        return outcome

    # ========== Queries ==========

    async def get_ticket(self, ticket_id: str) -> Ticket:
        return await self._get(ticket_id)

    async def get_sla_status(self, ticket_id: str) -> SLAStatusSnapshot:
        ticket = await self._get(ticket_id)
        return self._sla.status_for(ticket, self._clock())
