"""
Ticket Infrastructure Repositories
==================================

Concrete implementations of the ticket repository interfaces using
SQLAlchemy.

Activity log and notification writes run inside a SAVEPOINT so a failed
insert is rolled back on its own and the surrounding request transaction
stays usable.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.config import (
    ApprovalStatus,
    PriorityCategory,
    TERMINAL_STATUSES,
    TicketStatus,
    TicketType,
)
from src.core import RepositoryException
from src.tickets.application.ports import (
    IActivityLogRepository,
    IApprovalRepository,
    INotificationRepository,
    IProgressUpdateRepository,
    ITicketRepository,
    IUserDirectory,
)
from src.tickets.domain import (
    ActivityLogEntry,
    ApprovalStep,
    Notification,
    ProgressUpdate,
    Ticket,
)
from src.tickets.infrastructure.models import (
    ApprovalWorkflowModel,
    NotificationModel,
    ProgressUpdateModel,
    TicketLogModel,
    TicketModel,
    UserModel,
)

UUID_COLUMNS = {"merged_to"}


def parse_uuid(value: Optional[str]) -> Optional[UUID]:
    """UUID for a string ID, None when it is not one."""
    if value is None:
        return None
    try:
        return UUID(str(value))
    except ValueError:
        return None


def _column_value(name: str, value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if name in UUID_COLUMNS and value is not None:
        return parse_uuid(value)
    return value


def _to_ticket(model: TicketModel) -> Ticket:
    return Ticket(
        id=str(model.id),
        ticket_number=model.ticket_number,
        type=TicketType(model.type),
        title=model.title,
        description=model.description,
        unit_id=model.unit_id,
        reporter_id=model.reporter_id,
        reporter_name=model.reporter_name,
        reporter_email=model.reporter_email,
        assigned_to=model.assigned_to,
        status=TicketStatus(model.status),
        stage=model.stage,
        urgency=model.urgency,
        impact=model.impact,
        priority=PriorityCategory(model.priority),
        priority_score=model.priority_score,
        sla_start_at=model.sla_start_at,
        sla_due=model.sla_due,
        sla_target_date=model.sla_target_date,
        sla_target_time=model.sla_target_time,
        sla_breached=model.sla_breached,
        resolution=model.resolution,
        merged_to=str(model.merged_to) if model.merged_to else None,
        merge_reason=model.merge_reason,
        created_at=model.created_at,
        updated_at=model.updated_at,
        resolved_at=model.resolved_at,
        closed_at=model.closed_at,
    )


def _overdue_predicate(now: datetime) -> list:
    return [
        TicketModel.sla_due.is_not(None),
        TicketModel.sla_due < now,
        TicketModel.sla_breached.is_(False),
        TicketModel.status.not_in([s.value for s in TERMINAL_STATUSES]),
    ]


class SQLAlchemyTicketRepository(ITicketRepository):
    """
    SQLAlchemy implementation of the ticket repository.

    Handles persistence of Ticket entities using async SQLAlchemy.
    """

    def __init__(self, session: AsyncSession):
        self._session = session

    async def get_by_id(self, ticket_id: str) -> Optional[Ticket]:
        ticket_uuid = parse_uuid(ticket_id)
        if ticket_uuid is None:
            return None

        result = await self._session.execute(
            select(TicketModel).where(TicketModel.id == ticket_uuid)
        )
        model = result.scalar_one_or_none()
        return _to_ticket(model) if model else None

    async def create(self, ticket: Ticket) -> Ticket:
        model = TicketModel(
            ticket_number=ticket.ticket_number,
            type=ticket.type.value,
            title=ticket.title,
            description=ticket.description,
            unit_id=ticket.unit_id,
            reporter_id=ticket.reporter_id,
            reporter_name=ticket.reporter_name,
            reporter_email=ticket.reporter_email,
            assigned_to=ticket.assigned_to,
            status=ticket.status.value,
            stage=ticket.stage,
            urgency=ticket.urgency,
            impact=ticket.impact,
            priority=ticket.priority.value,
            priority_score=ticket.priority_score,
            sla_start_at=ticket.sla_start_at,
            sla_due=ticket.sla_due,
            sla_target_date=ticket.sla_target_date,
            sla_target_time=ticket.sla_target_time,
            sla_breached=ticket.sla_breached,
            created_at=ticket.created_at,
            updated_at=ticket.updated_at,
        )
        self._session.add(model)
        await self._session.flush()

        ticket.id = str(model.id)
        return ticket

    async def update(self, ticket_id: str, fields: Dict[str, Any]) -> None:
        ticket_uuid = parse_uuid(ticket_id)
        if ticket_uuid is None:
            raise RepositoryException(f"Invalid ticket ID: {ticket_id}")

        values = {name: _column_value(name, value) for name, value in fields.items()}
        result = await self._session.execute(
            update(TicketModel)
            .where(TicketModel.id == ticket_uuid)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise RepositoryException(f"Ticket {ticket_id} not found")

    async def find_overdue(self, now: datetime) -> List[Ticket]:
        result = await self._session.execute(
            select(TicketModel)
            .where(*_overdue_predicate(now))
            .order_by(TicketModel.sla_due.asc())
        )
        return [_to_ticket(m) for m in result.scalars().all()]

    async def mark_breached(self, ticket_ids: List[str], now: datetime) -> List[str]:
        uuids = [u for u in (parse_uuid(t) for t in ticket_ids) if u is not None]
        if not uuids:
            return []

        result = await self._session.execute(
            update(TicketModel)
            .where(TicketModel.id.in_(uuids), *_overdue_predicate(now))
            .values(sla_breached=True, updated_at=now)
            .returning(TicketModel.id)
            .execution_options(synchronize_session=False)
        )
        return [str(ticket_id) for ticket_id in result.scalars().all()]


class SQLAlchemyApprovalRepository(IApprovalRepository):
    """Approval workflow steps."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def create_steps(self, steps: List[ApprovalStep]) -> List[ApprovalStep]:
        models = [
            ApprovalWorkflowModel(
                ticket_id=parse_uuid(step.ticket_id),
                workflow_level=step.level,
                approver_role=step.approver_role,
                status=step.status.value,
                created_at=step.created_at,
            )
            for step in steps
        ]
        self._session.add_all(models)
        await self._session.flush()

        for step, model in zip(steps, models):
            step.id = str(model.id)
        return steps

    async def list_for_ticket(self, ticket_id: str) -> List[ApprovalStep]:
        ticket_uuid = parse_uuid(ticket_id)
        if ticket_uuid is None:
            return []

        result = await self._session.execute(
            select(ApprovalWorkflowModel)
            .where(ApprovalWorkflowModel.ticket_id == ticket_uuid)
            .order_by(ApprovalWorkflowModel.workflow_level.asc())
        )
        return [
            ApprovalStep(
                id=str(m.id),
                ticket_id=str(m.ticket_id),
                level=m.workflow_level,
                approver_role=m.approver_role,
                status=ApprovalStatus(m.status),
                approver_id=m.approver_id,
                notes=m.notes,
                responded_at=m.responded_at,
                created_at=m.created_at,
            )
            for m in result.scalars().all()
        ]

    async def save_step(self, step: ApprovalStep) -> None:
        step_uuid = parse_uuid(step.id)
        if step_uuid is None:
            raise RepositoryException(f"Invalid approval step ID: {step.id}")

        await self._session.execute(
            update(ApprovalWorkflowModel)
            .where(ApprovalWorkflowModel.id == step_uuid)
            .values(
                status=step.status.value,
                approver_id=step.approver_id,
                notes=step.notes,
                responded_at=step.responded_at,
            )
            .execution_options(synchronize_session=False)
        )


class SQLAlchemyProgressUpdateRepository(IProgressUpdateRepository):
    """Technician progress reports."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def next_update_number(self, ticket_id: str) -> int:
        result = await self._session.execute(
            select(func.coalesce(func.max(ProgressUpdateModel.update_number), 0))
            .where(ProgressUpdateModel.ticket_id == parse_uuid(ticket_id))
        )
        return int(result.scalar_one()) + 1

    async def create(self, update: ProgressUpdate) -> ProgressUpdate:
        model = ProgressUpdateModel(
            ticket_id=parse_uuid(update.ticket_id),
            update_number=update.update_number,
            updated_by=update.updated_by,
            status_change=update.status_change,
            stage_change=update.stage_change,
            reason=update.reason,
            problem_detail=update.problem_detail,
            handling_description=update.handling_description,
            final_solution=update.final_solution,
            created_at=update.created_at,
        )
        self._session.add(model)
        await self._session.flush()

        update.id = str(model.id)
        return update


class SQLAlchemyActivityLogRepository(IActivityLogRepository):
    """Append-only activity log."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def append(self, entry: ActivityLogEntry) -> None:
        async with self._session.begin_nested():
            self._session.add(TicketLogModel(
                ticket_id=parse_uuid(entry.ticket_id),
                user_id=entry.actor_id,
                action=entry.action.value,
                description=entry.description,
                old_value=entry.old_value,
                new_value=entry.new_value,
                created_at=entry.created_at,
            ))


class SQLAlchemyNotificationRepository(INotificationRepository):
    """User inbox."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def create(self, notification: Notification) -> None:
        async with self._session.begin_nested():
            self._session.add(NotificationModel(
                user_id=notification.user_id,
                title=notification.title,
                message=notification.message,
                type=notification.severity.value,
                related_ticket_id=parse_uuid(notification.related_ticket_id),
                is_read=notification.is_read,
                created_at=notification.created_at,
            ))


class SQLAlchemyUserDirectory(IUserDirectory):
    """Looks up escalation targets in the users table."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def list_user_ids(self, unit_id: Optional[str], role: str) -> List[str]:
        if unit_id is None:
            return []

        result = await self._session.execute(
            select(UserModel.id).where(
                UserModel.unit_id == unit_id,
                UserModel.role == role,
                UserModel.is_active.is_(True),
            )
        )
        return list(result.scalars().all())
