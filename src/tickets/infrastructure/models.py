"""
Ticket Infrastructure Models
============================

SQLAlchemy ORM models for the ticket lifecycle.

These are the database representations of our domain entities.
The ``users`` table is owned by account management and only read here.
"""

from datetime import date, datetime, time, timezone
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import Boolean, Date, DateTime, Integer, String, Text, Time, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from src.config import ApprovalStatus, NotificationSeverity, PriorityCategory, TicketStatus
from src.infrastructure.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TicketModel(Base):
    """
    Database model for the Ticket entity.

    Maps to the 'tickets' table.
    """
    __tablename__ = "tickets"

    # Primary key
    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    ticket_number: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    type: Mapped[str] = mapped_column(String(20), nullable=False)

    # Content
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)

    # Ownership
    unit_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True, index=True)
    reporter_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    reporter_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    reporter_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    assigned_to: Mapped[Optional[str]] = mapped_column(String(64), nullable=True, index=True)

    # Lifecycle
    status: Mapped[str] = mapped_column(String(30), nullable=False, default=TicketStatus.OPEN.value, index=True)
    stage: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    # Priority
    urgency: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    impact: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    priority: Mapped[str] = mapped_column(String(20), nullable=False, default=PriorityCategory.MEDIUM.value)
    priority_score: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # SLA tracking
    sla_start_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    sla_due: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True, index=True)
    sla_target_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    sla_target_time: Mapped[Optional[time]] = mapped_column(Time, nullable=True)
    sla_breached: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Resolution
    resolution: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    merged_to: Mapped[Optional[UUID]] = mapped_column(Uuid, nullable=True)
    merge_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)
    resolved_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    closed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)


class TicketLogModel(Base):
    """Append-only activity log. Maps to the 'ticket_logs' table."""
    __tablename__ = "ticket_logs"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    ticket_id: Mapped[UUID] = mapped_column(Uuid, nullable=False, index=True)
    user_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    action: Mapped[str] = mapped_column(String(50), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    old_value: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    new_value: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)


class ProgressUpdateModel(Base):
    """Maps to the 'ticket_progress_updates' table."""
    __tablename__ = "ticket_progress_updates"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    ticket_id: Mapped[UUID] = mapped_column(Uuid, nullable=False, index=True)
    update_number: Mapped[int] = mapped_column(Integer, nullable=False)
    updated_by: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    status_change: Mapped[str] = mapped_column(String(30), nullable=False)
    stage_change: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    problem_detail: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    handling_description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    final_solution: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)


class ApprovalWorkflowModel(Base):
    """One approval step of a service request. Maps to 'approval_workflows'."""
    __tablename__ = "approval_workflows"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    ticket_id: Mapped[UUID] = mapped_column(Uuid, nullable=False, index=True)
    workflow_level: Mapped[int] = mapped_column(Integer, nullable=False)
    approver_role: Mapped[str] = mapped_column(String(50), nullable=False)
    approver_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=ApprovalStatus.PENDING.value)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    responded_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)


class NotificationModel(Base):
    """User inbox entry. Maps to the 'notifications' table."""
    __tablename__ = "notifications"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[str] = mapped_column(String(20), nullable=False, default=NotificationSeverity.INFO.value)
    related_ticket_id: Mapped[Optional[UUID]] = mapped_column(Uuid, nullable=True)
    is_read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)


class UserModel(Base):
    """Read-only view of accounts. Maps to the 'users' table."""
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    full_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    role: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    unit_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True, index=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
