"""
Ticket Application DTOs
=======================

Pydantic models for request/response validation.
"""

from datetime import date, datetime, time
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.config import PriorityCategory, TicketStatus, TicketType


# ========== Request DTOs ==========

class IncidentCreateRequest(BaseModel):
    """Request model for an internally reported incident."""
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    organizational_unit_id: Optional[str] = Field(
        None, description="Owning unit; defaults to the reporter's unit"
    )
    urgency: Optional[int] = Field(None, ge=1, le=5)
    impact: Optional[int] = Field(None, ge=1, le=5)


class PublicIncidentCreateRequest(BaseModel):
    """Request model for an incident submitted without an account."""
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    organizational_unit_id: str = Field(..., min_length=1)
    reporter_name: str = Field(..., min_length=1, max_length=255)
    reporter_email: Optional[str] = Field(None, max_length=255)
    urgency: Optional[int] = Field(None, ge=1, le=5)
    impact: Optional[int] = Field(None, ge=1, le=5)


class ServiceRequestCreateRequest(BaseModel):
    """Request model for a service request."""
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    organizational_unit_id: Optional[str] = None
    approval_levels: List[str] = Field(
        default_factory=list,
        description="Approver roles, one workflow step each, in order"
    )


class AssignRequest(BaseModel):
    technician_id: str = Field(..., min_length=1)


class ClassifyRequest(BaseModel):
    """Urgency and impact on a 1..5 scale."""
    urgency: int = Field(..., ge=1, le=5)
    impact: int = Field(..., ge=1, le=5)


class ProgressUpdateRequest(BaseModel):
    """Technician progress report."""
    status_change: str = Field(..., min_length=1, description="Status token, e.g. 'proses' or 'resolved'")
    stage_change: Optional[str] = None
    reason: Optional[str] = None
    problem_detail: Optional[str] = None
    handling_description: Optional[str] = None
    final_solution: Optional[str] = None


class ApprovalDecisionRequest(BaseModel):
    notes: Optional[str] = None


class MergeRequest(BaseModel):
    """Request model for merging duplicate tickets."""
    source_ticket_ids: List[str] = Field(..., min_length=1)
    target_ticket_id: str = Field(..., min_length=1)
    reason: str = Field(..., min_length=1)

    @field_validator("source_ticket_ids")
    @classmethod
    def validate_sources(cls, v: List[str]) -> List[str]:
        """Reject blank IDs."""
        if any(not s.strip() for s in v):
            raise ValueError("source_ticket_ids must not contain blank values")
        return v


# ========== Response DTOs ==========

class TicketResponse(BaseModel):
    """Ticket as returned by the API."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    ticket_number: str
    type: TicketType
    title: str
    description: str
    status: TicketStatus
    stage: Optional[str] = None
    priority: PriorityCategory
    priority_score: Optional[int] = None
    urgency: Optional[int] = None
    impact: Optional[int] = None
    unit_id: Optional[str] = None
    reporter_id: Optional[str] = None
    assigned_to: Optional[str] = None
    sla_start_at: Optional[datetime] = None
    sla_due: Optional[datetime] = None
    sla_target_date: Optional[date] = None
    sla_target_time: Optional[time] = None
    sla_breached: bool = False
    resolution: Optional[str] = None
    merged_to: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None
    closed_at: Optional[datetime] = None


class MergeResponse(BaseModel):
    target_ticket_id: str
    merged_ticket_ids: List[str]


class SLAStatusResponse(BaseModel):
    """SLA state of one ticket."""
    ticket_id: str
    state: str
    started_at: Optional[str] = None
    deadline: Optional[str] = None
    evaluated_at: str
    remaining_seconds: float
    percentage_remaining: float
    breached_flag: bool
