"""
SLA Application DTOs
=====================

Data Transfer Objects for the SLA admin API.

These Pydantic models handle serialization/deserialization and validation
for API requests and responses.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from src.config import PriorityCategory


# ========== Request DTOs ==========

class SLAPolicyItem(BaseModel):
    """One (priority -> hours) entry."""
    priority: PriorityCategory = Field(..., description="Priority category")
    resolution_time_hours: int = Field(..., ge=0, description="Business hours to resolve")
    description: Optional[str] = Field(None, max_length=500)


class SLAPolicyUpsertRequest(BaseModel):
    """Request model for replacing a unit's policies."""
    organizational_unit_id: str = Field(..., min_length=1)
    policies: List[SLAPolicyItem] = Field(..., min_length=1)

    @field_validator("policies")
    @classmethod
    def validate_unique_priorities(cls, v: List[SLAPolicyItem]) -> List[SLAPolicyItem]:
        """At most one policy per priority."""
        priorities = [p.priority for p in v]
        if len(priorities) != len(set(priorities)):
            raise ValueError("Duplicate priority in policies")
        return v


# ========== Response DTOs ==========

class SLAPolicyResponse(BaseModel):
    """Stored policy."""
    organizational_unit_id: str
    priority: PriorityCategory
    resolution_time_hours: Optional[int]
    description: Optional[str] = None


class SLAPreviewResponse(BaseModel):
    """Deadline a ticket would get if its clock started at ``start``."""
    organizational_unit_id: str
    priority: PriorityCategory
    start: datetime
    sla_due: Optional[datetime] = None
    configured: bool = Field(..., description="False when no deadline could be computed")


class SweepResponse(BaseModel):
    """Summary of a breach sweep run."""
    started_at: str
    candidates: int
    flagged: int
    escalated: int
    failed: int
