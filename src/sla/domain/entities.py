"""
SLA Domain Entities
====================

Results produced by the SLA engine.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from src.config import SLAState


@dataclass
class SLAStatusSnapshot:
    """
    SLA state of one ticket at a given instant.
    """

    ticket_id: str
    state: SLAState
    started_at: Optional[datetime]
    deadline: Optional[datetime]
    evaluated_at: datetime
    remaining_seconds: float = 0.0
    percentage_remaining: float = 0.0
    breached_flag: bool = False

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses."""
        return {
            "ticket_id": self.ticket_id,
            "state": self.state.value,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "deadline": self.deadline.isoformat() if self.deadline else None,
            "evaluated_at": self.evaluated_at.isoformat(),
            "remaining_seconds": self.remaining_seconds,
            "percentage_remaining": self.percentage_remaining,
            "breached_flag": self.breached_flag,
        }


@dataclass
class SweepResult:
    """Outcome of one breach sweep run."""

    started_at: datetime
    candidates: int = 0
    flagged_ids: List[str] = field(default_factory=list)
    escalated_ids: List[str] = field(default_factory=list)
    failed_ids: List[str] = field(default_factory=list)

    @property
    def flagged(self) -> int:
        return len(self.flagged_ids)

    def to_dict(self) -> dict:
        return {
            "started_at": self.started_at.isoformat(),
            "candidates": self.candidates,
            "flagged": self.flagged,
            "escalated": len(self.escalated_ids),
            "failed": len(self.failed_ids),
        }
