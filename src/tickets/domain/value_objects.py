"""
Ticket Value Objects
====================

Priority classification and the status vocabulary accepted from clients.
"""

from dataclasses import dataclass
from typing import Dict, Optional

from src.config import PriorityCategory, TicketStatus


@dataclass(frozen=True)
class PriorityResult:
    """Score (urgency x impact) and the category band it falls in."""
    score: int
    category: PriorityCategory


class PriorityClassifier:
    """
    Maps urgency and impact to a priority.

    Bands: 1-5 low, 6-10 medium, 11-15 high, 16 and above major. Scores
    below 1 only arise from out-of-range input and fall into low; range
    checks belong to the caller.
    """

    BANDS = (
        (5, PriorityCategory.LOW),
        (10, PriorityCategory.MEDIUM),
        (15, PriorityCategory.HIGH),
    )

    @classmethod
    def classify(cls, urgency: int, impact: int) -> PriorityResult:
        score = urgency * impact
        for upper, category in cls.BANDS:
            if score <= upper:
                return PriorityResult(score=score, category=category)
        return PriorityResult(score=score, category=PriorityCategory.MAJOR)


class StatusTokenMapper:
    """
    Finite lookup from client status tokens to canonical statuses.

    Tokens are matched case-insensitively after trimming; spaces and
    hyphens are read as underscores so "In Progress" and "in-progress"
    both resolve.
    """

    TOKENS: Dict[str, TicketStatus] = {
        "resolved": TicketStatus.RESOLVED,
        "selesai": TicketStatus.RESOLVED,
        "ditutup": TicketStatus.RESOLVED,
        "closed": TicketStatus.CLOSED,
        "in_progress": TicketStatus.IN_PROGRESS,
        "proses": TicketStatus.IN_PROGRESS,
        "dikerjakan": TicketStatus.IN_PROGRESS,
        "assigned": TicketStatus.ASSIGNED,
        "ditugaskan": TicketStatus.ASSIGNED,
        "pending_approval": TicketStatus.PENDING_APPROVAL,
        "menunggu": TicketStatus.PENDING_APPROVAL,
    }

    @staticmethod
    def normalize(token: str) -> str:
        return "_".join(token.strip().lower().replace("-", " ").split())

    @classmethod
    def lookup(cls, token: Optional[str]) -> Optional[TicketStatus]:
        """Canonical status for ``token``, or None when it is not a known token."""
        if not token:
            return None
        return cls.TOKENS.get(cls.normalize(token))
