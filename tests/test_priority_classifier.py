"""Priority bands and the status token vocabulary."""

import pytest

from src.config import PriorityCategory, TicketStatus
from src.tickets.domain import PriorityClassifier, StatusTokenMapper


@pytest.mark.parametrize("urgency,impact,category", [
    (1, 1, PriorityCategory.LOW),
    (1, 5, PriorityCategory.LOW),
    (2, 3, PriorityCategory.MEDIUM),
    (2, 5, PriorityCategory.MEDIUM),
    (3, 4, PriorityCategory.HIGH),
    (3, 5, PriorityCategory.HIGH),
    (4, 4, PriorityCategory.MAJOR),
    (5, 5, PriorityCategory.MAJOR),
])
def test_band_edges(urgency, impact, category):
    result = PriorityClassifier.classify(urgency, impact)
    assert result.score == urgency * impact
    assert result.category == category


def test_every_valid_pair_lands_in_exactly_one_band():
    for urgency in range(1, 6):
        for impact in range(1, 6):
            score = urgency * impact
            category = PriorityClassifier.classify(urgency, impact).category
            expected = (
                PriorityCategory.LOW if score <= 5 else
                PriorityCategory.MEDIUM if score <= 10 else
                PriorityCategory.HIGH if score <= 15 else
                PriorityCategory.MAJOR
            )
            assert category == expected


def test_out_of_range_input_falls_into_low():
    result = PriorityClassifier.classify(0, 3)
    assert result.score == 0
    assert result.category == PriorityCategory.LOW


@pytest.mark.parametrize("token,status", [
    ("selesai", TicketStatus.RESOLVED),
    ("Ditutup", TicketStatus.RESOLVED),
    ("RESOLVED", TicketStatus.RESOLVED),
    ("closed", TicketStatus.CLOSED),
    ("proses", TicketStatus.IN_PROGRESS),
    ("In Progress", TicketStatus.IN_PROGRESS),
    ("in-progress", TicketStatus.IN_PROGRESS),
    ("  dikerjakan ", TicketStatus.IN_PROGRESS),
    ("ditugaskan", TicketStatus.ASSIGNED),
    ("menunggu", TicketStatus.PENDING_APPROVAL),
])
def test_known_status_tokens(token, status):
    assert StatusTokenMapper.lookup(token) == status


@pytest.mark.parametrize("token", ["", None, "done", "selesai dikerjakan", "open"])
def test_unknown_status_tokens(token):
    assert StatusTokenMapper.lookup(token) is None
