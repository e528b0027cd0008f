"""SLA policy administration and point-in-time SLA state."""

import pytest
from pydantic import ValidationError

from src.config import PriorityCategory, SLAState
from src.core import ValidationException
from src.sla.application import SLAPolicyService, SLAPolicyUpsertRequest
from src.sla.domain.calculator import SLAStatusEvaluator
from tests.conftest import UNIT, at


@pytest.fixture
def policy_service(policies):
    return SLAPolicyService(policies)


async def test_upsert_replaces_existing_policy(policy_service, policies):
    saved = await policy_service.upsert_policies(UNIT, [
        {"priority": "major", "resolution_time_hours": 1, "description": "Critical"},
    ])

    assert [p.priority for p in saved] == [PriorityCategory.MAJOR]
    stored = await policies.get_policy(UNIT, PriorityCategory.MAJOR)
    assert stored.resolution_time_hours == 1
    assert stored.description == "Critical"


async def test_upsert_rejects_unknown_priority(policy_service):
    with pytest.raises(ValidationException):
        await policy_service.upsert_policies(UNIT, [
            {"priority": "urgent", "resolution_time_hours": 4},
        ])


async def test_upsert_rejects_negative_hours(policy_service):
    with pytest.raises(ValidationException):
        await policy_service.upsert_policies(UNIT, [
            {"priority": "low", "resolution_time_hours": -1},
        ])


async def test_upsert_rejects_duplicate_priority(policy_service, policies):
    with pytest.raises(ValidationException):
        await policy_service.upsert_policies(UNIT, [
            {"priority": "low", "resolution_time_hours": 20},
            {"priority": "low", "resolution_time_hours": 30},
        ])
    assert (await policies.get_policy(UNIT, PriorityCategory.LOW)).resolution_time_hours == 16


async def test_list_policies_is_scoped_to_unit(policy_service, policies):
    policies.add("unit-2", PriorityCategory.LOW, 40)

    listed = await policy_service.list_policies("unit-2")

    assert [(p.unit_id, p.resolution_time_hours) for p in listed] == [("unit-2", 40)]


def test_upsert_request_rejects_duplicate_priorities():
    with pytest.raises(ValidationError):
        SLAPolicyUpsertRequest(
            organizational_unit_id=UNIT,
            policies=[
                {"priority": "high", "resolution_time_hours": 4},
                {"priority": "high", "resolution_time_hours": 6},
            ],
        )


def test_upsert_request_rejects_empty_list():
    with pytest.raises(ValidationError):
        SLAPolicyUpsertRequest(organizational_unit_id=UNIT, policies=[])


# ========== SLA state ==========

@pytest.mark.parametrize("now, expected", [
    (at(6, 9), SLAState.ON_TRACK),
    (at(6, 15), SLAState.AT_RISK),
    (at(6, 16), SLAState.BREACHED),
    (at(7, 9), SLAState.BREACHED),
])
def test_state_follows_the_clock(now, expected):
    assert SLAStatusEvaluator.evaluate(at(6, 8), at(6, 16), now) == expected


def test_state_without_deadline_is_not_started():
    assert SLAStatusEvaluator.evaluate(None, None, at(6, 9)) == SLAState.NOT_STARTED


def test_resolution_before_deadline_is_met():
    state = SLAStatusEvaluator.evaluate(at(6, 8), at(6, 16), at(7, 9), met_at=at(6, 15))
    assert state == SLAState.MET


def test_breach_flag_wins():
    state = SLAStatusEvaluator.evaluate(
        at(6, 8), at(6, 16), at(6, 9), met_at=at(6, 10), breached=True
    )
    assert state == SLAState.BREACHED


def test_remaining_metrics():
    remaining, percentage = SLAStatusEvaluator.remaining_metrics(at(6, 8), at(6, 16), at(6, 12))
    assert remaining == 4 * 3600
    assert percentage == 50.0
