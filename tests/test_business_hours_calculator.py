"""Deadline computation over working calendars."""

from datetime import date, datetime, timedelta, timezone

import pytest

from src.config import PriorityCategory
from src.sla.domain import (
    BusinessHoursCalculator,
    DaySchedule,
    WorkingCalendar,
    day_of_week,
    next_hour_boundary,
)
from tests.conftest import OFFICE_HOURS, UNIT, at


def office_calendar(holidays=()):
    return WorkingCalendar.build(UNIT, OFFICE_HOURS, holidays)


def test_day_of_week_counts_from_sunday():
    assert day_of_week(at(5, 10)) == 0  # Sunday
    assert day_of_week(at(6, 10)) == 1  # Monday
    assert day_of_week(at(11, 10)) == 6  # Saturday


def test_zero_hours_returns_start_unchanged():
    start = at(6, 10, 17)
    assert BusinessHoursCalculator.compute_deadline(office_calendar(), 0, start) == start


def test_hours_within_one_day():
    due = BusinessHoursCalculator.compute_deadline(office_calendar(), 4, at(6, 8))
    assert due == at(6, 12)


def test_spills_over_to_next_working_day():
    due = BusinessHoursCalculator.compute_deadline(office_calendar(), 3, at(6, 14))
    # 15:00 and 16:00 on Monday, then 09:00 Tuesday
    assert due == at(7, 9)


def test_weekend_is_skipped():
    due = BusinessHoursCalculator.compute_deadline(office_calendar(), 2, at(10, 15))
    # Friday 16:00, then Monday 09:00
    assert due == at(13, 9)


def test_holiday_on_start_date_is_skipped():
    calendar = office_calendar(holidays=[date(2025, 1, 6)])
    due = BusinessHoursCalculator.compute_deadline(calendar, 1, at(6, 8))
    assert due == at(7, 9)


def test_partial_start_hour_is_not_credited():
    calendar = WorkingCalendar.build(UNIT, {1: DaySchedule(True, 8, 9)})
    due = BusinessHoursCalculator.compute_deadline(calendar, 1, at(6, 7, 30))
    assert due == at(6, 9)


def test_mid_hour_start_lands_on_full_hour():
    due = BusinessHoursCalculator.compute_deadline(office_calendar(), 1, at(6, 8, 30))
    assert due == at(6, 10)


def test_start_on_full_hour_keeps_grid():
    assert next_hour_boundary(at(6, 8)) == at(6, 8)
    assert next_hour_boundary(at(6, 8, 1)) == at(6, 9)


def test_calendar_without_working_days_is_unattainable():
    calendar = WorkingCalendar.build(UNIT, {})
    assert BusinessHoursCalculator.compute_deadline(calendar, 1, at(6, 8)) is None


def test_bound_exhaustion_returns_none():
    # 8 working hours a day, 5 days a week: 200 hours need more than 720 simulated
    assert BusinessHoursCalculator.compute_deadline(office_calendar(), 200, at(6, 8)) is None


def test_counted_hour_window_is_left_open():
    schedule = DaySchedule(True, 8, 16)
    assert not schedule.counts_hour(8)
    assert schedule.counts_hour(9)
    assert schedule.counts_hour(16)
    assert not schedule.counts_hour(17)


def test_day_schedule_rejects_inverted_window():
    with pytest.raises(ValueError):
        DaySchedule(True, 16, 8)


def test_non_working_day_may_omit_hours():
    assert not DaySchedule(False).counts_hour(10)


# ========== SLAService ==========

async def test_service_uses_unit_policy(sla_service):
    deadline = await sla_service.compute_deadline(UNIT, PriorityCategory.HIGH, at(6, 8))
    assert deadline.due == at(6, 12)
    assert deadline.as_fields()["sla_target_date"] == date(2025, 1, 6)


async def test_service_missing_policy_returns_none(sla_service, policies):
    policies.policies.clear()
    assert await sla_service.compute_deadline(UNIT, PriorityCategory.HIGH, at(6, 8)) is None


async def test_service_policy_without_hours_returns_none(sla_service, policies):
    policies.add(UNIT, PriorityCategory.HIGH, None)
    assert await sla_service.compute_deadline(UNIT, PriorityCategory.HIGH, at(6, 8)) is None


async def test_service_zero_hour_policy_is_due_immediately(sla_service, policies):
    policies.add(UNIT, PriorityCategory.MAJOR, 0)
    start = at(6, 8, 45)
    deadline = await sla_service.compute_deadline(UNIT, PriorityCategory.MAJOR, start)
    assert deadline.due == start


async def test_service_without_unit_returns_none(sla_service):
    assert await sla_service.compute_deadline(None, PriorityCategory.LOW, at(6, 8)) is None


async def test_service_converts_start_to_business_timezone(policies, calendars):
    from src.sla.application.services import SLAService, WorkingCalendarResolver

    plus_seven = timezone(timedelta(hours=7))
    service = SLAService(policies, WorkingCalendarResolver(calendars), business_timezone=plus_seven)

    # 01:00 UTC is 08:00 at UTC+7
    deadline = await service.compute_deadline(
        UNIT, PriorityCategory.HIGH, datetime(2025, 1, 6, 1, tzinfo=timezone.utc)
    )
    assert deadline.due == datetime(2025, 1, 6, 12, tzinfo=plus_seven)
