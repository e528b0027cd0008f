"""
Business-Hours Calculator
=========================

Stateless deadline arithmetic over a unit's working calendar.

The deadline is found by walking forward one hour at a time and counting
only hour blocks that fall inside the unit's working window. Irregular
per-day windows and sparse holidays make the walk simpler and safer than
closed-form arithmetic; the walk is bounded so a calendar without working
days cannot loop forever.
"""

from datetime import datetime, timedelta
from typing import Optional

from src.config import SLAState
from src.sla.domain.value_objects import WorkingCalendar

MAX_SIMULATED_HOURS = 720
ONE_HOUR = timedelta(hours=1)


def next_hour_boundary(moment: datetime) -> datetime:
    """
    ``moment`` itself when it sits on a full hour, otherwise the next full hour.

    Deadlines therefore always land on a full hour: an 08:30 start on an
    08-16 calendar with a 1 h policy is due at 10:00, not 09:30. A 07:30
    start with an 08-09 window and 1 h is due at 09:00.
    """
    floored = moment.replace(minute=0, second=0, microsecond=0)
    return floored if floored == moment else floored + ONE_HOUR


class BusinessHoursCalculator:
    """Pure deadline computation. Holds no state."""

    @staticmethod
    def compute_deadline(
        calendar: WorkingCalendar,
        resolution_hours: int,
        start: datetime,
        max_hours: int = MAX_SIMULATED_HOURS
    ) -> Optional[datetime]:
        """
        Wall-clock instant at which ``resolution_hours`` working hours have elapsed.

        Args:
            calendar: The owning unit's weekly schedule and holidays
            resolution_hours: Working hours allowed by the SLA policy
            start: When the SLA clock starts
            max_hours: Bound on simulated hours

        Returns:
            The deadline; ``start`` unchanged for a zero-hour policy; None when
            the bound is exhausted before enough working hours were found.
        """
        if resolution_hours <= 0:
            return start

        remaining = resolution_hours
        # The hour in progress at start is never credited
        cursor = next_hour_boundary(start)
        simulated = 0

        while remaining > 0 and simulated < max_hours:
            cursor += ONE_HOUR
            simulated += 1

            if calendar.is_holiday(cursor.date()):
                continue

            schedule = calendar.schedule_for(cursor)
            if schedule is None or not schedule.is_working_day:
                continue

            if schedule.counts_hour(cursor.hour):
                remaining -= 1

        if remaining > 0:
            return None
        return cursor


class SLAStatusEvaluator:
    """
    Point-in-time SLA state for a ticket.

    Works on the stored deadline; the breach flag set by the sweeper wins
    over the clock so a flagged ticket never reads as on track.
    """

    @staticmethod
    def remaining_metrics(
        started_at: datetime,
        deadline: datetime,
        current_time: datetime
    ) -> tuple[float, float]:
        """
        Returns:
            Tuple of (remaining_seconds, percentage_remaining)
        """
        remaining = (deadline - current_time).total_seconds()
        total = (deadline - started_at).total_seconds()

        if total <= 0:
            percentage = 0.0
        else:
            percentage = max(0.0, min(100.0, (remaining / total) * 100))

        return max(0.0, remaining), percentage

    @staticmethod
    def evaluate(
        started_at: Optional[datetime],
        deadline: Optional[datetime],
        current_time: datetime,
        met_at: Optional[datetime] = None,
        breached: bool = False,
        warning_threshold_percent: int = 15
    ) -> SLAState:
        if deadline is None:
            return SLAState.NOT_STARTED

        if met_at is not None and met_at <= deadline and not breached:
            return SLAState.MET

        if breached or current_time >= deadline:
            return SLAState.BREACHED

        _, percentage = SLAStatusEvaluator.remaining_metrics(
            started_at or deadline, deadline, current_time
        )
        if percentage <= warning_threshold_percent:
            return SLAState.AT_RISK
        return SLAState.ON_TRACK
