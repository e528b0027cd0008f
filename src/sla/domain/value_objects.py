"""
SLA Value Objects
==================

Immutable value objects for the SLA engine.

Value objects are defined by their attributes rather than an identity.
They are immutable and can be freely shared.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import Dict, FrozenSet, Iterable, Optional

from src.config import PriorityCategory


def day_of_week(moment: datetime) -> int:
    """Day number as stored in the calendar tables: 0 = Sunday ... 6 = Saturday."""
    return moment.isoweekday() % 7


@dataclass(frozen=True)
class DaySchedule:
    """Working window for one day of the week, in whole hours."""
    is_working_day: bool
    start_hour: int = 0
    end_hour: int = 0

    def __post_init__(self):
        if not self.is_working_day:
            return
        if not 0 <= self.start_hour < self.end_hour <= 23:
            raise ValueError(
                f"working day needs 0 <= start_hour < end_hour <= 23, "
                f"got {self.start_hour}..{self.end_hour}"
            )

    def counts_hour(self, hour: int) -> bool:
        """
        Whether the hour block ending at ``hour`` o'clock is working time.

        Left-open, right-closed: for an 08-16 window the block ending at
        09:00 is the first one counted and the block ending at 16:00 the last.
        """
        return self.is_working_day and self.start_hour < hour <= self.end_hour


@dataclass(frozen=True)
class WorkingCalendar:
    """
    Weekly schedule plus explicit holiday dates of one organizational unit.

    Days without an entry are non-working. Holidays carry no recurrence
    rule; every occurrence is its own date.
    """
    unit_id: str
    schedule: Dict[int, DaySchedule] = field(default_factory=dict)
    holidays: FrozenSet[date] = field(default_factory=frozenset)

    @classmethod
    def build(
        cls,
        unit_id: str,
        schedule: Dict[int, DaySchedule],
        holidays: Iterable[date] = ()
    ) -> "WorkingCalendar":
        return cls(unit_id=unit_id, schedule=dict(schedule), holidays=frozenset(holidays))

    def is_holiday(self, day: date) -> bool:
        return day in self.holidays

    def schedule_for(self, moment: datetime) -> Optional[DaySchedule]:
        return self.schedule.get(day_of_week(moment))

    @property
    def has_working_days(self) -> bool:
        return any(s.is_working_day for s in self.schedule.values())


@dataclass(frozen=True)
class SLAPolicy:
    """Resolution target for one (unit, priority) pair."""
    unit_id: str
    priority: PriorityCategory
    resolution_time_hours: Optional[int]
    description: Optional[str] = None

    def __post_init__(self):
        if self.resolution_time_hours is not None and self.resolution_time_hours < 0:
            raise ValueError("resolution_time_hours cannot be negative")


@dataclass(frozen=True)
class SLADeadline:
    """
    Computed deadline with its date and time split out for storage.
    """
    due: datetime

    @property
    def target_date(self) -> date:
        return self.due.date()

    @property
    def target_time(self) -> time:
        return self.due.time()

    def as_fields(self) -> dict:
        """Ticket columns written for this deadline."""
        return {
            "sla_due": self.due,
            "sla_target_date": self.target_date,
            "sla_target_time": self.target_time,
        }

    @staticmethod
    def empty_fields() -> dict:
        return {"sla_due": None, "sla_target_date": None, "sla_target_time": None}
