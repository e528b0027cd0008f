"""
Shared fixtures: in-memory repositories and a fixed clock.

Calendar used throughout: Monday-Friday 08-16, weekends off.
2025-01-06 is a Monday.
"""

from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import uuid4

import pytest

from src.access.domain import Actor, PermissionSet
from src.config import PriorityCategory, TERMINAL_STATUSES
from src.sla.application.services import (
    ISLAPolicyRepository,
    IWorkingCalendarRepository,
    SLAService,
    WorkingCalendarResolver,
)
from src.sla.domain import DaySchedule, SLAPolicy
from src.tickets.application import (
    ActivityRecorder,
    IActivityLogRepository,
    IApprovalRepository,
    INotificationRepository,
    IProgressUpdateRepository,
    ITicketRepository,
    IUserDirectory,
    Notifier,
    TicketLifecycleService,
)
from src.tickets.domain import ApprovalStep, Ticket

UNIT = "unit-1"
MONDAY = datetime(2025, 1, 6, tzinfo=timezone.utc)

OFFICE_HOURS = {
    day: DaySchedule(is_working_day=True, start_hour=8, end_hour=16)
    for day in (1, 2, 3, 4, 5)
}


def at(day: int, hour: int, minute: int = 0) -> datetime:
    """Instant in the week of 2025-01-06 (day 6 = Monday)."""
    return datetime(2025, 1, day, hour, minute, tzinfo=timezone.utc)


def actor(role: str, *permissions: str, actor_id: Optional[str] = None) -> Actor:
    return Actor(
        id=actor_id or f"{role}-user",
        role=role,
        unit_id=UNIT,
        permissions=PermissionSet.of(permissions),
    )


# ========== Fakes ==========

class InMemoryPolicyRepository(ISLAPolicyRepository):
    def __init__(self):
        self.policies: Dict[tuple, SLAPolicy] = {}

    def add(self, unit_id: str, priority: PriorityCategory, hours: Optional[int]) -> None:
        self.policies[(unit_id, priority)] = SLAPolicy(unit_id, priority, hours)

    async def get_policy(self, unit_id, priority):
        return self.policies.get((unit_id, priority))

    async def list_for_unit(self, unit_id):
        return [p for (u, _), p in self.policies.items() if u == unit_id]

    async def upsert_many(self, policies):
        for policy in policies:
            self.policies[(policy.unit_id, policy.priority)] = policy
        return policies


class InMemoryCalendarRepository(IWorkingCalendarRepository):
    def __init__(self):
        self.schedules: Dict[str, Dict[int, DaySchedule]] = {}
        self.holidays: Dict[str, List[date]] = {}

    async def get_weekly_schedule(self, unit_id):
        return dict(self.schedules.get(unit_id, {}))

    async def get_holidays(self, unit_id):
        return list(self.holidays.get(unit_id, []))


class InMemoryTicketRepository(ITicketRepository):
    def __init__(self):
        self.rows: Dict[str, Dict[str, Any]] = {}
        self.updates: List[tuple] = []
        self.resolve_before_flag: set = set()

    async def get_by_id(self, ticket_id):
        row = self.rows.get(ticket_id)
        return Ticket(**row) if row else None

    async def create(self, ticket):
        ticket.id = str(uuid4())
        self.rows[ticket.id] = dict(ticket.__dict__)
        return ticket

    async def update(self, ticket_id, fields):
        self.updates.append((ticket_id, dict(fields)))
        self.rows[ticket_id].update(fields)

    def _overdue(self, row, now):
        return (
            row["sla_due"] is not None
            and row["sla_due"] < now
            and not row["sla_breached"]
            and row["status"] not in TERMINAL_STATUSES
        )

    async def find_overdue(self, now):
        return [Ticket(**r) for r in self.rows.values() if self._overdue(r, now)]

    async def mark_breached(self, ticket_ids, now):
        # Simulates tickets resolved by another request between scan and write
        for ticket_id in self.resolve_before_flag:
            self.rows[ticket_id]["status"] = TERMINAL_STATUSES[0]

        flagged = []
        for ticket_id in ticket_ids:
            row = self.rows.get(ticket_id)
            if row and self._overdue(row, now):
                row["sla_breached"] = True
                flagged.append(ticket_id)
        return flagged


class InMemoryApprovalRepository(IApprovalRepository):
    def __init__(self):
        self.steps: Dict[str, ApprovalStep] = {}

    async def create_steps(self, steps):
        for step in steps:
            step.id = str(uuid4())
            self.steps[step.id] = step
        return steps

    async def list_for_ticket(self, ticket_id):
        return sorted(
            (ApprovalStep(**s.__dict__) for s in self.steps.values() if s.ticket_id == ticket_id),
            key=lambda s: s.level
        )

    async def save_step(self, step):
        self.steps[step.id] = ApprovalStep(**step.__dict__)


class InMemoryProgressRepository(IProgressUpdateRepository):
    def __init__(self):
        self.updates = []

    async def next_update_number(self, ticket_id):
        return sum(1 for u in self.updates if u.ticket_id == ticket_id) + 1

    async def create(self, update):
        self.updates.append(update)
        return update


class InMemoryActivityLog(IActivityLogRepository):
    def __init__(self):
        self.entries = []
        self.fail = False

    async def append(self, entry):
        if self.fail:
            raise RuntimeError("log store down")
        self.entries.append(entry)


class InMemoryNotifications(INotificationRepository):
    def __init__(self):
        self.sent = []
        self.fail_for: set = set()

    async def create(self, notification):
        if notification.user_id in self.fail_for:
            raise RuntimeError("inbox down")
        self.sent.append(notification)


class InMemoryUserDirectory(IUserDirectory):
    def __init__(self):
        self.users: List[tuple] = []
        self.fail_for_units: set = set()

    async def list_user_ids(self, unit_id, role):
        if unit_id in self.fail_for_units:
            raise RuntimeError("directory down")
        return [uid for uid, u, r in self.users if u == unit_id and r == role]


class FixedClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


# ========== Fixtures ==========

@pytest.fixture
def policies():
    repo = InMemoryPolicyRepository()
    repo.add(UNIT, PriorityCategory.LOW, 16)
    repo.add(UNIT, PriorityCategory.MEDIUM, 8)
    repo.add(UNIT, PriorityCategory.HIGH, 4)
    repo.add(UNIT, PriorityCategory.MAJOR, 2)
    return repo


@pytest.fixture
def calendars():
    repo = InMemoryCalendarRepository()
    repo.schedules[UNIT] = dict(OFFICE_HOURS)
    return repo


@pytest.fixture
def sla_service(policies, calendars):
    return SLAService(policies, WorkingCalendarResolver(calendars))


@pytest.fixture
def tickets():
    return InMemoryTicketRepository()


@pytest.fixture
def approvals():
    return InMemoryApprovalRepository()


@pytest.fixture
def progress():
    return InMemoryProgressRepository()


@pytest.fixture
def activity_log():
    return InMemoryActivityLog()


@pytest.fixture
def notifications():
    return InMemoryNotifications()


@pytest.fixture
def users():
    return InMemoryUserDirectory()


@pytest.fixture
def clock():
    return FixedClock(at(6, 8))


@pytest.fixture
def lifecycle(tickets, approvals, progress, activity_log, notifications, sla_service, clock):
    return TicketLifecycleService(
        tickets,
        approvals,
        progress,
        ActivityRecorder(activity_log),
        Notifier(notifications),
        sla_service,
        clock=clock,
    )
