"""Breach sweep: flagging, escalation fan-out, idempotence and isolation."""

from contextlib import asynccontextmanager

import pytest

from src.config import ActivityAction, NotificationSeverity, PriorityCategory, TicketStatus, TicketType
from src.sla.application.sweeper import ESCALATION_LOG_TEXT, BreachSweeper, IEscalationPublisher
from src.tickets.application import ActivityRecorder, Notifier
from src.tickets.domain import Ticket
from tests.conftest import UNIT, at


class RecordingPublisher(IEscalationPublisher):
    def __init__(self):
        self.published = []

    async def publish_breach(self, ticket):
        self.published.append(ticket.id)
        return True


@pytest.fixture
def publisher():
    return RecordingPublisher()


@pytest.fixture
def sweeper(tickets, activity_log, notifications, users, publisher):
    users.users = [
        ("admin-1", UNIT, "admin_opd"),
        ("admin-2", UNIT, "admin_opd"),
        ("helpdesk-1", UNIT, "helpdesk"),
        ("admin-x", "unit-2", "admin_opd"),
    ]
    return BreachSweeper(
        tickets,
        ActivityRecorder(activity_log),
        Notifier(notifications),
        users,
        escalation_admin_role="admin_opd",
        publisher=publisher,
    )


async def seed(tickets, number, due, status=TicketStatus.ASSIGNED, unit_id=UNIT,
               assigned_to="tech-1", breached=False):
    return await tickets.create(Ticket(
        id=None,
        ticket_number=number,
        type=TicketType.INCIDENT,
        title=f"Ticket {number}",
        description="",
        unit_id=unit_id,
        assigned_to=assigned_to,
        status=status,
        priority=PriorityCategory.HIGH,
        sla_start_at=at(6, 8),
        sla_due=due,
        sla_breached=breached,
    ))


async def test_overdue_ticket_is_flagged_and_escalated(sweeper, tickets, activity_log, notifications, publisher):
    ticket = await seed(tickets, "INC-2025-0001", due=at(6, 12))

    result = await sweeper.sweep(now=at(6, 13))

    assert result.flagged_ids == [ticket.id]
    assert result.escalated_ids == [ticket.id]
    assert tickets.rows[ticket.id]["sla_breached"] is True

    assert len(activity_log.entries) == 1
    entry = activity_log.entries[0]
    assert entry.action == ActivityAction.ESCALATION
    assert entry.actor_id is None
    assert entry.description == ESCALATION_LOG_TEXT

    by_user = {n.user_id: n for n in notifications.sent}
    assert set(by_user) == {"tech-1", "admin-1", "admin-2"}
    assert by_user["tech-1"].title == "SLA BREACH ALERT"
    assert by_user["tech-1"].severity == NotificationSeverity.ERROR
    assert by_user["admin-1"].title == "TICKET ESCALATION"
    assert by_user["admin-1"].severity == NotificationSeverity.WARNING

    assert publisher.published == [ticket.id]


async def test_tickets_not_yet_due_are_left_alone(sweeper, tickets, notifications):
    await seed(tickets, "INC-2025-0002", due=at(6, 14))
    await seed(tickets, "INC-2025-0003", due=None)

    result = await sweeper.sweep(now=at(6, 13))

    assert result.candidates == 0
    assert result.flagged_ids == []
    assert notifications.sent == []


async def test_terminal_and_already_flagged_tickets_are_skipped(sweeper, tickets):
    await seed(tickets, "INC-2025-0004", due=at(6, 9), status=TicketStatus.RESOLVED)
    await seed(tickets, "INC-2025-0005", due=at(6, 9), status=TicketStatus.CLOSED)
    await seed(tickets, "INC-2025-0006", due=at(6, 9), breached=True)

    result = await sweeper.sweep(now=at(6, 13))

    assert result.flagged_ids == []


async def test_second_sweep_does_not_escalate_again(sweeper, tickets, notifications, activity_log):
    await seed(tickets, "INC-2025-0007", due=at(6, 12))

    await sweeper.sweep(now=at(6, 13))
    sent = len(notifications.sent)
    second = await sweeper.sweep(now=at(6, 14))

    assert second.flagged_ids == []
    assert len(notifications.sent) == sent
    assert len(activity_log.entries) == 1


async def test_unassigned_ticket_notifies_only_admins(sweeper, tickets, notifications):
    await seed(tickets, "INC-2025-0008", due=at(6, 12), status=TicketStatus.OPEN, assigned_to=None)

    await sweeper.sweep(now=at(6, 13))

    assert sorted(n.user_id for n in notifications.sent) == ["admin-1", "admin-2"]


async def test_failure_on_one_ticket_does_not_stop_the_sweep(sweeper, tickets, users, notifications):
    failing = await seed(tickets, "INC-2025-0009", due=at(6, 11), unit_id="unit-broken")
    healthy = await seed(tickets, "INC-2025-0010", due=at(6, 12))
    users.fail_for_units = {"unit-broken"}

    result = await sweeper.sweep(now=at(6, 13))

    assert set(result.flagged_ids) == {failing.id, healthy.id}
    assert result.failed_ids == [failing.id]
    assert result.escalated_ids == [healthy.id]
    # The flag stays even though escalation failed
    assert tickets.rows[failing.id]["sla_breached"] is True
    assert "admin-1" in {n.user_id for n in notifications.sent}


async def test_ticket_resolved_during_sweep_is_not_escalated(sweeper, tickets, notifications, publisher):
    raced = await seed(tickets, "INC-2025-0011", due=at(6, 12))
    tickets.resolve_before_flag = {raced.id}

    result = await sweeper.sweep(now=at(6, 13))

    assert result.candidates == 1
    assert result.flagged_ids == []
    assert tickets.rows[raced.id]["sla_breached"] is False
    assert notifications.sent == []
    assert publisher.published == []


async def test_notification_failure_is_swallowed(sweeper, tickets, notifications):
    ticket = await seed(tickets, "INC-2025-0012", due=at(6, 12))
    notifications.fail_for = {"tech-1"}

    result = await sweeper.sweep(now=at(6, 13))

    assert result.escalated_ids == [ticket.id]
    assert {n.user_id for n in notifications.sent} == {"admin-1", "admin-2"}


async def test_sweep_uses_clock_when_no_time_given(tickets, activity_log, notifications, users):
    ticket = await seed(tickets, "INC-2025-0013", due=at(6, 12))
    sweeper = BreachSweeper(
        tickets, ActivityRecorder(activity_log), Notifier(notifications), users,
        clock=lambda: at(7, 9),
    )

    result = await sweeper.sweep()

    assert result.started_at == at(7, 9)
    assert result.flagged_ids == [ticket.id]
    assert result.to_dict()["flagged"] == 1


async def test_each_escalation_runs_in_its_own_savepoint(tickets, activity_log, notifications, users):
    failing = await seed(tickets, "INC-2025-0014", due=at(6, 11), unit_id="unit-broken")
    healthy = await seed(tickets, "INC-2025-0015", due=at(6, 12))
    users.users = [("admin-1", UNIT, "admin_opd")]
    users.fail_for_units = {"unit-broken"}
    outcomes = []

    @asynccontextmanager
    async def savepoint():
        try:
            yield
        except Exception:
            outcomes.append("rolled back")
            raise
        outcomes.append("released")

    sweeper = BreachSweeper(
        tickets, ActivityRecorder(activity_log), Notifier(notifications), users,
        savepoint=savepoint,
    )

    result = await sweeper.sweep(now=at(6, 13))

    assert outcomes == ["rolled back", "released"]
    assert result.failed_ids == [failing.id]
    assert result.escalated_ids == [healthy.id]
    assert tickets.rows[failing.id]["sla_breached"] is True
    assert tickets.rows[healthy.id]["sla_breached"] is True
