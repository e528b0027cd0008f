"""Escalation webhook delivery and circuit breaker."""

import httpx

from src.config import PriorityCategory, TicketStatus, TicketType
from src.sla.infrastructure.external import CircuitBreaker, CircuitState, EscalationWebhookClient
from src.tickets.domain import Ticket
from tests.conftest import UNIT, at

WEBHOOK_URL = "https://hooks.example.test/services/T000/B000"


def breached_ticket():
    return Ticket(
        id="t-1",
        ticket_number="INC-2025-0042",
        type=TicketType.INCIDENT,
        title="Email server down",
        description="",
        unit_id=UNIT,
        assigned_to="tech-1",
        status=TicketStatus.IN_PROGRESS,
        priority=PriorityCategory.MAJOR,
        sla_due=at(6, 10),
        sla_breached=True,
    )


def client_with(handler, **kwargs):
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return EscalationWebhookClient(WEBHOOK_URL, max_retries=1, http_client=http_client, **kwargs)


async def test_publish_posts_block_message():
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(200, text="ok")

    client = client_with(handler)
    assert await client.publish_breach(breached_ticket()) is True

    assert len(requests) == 1
    assert str(requests[0].url) == WEBHOOK_URL
    assert b"INC-2025-0042" in requests[0].content
    await client.close()


async def test_non_200_is_reported_as_failure():
    client = client_with(lambda request: httpx.Response(500))
    assert await client.publish_breach(breached_ticket()) is False
    await client.close()


async def test_transport_error_is_reported_as_failure():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    client = client_with(handler)
    assert await client.publish_breach(breached_ticket()) is False
    await client.close()


async def test_open_circuit_skips_delivery():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(503)

    client = client_with(handler)
    for _ in range(5):
        await client.publish_breach(breached_ticket())
    assert len(calls) == 5

    assert await client.publish_breach(breached_ticket()) is False
    assert len(calls) == 5
    await client.close()


def test_message_contains_ticket_fields():
    message = EscalationWebhookClient.build_message(breached_ticket())

    assert message["text"] == "SLA breach: INC-2025-0042"
    fields = [f["text"] for f in message["blocks"][1]["fields"]]
    assert "*Priority:*\nMajor" in fields
    assert "*Due:*\n2025-01-06 10:00" in fields


def test_circuit_breaker_opens_and_recovers():
    breaker = CircuitBreaker(failure_threshold=2, recovery_timeout=0)
    breaker.record_failure()
    assert breaker.allow_request()

    breaker.record_failure()
    # Zero recovery timeout moves straight to half-open
    assert breaker.state == CircuitState.HALF_OPEN

    breaker.record_success()
    assert breaker.state == CircuitState.CLOSED


def test_circuit_breaker_blocks_while_open():
    breaker = CircuitBreaker(failure_threshold=1, recovery_timeout=60)
    breaker.record_failure()
    assert breaker.state == CircuitState.OPEN
    assert not breaker.allow_request()
