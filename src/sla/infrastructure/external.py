"""
SLA External Service Integrations
==================================

External services for SLA enforcement:
- Escalation webhook (Slack-compatible) with circuit breaker and retries
- APScheduler wrapper running the breach sweep
"""

import asyncio
import time
from typing import Any, Awaitable, Callable, Dict, Optional

import httpx
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from src.shared.infrastructure.logging import get_logger
from src.sla.application.sweeper import IEscalationPublisher
from src.tickets.domain import Ticket

logger = get_logger(__name__)


class CircuitState:
    """Circuit breaker states."""
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitBreaker:
    """
    Circuit breaker for preventing cascade failures.

    States:
    - CLOSED: Normal operation, requests pass through
    - OPEN: After N failures, reject all requests for M seconds
    - HALF_OPEN: After timeout, allow one test request
    """

    def __init__(
        self,
        failure_threshold: int = 5,
        recovery_timeout: float = 60.0
    ):
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._last_failure_time: Optional[float] = None

    @property
    def state(self) -> str:
        """Get current circuit state."""
        if self._state == CircuitState.OPEN and self._last_failure_time is not None:
            if time.monotonic() - self._last_failure_time >= self.recovery_timeout:
                self._state = CircuitState.HALF_OPEN
        return self._state

    def allow_request(self) -> bool:
        return self.state in (CircuitState.CLOSED, CircuitState.HALF_OPEN)

    def record_success(self) -> None:
        self._failure_count = 0
        self._state = CircuitState.CLOSED

    def record_failure(self) -> None:
        self._failure_count += 1
        self._last_failure_time = time.monotonic()

        if self._failure_count >= self.failure_threshold:
            self._state = CircuitState.OPEN
            logger.warning(
                "Circuit breaker opened",
                extra={
                    "failure_count": self._failure_count,
                    "recovery_timeout": self.recovery_timeout
                }
            )


class EscalationWebhookClient(IEscalationPublisher):
    """
    Posts SLA breach alerts to a Slack-compatible webhook.

    Handles:
    - Circuit breaker to prevent cascade failures
    - Exponential backoff retry
    - Timeout handling
    """

    def __init__(
        self,
        webhook_url: str,
        timeout_seconds: float = 5.0,
        max_retries: int = 3,
        http_client: Optional[httpx.AsyncClient] = None
    ):
        self._webhook_url = webhook_url
        self._timeout = timeout_seconds
        self._max_retries = max_retries
        self._circuit_breaker = CircuitBreaker(failure_threshold=5, recovery_timeout=60)
        self._http_client = http_client

    async def _get_client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self._timeout)
        return self._http_client

    @staticmethod
    def build_message(ticket: Ticket) -> Dict[str, Any]:
        """Build a Block Kit message for a breached ticket."""
        due = ticket.sla_due.strftime("%Y-%m-%d %H:%M") if ticket.sla_due else "-"
        return {
            "text": f"SLA breach: {ticket.ticket_number}",
            "blocks": [
                {
                    "type": "header",
                    "text": {"type": "plain_text", "text": "SLA Breach Alert", "emoji": True}
                },
                {
                    "type": "section",
                    "fields": [
                        {"type": "mrkdwn", "text": f"*Ticket:*\n{ticket.ticket_number}"},
                        {"type": "mrkdwn", "text": f"*Priority:*\n{ticket.priority.value.title()}"},
                        {"type": "mrkdwn", "text": f"*Unit:*\n{ticket.unit_id or '-'}"},
                        {"type": "mrkdwn", "text": f"*Status:*\n{ticket.status.value}"},
                        {"type": "mrkdwn", "text": f"*Handler:*\n{ticket.assigned_to or 'unassigned'}"},
                        {"type": "mrkdwn", "text": f"*Due:*\n{due}"},
                    ]
                },
                {
                    "type": "context",
                    "elements": [{"type": "mrkdwn", "text": ticket.title}]
                }
            ]
        }

    async def publish_breach(self, ticket: Ticket) -> bool:
        """
        Send a breach alert.

        Returns:
            True if sent successfully, False otherwise
        """
        if not self._circuit_breaker.allow_request():
            logger.warning(
                "Circuit breaker open, skipping escalation webhook",
                extra={"ticket_id": ticket.id}
            )
            return False

        message = self.build_message(ticket)

        for attempt in range(self._max_retries):
            try:
                client = await self._get_client()
                response = await client.post(self._webhook_url, json=message)

                if response.status_code == 200:
                    self._circuit_breaker.record_success()
                    logger.info("Escalation webhook sent", extra={"ticket_id": ticket.id})
                    return True

                logger.warning(
                    "Escalation webhook returned non-200",
                    extra={"status_code": response.status_code, "attempt": attempt + 1}
                )
            except httpx.HTTPError as e:
                logger.error(
                    "Escalation webhook failed",
                    extra={"error": str(e), "attempt": attempt + 1, "ticket_id": ticket.id}
                )

            if attempt < self._max_retries - 1:
                await asyncio.sleep(2 ** attempt)

        self._circuit_breaker.record_failure()
        return False

    async def close(self) -> None:
        """Close HTTP client."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None


class SLAScheduler:
    """
    Wrapper for APScheduler running the breach sweep.

    Manages the lifecycle of the scheduler and its single job.
    """

    def __init__(self, interval_seconds: int = 600):
        self.interval_seconds = interval_seconds
        self._scheduler: Optional[AsyncIOScheduler] = None
        self._running = False

    async def start(self, job_func: Callable[[], Awaitable[Any]]) -> None:
        """Start the scheduler with the given job function."""
        if self._running:
            logger.warning("SLA scheduler already running")
            return

        self._scheduler = AsyncIOScheduler()
        self._scheduler.add_job(
            job_func,
            "interval",
            seconds=self.interval_seconds,
            id="sla_breach_sweep",
            name="SLA Breach Sweep",
            misfire_grace_time=60,
            max_instances=1,
            coalesce=True,
            replace_existing=True
        )
        self._scheduler.start()
        self._running = True

        logger.info(
            "SLA scheduler started",
            extra={"interval_seconds": self.interval_seconds}
        )

    async def stop(self) -> None:
        """Stop the scheduler gracefully."""
        if not self._running:
            return

        if self._scheduler:
            self._scheduler.shutdown(wait=False)

        self._running = False
        logger.info("SLA scheduler stopped")

    @property
    def is_running(self) -> bool:
        return self._running
