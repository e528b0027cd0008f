"""
SLA Application Services
=========================

Application services orchestrate the SLA engine: they fetch policies and
calendars through repository interfaces and hand them to the pure domain
calculator.

Following SOLID principles:
- Single Responsibility: calendar resolution, deadline computation and
  policy administration are separate services
- Dependency Inversion: depend on repository abstractions only
"""

from abc import ABC, abstractmethod
from datetime import date, datetime, tzinfo
from typing import Any, Dict, List, Optional

from src.config import PriorityCategory, SLAState, TicketStatus
from src.core import ValidationException
from src.shared.infrastructure.logging import get_logger
from src.sla.domain import (
    BusinessHoursCalculator,
    DaySchedule,
    MAX_SIMULATED_HOURS,
    SLADeadline,
    SLAPolicy,
    SLAStatusEvaluator,
    SLAStatusSnapshot,
    WorkingCalendar,
)

logger = get_logger(__name__)


# ========== Repository Interfaces (Dependency Inversion) ==========

class ISLAPolicyRepository(ABC):
    """Interface for SLA policy storage."""

    @abstractmethod
    async def get_policy(
        self,
        unit_id: str,
        priority: PriorityCategory
    ) -> Optional[SLAPolicy]:
        """Policy for the pair, or None when not configured."""

    @abstractmethod
    async def list_for_unit(self, unit_id: str) -> List[SLAPolicy]:
        """All policies of one unit."""

    @abstractmethod
    async def upsert_many(self, policies: List[SLAPolicy]) -> List[SLAPolicy]:
        """Insert or replace policies keyed by (unit_id, priority)."""


class IWorkingCalendarRepository(ABC):
    """Interface for reading a unit's working hours and holidays."""

    @abstractmethod
    async def get_weekly_schedule(self, unit_id: str) -> Dict[int, DaySchedule]:
        """Schedule rows keyed by day of week (0 = Sunday)."""

    @abstractmethod
    async def get_holidays(self, unit_id: str) -> List[date]:
        """Explicit holiday dates."""


# ========== Application Services ==========

class WorkingCalendarResolver:
    """Builds a WorkingCalendar for a unit. Missing days are non-working."""

    def __init__(self, calendar_repository: IWorkingCalendarRepository):
        self._calendar_repo = calendar_repository

    async def resolve(self, unit_id: str) -> WorkingCalendar:
        schedule = await self._calendar_repo.get_weekly_schedule(unit_id)
        holidays = await self._calendar_repo.get_holidays(unit_id)
        calendar = WorkingCalendar.build(unit_id, schedule, holidays)

        if not calendar.has_working_days:
            logger.warning(
                "Unit has no working days configured",
                extra={"unit_id": unit_id}
            )
        return calendar


class SLAService:
    """
    Deadline computation and SLA status reporting.

    A missing policy is an expected outcome and yields None; storage
    failures propagate to the caller.
    """

    def __init__(
        self,
        policy_repository: ISLAPolicyRepository,
        calendar_resolver: WorkingCalendarResolver,
        max_simulated_hours: int = MAX_SIMULATED_HOURS,
        warning_threshold_percent: int = 15,
        business_timezone: Optional[tzinfo] = None
    ):
        self._policy_repo = policy_repository
        self._calendar_resolver = calendar_resolver
        self._max_simulated_hours = max_simulated_hours
        self._warning_threshold = warning_threshold_percent
        self._tz = business_timezone

    async def compute_deadline(
        self,
        unit_id: Optional[str],
        priority: PriorityCategory,
        start: datetime
    ) -> Optional[SLADeadline]:
        """
        Deadline for a ticket of ``priority`` in ``unit_id`` whose clock starts at ``start``.

        Returns:
            SLADeadline, or None when no policy is configured or the calendar
            cannot satisfy the policy within the simulation bound
        """
        if unit_id is None:
            logger.warning("SLA skipped: ticket has no organizational unit")
            return None

        policy = await self._policy_repo.get_policy(unit_id, priority)
        if policy is None or policy.resolution_time_hours is None:
            logger.warning(
                "SLA policy missing",
                extra={"unit_id": unit_id, "priority": priority.value}
            )
            return None

        # Working hours are wall-clock hours of the business timezone
        if self._tz is not None and start.tzinfo is not None:
            start = start.astimezone(self._tz)

        if policy.resolution_time_hours == 0:
            return SLADeadline(due=start)

        calendar = await self._calendar_resolver.resolve(unit_id)
        due = BusinessHoursCalculator.compute_deadline(
            calendar,
            policy.resolution_time_hours,
            start,
            max_hours=self._max_simulated_hours
        )

        if due is None:
            logger.warning(
                "SLA not attainable within simulation bound",
                extra={
                    "unit_id": unit_id,
                    "priority": priority.value,
                    "resolution_time_hours": policy.resolution_time_hours,
                    "max_simulated_hours": self._max_simulated_hours,
                }
            )
            return None

        return SLADeadline(due=due)

    def status_for(self, ticket_data: Any, current_time: datetime) -> SLAStatusSnapshot:
        """SLA state of a stored ticket at ``current_time``."""
        ticket_id = str(getattr(ticket_data, "id", ""))
        started_at = getattr(ticket_data, "sla_start_at", None)
        deadline = getattr(ticket_data, "sla_due", None)
        breached = bool(getattr(ticket_data, "sla_breached", False))
        status = getattr(ticket_data, "status", None)

        met_at = None
        if status in (TicketStatus.RESOLVED, TicketStatus.CLOSED):
            met_at = getattr(ticket_data, "resolved_at", None) or getattr(ticket_data, "closed_at", None)

        state = SLAStatusEvaluator.evaluate(
            started_at, deadline, current_time,
            met_at=met_at,
            breached=breached,
            warning_threshold_percent=self._warning_threshold
        )

        remaining, percentage = 0.0, 0.0
        if deadline is not None and state in (SLAState.ON_TRACK, SLAState.AT_RISK):
            remaining, percentage = SLAStatusEvaluator.remaining_metrics(
                started_at or deadline, deadline, current_time
            )

        return SLAStatusSnapshot(
            ticket_id=ticket_id,
            state=state,
            started_at=started_at,
            deadline=deadline,
            evaluated_at=current_time,
            remaining_seconds=remaining,
            percentage_remaining=percentage,
            breached_flag=breached
        )


class SLAPolicyService:
    """Administrative configuration of SLA policies."""

    def __init__(self, policy_repository: ISLAPolicyRepository):
        self._policy_repo = policy_repository

    async def upsert_policies(
        self,
        unit_id: str,
        items: List[dict]
    ) -> List[SLAPolicy]:
        """
        Insert or replace the given policies for one unit.

        Args:
            unit_id: Organizational unit
            items: Dicts with ``priority``, ``resolution_time_hours`` and
                optional ``description``
        """
        seen = set()
        policies = []
        for item in items:
            try:
                priority = PriorityCategory(item["priority"])
                policy = SLAPolicy(
                    unit_id=unit_id,
                    priority=priority,
                    resolution_time_hours=item.get("resolution_time_hours"),
                    description=item.get("description"),
                )
            except (KeyError, ValueError) as e:
                raise ValidationException(f"Invalid SLA policy: {e}", {"item": item})

            if priority in seen:
                raise ValidationException(
                    f"Duplicate SLA policy for priority '{priority.value}'",
                    {"unit_id": unit_id}
                )
            seen.add(priority)
            policies.append(policy)

        saved = await self._policy_repo.upsert_many(policies)
        logger.info(
            "SLA policies saved",
            extra={"unit_id": unit_id, "count": len(saved)}
        )
        return saved

    async def list_policies(self, unit_id: str) -> List[SLAPolicy]:
        return await self._policy_repo.list_for_unit(unit_id)
