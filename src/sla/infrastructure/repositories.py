"""
SLA Infrastructure Repositories
=================================

Concrete implementations of the SLA repository interfaces using SQLAlchemy.
"""

from datetime import date, datetime, timezone
from typing import Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from src.config import PriorityCategory
from src.shared.infrastructure.logging import get_logger
from src.sla.application.services import ISLAPolicyRepository, IWorkingCalendarRepository
from src.sla.domain import DaySchedule, SLAPolicy
from src.sla.infrastructure.models import HolidayModel, SLAPolicyModel, WorkingHoursModel

logger = get_logger(__name__)


def _to_policy(model: SLAPolicyModel) -> SLAPolicy:
    return SLAPolicy(
        unit_id=model.unit_id,
        priority=PriorityCategory(model.priority),
        resolution_time_hours=model.resolution_time_hours,
        description=model.description,
    )


class SQLAlchemySLAPolicyRepository(ISLAPolicyRepository):
    """
    SQLAlchemy implementation of the SLA policy repository.

    Upserts rely on the (unit_id, priority) unique constraint.
    Lookups run in a SAVEPOINT so a failure leaves the transaction usable.
    """

    def __init__(self, session: AsyncSession):
        self._session = session

    async def get_policy(
        self,
        unit_id: str,
        priority: PriorityCategory
    ) -> Optional[SLAPolicy]:
        stmt = select(SLAPolicyModel).where(
            SLAPolicyModel.unit_id == unit_id,
            SLAPolicyModel.priority == priority.value
        )
        async with self._session.begin_nested():
            result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return _to_policy(model) if model else None

    async def list_for_unit(self, unit_id: str) -> List[SLAPolicy]:
        stmt = (
            select(SLAPolicyModel)
            .where(SLAPolicyModel.unit_id == unit_id)
            .order_by(SLAPolicyModel.priority)
        )
        result = await self._session.execute(stmt)
        return [_to_policy(m) for m in result.scalars().all()]

    async def upsert_many(self, policies: List[SLAPolicy]) -> List[SLAPolicy]:
        now = datetime.now(timezone.utc)
        for policy in policies:
            stmt = pg_insert(SLAPolicyModel).values(
                unit_id=policy.unit_id,
                priority=policy.priority.value,
                resolution_time_hours=policy.resolution_time_hours,
                description=policy.description,
                created_at=now,
                updated_at=now,
            )
            stmt = stmt.on_conflict_do_update(
                constraint="uq_sla_policies_unit_priority",
                set_={
                    "resolution_time_hours": stmt.excluded.resolution_time_hours,
                    "description": stmt.excluded.description,
                    "updated_at": now,
                }
            )
            await self._session.execute(stmt)

        await self._session.flush()
        return policies


class SQLAlchemyWorkingCalendarRepository(IWorkingCalendarRepository):
    """Reads a unit's weekly schedule and holidays.

    Reads run in a SAVEPOINT: a failed lookup degrades the deadline
    without aborting the surrounding ticket transaction.
    """

    def __init__(self, session: AsyncSession):
        self._session = session

    async def get_weekly_schedule(self, unit_id: str) -> Dict[int, DaySchedule]:
        stmt = select(WorkingHoursModel).where(WorkingHoursModel.unit_id == unit_id)
        async with self._session.begin_nested():
            result = await self._session.execute(stmt)

        schedule = {}
        for row in result.scalars().all():
            try:
                schedule[row.day_of_week] = DaySchedule(
                    is_working_day=row.is_working_day,
                    start_hour=row.start_hour,
                    end_hour=row.end_hour,
                )
            except ValueError as e:
                # A malformed row is treated like a missing one: non-working
                logger.warning(
                    "Ignoring invalid working hours row",
                    extra={"unit_id": unit_id, "day_of_week": row.day_of_week, "error": str(e)}
                )
        return schedule

    async def get_holidays(self, unit_id: str) -> List[date]:
        stmt = select(HolidayModel.holiday_date).where(HolidayModel.unit_id == unit_id)
        async with self._session.begin_nested():
            result = await self._session.execute(stmt)
        return list(result.scalars().all())
