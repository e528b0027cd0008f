"""
SLA Controllers (API Routes)
=============================

FastAPI routes for SLA administration: policy upsert and listing,
deadline preview and a manual breach sweep.

Controllers are thin - they delegate to application services.
"""

from datetime import datetime
from typing import List, Optional
from zoneinfo import ZoneInfo

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.access.domain import Actor, Permissions
from src.access.interfaces.dependencies import require_permission
from src.config import PriorityCategory, settings
from src.infrastructure.database import get_session
from src.shared.infrastructure.logging import get_logger
from src.sla.application import (
    SLAPolicyResponse,
    SLAPolicyService,
    SLAPolicyUpsertRequest,
    SLAPreviewResponse,
    SLAService,
    SweepResponse,
    WorkingCalendarResolver,
)
from src.sla.application.sweeper import BreachSweeper, IEscalationPublisher
from src.sla.infrastructure import (
    SQLAlchemySLAPolicyRepository,
    SQLAlchemyWorkingCalendarRepository,
)
from src.tickets.application import ActivityRecorder, Notifier
from src.tickets.infrastructure import (
    SQLAlchemyActivityLogRepository,
    SQLAlchemyNotificationRepository,
    SQLAlchemyTicketRepository,
    SQLAlchemyUserDirectory,
)

logger = get_logger(__name__)
router = APIRouter(prefix="/admin/sla", tags=["SLA Administration"])


# ========== Example payloads for Swagger ==========

POLICY_UPSERT_EXAMPLE = {
    "organizational_unit_id": "opd-diskominfo",
    "policies": [
        {"priority": "low", "resolution_time_hours": 40, "description": "5 working days"},
        {"priority": "medium", "resolution_time_hours": 24},
        {"priority": "high", "resolution_time_hours": 8},
        {"priority": "major", "resolution_time_hours": 4},
    ]
}


# ========== Builders ==========

def business_now() -> datetime:
    return datetime.now(ZoneInfo(settings.business_timezone))


def build_sla_service(session: AsyncSession) -> SLAService:
    """SLA service bound to one session."""
    return SLAService(
        SQLAlchemySLAPolicyRepository(session),
        WorkingCalendarResolver(SQLAlchemyWorkingCalendarRepository(session)),
        max_simulated_hours=settings.sla_max_simulated_hours,
        warning_threshold_percent=settings.sla_warning_threshold_percent,
        business_timezone=ZoneInfo(settings.business_timezone),
    )


def build_breach_sweeper(
    session: AsyncSession,
    publisher: Optional[IEscalationPublisher] = None
) -> BreachSweeper:
    """Breach sweeper bound to one session."""
    return BreachSweeper(
        SQLAlchemyTicketRepository(session),
        ActivityRecorder(SQLAlchemyActivityLogRepository(session)),
        Notifier(SQLAlchemyNotificationRepository(session)),
        SQLAlchemyUserDirectory(session),
        escalation_admin_role=settings.escalation_admin_role,
        publisher=publisher,
        clock=business_now,
        savepoint=session.begin_nested,
    )


# ========== Dependencies ==========

async def get_sla_service(
    session: AsyncSession = Depends(get_session)
) -> SLAService:
    """Get SLA service instance."""
    return build_sla_service(session)


async def get_policy_service(
    session: AsyncSession = Depends(get_session)
) -> SLAPolicyService:
    """Get SLA policy admin service instance."""
    return SLAPolicyService(SQLAlchemySLAPolicyRepository(session))


async def get_breach_sweeper(
    request: Request,
    session: AsyncSession = Depends(get_session)
) -> BreachSweeper:
    """Get a sweeper sharing the app's escalation publisher."""
    publisher = getattr(request.app.state, "escalation_publisher", None)
    return build_breach_sweeper(session, publisher)


# ========== Route Handlers ==========

@router.post(
    "",
    response_model=List[SLAPolicyResponse],
    summary="Create or replace SLA policies of a unit",
    description="""
    Upserts one policy per priority for the unit. Existing policies for the
    same (unit, priority) pair are replaced.

    **Priorities**: `low`, `medium`, `high`, `major`
    """,
    responses={200: {"description": "Saved policies"}},
    openapi_extra={"requestBody": {"content": {"application/json": {"example": POLICY_UPSERT_EXAMPLE}}}}
)
async def upsert_policies(
    body: SLAPolicyUpsertRequest,
    actor: Actor = Depends(require_permission(Permissions.SLA_MANAGE)),
    service: SLAPolicyService = Depends(get_policy_service)
) -> List[SLAPolicyResponse]:
    saved = await service.upsert_policies(
        body.organizational_unit_id,
        [item.model_dump() for item in body.policies]
    )
    logger.info(
        "SLA policies updated",
        extra={"actor_id": actor.id, "unit_id": body.organizational_unit_id}
    )
    return [
        SLAPolicyResponse(
            organizational_unit_id=p.unit_id,
            priority=p.priority,
            resolution_time_hours=p.resolution_time_hours,
            description=p.description,
        )
        for p in saved
    ]


@router.get(
    "",
    response_model=List[SLAPolicyResponse],
    summary="List SLA policies of a unit"
)
async def list_policies(
    organizational_unit_id: str = Query(..., min_length=1),
    actor: Actor = Depends(require_permission(Permissions.SLA_MANAGE)),
    service: SLAPolicyService = Depends(get_policy_service)
) -> List[SLAPolicyResponse]:
    policies = await service.list_policies(organizational_unit_id)
    return [
        SLAPolicyResponse(
            organizational_unit_id=p.unit_id,
            priority=p.priority,
            resolution_time_hours=p.resolution_time_hours,
            description=p.description,
        )
        for p in policies
    ]


@router.get(
    "/preview",
    response_model=SLAPreviewResponse,
    summary="Preview the deadline for a unit and priority",
    description="""
    Runs the business-hours calculation without touching any ticket.
    `start` defaults to now. `configured` is false when the unit has no
    policy for the priority or its calendar cannot satisfy the policy.
    """
)
async def preview_deadline(
    organizational_unit_id: str = Query(..., min_length=1),
    priority: PriorityCategory = Query(...),
    start: Optional[datetime] = Query(None),
    actor: Actor = Depends(require_permission(Permissions.SLA_MANAGE)),
    service: SLAService = Depends(get_sla_service)
) -> SLAPreviewResponse:
    start = start or business_now()
    deadline = await service.compute_deadline(organizational_unit_id, priority, start)
    return SLAPreviewResponse(
        organizational_unit_id=organizational_unit_id,
        priority=priority,
        start=start,
        sla_due=deadline.due if deadline else None,
        configured=deadline is not None,
    )


@router.post(
    "/sweep",
    response_model=SweepResponse,
    summary="Run a breach sweep now",
    description="Same job the scheduler runs periodically. Safe to repeat."
)
async def run_sweep(
    actor: Actor = Depends(require_permission(Permissions.SLA_MANAGE)),
    sweeper: BreachSweeper = Depends(get_breach_sweeper)
) -> SweepResponse:
    result = await sweeper.sweep()
    logger.info("Manual breach sweep", extra={"actor_id": actor.id, **result.to_dict()})
    return SweepResponse(**result.to_dict())


sla_router = router
