"""
Ticket Controllers (API Routes)
===============================

FastAPI routes for the ticket lifecycle.

Controllers are thin - they resolve the actor, build the lifecycle
service for the request's session and delegate.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.access.domain import Actor
from src.access.interfaces.dependencies import get_current_actor
from src.config import settings
from src.infrastructure.database import get_session
from src.shared.infrastructure.logging import get_logger
from src.sla.interfaces.controllers import build_sla_service, business_now
from src.tickets.application import (
    ActivityRecorder,
    ApprovalDecisionRequest,
    AssignRequest,
    ClassifyRequest,
    IncidentCreateRequest,
    MergeRequest,
    MergeResponse,
    Notifier,
    ProgressUpdateRequest,
    PublicIncidentCreateRequest,
    ServiceRequestCreateRequest,
    SLAStatusResponse,
    TicketLifecycleService,
    TicketResponse,
)
from src.tickets.infrastructure import (
    SQLAlchemyActivityLogRepository,
    SQLAlchemyApprovalRepository,
    SQLAlchemyNotificationRepository,
    SQLAlchemyProgressUpdateRepository,
    SQLAlchemyTicketRepository,
)

logger = get_logger(__name__)
router = APIRouter(tags=["Ticket Lifecycle"])


# ========== Example payloads for Swagger ==========

PROGRESS_UPDATE_EXAMPLE = {
    "status_change": "selesai",
    "handling_description": "Replaced the faulty switch port",
    "final_solution": "Port 12 replaced, link verified"
}


# ========== Dependencies ==========

async def get_lifecycle_service(
    session: AsyncSession = Depends(get_session)
) -> TicketLifecycleService:
    """Get a lifecycle service bound to the request's transaction."""
    return TicketLifecycleService(
        SQLAlchemyTicketRepository(session),
        SQLAlchemyApprovalRepository(session),
        SQLAlchemyProgressUpdateRepository(session),
        ActivityRecorder(SQLAlchemyActivityLogRepository(session)),
        Notifier(SQLAlchemyNotificationRepository(session)),
        build_sla_service(session),
        default_urgency=settings.default_urgency,
        default_impact=settings.default_impact,
        clock=business_now,
    )


# ========== Creation ==========

@router.post(
    "/incidents",
    response_model=TicketResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Report an incident",
    description="Internal incident. The SLA clock starts when the ticket is assigned."
)
async def create_incident(
    body: IncidentCreateRequest,
    actor: Actor = Depends(get_current_actor),
    service: TicketLifecycleService = Depends(get_lifecycle_service)
) -> TicketResponse:
    ticket = await service.create_incident(actor, body)
    return TicketResponse.model_validate(ticket)


@router.post(
    "/public/incidents",
    response_model=TicketResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Submit an incident without an account",
    description="The SLA clock starts at submission. A unit without a policy gets an empty deadline."
)
async def create_public_incident(
    body: PublicIncidentCreateRequest,
    service: TicketLifecycleService = Depends(get_lifecycle_service)
) -> TicketResponse:
    ticket = await service.create_public_incident(body)
    return TicketResponse.model_validate(ticket)


@router.post(
    "/requests",
    response_model=TicketResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a service request",
    description="""
    With `approval_levels` the request waits in `pending_approval` until every
    listed approver role has approved it.
    """
)
async def create_service_request(
    body: ServiceRequestCreateRequest,
    actor: Actor = Depends(get_current_actor),
    service: TicketLifecycleService = Depends(get_lifecycle_service)
) -> TicketResponse:
    ticket = await service.create_service_request(actor, body)
    return TicketResponse.model_validate(ticket)


# ========== Queries ==========

@router.get("/tickets/{ticket_id}", response_model=TicketResponse, summary="Get a ticket")
async def get_ticket(
    ticket_id: str,
    service: TicketLifecycleService = Depends(get_lifecycle_service)
) -> TicketResponse:
    ticket = await service.get_ticket(ticket_id)
    return TicketResponse.model_validate(ticket)


@router.get(
    "/tickets/{ticket_id}/sla",
    response_model=SLAStatusResponse,
    summary="Get a ticket's SLA status",
    description="`not_started`, `on_track`, `at_risk`, `breached` or `met`."
)
async def get_ticket_sla(
    ticket_id: str,
    service: TicketLifecycleService = Depends(get_lifecycle_service)
) -> SLAStatusResponse:
    snapshot = await service.get_sla_status(ticket_id)
    return SLAStatusResponse(**snapshot.to_dict())


# ========== Transitions ==========

@router.put(
    "/tickets/{ticket_id}/assign",
    response_model=TicketResponse,
    summary="Assign or reassign a technician",
    description="Restarts the SLA clock at the assignment instant."
)
async def assign_ticket(
    ticket_id: str,
    body: AssignRequest,
    actor: Actor = Depends(get_current_actor),
    service: TicketLifecycleService = Depends(get_lifecycle_service)
) -> TicketResponse:
    ticket = await service.assign(actor, ticket_id, body.technician_id)
    return TicketResponse.model_validate(ticket)


@router.put(
    "/tickets/{ticket_id}/classify",
    response_model=TicketResponse,
    summary="Change urgency and impact",
    description="Recomputes priority and the deadline from the existing clock start."
)
async def classify_ticket(
    ticket_id: str,
    body: ClassifyRequest,
    actor: Actor = Depends(get_current_actor),
    service: TicketLifecycleService = Depends(get_lifecycle_service)
) -> TicketResponse:
    ticket = await service.classify(actor, ticket_id, body.urgency, body.impact)
    return TicketResponse.model_validate(ticket)


@router.post(
    "/tickets/{ticket_id}/progress",
    response_model=TicketResponse,
    summary="Record a progress update",
    openapi_extra={"requestBody": {"content": {"application/json": {"example": PROGRESS_UPDATE_EXAMPLE}}}}
)
async def record_progress(
    ticket_id: str,
    body: ProgressUpdateRequest,
    actor: Actor = Depends(get_current_actor),
    service: TicketLifecycleService = Depends(get_lifecycle_service)
) -> TicketResponse:
    ticket = await service.record_progress(actor, ticket_id, body)
    return TicketResponse.model_validate(ticket)


@router.post(
    "/requests/{ticket_id}/approve",
    response_model=TicketResponse,
    summary="Approve the caller's pending approval step"
)
async def approve_request(
    ticket_id: str,
    body: ApprovalDecisionRequest,
    actor: Actor = Depends(get_current_actor),
    service: TicketLifecycleService = Depends(get_lifecycle_service)
) -> TicketResponse:
    ticket = await service.approve(actor, ticket_id, body.notes)
    return TicketResponse.model_validate(ticket)


@router.post(
    "/requests/{ticket_id}/reject",
    response_model=TicketResponse,
    summary="Reject a service request",
    description="Notes are required. Rejection is final."
)
async def reject_request(
    ticket_id: str,
    body: ApprovalDecisionRequest,
    actor: Actor = Depends(get_current_actor),
    service: TicketLifecycleService = Depends(get_lifecycle_service)
) -> TicketResponse:
    ticket = await service.reject(actor, ticket_id, body.notes)
    return TicketResponse.model_validate(ticket)


@router.post(
    "/incidents/merge",
    response_model=MergeResponse,
    summary="Merge duplicate tickets into one"
)
async def merge_tickets(
    body: MergeRequest,
    actor: Actor = Depends(get_current_actor),
    service: TicketLifecycleService = Depends(get_lifecycle_service)
) -> MergeResponse:
    outcome = await service.merge(
        actor, body.source_ticket_ids, body.target_ticket_id, body.reason
    )
    return MergeResponse(
        target_ticket_id=outcome.target_id,
        merged_ticket_ids=outcome.merged_ids,
    )


tickets_router = router
