"""
Access Controllers (API Routes)
===============================

Administrative route for the RBAC cache.
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from src.access.domain import Actor, Permissions
from src.access.infrastructure import RBACConfigManager
from src.access.interfaces.dependencies import get_rbac_manager, require_permission
from src.core import ConfigurationException
from src.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/admin/rbac", tags=["Access Control"])


class RBACReloadResponse(BaseModel):
    reloaded: bool
    roles: int


@router.post(
    "/reload",
    response_model=RBACReloadResponse,
    summary="Reload the role/permission table",
    description="Re-reads the RBAC file. On failure the previous table stays active."
)
async def reload_rbac(
    actor: Actor = Depends(require_permission(Permissions.RBAC_MANAGE)),
    rbac: RBACConfigManager = Depends(get_rbac_manager)
) -> RBACReloadResponse:
    if not rbac.reload():
        raise ConfigurationException("RBAC reload failed, previous table kept")

    logger.info("RBAC reloaded on request", extra={"actor_id": actor.id})
    return RBACReloadResponse(reloaded=True, roles=len(rbac.config.roles))


access_router = router
