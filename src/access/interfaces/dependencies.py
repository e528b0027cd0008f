"""
Access Dependencies
===================

FastAPI dependencies resolving the acting user.

Identity is asserted by the upstream gateway in ``X-Actor-*`` headers;
permissions come from the process-wide RBAC cache.
"""

from typing import Callable, Optional

from fastapi import Depends, Header, HTTPException, Request

from src.access.domain import Actor
from src.access.infrastructure import RBACConfigManager
from src.core import PermissionDeniedException


def get_rbac_manager(request: Request) -> RBACConfigManager:
    """RBAC cache from app state."""
    manager = getattr(request.app.state, "rbac", None)
    if manager is None:
        raise HTTPException(status_code=503, detail="RBAC cache not initialized")
    return manager


def get_current_actor(
    x_actor_id: Optional[str] = Header(None),
    x_actor_role: Optional[str] = Header(None),
    x_actor_unit: Optional[str] = Header(None),
    rbac: RBACConfigManager = Depends(get_rbac_manager)
) -> Actor:
    # Sync on purpose: runs in the threadpool, where a stale role table is reloaded from disk
    return Actor(
        id=x_actor_id,
        role=x_actor_role,
        unit_id=x_actor_unit,
        permissions=rbac.permissions_for(x_actor_role),
    )


def require_permission(permission: str) -> Callable:
    """Dependency factory for routes guarded by a single permission."""

    async def dependency(actor: Actor = Depends(get_current_actor)) -> Actor:
        if not actor.can(permission):
            raise PermissionDeniedException(permission, actor.role)
        return actor

    return dependency
