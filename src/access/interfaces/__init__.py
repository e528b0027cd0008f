"""
Access Interfaces Layer
=======================

Actor resolution dependencies and the RBAC admin route.
"""

from src.access.interfaces.controllers import access_router
from src.access.interfaces.dependencies import (
    get_current_actor,
    get_rbac_manager,
    require_permission,
)

__all__ = [
    "access_router",
    "get_current_actor",
    "get_rbac_manager",
    "require_permission",
]
