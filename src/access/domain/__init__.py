"""
Access Domain Layer
===================

Pure permission matching with no infrastructure dependencies.
"""

from src.access.domain.entities import Actor, PermissionSet, Permissions, SYSTEM_ACTOR

__all__ = [
    "Actor",
    "PermissionSet",
    "Permissions",
    "SYSTEM_ACTOR",
]
