"""
Access Infrastructure Layer
===========================

YAML-backed role table with hot reload.
"""

from src.access.infrastructure.rbac import RBACConfig, RoleConfig, RBACConfigManager

__all__ = [
    "RBACConfig",
    "RoleConfig",
    "RBACConfigManager",
]
