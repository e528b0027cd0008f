"""
Access Domain Entities
======================

Permission strings have the form ``subject.action`` (``tickets.assign``).
Two wildcard forms are understood:

- ``*`` grants every permission
- ``subject.*`` grants every action on ``subject``
"""

from dataclasses import dataclass, field
from typing import FrozenSet, Iterable, Optional

WILDCARD = "*"


@dataclass(frozen=True)
class PermissionSet:
    """Immutable set of granted permission strings."""

    grants: FrozenSet[str] = field(default_factory=frozenset)

    @classmethod
    def of(cls, permissions: Iterable[str]) -> "PermissionSet":
        return cls(frozenset(p.strip() for p in permissions if p and p.strip()))

    def allows(self, permission: str) -> bool:
        """Check a single permission against exact and wildcard grants."""
        if WILDCARD in self.grants or permission in self.grants:
            return True

        subject = permission.split(".", 1)[0]
        return f"{subject}.*" in self.grants

    def __len__(self) -> int:
        return len(self.grants)


@dataclass(frozen=True)
class Actor:
    """
    The user performing an operation.

    Identity is asserted by the upstream gateway; this core only consumes it.
    """

    id: Optional[str]
    role: Optional[str] = None
    unit_id: Optional[str] = None
    permissions: PermissionSet = field(default_factory=PermissionSet)

    def can(self, permission: str) -> bool:
        return self.permissions.allows(permission)


# Background jobs and anonymous public submissions act as the system user.
SYSTEM_ACTOR = Actor(id=None, role="system")


class Permissions:
    """Permission strings checked by the ticket lifecycle."""
    INCIDENTS_CREATE = "incidents.create"
    REQUESTS_CREATE = "requests.create"
    TICKETS_ASSIGN = "tickets.assign"
    TICKETS_REASSIGN = "tickets.reassign"
    TICKETS_WRITE = "tickets.write"
    TICKETS_UPDATE_PROGRESS = "tickets.update_progress"
    SLA_MANAGE = "sla.manage"
    RBAC_MANAGE = "rbac.manage"
