"""
Core Exceptions
================

Custom exceptions for the application following clean architecture principles.

These exceptions define domain-specific errors that can be caught and handled
appropriately at the application boundaries.
"""

from typing import Optional


class ApplicationException(Exception):
    """Base exception for all application errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class DomainException(ApplicationException):
    """Base exception for domain logic violations."""


class InvalidTransitionException(DomainException):
    """Raised when a ticket cannot move from its current state."""

    def __init__(
        self,
        ticket_id: str,
        current_status: str,
        operation: str,
        details: Optional[dict] = None
    ):
        self.ticket_id = ticket_id
        self.current_status = current_status
        self.operation = operation
        super().__init__(
            f"Cannot {operation} ticket {ticket_id} in status '{current_status}'",
            details or {"ticket_id": ticket_id, "status": current_status}
        )


class RepositoryException(ApplicationException):
    """Base exception for repository/data access errors."""


class ValidationException(ApplicationException):
    """Exception for validation errors."""


class ResourceNotFoundException(ApplicationException):
    """Exception when a requested resource is not found."""

    def __init__(
        self,
        resource_type: str,
        resource_id: Optional[str] = None,
        details: Optional[dict] = None
    ):
        self.resource_type = resource_type
        self.resource_id = resource_id
        message = f"{resource_type}"
        if resource_id:
            message += f" with id '{resource_id}'"
        message += " not found"
        super().__init__(message, details)


class PermissionDeniedException(ApplicationException):
    """Exception when the acting user lacks the required permission."""

    def __init__(
        self,
        permission: str,
        role: Optional[str] = None,
        details: Optional[dict] = None
    ):
        self.permission = permission
        self.role = role
        super().__init__(
            f"Permission '{permission}' required",
            details or {"required": permission, "role": role}
        )


class ConfigurationException(ApplicationException):
    """Exception for configuration errors."""

