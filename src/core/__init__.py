"""
Core Module
============

Shared core utilities and abstractions used across the application.

This module contains framework-agnostic code that defines the fundamental
building blocks of the system.
"""

from src.core.exceptions import (
    ApplicationException,
    DomainException,
    InvalidTransitionException,
    RepositoryException,
    ValidationException,
    ResourceNotFoundException,
    PermissionDeniedException,
    ConfigurationException,
)

__all__ = [
    "ApplicationException",
    "DomainException",
    "InvalidTransitionException",
    "RepositoryException",
    "ValidationException",
    "ResourceNotFoundException",
    "PermissionDeniedException",
    "ConfigurationException",
]
