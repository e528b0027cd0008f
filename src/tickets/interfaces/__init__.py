"""
Ticket Interfaces Layer
=======================

FastAPI route handlers for the ticket lifecycle.
"""

from src.tickets.interfaces.controllers import tickets_router

__all__ = ["tickets_router"]
