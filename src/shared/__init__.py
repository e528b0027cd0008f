"""
Shared Kernel Module
====================

This module contains shared infrastructure used across all bounded
contexts (Access, SLA Engine and Ticket Lifecycle).

Architecture Pattern: Modular Monolith
- Each module (access, sla, tickets) is a bounded context
- Shared kernel contains only generic infrastructure

DO NOT add business logic from SLA or Tickets to shared kernel.
"""

__version__ = "2.0.0"
