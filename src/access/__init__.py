"""
Access Control Module
=====================

Bounded Context for role based permissions.

Responsibilities:
- Hold the process-wide role -> permission table (read-through cache)
- Reload it on demand, on TTL expiry and on file change
- Answer wildcard-aware permission checks for an acting user
"""

__version__ = "2.0.0"
