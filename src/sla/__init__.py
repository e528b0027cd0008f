"""
SLA Engine Module
=================

Bounded Context for business-hours Service Level Agreements.

Responsibilities:
- Resolve an organizational unit's working calendar
- Compute resolution deadlines counting only working hours
- Store per-unit SLA policies (upsert on unit + priority)
- Report a ticket's current SLA state
- Sweep overdue tickets, flag them once and escalate
"""

__version__ = "2.0.0"
