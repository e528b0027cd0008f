"""
Ticket Lifecycle Module
=======================

Bounded Context for the status/stage state machine of incidents and
service requests.

Responsibilities:
- Classify priority from urgency and impact
- Start the SLA clock on assignment (or at creation for public incidents
  and service requests) and recompute it on reclassification
- Map client status tokens onto canonical statuses
- Run approval workflows and merges
- Keep the append-only activity log and user notifications
"""

__version__ = "2.0.0"
