"""
Ticket Domain Layer
===================

Contains:
- Entities: Ticket, TicketLink
- Change description builder

This layer has no dependencies on infrastructure - pure Python business logic.
"""

from alertbridge.tickets.domain.entities import Ticket, TicketLink
from alertbridge.tickets.domain.change import build_change_summary, build_change_description

__all__ = [
    "Ticket",
    "TicketLink",
    "build_change_summary",
    "build_change_description",
]
