"""
Ticket Infrastructure Layer
===========================

Infrastructure implementations for the ticket store:
- Models: SQLAlchemy ORM models
- Repositories: SQLAlchemyTicketStore (ITicketStore)
"""

from alertbridge.tickets.infrastructure.models import (
    TicketModel,
    TicketLinkModel,
    TicketCommentModel,
    TicketLabelModel,
)
from alertbridge.tickets.infrastructure.repositories import SQLAlchemyTicketStore

__all__ = [
    "TicketModel",
    "TicketLinkModel",
    "TicketCommentModel",
    "TicketLabelModel",
    "SQLAlchemyTicketStore",
]
