"""
Ticket Application Layer
========================

Contains:
- Services: ticket creation, correlation and linking
- DTOs and error values
- The ITicketStore interface implemented by infrastructure adapters
"""

from alertbridge.tickets.application.dto import (
    TicketFields,
    TicketInput,
    ChangeRequest,
    TicketResponse,
    ChangeCreatedResponse,
    CloseRelatedResponse,
)
from alertbridge.tickets.application.errors import (
    CreateError,
    CreateErrorKind,
    LinkError,
    LinkErrorKind,
)
from alertbridge.tickets.application.services import ITicketStore, TicketCreationService
from alertbridge.tickets.application.correlation import CorrelationService, CloseReport

__all__ = [
    # DTOs
    "TicketFields",
    "TicketInput",
    "ChangeRequest",
    "TicketResponse",
    "ChangeCreatedResponse",
    "CloseRelatedResponse",
    # Errors
    "CreateError",
    "CreateErrorKind",
    "LinkError",
    "LinkErrorKind",
    # Services
    "ITicketStore",
    "TicketCreationService",
    "CorrelationService",
    "CloseReport",
]
