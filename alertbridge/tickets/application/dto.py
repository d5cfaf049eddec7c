"""
Ticket Application DTOs
=======================

Pydantic models for ticket input and API serialization.
"""

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from alertbridge.config import LinkType, Severity, TicketKind, TicketStatus


# ========== Input DTOs ==========

class TicketFields(BaseModel):
    """Caller-supplied fields for a new ticket."""
    summary: str = Field(..., description="One-line summary")
    description: str = Field(default="", description="Free-text description")
    ci_id: Optional[str] = Field(default=None, description="Configuration item identifier")
    service: Optional[str] = Field(default=None, description="Affected service")
    severity: Severity = Field(default=Severity.MEDIUM)
    labels: List[str] = Field(default_factory=list)
    custom_fields: Dict[str, str] = Field(default_factory=dict)


class TicketInput(TicketFields):
    """Fields submitted to the ticket store."""
    project_key: str = Field(..., description="Target project")


class ChangeRequest(BaseModel):
    """Optional overrides when raising a Change from a Problem."""
    summary: Optional[str] = Field(default=None, description="Defaults to a summary derived from the problem")
    description: Optional[str] = Field(default=None)
    planned_start: Optional[datetime] = None
    planned_end: Optional[datetime] = None


# ========== Response DTOs ==========

class TicketResponse(BaseModel):
    """Ticket view returned by the API."""
    id: int
    key: str
    kind: TicketKind
    project_key: str
    summary: str
    description: str
    ci_id: Optional[str] = None
    service: Optional[str] = None
    severity: Severity
    status: TicketStatus
    assignee: Optional[str] = None
    created_at: datetime
    status_changed_at: Optional[datetime] = None
    labels: List[str] = Field(default_factory=list)
    custom_fields: Dict[str, str] = Field(default_factory=dict)
    comments: List[str] = Field(default_factory=list)

    @classmethod
    def from_domain(cls, ticket, comments: Optional[List[str]] = None) -> "TicketResponse":
        return cls(
            id=ticket.id,
            key=ticket.key,
            kind=ticket.kind,
            project_key=ticket.project_key,
            summary=ticket.summary,
            description=ticket.description,
            ci_id=ticket.ci_id,
            service=ticket.service,
            severity=ticket.severity,
            status=ticket.status,
            assignee=ticket.assignee,
            created_at=ticket.created_at,
            status_changed_at=ticket.status_changed_at,
            labels=sorted(ticket.labels),
            custom_fields=dict(ticket.custom_fields),
            comments=list(comments or []),
        )


class ChangeCreatedResponse(BaseModel):
    """Response for change creation from a problem."""
    success: bool = True
    changeId: int
    changeKey: str
    problemId: int
    linkType: Optional[LinkType] = None
    linkError: Optional[str] = None


class CloseRelatedResponse(BaseModel):
    """Response for closing issues related to a change."""
    success: bool = True
    changeId: int
    closed: List[int] = Field(default_factory=list)
    skipped: List[int] = Field(default_factory=list)
    failed: Dict[int, str] = Field(default_factory=dict)
