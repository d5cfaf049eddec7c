"""
Ticket Domain Entities
======================

Pure Python views of the records owned by the Ticket Store.

The core never mutates these directly; it asks the store to create,
transition, assign or link tickets and reads the results back.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, FrozenSet, Optional

from alertbridge.config import (
    LinkType, Severity, TicketKind, TicketStatus, OPEN_STATUSES
)


@dataclass
class Ticket:
    """
    Ticket entity representing an Incident, Problem or Change.

    ``status_changed_at`` is the last time the status moved; it equals
    ``created_at`` for tickets that never transitioned.
    """

    id: int
    key: str
    kind: TicketKind
    project_key: str
    summary: str
    status: TicketStatus
    created_at: datetime

    description: str = ""
    ci_id: Optional[str] = None
    service: Optional[str] = None
    severity: Severity = Severity.MEDIUM
    assignee: Optional[str] = None
    status_changed_at: Optional[datetime] = None
    labels: FrozenSet[str] = field(default_factory=frozenset)
    custom_fields: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        if self.status_changed_at is None:
            self.status_changed_at = self.created_at

    @property
    def is_open(self) -> bool:
        """Check if ticket is still open."""
        return self.status in OPEN_STATUSES

    def has_label(self, label: str) -> bool:
        return label in self.labels

    def age_seconds(self, now: Optional[datetime] = None, since_status_change: bool = False) -> float:
        """Seconds elapsed since creation (or the last status change)."""
        now = now or datetime.now(timezone.utc)
        start = (self.status_changed_at or self.created_at) if since_status_change else self.created_at
        return (now - start).total_seconds()


@dataclass(frozen=True)
class TicketLink:
    """Directed relation between two tickets."""
    source_id: int
    destination_id: int
    link_type: LinkType
