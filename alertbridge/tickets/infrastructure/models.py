"""
Ticket Infrastructure Models
============================

SQLAlchemy ORM models for the reference ticket store.

These are the database representations of the ticket domain entities.
They belong in the infrastructure layer, not the domain layer.
"""

from datetime import datetime, timezone
from typing import Dict, Optional

from sqlalchemy import (
    JSON, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
)
from sqlalchemy.orm import Mapped, mapped_column

from alertbridge.infrastructure.database import Base
from alertbridge.config import LinkType, Severity, TicketKind, TicketStatus


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TicketModel(Base):
    """
    Database model for the Ticket entity.

    Maps to the 'tickets' table. ``key`` is derived from project and id.
    """
    __tablename__ = "tickets"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    key: Mapped[Optional[str]] = mapped_column(String(64), unique=True, index=True, nullable=True)
    kind: Mapped[TicketKind] = mapped_column(String(20), nullable=False, index=True)
    project_key: Mapped[str] = mapped_column(String(32), nullable=False)

    # Ticket content
    summary: Mapped[str] = mapped_column(String(1000), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")

    # Correlation attributes
    ci_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, index=True)
    service: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    severity: Mapped[Severity] = mapped_column(String(20), nullable=False, default=Severity.MEDIUM)

    # Workflow
    status: Mapped[TicketStatus] = mapped_column(String(20), nullable=False, default=TicketStatus.OPEN, index=True)
    assignee: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    custom_fields: Mapped[Dict[str, str]] = mapped_column(JSON, nullable=False, default=dict)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)
    status_changed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)


class TicketLinkModel(Base):
    """Directed link between two tickets. Maps to 'ticket_links'."""
    __tablename__ = "ticket_links"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    source_id: Mapped[int] = mapped_column(ForeignKey("tickets.id"), nullable=False, index=True)
    destination_id: Mapped[int] = mapped_column(ForeignKey("tickets.id"), nullable=False, index=True)
    link_type: Mapped[LinkType] = mapped_column(String(20), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)

    __table_args__ = (
        UniqueConstraint("source_id", "destination_id", "link_type", name="uq_ticket_link"),
    )


class TicketCommentModel(Base):
    """Comment on a ticket. Maps to 'ticket_comments'."""
    __tablename__ = "ticket_comments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    ticket_id: Mapped[int] = mapped_column(ForeignKey("tickets.id"), nullable=False, index=True)
    body: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)


class TicketLabelModel(Base):
    """Label on a ticket. Maps to 'ticket_labels'."""
    __tablename__ = "ticket_labels"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    ticket_id: Mapped[int] = mapped_column(ForeignKey("tickets.id"), nullable=False, index=True)
    label: Mapped[str] = mapped_column(String(255), nullable=False)

    __table_args__ = (
        UniqueConstraint("ticket_id", "label", name="uq_ticket_label"),
    )
