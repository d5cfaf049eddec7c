"""
Escalation Policy
=================

Pure planning of SLA escalations.

``plan_escalations(now, open_tickets, policy)`` decides what to do for every
breaching ticket without touching the store. A ticket that has been open for
``age`` seconds under a threshold of ``t`` seconds is in breach window
``n = age // t``; window ``n`` is handled once, recorded by the label
``"{marker_prefix}-w{n}"`` on the ticket itself (``"{marker_prefix}-s{epoch}-w{n}"``
when age is measured from the last status change at ``epoch``).
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from alertbridge.config import Severity, TicketKind
from alertbridge.config.runtime import DEFAULT_SLA_THRESHOLDS_MINUTES, EscalationConfig
from alertbridge.tickets.domain import Ticket

ESCALATABLE_KINDS = (TicketKind.INCIDENT, TicketKind.PROBLEM)


class SweepState(str, Enum):
    """Lifecycle of one escalation sweep."""
    IDLE = "idle"
    SCANNING = "scanning"
    ESCALATING = "escalating"


@dataclass(frozen=True)
class EscalationPolicy:
    """Thresholds (minutes per severity), reassignment tiers and marker settings."""
    thresholds_minutes: Dict[Severity, int] = field(
        default_factory=lambda: {
            severity: DEFAULT_SLA_THRESHOLDS_MINUTES[severity.value.lower()]
            for severity in Severity
        }
    )
    tiers: Tuple[str, ...] = ("l2-support", "l3-support")
    marker_prefix: str = "sla-escalated"
    measure_from_status_change: bool = False

    @classmethod
    def from_config(cls, config: EscalationConfig) -> "EscalationPolicy":
        return cls(
            thresholds_minutes={
                severity: config.sla_thresholds_minutes[severity.value.lower()]
                for severity in Severity
            },
            tiers=tuple(config.tiers),
            marker_prefix=config.marker_prefix,
            measure_from_status_change=config.measure_from == "status_change",
        )

    def threshold_seconds(self, severity: Severity) -> int:
        minutes = self.thresholds_minutes.get(
            severity,
            DEFAULT_SLA_THRESHOLDS_MINUTES[severity.value.lower()]
        )
        return minutes * 60

    def marker(self, window: int, ticket: Optional[Ticket] = None) -> str:
        """
        Label recording that ``window`` was handled.

        When measuring from the last status change the label also carries that
        timestamp, so windows restart cleanly after every status change.
        """
        if self.measure_from_status_change and ticket is not None and ticket.status_changed_at:
            return f"{self.marker_prefix}-s{int(ticket.status_changed_at.timestamp())}-w{window}"
        return f"{self.marker_prefix}-w{window}"

    def breach_window(self, ticket: Ticket, now: datetime) -> int:
        """0 while within SLA, otherwise the number of elapsed thresholds."""
        age = ticket.age_seconds(now, since_status_change=self.measure_from_status_change)
        if age <= 0:
            return 0
        return int(age // self.threshold_seconds(ticket.severity))


@dataclass(frozen=True)
class EscalationAction:
    """
    One escalation to perform.

    Executed as: reassign (when ``reassign_to`` is set), comment, then the
    marker label last so a partial failure is retried on the next sweep.
    """
    ticket_id: int
    ticket_key: str
    window: int
    marker: str
    comment: str
    reassign_to: Optional[str] = None


def build_comment(ticket: Ticket, window: int, policy: EscalationPolicy, reassign_to: Optional[str]) -> str:
    threshold_minutes = policy.threshold_seconds(ticket.severity) // 60
    text = (
        f"SLA breached: {ticket.severity.value} {ticket.kind.value.lower()} open beyond "
        f"{threshold_minutes * window} minutes (breach window {window})."
    )
    if reassign_to:
        return f"{text} Escalated to {reassign_to}."
    return f"{text} All escalation tiers exhausted; attention required."


def plan_escalations(
    now: datetime,
    open_tickets: Iterable[Ticket],
    policy: EscalationPolicy
) -> List[EscalationAction]:
    """
    Escalation actions due at ``now``.

    Only open Incident/Problem tickets qualify. A ticket already carrying the
    marker for its current window is skipped. Window ``n`` reassigns to
    ``tiers[n-1]`` while tiers remain, and only comments afterwards.
    """
    actions: List[EscalationAction] = []
    for ticket in open_tickets:
        if ticket.kind not in ESCALATABLE_KINDS or not ticket.is_open:
            continue

        window = policy.breach_window(ticket, now)
        if window < 1:
            continue

        marker = policy.marker(window, ticket)
        if ticket.has_label(marker):
            continue

        reassign_to = policy.tiers[window - 1] if window <= len(policy.tiers) else None
        actions.append(EscalationAction(
            ticket_id=ticket.id,
            ticket_key=ticket.key,
            window=window,
            marker=marker,
            comment=build_comment(ticket, window, policy, reassign_to),
            reassign_to=reassign_to,
        ))
    return actions


def count_breaching(now: datetime, tickets: Sequence[Ticket], policy: EscalationPolicy) -> int:
    return sum(
        1 for ticket in tickets
        if ticket.kind in ESCALATABLE_KINDS and ticket.is_open and policy.breach_window(ticket, now) >= 1
    )
