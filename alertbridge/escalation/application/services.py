"""
Escalation Application Services
===============================

Executes planned escalations through the ticket store.

The service holds no memory of what it escalated: idempotency comes from the
marker label read back from the store on the next sweep. A failure on one
ticket is recorded and the sweep moves on.
"""

import asyncio
import itertools
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional

from alertbridge.config.runtime import IConfigProvider
from alertbridge.core import TicketStoreException
from alertbridge.escalation.domain import (
    ESCALATABLE_KINDS, EscalationAction, EscalationPolicy, SweepState,
    count_breaching, plan_escalations,
)
from alertbridge.shared.infrastructure.logging import get_logger
from alertbridge.tickets.application.services import ITicketStore

logger = get_logger(__name__)


class EscalationErrorKind(str, Enum):
    SCAN_FAILED = "scan_failed"
    REASSIGN_FAILED = "reassign_failed"
    COMMENT_FAILED = "comment_failed"
    MARKER_FAILED = "marker_failed"


@dataclass(frozen=True)
class EscalationError:
    kind: EscalationErrorKind
    message: str
    ticket_id: Optional[int] = None


@dataclass
class SweepReport:
    """Summary of one sweep."""
    started_at: datetime
    finished_at: Optional[datetime] = None
    scanned: int = 0
    breaching: int = 0
    escalated: int = 0
    skipped: int = 0
    failures: List[EscalationError] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "scanned": self.scanned,
            "breaching": self.breaching,
            "escalated": self.escalated,
            "skipped": self.skipped,
            "failures": [
                {"kind": f.kind.value, "ticket_id": f.ticket_id, "message": f.message}
                for f in self.failures
            ],
        }


class EscalationService:
    """Runs escalation sweeps: IDLE -> SCANNING -> ESCALATING -> IDLE."""

    def __init__(self, store: ITicketStore, config_provider: IConfigProvider):
        self._store = store
        self._config_provider = config_provider
        self._sweep_states: Dict[int, SweepState] = {}
        self._sweep_ids = itertools.count(1)
        self._last_report: Optional[SweepReport] = None

    @property
    def state(self) -> SweepState:
        """Most advanced state among in-flight sweeps; IDLE when none runs."""
        states = set(self._sweep_states.values())
        if SweepState.ESCALATING in states:
            return SweepState.ESCALATING
        if SweepState.SCANNING in states:
            return SweepState.SCANNING
        return SweepState.IDLE

    @property
    def active_sweeps(self) -> int:
        return len(self._sweep_states)

    @property
    def last_report(self) -> Optional[SweepReport]:
        return self._last_report

    async def run_sweep(self, now: Optional[datetime] = None) -> SweepReport:
        """Scan open tickets and escalate every breach not yet marked."""
        now = now or datetime.now(timezone.utc)
        config = self._config_provider.get_config().escalation
        policy = EscalationPolicy.from_config(config)
        report = SweepReport(started_at=now)
        sweep_id = next(self._sweep_ids)

        try:
            self._sweep_states[sweep_id] = SweepState.SCANNING
            try:
                tickets = await self._store.find_open_tickets(ESCALATABLE_KINDS)
            except TicketStoreException as e:
                logger.error("Escalation scan failed", extra={"error": str(e)})
                report.failures.append(EscalationError(EscalationErrorKind.SCAN_FAILED, str(e)))
                return report

            actions = plan_escalations(now, tickets, policy)
            report.scanned = len(tickets)
            report.breaching = count_breaching(now, tickets, policy)
            report.skipped = report.breaching - len(actions)

            self._sweep_states[sweep_id] = SweepState.ESCALATING
            semaphore = asyncio.Semaphore(config.max_concurrency)

            async def bounded(action: EscalationAction) -> Optional[EscalationError]:
                async with semaphore:
                    return await self._execute(action)

            results = await asyncio.gather(*(bounded(action) for action in actions))
            for error in results:
                if error is None:
                    report.escalated += 1
                else:
                    report.failures.append(error)
        finally:
            self._sweep_states.pop(sweep_id, None)
            report.finished_at = datetime.now(timezone.utc)
            self._last_report = report

        logger.info(
            "Escalation sweep complete",
            extra={
                "tickets_scanned": report.scanned,
                "tickets_breaching": report.breaching,
                "tickets_escalated": report.escalated,
                "tickets_skipped": report.skipped,
                "failures": len(report.failures),
            }
        )
        return report

    async def _execute(self, action: EscalationAction) -> Optional[EscalationError]:
        """Reassign, comment, then mark. Stops at the first failing step."""
        if action.reassign_to:
            try:
                await self._store.assign_ticket(action.ticket_id, action.reassign_to)
            except TicketStoreException as e:
                return self._failed(EscalationErrorKind.REASSIGN_FAILED, action, e)

        try:
            await self._store.add_comment(action.ticket_id, action.comment)
        except TicketStoreException as e:
            return self._failed(EscalationErrorKind.COMMENT_FAILED, action, e)

        try:
            await self._store.add_label(action.ticket_id, action.marker)
        except TicketStoreException as e:
            return self._failed(EscalationErrorKind.MARKER_FAILED, action, e)

        logger.info(
            "Ticket escalated",
            extra={
                "ticket_id": action.ticket_id,
                "ticket_key": action.ticket_key,
                "window": action.window,
                "assignee": action.reassign_to,
            }
        )
        return None

    @staticmethod
    def _failed(kind: EscalationErrorKind, action: EscalationAction, exc: Exception) -> EscalationError:
        logger.warning(
            "Escalation step failed",
            extra={"ticket_id": action.ticket_id, "step": kind.value, "error": str(exc)}
        )
        return EscalationError(kind, str(exc), ticket_id=action.ticket_id)
