"""
Correlation / Linking Service
=============================

Correlates new tickets with existing records and links them together.

Linking is best-effort: failures come back as ``Err(LinkError)`` for the
caller to surface, and never undo an already-created ticket.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from alertbridge.config import (
    LinkType, TicketKind, TransitionAction, OPEN_STATUSES
)
from alertbridge.core import Err, Ok, Result, TicketStoreException
from alertbridge.shared.infrastructure.logging import get_logger
from alertbridge.tickets.application.errors import LinkError, LinkErrorKind
from alertbridge.tickets.application.services import ITicketStore
from alertbridge.tickets.domain import Ticket

logger = get_logger(__name__)

# Change -> Problem link preference, most specific first
CHANGE_LINK_PREFERENCE = (LinkType.IMPLEMENTS, LinkType.RELATES)


@dataclass
class CloseReport:
    """Outcome of closing the issues related to a change."""
    change_id: int
    closed: List[int] = field(default_factory=list)
    skipped: List[int] = field(default_factory=list)
    failed: Dict[int, str] = field(default_factory=dict)


def select_problem(candidates: List[Ticket]) -> Optional[Ticket]:
    """Most recently created problem; ties go to the highest id."""
    if not candidates:
        return None
    return max(candidates, key=lambda t: (t.created_at, t.id))


class CorrelationService:
    """Finds related problem records for a CI and links tickets together."""

    def __init__(self, store: ITicketStore):
        self._store = store

    async def link_incident_to_problem(
        self,
        incident_id: int,
        ci_id: Optional[str]
    ) -> Result[Optional[int], LinkError]:
        """
        Link an incident to the open Problem sharing its CI.

        Returns Ok(problem_id) when linked, Ok(None) when there is no open
        problem for the CI (no problem is auto-created), Err on store failure.
        Calling it again with the same arguments creates no second link.
        """
        if not ci_id:
            return Ok(None)

        try:
            matches = await self._store.find_tickets_by_ci(
                ci_id, OPEN_STATUSES, kind=TicketKind.PROBLEM
            )
        except TicketStoreException as e:
            logger.warning(
                "Problem search failed",
                extra={"ticket_id": incident_id, "ci_id": ci_id, "error": str(e)}
            )
            return Err(LinkError(LinkErrorKind.SEARCH_FAILED, str(e)))

        candidates = [t for t in matches if t.kind == TicketKind.PROBLEM and t.is_open]
        problem = select_problem(candidates)
        if problem is None:
            logger.debug("No open problem for CI", extra={"ticket_id": incident_id, "ci_id": ci_id})
            return Ok(None)

        if len(candidates) > 1:
            logger.warning(
                "Ambiguous problem match for CI, linking most recent",
                extra={
                    "ticket_id": incident_id,
                    "ci_id": ci_id,
                    "chosen_problem_id": problem.id,
                    "candidate_problem_ids": sorted(t.id for t in candidates),
                }
            )

        try:
            created = await self._store.create_link(incident_id, problem.id, LinkType.RELATES)
        except TicketStoreException as e:
            logger.warning(
                "Failed to link incident to problem",
                extra={"ticket_id": incident_id, "problem_id": problem.id, "error": str(e)}
            )
            return Err(LinkError(LinkErrorKind.LINK_FAILED, str(e), problem_id=problem.id))

        logger.info(
            "Incident linked to problem" if created else "Incident already linked to problem",
            extra={"ticket_id": incident_id, "problem_id": problem.id, "ci_id": ci_id}
        )
        return Ok(problem.id)

    async def link_change_to_problem(
        self,
        change_id: int,
        problem_id: int
    ) -> Result[LinkType, LinkError]:
        """Link change -> problem with Implements, falling back to Relates."""
        try:
            supported = await self._store.supported_link_types()
        except TicketStoreException as e:
            return Err(LinkError(LinkErrorKind.LINK_FAILED, str(e), problem_id=problem_id))

        link_type = next((t for t in CHANGE_LINK_PREFERENCE if t in supported), None)
        if link_type is None:
            logger.warning(
                "No suitable link type for change",
                extra={"ticket_id": change_id, "problem_id": problem_id}
            )
            return Err(LinkError(
                LinkErrorKind.NO_LINK_TYPE,
                "No suitable issue link type found",
                problem_id=problem_id
            ))

        try:
            await self._store.create_link(change_id, problem_id, link_type)
        except TicketStoreException as e:
            logger.warning(
                "Failed to link change to problem",
                extra={"ticket_id": change_id, "problem_id": problem_id, "error": str(e)}
            )
            return Err(LinkError(LinkErrorKind.LINK_FAILED, str(e), problem_id=problem_id))

        return Ok(link_type)

    async def close_related_issues(self, change_id: int) -> CloseReport:
        """
        Close open Incidents/Problems on the change's outward links.

        Each ticket is handled independently; one failure does not stop the rest.
        """
        report = CloseReport(change_id=change_id)
        for link in await self._store.get_links(change_id):
            target_id = link.destination_id
            try:
                target = await self._store.get_ticket(target_id)
                if (
                    target is None
                    or target.kind not in (TicketKind.INCIDENT, TicketKind.PROBLEM)
                    or not target.is_open
                ):
                    report.skipped.append(target_id)
                    continue
                await self._store.transition_ticket(target_id, TransitionAction.CLOSE)
                report.closed.append(target_id)
            except TicketStoreException as e:
                logger.warning(
                    "Failed to close related issue",
                    extra={"ticket_id": target_id, "change_id": change_id, "error": str(e)}
                )
                report.failed[target_id] = str(e)

        logger.info(
            "Closed issues related to change",
            extra={
                "change_id": change_id,
                "closed": len(report.closed),
                "skipped": len(report.skipped),
                "failed": len(report.failed),
            }
        )
        return report
