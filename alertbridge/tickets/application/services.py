"""
Ticket Application Services
===========================

Application services orchestrate ticket creation through the Ticket Store.

Following SOLID principles:
- Single Responsibility: Each service has one clear purpose
- Dependency Inversion: Depend on the ITicketStore abstraction, not on a
  concrete tracker
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Sequence

from alertbridge.config import (
    LinkType, TicketKind, TicketStatus, TransitionAction
)
from alertbridge.config.runtime import IConfigProvider
from alertbridge.core import Err, Ok, Result, TicketStoreException
from alertbridge.shared.infrastructure.logging import get_logger
from alertbridge.tickets.application.dto import ChangeRequest, TicketFields, TicketInput
from alertbridge.tickets.application.errors import CreateError
from alertbridge.tickets.domain import (
    Ticket, TicketLink, build_change_description, build_change_summary
)

logger = get_logger(__name__)


# ========== Ticket Store Interface (Dependency Inversion) ==========

class ITicketStore(ABC):
    """
    Interface of the ticket-tracking backend.

    Implementations raise TicketStoreException (or TicketNotFoundException)
    on failure. Reads return settled, committed state only.
    """

    @abstractmethod
    async def validate_create(self, kind: TicketKind, fields: TicketInput) -> Dict[str, str]:
        """Check fields against the store's schema rules; returns field -> problem."""

    @abstractmethod
    async def create_ticket(self, kind: TicketKind, fields: TicketInput) -> Ticket:
        """Create and commit a ticket."""

    @abstractmethod
    async def get_ticket(self, ticket_id: int) -> Optional[Ticket]:
        """Get ticket by id, None if it does not exist."""

    @abstractmethod
    async def find_tickets_by_ci(
        self,
        ci_id: str,
        statuses: Sequence[TicketStatus],
        kind: Optional[TicketKind] = None
    ) -> List[Ticket]:
        """Tickets carrying the CI in one of the given statuses."""

    @abstractmethod
    async def find_open_tickets(self, kinds: Sequence[TicketKind]) -> List[Ticket]:
        """All open tickets of the given kinds."""

    @abstractmethod
    async def get_links(self, ticket_id: int) -> List[TicketLink]:
        """Outward links of a ticket."""

    @abstractmethod
    async def create_link(self, source_id: int, destination_id: int, link_type: LinkType) -> bool:
        """Create a link; False when the identical link already exists."""

    @abstractmethod
    async def supported_link_types(self) -> List[LinkType]:
        """Link types this store can create."""

    @abstractmethod
    async def transition_ticket(self, ticket_id: int, action: TransitionAction) -> Ticket:
        """Apply a workflow action."""

    @abstractmethod
    async def assign_ticket(self, ticket_id: int, assignee: str) -> None:
        """Set the assignee."""

    @abstractmethod
    async def add_comment(self, ticket_id: int, text: str) -> None:
        """Append a comment."""

    @abstractmethod
    async def add_label(self, ticket_id: int, label: str) -> bool:
        """Add a label; False when the ticket already has it."""

    @abstractmethod
    async def get_comments(self, ticket_id: int) -> List[str]:
        """Comment bodies, oldest first."""


# ========== Application Services ==========

class TicketCreationService:
    """
    Builds and submits Incident, Problem and Change records.

    Every create call runs: build input, validate against the store, submit.
    """

    def __init__(self, store: ITicketStore, config_provider: IConfigProvider):
        self._store = store
        self._config_provider = config_provider

    async def create_incident(self, fields: TicketFields) -> Result[Ticket, CreateError]:
        """
        Create an Incident, then auto-assign it from the service mapping.

        Assignment is a best-effort side effect: its failure is logged and
        never fails or rolls back the creation.
        """
        result = await self._create(TicketKind.INCIDENT, self._build_input(fields))
        if isinstance(result, Err):
            return result
        return Ok(await self._auto_assign(result.value))

    async def create_problem(self, fields: TicketFields) -> Result[Ticket, CreateError]:
        """Create a Problem record."""
        return await self._create(TicketKind.PROBLEM, self._build_input(fields))

    async def create_change_from_problem(
        self,
        problem: Ticket,
        request: Optional[ChangeRequest] = None
    ) -> Result[Ticket, CreateError]:
        """
        Create a Change in the problem's project, copying its CI when present.

        A problem without a CI is not an error; the change simply has none.
        """
        request = request or ChangeRequest()
        custom_fields = {"source_problem": problem.key}
        if request.planned_start:
            custom_fields["planned_start"] = request.planned_start.isoformat()
        if request.planned_end:
            custom_fields["planned_end"] = request.planned_end.isoformat()

        change_input = TicketInput(
            project_key=problem.project_key,
            summary=request.summary or build_change_summary(problem),
            description=request.description or build_change_description(problem),
            ci_id=problem.ci_id,
            service=problem.service,
            severity=problem.severity,
            custom_fields=custom_fields,
        )
        return await self._create(TicketKind.CHANGE, change_input)

    async def get_ticket_key(self, ticket_id: int) -> Optional[str]:
        ticket = await self._store.get_ticket(ticket_id)
        return ticket.key if ticket else None

    def _build_input(self, fields: TicketFields) -> TicketInput:
        project_key = self._config_provider.get_config().tickets.project_key
        return TicketInput(project_key=project_key, **fields.model_dump())

    async def _create(self, kind: TicketKind, ticket_input: TicketInput) -> Result[Ticket, CreateError]:
        try:
            problems = await self._store.validate_create(kind, ticket_input)
        except TicketStoreException as e:
            logger.error(
                "Ticket validation call failed",
                extra={"kind": kind.value, "error": str(e)}
            )
            return Err(CreateError.creation_failed(str(e)))

        if problems:
            logger.warning(
                "Ticket input rejected by store schema",
                extra={"kind": kind.value, "fields": sorted(problems)}
            )
            return Err(CreateError.validation_failed(problems))

        try:
            ticket = await self._store.create_ticket(kind, ticket_input)
        except TicketStoreException as e:
            logger.error(
                "Ticket creation failed",
                extra={"kind": kind.value, "error": str(e)}
            )
            return Err(CreateError.creation_failed(str(e)))

        logger.info(
            "Ticket created",
            extra={"kind": kind.value, "ticket_id": ticket.id, "ticket_key": ticket.key}
        )
        return Ok(ticket)

    async def _auto_assign(self, ticket: Ticket) -> Ticket:
        assignee = self._config_provider.get_config().tickets.assignee_for_service(ticket.service)
        if not assignee:
            return ticket

        try:
            await self._store.assign_ticket(ticket.id, assignee)
        except TicketStoreException as e:
            logger.warning(
                "Auto-assignment failed",
                extra={"ticket_id": ticket.id, "assignee": assignee, "error": str(e)}
            )
            return ticket

        ticket.assignee = assignee
        return ticket
