"""
Enrichment Application Services
===============================

Port for the CMDB client and the CI context service built on it.
"""

from abc import ABC, abstractmethod
from typing import Dict, Optional

from alertbridge.core import TicketNotFoundException
from alertbridge.enrichment.domain import EnrichmentOutcome, NO_CI_LINKED
from alertbridge.shared.infrastructure.logging import get_logger
from alertbridge.tickets.application.services import ITicketStore

logger = get_logger(__name__)


class ICMDBClient(ABC):
    """Interface for CI enrichment. Implementations never raise."""

    @abstractmethod
    async def enrich(self, ci_id: str) -> EnrichmentOutcome:
        """Fetch CI attributes with a bounded wait."""


class CIContextService:
    """Builds the CI context map shown next to a ticket."""

    def __init__(self, store: ITicketStore, cmdb_client: ICMDBClient):
        self._store = store
        self._cmdb = cmdb_client

    async def get_context(self, ticket_id: int) -> Dict[str, Optional[str]]:
        """
        Context map for the ticket's CI.

        Raises:
            TicketNotFoundException: the ticket does not exist
        """
        ticket = await self._store.get_ticket(ticket_id)
        if ticket is None:
            raise TicketNotFoundException(ticket_id)

        if not ticket.ci_id or not ticket.ci_id.strip():
            logger.debug("No CI value on ticket", extra={"ticket_id": ticket_id})
            return {"ciName": NO_CI_LINKED}

        ci_id = ticket.ci_id.strip()
        outcome = await self._cmdb.enrich(ci_id)
        return outcome.to_context(ci_id)
