"""
Service Container
=================

Explicit dependency wiring. Every component receives its collaborators as
constructor arguments; nothing is looked up from a global registry.

Usage:
    container = build_container(settings, config_provider, session_maker)
    app = create_app(container=container)
"""

from dataclasses import dataclass
from typing import Optional

import httpx
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from alertbridge.config import Settings
from alertbridge.config.runtime import IConfigProvider
from alertbridge.enrichment.application import CIContextService, ICMDBClient
from alertbridge.enrichment.infrastructure import CMDBClient
from alertbridge.escalation.application import EscalationService
from alertbridge.escalation.infrastructure import EscalationScheduler
from alertbridge.ingestion.application import (
    AlertIngestionService, AlertValidator, WebhookAuthenticator
)
from alertbridge.tickets.application import (
    CorrelationService, ITicketStore, TicketCreationService
)
from alertbridge.tickets.infrastructure import SQLAlchemyTicketStore


@dataclass
class ServiceContainer:
    """All long-lived services of one application instance."""
    settings: Settings
    config_provider: IConfigProvider
    store: ITicketStore
    cmdb_client: ICMDBClient
    ticket_service: TicketCreationService
    correlation_service: CorrelationService
    ci_context_service: CIContextService
    ingestion_service: AlertIngestionService
    escalation_service: EscalationService
    scheduler: EscalationScheduler

    async def close(self) -> None:
        await self.scheduler.stop()
        if isinstance(self.cmdb_client, CMDBClient):
            await self.cmdb_client.close()


def build_container(
    settings: Settings,
    config_provider: IConfigProvider,
    session_maker: Optional[async_sessionmaker[AsyncSession]] = None,
    store: Optional[ITicketStore] = None,
    cmdb_client: Optional[ICMDBClient] = None,
    cmdb_transport: Optional[httpx.AsyncBaseTransport] = None,
) -> ServiceContainer:
    """
    Wire the services.

    Either ``store`` or ``session_maker`` must be given. ``cmdb_transport`` is
    handed to the default CMDB client (tests pass an httpx MockTransport).
    """
    if store is None:
        if session_maker is None:
            raise ValueError("build_container needs a store or a session_maker")
        store = SQLAlchemyTicketStore(session_maker)

    if cmdb_client is None:
        cmdb_client = CMDBClient(config_provider, transport=cmdb_transport)

    ticket_service = TicketCreationService(store, config_provider)
    correlation_service = CorrelationService(store)
    escalation_service = EscalationService(store, config_provider)

    return ServiceContainer(
        settings=settings,
        config_provider=config_provider,
        store=store,
        cmdb_client=cmdb_client,
        ticket_service=ticket_service,
        correlation_service=correlation_service,
        ci_context_service=CIContextService(store, cmdb_client),
        ingestion_service=AlertIngestionService(
            authenticator=WebhookAuthenticator(config_provider),
            validator=AlertValidator(config_provider),
            cmdb_client=cmdb_client,
            ticket_service=ticket_service,
            correlation_service=correlation_service,
        ),
        escalation_service=escalation_service,
        scheduler=EscalationScheduler(
            escalation_service,
            interval_seconds=config_provider.get_config().escalation.interval_seconds
        ),
    )
