"""
Alert Ingestion Service
=======================

The webhook pipeline:

    authenticate -> validate -> enrich (bounded) -> create incident -> link

Authentication finishes before anything touches the ticket store. CMDB
enrichment and problem linking are best-effort: their failures are reported
in the outcome, never fatal.
"""

import time
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Union

from alertbridge.core import Err, Ok, Result
from alertbridge.enrichment.application import ICMDBClient
from alertbridge.enrichment.domain import EnrichmentOutcome
from alertbridge.ingestion.application.authenticator import (
    AuthError, AuthenticatedSource, WebhookAuthenticator
)
from alertbridge.ingestion.application.validator import AlertValidator, ValidationError
from alertbridge.ingestion.domain import AlertPayload
from alertbridge.shared.infrastructure.logging import get_logger
from alertbridge.tickets.application import (
    CorrelationService, CreateError, TicketCreationService, TicketFields
)
from alertbridge.tickets.domain import Ticket

logger = get_logger(__name__)

IngestionError = Union[AuthError, ValidationError, CreateError]


@dataclass(frozen=True)
class IngestionOutcome:
    """Everything the webhook reports back for a processed alert."""
    incident: Ticket
    processing_time_ms: int
    linked_problem_id: Optional[int] = None
    link_error: Optional[str] = None
    enrichment: Optional[EnrichmentOutcome] = None

    def to_response(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "success": True,
            "incidentId": self.incident.id,
            "incidentKey": self.incident.key,
            "processingTimeMs": self.processing_time_ms,
            "enrichment": self.enrichment.status.value if self.enrichment else "skipped",
        }
        if self.linked_problem_id is not None:
            body["linkedProblemId"] = self.linked_problem_id
        if self.link_error:
            body["linkError"] = self.link_error
        return body


def build_incident_fields(
    payload: AlertPayload,
    source: str,
    enrichment: Optional[EnrichmentOutcome] = None
) -> TicketFields:
    """Map a validated alert (plus CI data) onto incident fields."""
    custom_fields = {"source": source, "alert_type": payload.alert_type}
    if payload.environment:
        custom_fields["environment"] = payload.environment
    if payload.component:
        custom_fields["component"] = payload.component

    details = [f"Source: {source}"]
    if payload.environment:
        details.append(f"Environment: {payload.environment}")
    if payload.component:
        details.append(f"Component: {payload.component}")

    if payload.ci_id and enrichment is not None:
        record = enrichment.record_or_fallback(payload.ci_id)
        custom_fields.update({
            "cmdb_status": enrichment.status.value,
            "ci_hostname": record.hostname,
            "ci_location": record.location,
        })
        if record.ip_address:
            custom_fields["ci_ip_address"] = record.ip_address
        if record.environment:
            custom_fields["ci_environment"] = record.environment
        details.append(f"CI: {payload.ci_id} ({record.hostname}, {record.location})")

    description = "\n".join(details)
    if payload.description:
        description = f"{payload.description}\n\n{description}"

    return TicketFields(
        summary=payload.summary,
        description=description,
        ci_id=payload.ci_id,
        service=payload.service,
        severity=payload.severity,
        labels=list(payload.tags),
        custom_fields=custom_fields,
    )


class AlertIngestionService:
    """Runs one inbound alert through the pipeline."""

    def __init__(
        self,
        authenticator: WebhookAuthenticator,
        validator: AlertValidator,
        cmdb_client: ICMDBClient,
        ticket_service: TicketCreationService,
        correlation_service: CorrelationService,
    ):
        self._authenticator = authenticator
        self._validator = validator
        self._cmdb = cmdb_client
        self._tickets = ticket_service
        self._correlation = correlation_service

    async def process(
        self,
        raw_body: bytes,
        headers: Mapping[str, str],
        client_ip: Optional[str] = None,
        correlation_id: Optional[str] = None,
    ) -> Result[IngestionOutcome, IngestionError]:
        start_time = time.perf_counter()
        log_context = {"client_ip": client_ip, "correlation_id": correlation_id}

        # Cheap size rejection first; it has no side effects
        size_error = self._validator.check_size(raw_body, headers)
        if size_error is not None:
            logger.warning("Rejected oversized webhook payload", extra=log_context)
            return Err(size_error)

        auth = self._authenticator.authenticate(headers, raw_body, client_ip=client_ip)
        if isinstance(auth, Err):
            logger.warning(
                "Unauthorized webhook request",
                extra={**log_context, "reason": auth.error.kind.value}
            )
            return auth
        source: AuthenticatedSource = auth.value
        log_context["source"] = source.name

        validated = self._validator.validate(raw_body, headers)
        if isinstance(validated, Err):
            logger.warning(
                "Invalid webhook payload",
                extra={**log_context, "reason": validated.error.kind.value}
            )
            return validated
        payload: AlertPayload = validated.value

        enrichment = None
        if payload.ci_id:
            enrichment = await self._cmdb.enrich(payload.ci_id)

        created = await self._tickets.create_incident(
            build_incident_fields(payload, source.name, enrichment)
        )
        if isinstance(created, Err):
            logger.error(
                "Failed to create incident from alert",
                extra={**log_context, "reason": created.error.kind.value, "error": created.error.message}
            )
            return created
        incident: Ticket = created.value

        linked_problem_id = None
        link_error = None
        if payload.ci_id:
            linked = await self._correlation.link_incident_to_problem(incident.id, payload.ci_id)
            if isinstance(linked, Ok):
                linked_problem_id = linked.value
            else:
                link_error = linked.error.message
                logger.warning(
                    "Failed to link incident to problem",
                    extra={**log_context, "ticket_id": incident.id, "error": link_error}
                )

        processing_time_ms = int((time.perf_counter() - start_time) * 1000)
        logger.info(
            "Processed alert",
            extra={
                **log_context,
                "ticket_id": incident.id,
                "ticket_key": incident.key,
                "linked_problem_id": linked_problem_id,
                "processing_time_ms": processing_time_ms,
            }
        )

        return Ok(IngestionOutcome(
            incident=incident,
            processing_time_ms=processing_time_ms,
            linked_problem_id=linked_problem_id,
            link_error=link_error,
            enrichment=enrichment,
        ))
