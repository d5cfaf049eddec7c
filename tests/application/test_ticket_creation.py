"""Tests for TicketCreationService against the SQLAlchemy store."""

from datetime import datetime, timezone

import pytest

from alertbridge.config import Severity, TicketKind, TicketStatus
from alertbridge.config.runtime import RuntimeConfig, StaticConfigProvider, TicketsConfig
from alertbridge.core import Err, Ok, TicketStoreException
from alertbridge.tickets.application import (
    ChangeRequest, CreateErrorKind, TicketCreationService, TicketFields
)
from alertbridge.tickets.infrastructure import SQLAlchemyTicketStore


class FailingAssignStore(SQLAlchemyTicketStore):
    async def assign_ticket(self, ticket_id, assignee):
        raise TicketStoreException("assignee does not exist")


class FailingCreateStore(SQLAlchemyTicketStore):
    async def create_ticket(self, kind, fields):
        raise TicketStoreException("tracker unavailable")


@pytest.fixture
def service(store, config_provider):
    return TicketCreationService(store, config_provider)


class TestCreateIncident:
    @pytest.mark.asyncio
    async def test_creates_open_incident(self, service, store):
        result = await service.create_incident(TicketFields(
            summary="Disk full",
            ci_id="srv-42",
            severity=Severity.HIGH,
            labels=["disk"],
            custom_fields={"source": "prometheus"},
        ))
        assert isinstance(result, Ok)
        incident = result.value
        assert incident.kind == TicketKind.INCIDENT
        assert incident.status == TicketStatus.OPEN
        assert incident.key == f"ITSM-{incident.id}"

        stored = await store.get_ticket(incident.id)
        assert stored.ci_id == "srv-42"
        assert stored.severity == Severity.HIGH
        assert stored.labels == frozenset({"disk"})
        assert stored.custom_fields["source"] == "prometheus"

    @pytest.mark.asyncio
    async def test_auto_assigns_from_service_mapping(self, service, store):
        incident = (await service.create_incident(TicketFields(summary="x", service="DB"))).value
        assert incident.assignee == "dba"
        assert (await store.get_ticket(incident.id)).assignee == "dba"

    @pytest.mark.asyncio
    async def test_unmapped_service_gets_default_assignee(self, service):
        incident = (await service.create_incident(TicketFields(summary="x", service="web"))).value
        assert incident.assignee == "oncall"

    @pytest.mark.asyncio
    async def test_assignment_failure_keeps_incident(self, session_maker, config_provider):
        store = FailingAssignStore(session_maker, project_keys=["ITSM"])
        service = TicketCreationService(store, config_provider)

        result = await service.create_incident(TicketFields(summary="x", service="db"))

        assert isinstance(result, Ok)
        assert result.value.assignee is None
        assert await store.get_ticket(result.value.id) is not None

    @pytest.mark.asyncio
    async def test_schema_violation_is_validation_failure(self, service):
        result = await service.create_incident(TicketFields(summary="x" * 1001))
        assert isinstance(result, Err)
        assert result.error.kind == CreateErrorKind.VALIDATION_FAILED
        assert "summary" in result.error.details
        assert result.error.http_status == 400

    @pytest.mark.asyncio
    async def test_unknown_project_is_validation_failure(self, store):
        provider = StaticConfigProvider(RuntimeConfig(tickets=TicketsConfig(project_key="OPS")))
        service = TicketCreationService(store, provider)
        result = await service.create_incident(TicketFields(summary="x"))
        assert result.error.kind == CreateErrorKind.VALIDATION_FAILED
        assert "project_key" in result.error.details

    @pytest.mark.asyncio
    async def test_store_failure_is_creation_failure(self, session_maker, config_provider):
        service = TicketCreationService(FailingCreateStore(session_maker), config_provider)
        result = await service.create_incident(TicketFields(summary="x"))
        assert result.error.kind == CreateErrorKind.CREATION_FAILED
        assert result.error.http_status == 500
        assert "tracker unavailable" in result.error.message


class TestCreateChangeFromProblem:
    @pytest.mark.asyncio
    async def test_copies_problem_fields(self, service):
        problem = (await service.create_problem(TicketFields(
            summary="Recurring disk exhaustion",
            description="Log rotation broken",
            ci_id="srv-42",
            service="db",
        ))).value

        change = (await service.create_change_from_problem(problem)).value

        assert change.kind == TicketKind.CHANGE
        assert change.project_key == problem.project_key
        assert change.ci_id == "srv-42"
        assert change.summary == "Change Request for Problem: Recurring disk exhaustion"
        assert problem.key in change.description
        assert "Log rotation broken" in change.description
        assert change.custom_fields["source_problem"] == problem.key

    @pytest.mark.asyncio
    async def test_problem_without_ci(self, service):
        problem = (await service.create_problem(TicketFields(summary="Flaky DNS"))).value
        change = (await service.create_change_from_problem(problem)).value
        assert change.ci_id is None

    @pytest.mark.asyncio
    async def test_request_overrides(self, service):
        problem = (await service.create_problem(TicketFields(summary="Flaky DNS"))).value
        start = datetime(2024, 2, 1, 22, 0, tzinfo=timezone.utc)
        change = (await service.create_change_from_problem(problem, ChangeRequest(
            summary="Replace resolvers",
            planned_start=start,
        ))).value
        assert change.summary == "Replace resolvers"
        assert change.custom_fields["planned_start"] == start.isoformat()

    @pytest.mark.asyncio
    async def test_get_ticket_key(self, service):
        problem = (await service.create_problem(TicketFields(summary="x"))).value
        assert await service.get_ticket_key(problem.id) == problem.key
        assert await service.get_ticket_key(9999) is None
