"""Tests for the escalation sweep against the SQLAlchemy store."""

import asyncio
from datetime import timedelta

import pytest

from alertbridge.config import Severity, TicketKind, TransitionAction
from alertbridge.core import TicketStoreException
from alertbridge.escalation.application import EscalationErrorKind, EscalationService
from alertbridge.escalation.domain import SweepState
from alertbridge.tickets.application.dto import TicketInput
from alertbridge.tickets.infrastructure import SQLAlchemyTicketStore


async def create(store, kind=TicketKind.INCIDENT, severity=Severity.CRITICAL):
    return await store.create_ticket(kind, TicketInput(
        project_key="ITSM", summary="Disk full", severity=severity
    ))


class CommentFailingStore(SQLAlchemyTicketStore):
    failing_id = None

    async def add_comment(self, ticket_id, text):
        if ticket_id == self.failing_id:
            raise TicketStoreException("comment rejected")
        await super().add_comment(ticket_id, text)


class ScanFailingStore(SQLAlchemyTicketStore):
    async def find_open_tickets(self, kinds):
        raise TicketStoreException("search unavailable")


class GatedScanStore(SQLAlchemyTicketStore):
    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.gates = []

    async def find_open_tickets(self, kinds):
        gate = asyncio.Event()
        self.gates.append(gate)
        await gate.wait()
        return await super().find_open_tickets(kinds)


@pytest.fixture
def escalation(store, config_provider):
    return EscalationService(store, config_provider)


class TestRunSweep:
    @pytest.mark.asyncio
    async def test_nothing_breaching(self, escalation, store, utc_now):
        await create(store)
        report = await escalation.run_sweep(now=utc_now + timedelta(minutes=5))
        assert report.scanned == 1
        assert report.breaching == 0
        assert report.escalated == 0

    @pytest.mark.asyncio
    async def test_first_breach_reassigns_comments_and_marks(self, escalation, store, utc_now):
        ticket = await create(store)

        report = await escalation.run_sweep(now=utc_now + timedelta(minutes=31))

        assert report.escalated == 1
        assert report.failures == []
        stored = await store.get_ticket(ticket.id)
        assert stored.assignee == "l2-support"
        assert stored.has_label("sla-escalated-w1")
        comments = await store.get_comments(ticket.id)
        assert len(comments) == 1
        assert comments[0].startswith("SLA breached")

    @pytest.mark.asyncio
    async def test_second_sweep_in_same_window_does_nothing(self, escalation, store, utc_now):
        ticket = await create(store)
        now = utc_now + timedelta(minutes=31)

        await escalation.run_sweep(now=now)
        report = await escalation.run_sweep(now=now + timedelta(minutes=1))

        assert report.breaching == 1
        assert report.escalated == 0
        assert report.skipped == 1
        assert len(await store.get_comments(ticket.id)) == 1

    @pytest.mark.asyncio
    async def test_next_window_goes_to_next_tier(self, escalation, store, utc_now):
        ticket = await create(store)
        await escalation.run_sweep(now=utc_now + timedelta(minutes=31))
        await escalation.run_sweep(now=utc_now + timedelta(minutes=61))

        stored = await store.get_ticket(ticket.id)
        assert stored.assignee == "l3-support"
        assert stored.has_label("sla-escalated-w2")

    @pytest.mark.asyncio
    async def test_exhausted_tiers_keep_assignee(self, escalation, store, utc_now):
        ticket = await create(store)
        for minutes in (31, 61, 91):
            await escalation.run_sweep(now=utc_now + timedelta(minutes=minutes))

        stored = await store.get_ticket(ticket.id)
        assert stored.assignee == "l3-support"
        comments = await store.get_comments(ticket.id)
        assert len(comments) == 3
        assert "All escalation tiers exhausted" in comments[-1]

    @pytest.mark.asyncio
    async def test_closed_and_change_tickets_untouched(self, escalation, store, utc_now):
        closed = await create(store)
        await store.transition_ticket(closed.id, TransitionAction.CLOSE)
        change = await create(store, kind=TicketKind.CHANGE)

        report = await escalation.run_sweep(now=utc_now + timedelta(days=3))

        assert report.scanned == 0
        assert await store.get_comments(closed.id) == []
        assert await store.get_comments(change.id) == []

    @pytest.mark.asyncio
    async def test_failure_on_one_ticket_does_not_stop_others(self, session_maker, config_provider, utc_now):
        store = CommentFailingStore(session_maker)
        failing = await create(store)
        healthy = await create(store)
        store.failing_id = failing.id
        service = EscalationService(store, config_provider)

        report = await service.run_sweep(now=utc_now + timedelta(minutes=31))

        assert report.escalated == 1
        assert [(f.kind, f.ticket_id) for f in report.failures] == [
            (EscalationErrorKind.COMMENT_FAILED, failing.id)
        ]
        assert (await store.get_ticket(healthy.id)).has_label("sla-escalated-w1")
        assert not (await store.get_ticket(failing.id)).has_label("sla-escalated-w1")

    @pytest.mark.asyncio
    async def test_unmarked_failure_retried_next_sweep(self, session_maker, config_provider, utc_now):
        store = CommentFailingStore(session_maker)
        ticket = await create(store)
        store.failing_id = ticket.id
        service = EscalationService(store, config_provider)
        now = utc_now + timedelta(minutes=31)

        await service.run_sweep(now=now)
        store.failing_id = None
        report = await service.run_sweep(now=now + timedelta(minutes=1))

        assert report.escalated == 1
        assert (await store.get_ticket(ticket.id)).has_label("sla-escalated-w1")

    @pytest.mark.asyncio
    async def test_scan_failure_reported(self, session_maker, config_provider):
        service = EscalationService(ScanFailingStore(session_maker), config_provider)

        report = await service.run_sweep()

        assert [f.kind for f in report.failures] == [EscalationErrorKind.SCAN_FAILED]
        assert report.finished_at is not None
        assert service.state == SweepState.IDLE

    @pytest.mark.asyncio
    async def test_state_and_last_report(self, escalation, store, utc_now):
        assert escalation.state == SweepState.IDLE
        assert escalation.last_report is None

        report = await escalation.run_sweep(now=utc_now)

        assert escalation.state == SweepState.IDLE
        assert escalation.last_report is report
        assert report.to_dict()["failures"] == []

    @pytest.mark.asyncio
    async def test_overlapping_sweeps_keep_state_until_both_finish(self, session_maker, config_provider):
        store = GatedScanStore(session_maker)
        service = EscalationService(store, config_provider)

        first = asyncio.create_task(service.run_sweep())
        second = asyncio.create_task(service.run_sweep())
        while len(store.gates) < 2:
            await asyncio.sleep(0)
        assert service.active_sweeps == 2

        store.gates[0].set()
        await first
        assert service.state == SweepState.SCANNING
        assert service.active_sweeps == 1

        store.gates[1].set()
        await second
        assert service.state == SweepState.IDLE
        assert service.active_sweeps == 0
