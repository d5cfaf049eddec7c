"""Tests for the APScheduler wrapper around the escalation sweep."""

import asyncio

import pytest

from alertbridge.escalation.infrastructure import EscalationScheduler


class CountingService:
    def __init__(self, error=None):
        self.calls = 0
        self.error = error

    async def run_sweep(self):
        self.calls += 1
        if self.error is not None:
            raise self.error


class TestEscalationScheduler:
    @pytest.mark.asyncio
    async def test_start_and_stop(self):
        scheduler = EscalationScheduler(CountingService(), interval_seconds=60)

        await scheduler.start()
        assert scheduler.is_running
        assert scheduler.next_run_time is not None

        await scheduler.stop()
        assert not scheduler.is_running
        assert scheduler.next_run_time is None

    @pytest.mark.asyncio
    async def test_first_sweep_runs_immediately(self):
        service = CountingService()
        scheduler = EscalationScheduler(service, interval_seconds=60)

        await scheduler.start()
        for _ in range(50):
            if service.calls:
                break
            await asyncio.sleep(0.02)
        await scheduler.stop()

        assert service.calls == 1

    @pytest.mark.asyncio
    async def test_start_twice_is_harmless(self):
        scheduler = EscalationScheduler(CountingService(), interval_seconds=60)
        await scheduler.start()
        await scheduler.start()
        assert scheduler.is_running
        await scheduler.stop()

    @pytest.mark.asyncio
    async def test_stop_without_start(self):
        scheduler = EscalationScheduler(CountingService())
        await scheduler.stop()
        assert not scheduler.is_running

    @pytest.mark.asyncio
    async def test_crashing_sweep_does_not_escape_job(self):
        service = CountingService(error=RuntimeError("boom"))
        scheduler = EscalationScheduler(service)
        await scheduler._run_job()
        assert service.calls == 1
