"""
Escalation Scheduler
====================

Wrapper for APScheduler running the escalation sweep in the background.

``max_instances=1`` keeps a slow sweep from overlapping the next tick and
``coalesce=True`` folds missed ticks into one run.
"""

from datetime import datetime, timezone
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from alertbridge.escalation.application import EscalationService
from alertbridge.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)

JOB_ID = "sla_escalation"


class EscalationScheduler:
    """
    Manages the lifecycle of the scheduler and the sweep job.

    An unexpected sweep error is logged here; the schedule keeps running.
    """

    def __init__(self, service: EscalationService, interval_seconds: int = 300):
        self._service = service
        self.interval_seconds = interval_seconds
        self._scheduler: Optional[AsyncIOScheduler] = None
        self._running = False

    async def _run_job(self) -> None:
        try:
            await self._service.run_sweep()
        except Exception as e:
            logger.error("Escalation sweep crashed", extra={"error": str(e)}, exc_info=e)

    async def start(self) -> None:
        """Start the scheduler; the first sweep runs immediately."""
        if self._running:
            logger.warning("Escalation scheduler already running")
            return

        self._scheduler = AsyncIOScheduler()
        self._scheduler.add_job(
            self._run_job,
            "interval",
            seconds=self.interval_seconds,
            id=JOB_ID,
            name="SLA Escalation Sweep",
            next_run_time=datetime.now(timezone.utc),
            misfire_grace_time=60,
            max_instances=1,
            coalesce=True,
            replace_existing=True
        )

        self._scheduler.start()
        self._running = True

        logger.info(
            "Escalation scheduler started",
            extra={"interval_seconds": self.interval_seconds}
        )

    async def stop(self) -> None:
        """Stop the scheduler without waiting for a running sweep."""
        if not self._running:
            return

        if self._scheduler:
            self._scheduler.shutdown(wait=False)

        self._running = False
        logger.info("Escalation scheduler stopped")

    @property
    def is_running(self) -> bool:
        """Check if scheduler is running."""
        return self._running

    @property
    def next_run_time(self) -> Optional[datetime]:
        if not self._running or self._scheduler is None:
            return None
        job = self._scheduler.get_job(JOB_ID)
        return job.next_run_time if job else None
